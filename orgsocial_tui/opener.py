"""Opens activated links and mentions outside the terminal."""
import logging
import webbrowser
from typing import Callable, Optional

logger = logging.getLogger("orgsocial_tui.opener")


def open_target(target: str, copy: Optional[Callable[[str], None]] = None) -> str:
    """Open target in the browser; fall back to copying it. Returns a status line."""
    try:
        if webbrowser.open(target):
            return f"Opened link: {target}"
    except webbrowser.Error as e:
        logger.debug("opener: browser failed for %s: %s", target, e)
    if copy is not None:
        copy(target)
        return f"Copied link: {target}"
    return f"Failed to open link: {target}"
