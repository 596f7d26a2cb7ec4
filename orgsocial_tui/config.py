"""Settings for orgsocial-tui.

Values come from the environment (optionally a `.env` file loaded with
python-dotenv). The local nick falls back to whatever was stored in the
system keyring under the `orgsocial-tui` service, then to "yourname".

Environment:
  - ORGSOCIAL_FILE          path to a tokenized corpus export (JSON)
  - BACKEND_URL             HTTP backend serving the same JSON at /feed
  - ORGSOCIAL_NICK          local user's nick
  - ORGSOCIAL_FEED_URL      local user's canonical feed location
  - ORGSOCIAL_CHILD_ORDER   "timestamp" (default) or "arrival"
  - ORGSOCIAL_DEBUG         when set, write debug logs to ~/.orgsocial_tui_debug.log
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError
from dotenv import load_dotenv

SERVICE_NAME = "orgsocial-tui"
NICK_KEY = "nick"
DEFAULT_NICK = "yourname"
DEBUG_LOG_FILE = Path.home() / ".orgsocial_tui_debug.log"
CHILD_ORDERS = ("timestamp", "arrival")

logger = logging.getLogger("orgsocial_tui.config")


@dataclass
class Settings:
    corpus_file: Optional[Path] = None
    backend_url: Optional[str] = None
    nick: str = DEFAULT_NICK
    feed_url: Optional[str] = None
    child_order: str = "timestamp"
    debug: bool = False


def _stored_nick() -> Optional[str]:
    try:
        return keyring.get_password(SERVICE_NAME, NICK_KEY)
    except KeyringError as e:
        logger.debug("config: keyring lookup failed: %s", e)
        return None


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file, override=True)

    corpus = os.getenv("ORGSOCIAL_FILE")
    child_order = os.getenv("ORGSOCIAL_CHILD_ORDER", "timestamp").strip().lower()
    if child_order not in CHILD_ORDERS:
        logger.warning("config: unknown ORGSOCIAL_CHILD_ORDER %r, using timestamp", child_order)
        child_order = "timestamp"

    return Settings(
        corpus_file=Path(corpus).expanduser() if corpus else None,
        backend_url=os.getenv("BACKEND_URL") or None,
        nick=os.getenv("ORGSOCIAL_NICK") or _stored_nick() or DEFAULT_NICK,
        feed_url=os.getenv("ORGSOCIAL_FEED_URL") or None,
        child_order=child_order,
        debug=bool(os.getenv("ORGSOCIAL_DEBUG")),
    )


def configure_logging(debug: bool) -> None:
    """Attach the debug file handler to the package logger when debugging."""
    root = logging.getLogger("orgsocial_tui")
    if not debug:
        root.setLevel(logging.WARNING)
        return
    if not any(isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == str(DEBUG_LOG_FILE) for h in root.handlers):
        try:
            fh = logging.FileHandler(str(DEBUG_LOG_FILE), encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
            root.addHandler(fh)
        except OSError:
            # never fail the UI for logging issues
            pass
    root.setLevel(logging.DEBUG)
