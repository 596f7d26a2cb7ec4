"""
One full frame: post list, detail pane and status lines.

Rendering reads the state and rebuilds the activatable registry. It does not
move selections; it only clamps the list window so the selection is visible
and the detail-pane scroll to the rendered length.
Same state in, same frame and same registry contents out.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from rich.style import Style
from rich.text import Text

from .arrangement import DisplayUnit
from .controller import AppState, ViewMode
from .navigation import status_hint
from .renderer import render_post, summarize

logger = logging.getLogger("orgsocial_tui.frame")

LIST_SHARE = 0.3
MIN_LIST_WIDTH = 12
STATUS_ROWS = 2

TITLE_STYLE = Style(bold=True)
AUTHOR_STYLE = Style(color="green")
TIME_STYLE = Style(color="blue")
KIND_STYLE = Style(color="cyan", bold=True)
SELECTED_STYLE = Style(color="yellow", bold=True, bgcolor="grey23")
EMPTY_STYLE = Style(color="grey62")


@dataclass
class Frame:
    list_lines: List[Text] = field(default_factory=list)
    content_lines: List[Text] = field(default_factory=list)
    status_lines: List[Text] = field(default_factory=list)
    list_width: int = 0
    content_width: int = 0

    def plain(self) -> Tuple[List[str], List[str], List[str]]:
        return (
            [t.plain for t in self.list_lines],
            [t.plain for t in self.content_lines],
            [t.plain for t in self.status_lines],
        )


def split_width(width: int) -> Tuple[int, int]:
    list_width = min(max(int(width * LIST_SHARE), MIN_LIST_WIDTH), max(width - 1, 1))
    return list_width, max(width - list_width - 1, 1)


def list_title(state: AppState, mode: ViewMode) -> str:
    units = state.units(mode)
    position = state.cursor(mode).selected + 1 if units else 0
    if mode is ViewMode.THREADED:
        stats = state.arrangements.thread_stats
        return f"Threads ({position}/{len(units)} - {stats.threads} threads, {stats.posts} total posts)"
    if mode is ViewMode.NOTIFICATIONS:
        return f"Notifications ({position}/{len(units)})"
    return f"Posts ({position}/{len(units)})"


def _list_line(unit: DisplayUnit, width: int, selected: bool) -> Text:
    post = unit.post
    prefix = "  " * unit.depth
    kind = f"{unit.kind.label} " if unit.kind is not None else ""
    author = f"{post.author or 'unknown'}: "
    stamp = f" ({post.timestamp.strftime('%d-%m %H:%M')})"
    room = width - len(prefix) - len(kind) - len(author) - len(stamp)
    if room < 8:
        stamp = ""
        room = width - len(prefix) - len(kind) - len(author)

    line = Text(no_wrap=True, overflow="ellipsis")
    line.append(prefix)
    if kind:
        line.append(kind, KIND_STYLE)
    line.append(author, AUTHOR_STYLE)
    line.append(summarize(post, room))
    if stamp:
        line.append(stamp, TIME_STYLE)
    line.truncate(width)
    if selected:
        line.stylize(SELECTED_STYLE)
    return line


def render_list(state: AppState, mode: ViewMode, width: int, height: int) -> List[Text]:
    lines = [Text(list_title(state, mode), TITLE_STYLE)]
    units = state.units(mode)
    if not units:
        empty = "No notifications" if mode is ViewMode.NOTIFICATIONS else "No posts available"
        lines.append(Text(empty, EMPTY_STYLE))
        return lines
    cursor = state.cursor(mode)
    rows = max(height - 1, 1)
    # keep the selection inside the window after a resize
    if cursor.selected < cursor.scroll:
        cursor.scroll = cursor.selected
    elif cursor.selected >= cursor.scroll + rows:
        cursor.scroll = cursor.selected - rows + 1
    for index in range(cursor.scroll, min(cursor.scroll + rows, len(units))):
        lines.append(_list_line(units[index], width, index == cursor.selected))
    return lines


def render_content(state: AppState, mode: ViewMode, width: int, height: int) -> List[Text]:
    registry = state.registry
    carried = registry.focused_index
    registry.reset()
    post = state.current_post(mode)
    if post is None:
        registry.restore_focus(None)
        state.content_rows = 0
        empty = "No notifications" if mode is ViewMode.NOTIFICATIONS else "No posts available"
        return [Text(empty, EMPTY_STYLE)]

    content = render_post(post, width, registry, state.arrangements.directory)
    registry.restore_focus(carried)
    content.apply_focus(registry)

    cursor = state.cursor(mode)
    state.content_rows = len(content)
    cursor.content_scroll = min(cursor.content_scroll, max(len(content) - 1, 0))
    return content.to_text(cursor.content_scroll, max(height, 1))


def render_status(state: AppState, mode: ViewMode) -> List[Text]:
    return [
        Text(state.status_message or ""),
        Text(status_hint(mode), EMPTY_STYLE),
    ]


def render_frame(state: AppState, width: int, height: int, mode: Optional[ViewMode] = None) -> Tuple[Frame, int]:
    """Render everything for mode (default: the active one); returns the frame and the activatable count."""
    mode = mode or state.mode
    list_width, content_width = split_width(width)
    body = max(height - STATUS_ROWS, 1)
    state.list_height = max(body - 1, 1)
    state.content_height = body

    frame = Frame(
        list_lines=render_list(state, mode, list_width, body),
        content_lines=render_content(state, mode, content_width, body),
        status_lines=render_status(state, mode),
        list_width=list_width,
        content_width=content_width,
    )
    return frame, len(state.registry)
