"""
Key events -> actions -> state changes.

`handle_key` is the only place cursors and registry focus are mutated.
It always finishes within the call and tells the caller what to do next
through the returned Effect.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .controller import AppState, ViewMode
from .errors import EmptyRegistryActivation, UnresolvableMentionTarget

logger = logging.getLogger("orgsocial_tui.navigation")

PAGE_STEP = 5


class Action(str, Enum):
    NEXT_POST = "next_post"
    PREV_POST = "prev_post"
    FIRST_POST = "first_post"
    LAST_POST = "last_post"
    SCROLL_DOWN = "scroll_down"
    SCROLL_UP = "scroll_up"
    PAGE_DOWN = "page_down"
    PAGE_UP = "page_up"
    CYCLE_VIEW = "cycle_view"
    NEXT_ELEMENT = "next_element"
    PREV_ELEMENT = "prev_element"
    ACTIVATE = "activate"
    CANCEL = "cancel"
    RELOAD = "reload"
    HELP = "help"
    QUIT = "quit"


KEYMAP: Dict[str, Action] = {
    "j": Action.NEXT_POST,
    "down": Action.NEXT_POST,
    "k": Action.PREV_POST,
    "up": Action.PREV_POST,
    "g": Action.FIRST_POST,
    "home": Action.FIRST_POST,
    "G": Action.LAST_POST,
    "end": Action.LAST_POST,
    "d": Action.SCROLL_DOWN,
    "pagedown": Action.SCROLL_DOWN,
    "u": Action.SCROLL_UP,
    "pageup": Action.SCROLL_UP,
    "ctrl+d": Action.PAGE_DOWN,
    "ctrl+u": Action.PAGE_UP,
    "t": Action.CYCLE_VIEW,
    "l": Action.NEXT_ELEMENT,
    "tab": Action.NEXT_ELEMENT,
    "L": Action.PREV_ELEMENT,
    "shift+tab": Action.PREV_ELEMENT,
    "enter": Action.ACTIVATE,
    "escape": Action.CANCEL,
    "r": Action.RELOAD,
    "h": Action.HELP,
    "question_mark": Action.HELP,
    "?": Action.HELP,
    "q": Action.QUIT,
}

HELP_LINES = [
    ("j / k", "next / previous post"),
    ("g / G", "first / last post"),
    ("ctrl+d / ctrl+u", "move down / up by 5 posts"),
    ("d / u", "scroll post content"),
    ("t", "cycle list / threaded / notifications"),
    ("l / tab", "focus next link or mention"),
    ("L / shift+tab", "focus previous link or mention"),
    ("enter", "open focused link or mention"),
    ("escape", "clear focus"),
    ("r", "reload feed"),
    ("h / ?", "toggle help"),
    ("q", "quit"),
]


@dataclass(frozen=True)
class KeyEvent:
    key: str
    character: Optional[str] = None


class EffectKind(str, Enum):
    REDRAW = "redraw"
    ACTIVATE = "activate"
    NONE = "none"
    QUIT = "quit"
    HELP = "help"
    RELOAD = "reload"


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    target: Optional[str] = None

    @classmethod
    def redraw(cls) -> "Effect":
        return cls(EffectKind.REDRAW)

    @classmethod
    def none(cls) -> "Effect":
        return cls(EffectKind.NONE)

    @classmethod
    def activate(cls, target: str) -> "Effect":
        return cls(EffectKind.ACTIVATE, target)


def action_for(event: KeyEvent) -> Optional[Action]:
    action = KEYMAP.get(event.key)
    if action is None and event.character:
        action = KEYMAP.get(event.character)
    return action


def _select(state: AppState, index: int) -> bool:
    """Move the active mode's selection, keeping it inside the visible window."""
    units = state.units()
    if not units:
        return False
    cursor = state.cursor()
    index = min(max(index, 0), len(units) - 1)
    if index == cursor.selected:
        return False
    cursor.selected = index
    cursor.content_scroll = 0
    height = max(state.list_height, 1)
    if cursor.selected < cursor.scroll:
        cursor.scroll = cursor.selected
    elif cursor.selected >= cursor.scroll + height:
        cursor.scroll = cursor.selected - height + 1
    # the detail pane now shows another post
    state.registry.clear_focus()
    return True


def _scroll_content(state: AppState, delta: int) -> bool:
    cursor = state.cursor()
    limit = max(state.content_rows - 1, 0)
    new = min(max(cursor.content_scroll + delta, 0), limit)
    if new == cursor.content_scroll:
        return False
    cursor.content_scroll = new
    return True


def _describe_focus(state: AppState) -> None:
    element = state.registry.focused()
    if element is None:
        return
    if element.is_mention:
        where = element.target or "target unavailable"
        state.status_message = f"Mention: {element.label} ({where})"
    else:
        state.status_message = f"Link: {element.target}"


def handle_key(state: AppState, event: KeyEvent) -> Effect:
    action = action_for(event)
    if action is None:
        return Effect.none()
    logger.debug("navigation: key %s -> %s", event.key, action.value)
    cursor = state.cursor()

    if action is Action.NEXT_POST:
        return Effect.redraw() if _select(state, cursor.selected + 1) else Effect.none()
    if action is Action.PREV_POST:
        return Effect.redraw() if _select(state, cursor.selected - 1) else Effect.none()
    if action is Action.FIRST_POST:
        return Effect.redraw() if _select(state, 0) else Effect.none()
    if action is Action.LAST_POST:
        return Effect.redraw() if _select(state, len(state.units()) - 1) else Effect.none()
    if action is Action.PAGE_DOWN:
        return Effect.redraw() if _select(state, cursor.selected + PAGE_STEP) else Effect.none()
    if action is Action.PAGE_UP:
        return Effect.redraw() if _select(state, cursor.selected - PAGE_STEP) else Effect.none()
    if action is Action.SCROLL_DOWN:
        return Effect.redraw() if _scroll_content(state, 1) else Effect.none()
    if action is Action.SCROLL_UP:
        return Effect.redraw() if _scroll_content(state, -1) else Effect.none()

    if action is Action.CYCLE_VIEW:
        mode = state.controller.cycle()
        state.registry.clear_focus()
        state.status_message = f"Switched to {mode.display_name.lower()}"
        return Effect.redraw()

    if action in (Action.NEXT_ELEMENT, Action.PREV_ELEMENT):
        moved = (
            state.registry.focus_next()
            if action is Action.NEXT_ELEMENT
            else state.registry.focus_previous()
        )
        if moved:
            _describe_focus(state)
        else:
            state.status_message = "No activatable elements found in current view"
        return Effect.redraw()

    if action is Action.ACTIVATE:
        try:
            target = state.registry.activate()
        except EmptyRegistryActivation:
            state.status_message = "No element currently focused"
            return Effect.redraw()
        except UnresolvableMentionTarget as e:
            state.status_message = f"Mention target unavailable: {e.username}"
            return Effect.redraw()
        return Effect.activate(target)

    if action is Action.CANCEL:
        had_focus = state.registry.focused_index is not None or state.status_message
        state.registry.clear_focus()
        state.status_message = None
        return Effect.redraw() if had_focus else Effect.none()

    if action is Action.RELOAD:
        return Effect(EffectKind.RELOAD)
    if action is Action.HELP:
        return Effect(EffectKind.HELP)
    return Effect(EffectKind.QUIT)


def status_hint(mode: ViewMode) -> str:
    return (
        f"{mode.display_name} | q:quit | j/k:nav | d/u:scroll | g/G:top/bottom "
        f"| t:toggle view | l/L:links | enter:open | h:help"
    )
