"""View modes, per-mode cursors and the application state they live in."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .arrangement import (
    DisplayUnit,
    ThreadStats,
    build_list,
    build_notifications,
    build_threaded,
)
from .data_models import LocalUser, Post
from .registry import ActivatableRegistry
from .renderer import MentionDirectory

logger = logging.getLogger("orgsocial_tui.controller")


class ViewMode(str, Enum):
    LIST = "list"
    THREADED = "threaded"
    NOTIFICATIONS = "notifications"

    def next(self) -> "ViewMode":
        order = list(ViewMode)
        return order[(order.index(self) + 1) % len(order)]

    @property
    def display_name(self) -> str:
        return {
            ViewMode.LIST: "List View",
            ViewMode.THREADED: "Threaded View",
            ViewMode.NOTIFICATIONS: "Notifications",
        }[self]


@dataclass
class CursorState:
    selected: int = 0
    scroll: int = 0  # first visible row of the post list
    content_scroll: int = 0  # first visible row of the detail pane

    def clamp(self, length: int) -> None:
        if length <= 0:
            self.selected = self.scroll = self.content_scroll = 0
            return
        self.selected = min(max(self.selected, 0), length - 1)
        self.scroll = min(max(self.scroll, 0), self.selected)


class ViewModeController:
    """List -> Threaded -> Notifications -> List, one cursor per mode."""

    def __init__(self, initial: ViewMode = ViewMode.LIST):
        self.mode = initial
        self._cursors: Dict[ViewMode, CursorState] = {m: CursorState() for m in ViewMode}

    def cycle(self) -> ViewMode:
        self.mode = self.mode.next()
        logger.debug("controller: switched to %s", self.mode.value)
        return self.mode

    def cursor(self, mode: Optional[ViewMode] = None) -> CursorState:
        return self._cursors[mode or self.mode]


@dataclass(frozen=True)
class Arrangements:
    """Everything derived from one corpus load. Replaced as a whole, never mutated."""
    chronological: List[DisplayUnit] = field(default_factory=list)
    threaded: List[DisplayUnit] = field(default_factory=list)
    notifications: List[DisplayUnit] = field(default_factory=list)
    thread_stats: ThreadStats = field(default_factory=ThreadStats)
    directory: MentionDirectory = field(default_factory=MentionDirectory)

    def for_mode(self, mode: ViewMode) -> List[DisplayUnit]:
        return {
            ViewMode.LIST: self.chronological,
            ViewMode.THREADED: self.threaded,
            ViewMode.NOTIFICATIONS: self.notifications,
        }[mode]


def build_arrangements(posts: Sequence[Post], user: LocalUser, child_order: str = "timestamp") -> Arrangements:
    stats = ThreadStats()
    return Arrangements(
        chronological=build_list(posts),
        threaded=build_threaded(posts, child_order=child_order, stats=stats),
        notifications=build_notifications(posts, user),
        thread_stats=stats,
        directory=MentionDirectory.from_corpus(posts, user),
    )


class AppState:
    """The one state value the input handler and renderer are given."""

    def __init__(self, user: LocalUser, posts: Sequence[Post] = (), child_order: str = "timestamp"):
        self.user = user
        self.child_order = child_order
        self.controller = ViewModeController()
        self.registry = ActivatableRegistry()
        self.status_message: Optional[str] = None
        self.list_height = 0  # rows of the post list shown in the last frame
        self.content_height = 0
        self.content_rows = 0  # rows of the selected post's rendered content
        self.posts: List[Post] = []
        self.arrangements = Arrangements()
        self.load_corpus(posts)

    def load_corpus(self, posts: Sequence[Post]) -> None:
        posts = list(posts)
        arrangements = build_arrangements(posts, self.user, self.child_order)
        # single swap: a frame sees either the old or the new corpus
        self.posts, self.arrangements = posts, arrangements
        for mode in ViewMode:
            self.controller.cursor(mode).clamp(len(arrangements.for_mode(mode)))
        self.registry.clear_focus()
        logger.debug(
            "controller: corpus loaded, %d posts, %d threads, %d notifications",
            len(posts), arrangements.thread_stats.threads, len(arrangements.notifications),
        )

    @property
    def mode(self) -> ViewMode:
        return self.controller.mode

    @property
    def notification_feed(self) -> List[DisplayUnit]:
        return self.arrangements.notifications

    def cursor(self, mode: Optional[ViewMode] = None) -> CursorState:
        return self.controller.cursor(mode)

    def units(self, mode: Optional[ViewMode] = None) -> List[DisplayUnit]:
        return self.arrangements.for_mode(mode or self.mode)

    def current_unit(self, mode: Optional[ViewMode] = None) -> Optional[DisplayUnit]:
        units = self.units(mode)
        cursor = self.cursor(mode)
        if 0 <= cursor.selected < len(units):
            return units[cursor.selected]
        return None

    def current_post(self, mode: Optional[ViewMode] = None) -> Optional[Post]:
        unit = self.current_unit(mode)
        return unit.post if unit else None
