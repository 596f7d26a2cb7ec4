"""Activatable elements (links and mentions) discovered while rendering.

The registry is rebuilt on every render pass. Elements are kept in render
order in a plain list and focus is just an index into that list, so nothing
outlives the pass that produced it. Focus cycling wraps at both ends.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from .errors import EmptyRegistryActivation, IndexOutOfRange, UnresolvableMentionTarget

logger = logging.getLogger("orgsocial_tui.registry")


class ActivatableKind(str, Enum):
    LINK = "link"
    MENTION = "mention"


@dataclass(frozen=True)
class ActivatableElement:
    kind: ActivatableKind
    target: Optional[str]
    label: str
    row: int
    start_col: int
    end_col: int
    index: int

    @property
    def is_mention(self) -> bool:
        return self.kind is ActivatableKind.MENTION


class ActivatableRegistry:
    def __init__(self):
        self._elements: List[ActivatableElement] = []
        self._focused: Optional[int] = None

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[ActivatableElement]:
        return iter(self._elements)

    def __getitem__(self, index: int) -> ActivatableElement:
        self._check(index)
        return self._elements[index]

    @property
    def elements(self) -> List[ActivatableElement]:
        return list(self._elements)

    @property
    def focused_index(self) -> Optional[int]:
        return self._focused

    def reset(self) -> None:
        """Start a new render pass."""
        self._elements = []
        self._focused = None

    def register(
        self,
        kind: ActivatableKind,
        target: Optional[str],
        label: str,
        row: int,
        start_col: int,
        end_col: int,
    ) -> int:
        index = len(self._elements)
        self._elements.append(
            ActivatableElement(kind, target, label, row, start_col, end_col, index)
        )
        return index

    def restore_focus(self, index: Optional[int]) -> None:
        """Re-apply a focus index carried over from the previous pass, clamped."""
        if index is None or not self._elements:
            self._focused = None
        else:
            self._focused = min(max(index, 0), len(self._elements) - 1)

    def clear_focus(self) -> None:
        self._focused = None

    def focus_next(self) -> bool:
        if not self._elements:
            return False
        if self._focused is None:
            self._focused = 0
        else:
            self._focused = (self._focused + 1) % len(self._elements)
        return True

    def focus_previous(self) -> bool:
        if not self._elements:
            return False
        if self._focused is None:
            self._focused = len(self._elements) - 1
        else:
            self._focused = (self._focused - 1) % len(self._elements)
        return True

    def focused(self) -> Optional[ActivatableElement]:
        if self._focused is None:
            return None
        return self._elements[self._focused]

    def is_focused(self, index: int) -> bool:
        return self._focused is not None and self._focused == index

    def is_mention_focused(self, index: int) -> bool:
        return (
            self.is_focused(index)
            and self._elements[index].is_mention
        )

    def is_link_focused(self, index: int) -> bool:
        return (
            self.is_focused(index)
            and self._elements[index].kind is ActivatableKind.LINK
        )

    def activate(self, index: Optional[int] = None) -> str:
        """Return the target of the element at index (default: the focused one)."""
        if index is None:
            index = self._focused
        if index is None or not self._elements:
            raise EmptyRegistryActivation("No element currently focused")
        self._check(index)
        element = self._elements[index]
        if element.target is None:
            raise UnresolvableMentionTarget(element.label)
        logger.debug("registry: activating %s %s", element.kind.value, element.target)
        return element.target

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self._elements):
            raise IndexOutOfRange(
                f"activatable index {index} out of range for {len(self._elements)} element(s)"
            )
