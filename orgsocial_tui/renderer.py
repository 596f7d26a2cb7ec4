"""
Token stream -> styled, position-tracked lines.

The renderer walks a post's tokens exactly once. Text runs are word-wrapped
to the pane width, style markers toggle entries on a style stack, links and
mentions become activatable spans registered at the row/column where they
land. Nothing here looks inside text for markup: the tokens already say
what is a link, a mention or emphasis.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from rich.style import Style
from rich.text import Text as RichText

from .data_models import (
    BlockBoundary,
    BlockGroup,
    Link,
    LocalUser,
    Mention,
    Post,
    StyleKind,
    StyleMarker,
    Text,
    Token,
    normalize_url,
)
from .registry import ActivatableKind, ActivatableRegistry

logger = logging.getLogger("orgsocial_tui.renderer")

STYLE_MAP: Dict[StyleKind, Style] = {
    StyleKind.BOLD: Style(bold=True),
    StyleKind.ITALIC: Style(italic=True),
    StyleKind.UNDERLINE: Style(underline=True),
    StyleKind.STRIKETHROUGH: Style(strike=True),
    StyleKind.CODE: Style(color="white", bgcolor="grey23"),
}

LINK_STYLE = Style(color="blue", underline=True)
LINK_FOCUS_STYLE = Style(color="bright_blue", bgcolor="grey30", bold=True, underline=True)
MENTION_STYLE = Style(color="cyan", underline=True)
MENTION_FOCUS_STYLE = Style(color="bright_cyan", bgcolor="grey30", bold=True, underline=True)

QUOTE_STYLE = Style(italic=True, dim=True)
BLOCK_LABEL_STYLE = Style(color="cyan", dim=True)
GUTTER = "│ "
GUTTER_BLOCKS = ("quote", "verse")
CODE_BLOCKS = ("src", "example")

HEADER_KEY_STYLE = Style(color="grey62")
HEADER_STYLES = {
    "Author": Style(color="green", bold=True),
    "Time": Style(color="blue"),
    "ID": Style(color="yellow"),
    "Tags": Style(color="cyan"),
    "Reply to": Style(color="magenta"),
    "Mood": Style(color="yellow"),
}

_WORDS = re.compile(r"\S+|\s+")


@dataclass
class Segment:
    text: str
    style: Style = field(default_factory=Style)
    element: Optional[int] = None


@dataclass
class RenderedContent:
    lines: List[List[Segment]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.lines)

    def plain_lines(self) -> List[str]:
        return ["".join(s.text for s in line) for line in self.lines]

    def to_text(self, start: int = 0, count: Optional[int] = None) -> List[RichText]:
        end = None if count is None else start + count
        out = []
        for line in self.lines[start:end]:
            text = RichText()
            for seg in line:
                text.append(seg.text, seg.style)
            out.append(text)
        return out

    def apply_focus(self, registry: ActivatableRegistry) -> None:
        """Highlight the segments of the focused element, keeping link/mention colors apart."""
        index = registry.focused_index
        if index is None:
            return
        for line in self.lines:
            for seg in line:
                if seg.element != index:
                    continue
                if registry.is_mention_focused(index):
                    seg.style = seg.style + MENTION_FOCUS_STYLE
                elif registry.is_link_focused(index):
                    seg.style = seg.style + LINK_FOCUS_STYLE


class MentionDirectory:
    """Maps nicks to canonical feed locations."""

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def from_corpus(cls, posts: Iterable[Post], local_user: Optional[LocalUser] = None) -> "MentionDirectory":
        entries: Dict[str, str] = {}
        for post in posts:
            if post.author and post.author_url:
                entries.setdefault(post.author, post.author_url)
        if local_user is not None and local_user.feed_url:
            entries[local_user.nick] = local_user.feed_url
        return cls(entries)

    def resolve(self, mention: Mention) -> Optional[str]:
        if mention.url:
            return mention.url
        url = self._entries.get(mention.nick)
        if url:
            return url
        if "://" in mention.nick:
            return normalize_url(mention.nick)
        return None


class ContentRenderer:
    """Renders one token stream. Create a fresh renderer per post per pass."""

    def __init__(
        self,
        width: int,
        registry: ActivatableRegistry,
        directory: Optional[MentionDirectory] = None,
        row_offset: int = 0,
    ):
        self.width = max(width, 1)
        self.registry = registry
        self.directory = directory or MentionDirectory()
        self.row_offset = row_offset
        self._lines: List[List[Segment]] = [[]]
        self._col = 0
        self._wrapped = False
        self._stack: List[StyleKind] = []
        self._block: Optional[BlockGroup] = None
        self._style = Style()

    @property
    def _row(self) -> int:
        return self.row_offset + len(self._lines) - 1

    def render(self, tokens: Sequence[Token], blocks: Sequence[BlockGroup] = ()) -> RenderedContent:
        pending = [b for b in sorted(blocks, key=lambda b: b.start) if b.end > b.start]
        for i, token in enumerate(tokens):
            if self._block is not None and i >= self._block.end:
                self._leave_block()
            # nested or already-passed groups are never entered
            while pending and pending[0].start < i:
                pending.pop(0)
            if pending and pending[0].start == i:
                block = pending.pop(0)
                if self._block is None:
                    self._enter_block(block)
            self._consume(token)
        if self._block is not None:
            self._leave_block()
        lines = self._lines
        if lines and not lines[-1]:
            lines = lines[:-1]
        return RenderedContent(lines)

    def _consume(self, token: Token) -> None:
        if isinstance(token, Text):
            self._text(token.text)
        elif isinstance(token, StyleMarker):
            self._toggle(token.style)
        elif isinstance(token, Link):
            self._link(token)
        elif isinstance(token, Mention):
            self._mention(token)
        elif isinstance(token, BlockBoundary):
            self._newline()
        else:
            logger.debug("renderer: skipping unknown token %r", token)

    # -- styles --
    def _toggle(self, kind: StyleKind) -> None:
        if kind in self._stack:
            self._stack.remove(kind)
        else:
            self._stack.append(kind)
        self._style = self._compose()

    def _compose(self) -> Style:
        style = self._block_style()
        for kind in self._stack:
            style = style + STYLE_MAP[kind]
        return style

    def _block_style(self) -> Style:
        if self._block is None:
            return Style()
        kind = self._block.kind.lower()
        if kind in GUTTER_BLOCKS:
            return QUOTE_STYLE
        if kind in CODE_BLOCKS:
            return STYLE_MAP[StyleKind.CODE]
        return Style()

    # -- blocks --
    def _enter_block(self, block: BlockGroup) -> None:
        if self._col > 0:
            self._newline()
        self._append(f"── {block.kind} ──", BLOCK_LABEL_STYLE)
        self._newline()
        self._block = block
        self._style = self._compose()

    def _leave_block(self) -> None:
        if self._col > 0:
            self._newline()
        self._block = None
        self._style = self._compose()

    def _gutter(self) -> None:
        if self._col == 0 and self._block is not None and self._block.kind.lower() in GUTTER_BLOCKS:
            self._append(GUTTER, BLOCK_LABEL_STYLE)

    # -- emission --
    def _newline(self, wrapped: bool = False) -> None:
        self._lines.append([])
        self._col = 0
        self._wrapped = wrapped

    def _append(self, text: str, style: Style, element: Optional[int] = None) -> None:
        line = self._lines[-1]
        if line and element is None and line[-1].element is None and line[-1].style == style:
            line[-1].text += text
        else:
            line.append(Segment(text, style, element))
        self._col += len(text)

    def _text(self, text: str) -> None:
        for n, part in enumerate(text.split("\n")):
            if n:
                self._newline()
            for word in _WORDS.findall(part):
                self._word(word)

    def _word(self, word: str) -> None:
        if word.isspace():
            if self._col == 0 and self._wrapped:
                return
            if self._col + len(word) > self.width:
                self._newline(wrapped=True)
                return
            self._gutter()
            self._append(word, self._style)
            return
        self._gutter()
        if self._col > 0 and self._col + len(word) > self.width:
            self._newline(wrapped=True)
            self._gutter()
        # words wider than the pane are split
        while word and self._col + len(word) > self.width:
            room = max(self.width - self._col, 1)
            self._append(word[:room], self._style)
            word = word[room:]
            self._newline(wrapped=True)
            self._gutter()
        if word:
            self._append(word, self._style)

    def _activatable(self, label: str, style: Style, kind: ActivatableKind, target: Optional[str]) -> None:
        self._gutter()
        if self._col > 0 and self._col + len(label) > self.width:
            self._newline(wrapped=True)
            self._gutter()
        first = label[: max(self.width - self._col, 1)]
        index = self.registry.register(
            kind, target, label, self._row, self._col, self._col + len(first)
        )
        rest = label
        while rest:
            room = max(self.width - self._col, 1)
            self._append(rest[:room], style, element=index)
            rest = rest[room:]
            if rest:
                self._newline(wrapped=True)
                self._gutter()

    def _link(self, token: Link) -> None:
        if not token.url:
            # nothing to open: plain styled text, no registration
            self._text(token.label or "")
            return
        self._activatable(token.label, self._style + LINK_STYLE, ActivatableKind.LINK, token.url)

    def _mention(self, token: Mention) -> None:
        target = self.directory.resolve(token)
        if target is None:
            logger.debug("renderer: mention %s has no known feed location", token.label)
        self._activatable(token.label, self._style + MENTION_STYLE, ActivatableKind.MENTION, target)


def _header_line(key: str, value: str, width: int) -> List[Segment]:
    prefix = f"{key}: "
    room = max(width - len(prefix), 1)
    if len(value) > room:
        value = value[: max(room - 3, 0)] + "..."
    return [Segment(prefix, HEADER_KEY_STYLE), Segment(value, HEADER_STYLES.get(key, Style()))]


def render_header(post: Post, width: int) -> List[List[Segment]]:
    lines = [
        _header_line("Author", post.author or "unknown", width),
        _header_line("Time", post.timestamp.strftime("%Y-%m-%d %H:%M"), width),
        _header_line("ID", post.id, width),
    ]
    tags = ([post.lang] if post.lang else []) + list(post.tags)
    if tags:
        lines.append(_header_line("Tags", " ".join(f"#{t}" for t in tags), width))
    if post.parent:
        lines.append(_header_line("Reply to", post.parent, width))
    if post.mood:
        lines.append(_header_line("Mood", post.mood, width))
    lines.append([])
    return lines


def render_post(
    post: Post,
    width: int,
    registry: ActivatableRegistry,
    directory: Optional[MentionDirectory] = None,
) -> RenderedContent:
    """Header plus body of one post; body elements are registered in render order."""
    header = render_header(post, width)
    renderer = ContentRenderer(width, registry, directory, row_offset=len(header))
    body = renderer.render(post.token_stream(), post.block_groups())
    return RenderedContent(header + body.lines)


def summarize(post: Post, width: int) -> str:
    """One-line preview for the post list."""
    parts = []
    for token in post.token_stream():
        if isinstance(token, Text):
            parts.append(token.text)
        elif isinstance(token, (Link, Mention)):
            parts.append(token.label)
        elif isinstance(token, BlockBoundary):
            parts.append(" ")
    preview = " ".join("".join(parts).split())
    if width <= 0:
        return ""
    if len(preview) > width:
        return preview[: max(width - 3, 0)] + "..."
    return preview
