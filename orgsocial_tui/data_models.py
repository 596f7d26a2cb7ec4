"""
Data models for the orgsocial-tui application.
These models mirror the pre-parsed post abstraction handed to us by the
feed parser: posts arrive already tokenized and grouped into blocks.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple, Union


class StyleKind(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    CODE = "code"


@dataclass(frozen=True)
class Text:
    """A run of plain text."""
    text: str


@dataclass(frozen=True)
class StyleMarker:
    """Toggles an inline style on or off."""
    style: StyleKind


@dataclass(frozen=True)
class Link:
    url: str
    description: Optional[str] = None

    @property
    def label(self) -> str:
        return self.description or self.url


@dataclass(frozen=True)
class Mention:
    username: str
    url: Optional[str] = None

    @property
    def label(self) -> str:
        return self.username if self.username.startswith("@") else f"@{self.username}"

    @property
    def nick(self) -> str:
        return self.username.lstrip("@")


@dataclass(frozen=True)
class BlockBoundary:
    """Forces a line break."""
    pass


Token = Union[Text, StyleMarker, Link, Mention, BlockBoundary]

PostKey = Tuple[Optional[str], str]


@dataclass(frozen=True)
class BlockGroup:
    """A block (src, quote, example, verse...) covering tokens[start:end]."""
    kind: str
    start: int
    end: int


@dataclass
class Post:
    """Represents a single post in the corpus."""
    id: str
    author: str
    timestamp: datetime
    tokens: List[Token] = field(default_factory=list)
    author_url: Optional[str] = None
    parent: Optional[str] = None  # post id, or "<feed url>#<post id>"
    mentions: List[str] = field(default_factory=list)  # nicks or feed urls
    blocks: List[BlockGroup] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    mood: Optional[str] = None
    lang: Optional[str] = None

    def token_stream(self) -> List[Token]:
        return self.tokens

    def block_groups(self) -> List[BlockGroup]:
        return self.blocks

    @property
    def feed(self) -> Optional[str]:
        """Normalized feed location of the author, if known."""
        return normalize_url(self.author_url)

    @property
    def key(self) -> PostKey:
        """Ids are timestamps and only unique within one feed."""
        return (self.feed, self.id)

    @property
    def parent_id(self) -> Optional[str]:
        """The bare id part of the parent reference."""
        if not self.parent:
            return None
        return self.parent.rsplit("#", 1)[-1]

    @property
    def parent_feed(self) -> Optional[str]:
        """The feed url part of a "<url>#<id>" parent reference, if any."""
        if not self.parent or "#" not in self.parent:
            return None
        return self.parent.rsplit("#", 1)[0] or None


def normalize_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    url = url.strip().rstrip("/")
    if "://" in url:
        scheme, rest = url.split("://", 1)
        host, sep, path = rest.partition("/")
        url = f"{scheme.lower()}://{host.lower()}{sep}{path}"
    return url


@dataclass
class LocalUser:
    """The identity the notification feed is computed for."""
    nick: str
    feed_url: Optional[str] = None

    def matches(self, identity: Optional[str]) -> bool:
        """True if a nick or feed url refers to this user."""
        if not identity:
            return False
        identity = identity.strip()
        if identity.lstrip("@") == self.nick:
            return True
        return self.feed_url is not None and normalize_url(identity) == normalize_url(self.feed_url)
