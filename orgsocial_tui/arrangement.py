"""
Arrangements: the three orderings of the same corpus.

  - list:          newest first, flat
  - threaded:      reply trees, pre-order, with depth
  - notifications: posts that mention the local user or reply to one of
                   their posts, newest first
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set

from .data_models import LocalUser, Post, PostKey, normalize_url
from .errors import MalformedStructure

logger = logging.getLogger("orgsocial_tui.arrangement")


class NotificationKind(str, Enum):
    MENTION = "mention"
    REPLY = "reply"
    MENTION_AND_REPLY = "mention+reply"

    @property
    def label(self) -> str:
        return f"[{self.value.upper()}]"

    @classmethod
    def from_flags(cls, mention: bool, reply: bool) -> Optional["NotificationKind"]:
        if mention and reply:
            return cls.MENTION_AND_REPLY
        if mention:
            return cls.MENTION
        if reply:
            return cls.REPLY
        return None


@dataclass(frozen=True)
class DisplayUnit:
    post: Post
    depth: int = 0
    kind: Optional[NotificationKind] = None


@dataclass
class ThreadStats:
    threads: int = 0
    posts: int = 0
    malformed: int = 0


def _newest_first(post: Post):
    return (post.timestamp, post.id)


def build_list(posts: Sequence[Post]) -> List[DisplayUnit]:
    return [DisplayUnit(p) for p in sorted(posts, key=_newest_first, reverse=True)]


class PostIndex:
    """The corpus keyed by (feed, id).

    A "<feed>#<id>" parent reference only matches a post from that feed. A
    bare id is looked up in the replying post's own feed first, then among
    all posts with that id in arrival order.
    """

    def __init__(self, posts: Sequence[Post]):
        self.posts: List[Post] = []
        self._by_key: Dict[PostKey, Post] = {}
        self._by_id: Dict[str, List[Post]] = {}
        for post in posts:
            if post.key in self._by_key:
                logger.debug("arrangement: duplicate post %s from %s ignored", post.id, post.feed)
                continue
            self._by_key[post.key] = post
            self._by_id.setdefault(post.id, []).append(post)
            self.posts.append(post)

    def __len__(self) -> int:
        return len(self.posts)

    def resolve(self, post: Post) -> Optional[Post]:
        pid = post.parent_id
        if pid is None:
            return None
        feed = normalize_url(post.parent_feed)
        if feed is not None:
            return self._by_key.get((feed, pid))
        parent = self._by_key.get((post.feed, pid))
        if parent is None:
            candidates = self._by_id.get(pid)
            parent = candidates[0] if candidates else None
        return parent


def _parent_of(post: Post, index: PostIndex) -> Optional[Post]:
    """Resolve a post's parent inside the corpus; raises for malformed links."""
    if post.parent_id is None:
        return None
    parent = index.resolve(post)
    if parent is post:
        raise MalformedStructure(post.id, "references itself as parent")
    if parent is None:
        raise MalformedStructure(post.id, f"parent {post.parent} not in corpus")
    return parent


def _earliest_on_cycle(post: Post, parents: Dict[PostKey, Post]) -> Post:
    """Follow parent links from post until they loop; return the loop's earliest post."""
    chain: List[Post] = []
    seen: Dict[PostKey, int] = {}
    while post.key not in seen:
        seen[post.key] = len(chain)
        chain.append(post)
        post = parents[post.key]
    return min(chain[seen[post.key]:], key=_newest_first)


def build_threaded(
    posts: Sequence[Post],
    child_order: str = "timestamp",
    stats: Optional[ThreadStats] = None,
) -> List[DisplayUnit]:
    """Flatten reply trees parent-before-children.

    Posts with no usable parent (none, dangling, self) are roots. Posts left
    over hang off a parent cycle; the earliest member of each cycle is
    promoted to top level and the link that would revisit a placed post is
    ignored. Every post is emitted exactly once.
    """
    if stats is None:
        stats = ThreadStats()
    index = PostIndex(posts)
    arrival = {id(post): n for n, post in enumerate(index.posts)}

    children: Dict[PostKey, List[Post]] = {}
    parents: Dict[PostKey, Post] = {}
    roots: List[Post] = []
    for post in index.posts:
        try:
            parent = _parent_of(post, index)
        except MalformedStructure as e:
            logger.debug("arrangement: %s, placing at top level", e)
            stats.malformed += 1
            parent = None
        if parent is None:
            roots.append(post)
        else:
            parents[post.key] = parent
            children.setdefault(parent.key, []).append(post)

    if child_order == "arrival":
        child_key = lambda p: arrival[id(p)]
    else:
        child_key = lambda p: (p.timestamp, p.id)
    for siblings in children.values():
        siblings.sort(key=child_key)

    units: List[DisplayUnit] = []
    visited: Set[PostKey] = set()

    def walk(root: Post) -> None:
        stack = [(root, 0)]
        while stack:
            post, depth = stack.pop()
            if post.key in visited:
                # the link of a promoted cycle member, already counted
                logger.debug("arrangement: post %s revisited, link ignored", post.id)
                continue
            visited.add(post.key)
            units.append(DisplayUnit(post, depth))
            for child in reversed(children.get(post.key, [])):
                stack.append((child, depth + 1))

    for root in sorted(roots, key=_newest_first, reverse=True):
        walk(root)
        stats.threads += 1

    # everything left hangs off a parent cycle: promote the earliest member
    # of each cycle, its replies follow it
    leftovers = sorted((p for p in index.posts if p.key not in visited), key=_newest_first)
    for post in leftovers:
        if post.key in visited:
            continue
        member = _earliest_on_cycle(post, parents)
        logger.debug("arrangement: post %s is on a parent cycle, placing at top level", member.id)
        stats.malformed += 1
        walk(member)
        stats.threads += 1

    stats.posts = len(units)
    return units


def _mentions_user(post: Post, user: LocalUser) -> bool:
    return any(user.matches(m) for m in post.mentions)


def _replies_to_user(post: Post, user: LocalUser, index: PostIndex) -> bool:
    if post.parent_id is None:
        return False
    parent = index.resolve(post)
    if parent is not None and parent is not post:
        return user.matches(parent.author) or (
            parent.author_url is not None and user.matches(parent.author_url)
        )
    # parent outside the corpus: "<feed>#<id>" pointing at our own feed
    feed = post.parent_feed
    return feed is not None and user.feed_url is not None and normalize_url(feed) == normalize_url(user.feed_url)


def build_notifications(posts: Sequence[Post], user: LocalUser) -> List[DisplayUnit]:
    index = PostIndex(posts)
    units = []
    for post in index.posts:
        kind = NotificationKind.from_flags(
            _mentions_user(post, user), _replies_to_user(post, user, index)
        )
        if kind is not None:
            units.append(DisplayUnit(post, 0, kind))
    units.sort(key=lambda u: _newest_first(u.post), reverse=True)
    return units
