from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
import json
import logging
from pathlib import Path

import requests
from requests import Session

from .config import Settings
from .data_models import (
    BlockBoundary,
    BlockGroup,
    Link,
    Mention,
    Post,
    StyleKind,
    StyleMarker,
    Text,
    Token,
)
from .errors import CorpusLoadError

logger = logging.getLogger("orgsocial_tui.api_interface")


class APIInterface:
    """Source of the already-parsed, already-tokenized corpus."""
    def get_posts(self) -> List[Post]: ...

    def describe(self) -> str: ...


class FileAPI(APIInterface):
    """Reads a corpus export (JSON) from disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def describe(self) -> str:
        return str(self.path)

    def get_posts(self) -> List[Post]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CorpusLoadError(f"could not read {self.path}: {e}") from e
        return convert_corpus(data)


class RealAPI(APIInterface):
    """Fetches the corpus from an HTTP backend.

    It expects a base_url like https://feeds.example.com that serves the
    tokenized corpus at /feed.
    """
    def __init__(self, base_url: str, timeout: float = 5.0, handle: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.handle = handle
        self.session: Session = requests.Session()

    def describe(self) -> str:
        return self.base_url

    # --- helpers ---
    def _get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        if params is None:
            params = {}
        if self.handle:
            params.setdefault("handle", self.handle)
        url = f"{self.base_url}/{path.lstrip('/')}"
        resp = self.session.get(url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def get_posts(self) -> List[Post]:
        try:
            data = self._get("/feed")
        except (requests.RequestException, ValueError) as e:
            raise CorpusLoadError(f"could not fetch {self.base_url}/feed: {e}") from e
        return convert_corpus(data)


# --- conversion helpers ---
def convert_corpus(data: Any) -> List[Post]:
    if isinstance(data, dict):
        data = data.get("posts", [])
    if not isinstance(data, list):
        raise CorpusLoadError("corpus must be a list of posts or an object with a 'posts' list")
    posts = []
    for n, p in enumerate(data):
        if not isinstance(p, dict):
            logger.warning("api_interface: skipping post #%d: not an object", n)
            continue
        try:
            posts.append(convert_post(p))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            # skip the entry, keep the rest of the feed
            logger.warning("api_interface: skipping post #%d: %s", n, e)
    return posts


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        ts = value
    elif value:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    else:
        raise ValueError("post has no timestamp")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _str(value: Any) -> str:
    return str(value) if value is not None else ""


def convert_token(t: Any) -> Optional[Token]:
    if not isinstance(t, dict):
        logger.debug("api_interface: skipping non-object token %r", t)
        return None
    kind = t.get("type")
    if kind == "text":
        return Text(_str(t.get("text")))
    if kind == "style":
        try:
            return StyleMarker(StyleKind(t.get("style")))
        except ValueError:
            logger.debug("api_interface: unknown style %r", t.get("style"))
            return None
    if kind == "link":
        return Link(_str(t.get("url")), _str(t.get("description")) or None)
    if kind == "mention":
        return Mention(_str(t.get("username") or t.get("nick")), _str(t.get("url")) or None)
    if kind in ("break", "block_boundary"):
        return BlockBoundary()
    logger.debug("api_interface: unknown token type %r", kind)
    return None


def convert_post(p: Dict[str, Any]) -> Post:
    # Ensure fields match Post dataclass naming
    tokens = [tok for tok in (convert_token(t) for t in p.get("tokens") or []) if tok is not None]
    blocks = [
        BlockGroup(kind=str(b.get("kind", "block")), start=int(b["start"]), end=int(b["end"]))
        for b in p.get("blocks") or []
        if isinstance(b, dict)
    ]
    return Post(
        id=str(p["id"]),
        author=_str(p.get("author") or p.get("nick")) or "unknown",
        author_url=_str(p.get("author_url") or p.get("source")) or None,
        timestamp=_parse_timestamp(p.get("timestamp") or p.get("time")),
        parent=_str(p.get("parent") or p.get("reply_to")) or None,
        tokens=tokens,
        mentions=[_str(m) for m in p.get("mentions") or [] if m is not None],
        blocks=blocks,
        tags=[_str(t) for t in p.get("tags") or [] if t is not None],
        mood=_str(p.get("mood")) or None,
        lang=_str(p.get("lang")) or None,
    )


def get_api(settings: Settings) -> APIInterface:
    """Prefer a local export when one is configured, else the HTTP backend."""
    if settings.corpus_file is not None:
        return FileAPI(settings.corpus_file)
    if settings.backend_url:
        return RealAPI(base_url=settings.backend_url, handle=settings.nick)
    raise CorpusLoadError(
        "No corpus configured. Pass a file, or set ORGSOCIAL_FILE or BACKEND_URL "
        "(e.g. 'http://localhost:8000')."
    )
