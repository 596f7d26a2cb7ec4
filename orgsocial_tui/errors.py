"""Error types raised by the reader core."""


class TuiError(Exception):
    """Base class for orgsocial-tui errors"""
    pass


class MalformedStructure(TuiError):
    """A parent reference is dangling, self-referential or cyclic."""

    def __init__(self, post_id: str, reason: str):
        super().__init__(f"post {post_id}: {reason}")
        self.post_id = post_id
        self.reason = reason


class EmptyRegistryActivation(TuiError):
    """Activation requested with nothing focused."""
    pass


class IndexOutOfRange(TuiError, IndexError):
    """Registry index outside the current render pass."""
    pass


class UnresolvableMentionTarget(TuiError):
    """A mention whose identity could not be mapped to a feed location."""

    def __init__(self, username: str):
        super().__init__(f"target unavailable: {username}")
        self.username = username


class CorpusLoadError(TuiError):
    """The corpus could not be read or decoded."""
    pass
