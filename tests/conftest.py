"""Shared fixtures: small hand-built corpora."""
from datetime import datetime, timedelta, timezone

import pytest

from orgsocial_tui.data_models import LocalUser, Post, Text

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_post(pid, author, ts, parent=None, mentions=(), tokens=None, author_url=None, **kwargs):
    return Post(
        id=pid,
        author=author,
        author_url=author_url,
        timestamp=BASE_TIME + timedelta(minutes=ts),
        parent=parent,
        mentions=list(mentions),
        tokens=tokens if tokens is not None else [Text(f"post {pid} by {author}")],
        **kwargs,
    )


@pytest.fixture
def local_user():
    return LocalUser("local", "https://local.example/social.org")


@pytest.fixture
def scenario_corpus():
    """A <- B (mentions local) <- C (by local)."""
    return [
        make_post("A", "u1", 1, author_url="https://u1.example/social.org"),
        make_post("B", "u2", 2, parent="A", mentions=["local"], author_url="https://u2.example/social.org"),
        make_post("C", "local", 3, parent="B", author_url="https://local.example/social.org"),
    ]


@pytest.fixture
def long_corpus():
    return [make_post(f"p{i:02d}", "u1", i) for i in range(30)]
