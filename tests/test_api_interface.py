"""Tests for corpus loading from files and the HTTP backend."""
import json
from datetime import timezone

import pytest
import requests

from orgsocial_tui.api_interface import FileAPI, RealAPI, convert_corpus, convert_token, get_api
from orgsocial_tui.config import Settings
from orgsocial_tui.data_models import BlockBoundary, BlockGroup, Link, Mention, StyleKind, StyleMarker, Text
from orgsocial_tui.errors import CorpusLoadError

CORPUS = {
    "posts": [
        {
            "id": "2025-03-01T12:00:00+0100",
            "author": "u1",
            "author_url": "https://u1.example/social.org",
            "timestamp": "2025-03-01T11:00:00Z",
            "tags": ["emacs"],
            "lang": "en",
            "tokens": [
                {"type": "text", "text": "hello "},
                {"type": "style", "style": "bold"},
                {"type": "text", "text": "world"},
                {"type": "style", "style": "bold"},
                {"type": "break"},
                {"type": "mention", "username": "u2"},
                {"type": "link", "url": "https://orgmode.org", "description": "org"},
            ],
            "blocks": [{"kind": "quote", "start": 5, "end": 7}],
        },
        {
            "id": "r1",
            "author": "u2",
            "timestamp": "2025-03-01T12:30:00",
            "parent": "https://u1.example/social.org#2025-03-01T12:00:00+0100",
            "mentions": ["u1"],
            "tokens": [{"type": "text", "text": "reply"}],
        },
    ]
}


class TestConvert:
    def test_full_post(self):
        first, second = convert_corpus(CORPUS)
        assert first.author == "u1"
        assert first.timestamp.tzinfo is not None
        assert first.timestamp.hour == 11
        assert first.tokens == [
            Text("hello "),
            StyleMarker(StyleKind.BOLD),
            Text("world"),
            StyleMarker(StyleKind.BOLD),
            BlockBoundary(),
            Mention("u2"),
            Link("https://orgmode.org", "org"),
        ]
        assert first.blocks == [BlockGroup("quote", 5, 7)]
        assert first.tags == ["emacs"] and first.lang == "en"
        assert second.parent_id == "2025-03-01T12:00:00+0100"
        assert second.mentions == ["u1"]

    def test_naive_timestamp_is_utc(self):
        _, second = convert_corpus(CORPUS)
        assert second.timestamp.tzinfo == timezone.utc

    def test_plain_list_accepted(self):
        assert len(convert_corpus(CORPUS["posts"])) == 2

    def test_bad_posts_skipped(self):
        posts = convert_corpus([{"author": "no id"}, {"id": "x", "author": "u", "timestamp": "nope"}, CORPUS["posts"][1]])
        assert [p.id for p in posts] == ["r1"]

    def test_not_a_corpus(self):
        with pytest.raises(CorpusLoadError):
            convert_corpus("hello")

    def test_unknown_tokens_dropped(self):
        assert convert_token({"type": "style", "style": "blink"}) is None
        assert convert_token({"type": "sparkle"}) is None

    def test_non_object_entries_skipped(self):
        post = dict(CORPUS["posts"][1], tokens=["oops", {"type": "text", "text": "ok"}], blocks=[7])
        posts = convert_corpus(["oops", 3, None, post])
        assert [p.id for p in posts] == ["r1"]
        assert posts[0].tokens == [Text("ok")]
        assert posts[0].blocks == []

    def test_null_fields_become_strings(self):
        tokens = [
            {"type": "text", "text": None},
            {"type": "link", "url": None, "description": None},
            {"type": "mention", "username": None, "url": None},
        ]
        assert [convert_token(t) for t in tokens] == [Text(""), Link(""), Mention("")]
        (post,) = convert_corpus([dict(CORPUS["posts"][1], parent=None, mood=None, mentions=[None, "u1"])])
        assert post.parent is None and post.mood is None
        assert post.mentions == ["u1"]


class TestFileAPI:
    def test_reads_export(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps(CORPUS), encoding="utf-8")
        api = FileAPI(path)
        assert [p.id for p in api.get_posts()] == ["2025-03-01T12:00:00+0100", "r1"]
        assert api.describe() == str(path)

    def test_bad_json(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CorpusLoadError):
            FileAPI(path).get_posts()

    def test_missing_file(self, tmp_path):
        with pytest.raises(CorpusLoadError):
            FileAPI(tmp_path / "missing.json").get_posts()

    def test_stray_entries_do_not_abort_load(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps(["oops", CORPUS["posts"][1]]), encoding="utf-8")
        assert [p.id for p in FileAPI(path).get_posts()] == ["r1"]


class _Response:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class TestRealAPI:
    def test_fetches_feed(self, monkeypatch):
        calls = []
        api = RealAPI("http://localhost:8000/", handle="local")

        def fake_get(url, params=None, timeout=None):
            calls.append((url, params))
            return _Response(CORPUS)

        monkeypatch.setattr(api.session, "get", fake_get)
        posts = api.get_posts()
        assert len(posts) == 2
        assert calls == [("http://localhost:8000/feed", {"handle": "local"})]

    def test_http_error_becomes_load_error(self, monkeypatch):
        api = RealAPI("http://localhost:8000")
        monkeypatch.setattr(api.session, "get", lambda url, params=None, timeout=None: _Response({}, 500))
        with pytest.raises(CorpusLoadError):
            api.get_posts()

    def test_connection_error_becomes_load_error(self, monkeypatch):
        api = RealAPI("http://localhost:8000")

        def refuse(url, params=None, timeout=None):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(api.session, "get", refuse)
        with pytest.raises(CorpusLoadError):
            api.get_posts()


class TestGetAPI:
    def test_file_preferred(self, tmp_path):
        api = get_api(Settings(corpus_file=tmp_path / "c.json", backend_url="http://localhost:8000"))
        assert isinstance(api, FileAPI)

    def test_backend(self):
        api = get_api(Settings(backend_url="http://localhost:8000", nick="me"))
        assert isinstance(api, RealAPI)
        assert api.handle == "me"

    def test_nothing_configured(self):
        with pytest.raises(CorpusLoadError):
            get_api(Settings())
