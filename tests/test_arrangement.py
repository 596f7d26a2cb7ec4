"""Tests for the list, threaded and notification arrangements."""
import random

from orgsocial_tui.arrangement import (
    NotificationKind,
    ThreadStats,
    build_list,
    build_notifications,
    build_threaded,
)
from orgsocial_tui.data_models import LocalUser

from conftest import make_post


def _ids(units):
    return [u.post.id for u in units]


def _shape(units):
    return [(u.post.id, u.depth) for u in units]


class TestListArrangement:
    def test_newest_first_depth_zero(self, scenario_corpus):
        units = build_list(scenario_corpus)
        assert _ids(units) == ["C", "B", "A"]
        assert all(u.depth == 0 and u.kind is None for u in units)

    def test_empty(self):
        assert build_list([]) == []


class TestThreadedArrangement:
    def test_scenario_nesting(self, scenario_corpus):
        assert _shape(build_threaded(scenario_corpus)) == [("A", 0), ("B", 1), ("C", 2)]

    def test_children_ascending_roots_newest_first(self):
        posts = [
            make_post("r1", "a", 1),
            make_post("r2", "b", 10),
            make_post("late", "c", 30, parent="r1"),
            make_post("early", "d", 20, parent="r1"),
        ]
        assert _shape(build_threaded(posts)) == [
            ("r2", 0),
            ("r1", 0),
            ("early", 1),
            ("late", 1),
        ]

    def test_arrival_child_order(self):
        posts = [
            make_post("r1", "a", 1),
            make_post("late", "c", 30, parent="r1"),
            make_post("early", "d", 20, parent="r1"),
        ]
        assert _ids(build_threaded(posts, child_order="arrival")) == ["r1", "late", "early"]

    def test_pre_order_parent_before_children(self):
        posts = [
            make_post("r", "a", 1),
            make_post("c1", "b", 2, parent="r"),
            make_post("c2", "b", 3, parent="r"),
            make_post("g1", "c", 4, parent="c1"),
        ]
        assert _shape(build_threaded(posts)) == [("r", 0), ("c1", 1), ("g1", 2), ("c2", 1)]

    def test_dangling_parent_goes_to_top_level(self):
        stats = ThreadStats()
        posts = [make_post("x", "a", 1, parent="missing")]
        assert _shape(build_threaded(posts, stats=stats)) == [("x", 0)]
        assert stats.malformed == 1

    def test_self_reference_goes_to_top_level(self):
        posts = [make_post("x", "a", 1, parent="x")]
        assert _shape(build_threaded(posts)) == [("x", 0)]

    def test_two_cycle_terminates_each_post_once(self):
        stats = ThreadStats()
        posts = [
            make_post("A", "a", 1, parent="B"),
            make_post("B", "b", 2, parent="A"),
        ]
        units = build_threaded(posts, stats=stats)
        assert sorted(_ids(units)) == ["A", "B"]
        assert units[0].post.id == "A" and units[0].depth == 0
        assert stats.malformed == 1

    def test_long_cycle_with_normal_threads(self):
        posts = [
            make_post("root", "a", 0),
            make_post("reply", "b", 1, parent="root"),
            make_post("c1", "c", 5, parent="c3"),
            make_post("c2", "c", 6, parent="c1"),
            make_post("c3", "c", 7, parent="c2"),
            make_post("hang", "d", 8, parent="c2"),
        ]
        units = build_threaded(posts)
        ids = _ids(units)
        assert len(ids) == len(posts)
        assert len(set(ids)) == len(posts)
        assert _shape(units)[:2] == [("root", 0), ("reply", 1)]
        # the earliest cycle member is promoted
        assert ("c1", 0) in _shape(units)

    def test_random_corpora_always_terminate(self):
        rng = random.Random(7)
        for _ in range(50):
            n = rng.randint(1, 12)
            posts = [
                make_post(f"p{i}", "u", rng.randint(0, 5), parent=rng.choice([None] + [f"p{j}" for j in range(n)]))
                for i in range(n)
            ]
            units = build_threaded(posts)
            assert sorted(_ids(units)) == sorted(p.id for p in posts)

    def test_url_style_parent_reference(self):
        posts = [
            make_post("1", "a", 1, author_url="https://a.example/social.org"),
            make_post("2", "b", 2, parent="https://a.example/social.org#1"),
        ]
        assert _shape(build_threaded(posts)) == [("1", 0), ("2", 1)]

    def test_stats(self, scenario_corpus):
        stats = ThreadStats()
        build_threaded(scenario_corpus + [make_post("D", "u3", 9)], stats=stats)
        assert (stats.threads, stats.posts) == (2, 4)

    def test_same_id_on_two_feeds_both_shown(self):
        stamp = "2025-01-01T10:00:00+0100"
        posts = [
            make_post(stamp, "a", 1, author_url="https://a.example/social.org"),
            make_post(stamp, "b", 2, author_url="https://b.example/social.org"),
        ]
        units = build_threaded(posts)
        assert len(units) == len(build_list(posts)) == 2
        assert {u.post.author for u in units} == {"a", "b"}

    def test_feed_qualified_parent_picks_that_feed(self):
        stamp = "2025-01-01T10:00:00+0100"
        posts = [
            make_post(stamp, "a", 1, author_url="https://a.example/social.org"),
            make_post(stamp, "b", 2, author_url="https://b.example/social.org"),
            make_post("r", "c", 3, parent=f"https://B.example/social.org/#{stamp}"),
        ]
        units = build_threaded(posts)
        assert [(u.post.author, u.depth) for u in units] == [("b", 0), ("c", 1), ("a", 0)]

    def test_bare_parent_prefers_own_feed(self):
        posts = [
            make_post("1", "a", 1, author_url="https://a.example/social.org"),
            make_post("1", "b", 2, author_url="https://b.example/social.org"),
            make_post("2", "b", 3, parent="1", author_url="https://b.example/social.org"),
        ]
        units = build_threaded(posts)
        assert [(u.post.author, u.post.id, u.depth) for u in units] == [
            ("b", "1", 0),
            ("b", "2", 1),
            ("a", "1", 0),
        ]

    def test_reply_hanging_off_cycle_stays_nested(self):
        stats = ThreadStats()
        posts = [
            make_post("early", "d", 1, parent="c1"),
            make_post("c1", "c", 5, parent="c2"),
            make_post("c2", "c", 6, parent="c1"),
        ]
        units = build_threaded(posts, stats=stats)
        assert _shape(units) == [("c1", 0), ("early", 1), ("c2", 1)]
        assert stats.malformed == 1
        assert stats.threads == 1


class TestNotifications:
    def test_scenario(self, scenario_corpus, local_user):
        units = build_notifications(scenario_corpus, local_user)
        assert _ids(units) == ["B"]
        assert units[0].kind is NotificationKind.MENTION

    def test_reply_and_mention_tagged_once(self, local_user):
        posts = [
            make_post("mine", "local", 1),
            make_post("r", "u2", 2, parent="mine", mentions=["local"]),
            make_post("plain", "u2", 3, parent="mine"),
        ]
        units = build_notifications(posts, local_user)
        assert _ids(units) == ["plain", "r"]
        assert units[0].kind is NotificationKind.REPLY
        assert units[1].kind is NotificationKind.MENTION_AND_REPLY
        assert units[1].kind.label == "[MENTION+REPLY]"

    def test_mention_by_feed_url(self, local_user):
        posts = [make_post("m", "u2", 1, mentions=["https://LOCAL.example/social.org/"])]
        assert _ids(build_notifications(posts, local_user)) == ["m"]

    def test_reply_to_own_feed_outside_corpus(self, local_user):
        posts = [make_post("r", "u2", 1, parent="https://local.example/social.org#2025-01-01T10:00:00")]
        units = build_notifications(posts, local_user)
        assert units[0].kind is NotificationKind.REPLY

    def test_subset_property(self, local_user):
        rng = random.Random(3)
        nicks = ["local", "u1", "u2"]
        for _ in range(30):
            n = rng.randint(0, 10)
            posts = [
                make_post(
                    f"p{i}",
                    rng.choice(nicks),
                    rng.randint(0, 20),
                    parent=rng.choice([None] + [f"p{j}" for j in range(n)]),
                    mentions=rng.sample(nicks, rng.randint(0, 2)),
                )
                for i in range(n)
            ]
            by_id = {p.id: p for p in posts}
            units = build_notifications(posts, local_user)
            assert len(units) <= len(posts)
            for unit in units:
                post = unit.post
                mentioned = "local" in post.mentions
                parent = by_id.get(post.parent_id) if post.parent_id else None
                replied = parent is not None and parent is not post and parent.author == "local"
                assert mentioned or replied

    def test_newest_first(self, local_user):
        posts = [make_post(f"m{i}", "u2", i, mentions=["local"]) for i in range(3)]
        assert _ids(build_notifications(posts, local_user)) == ["m2", "m1", "m0"]

    def test_nothing_for_other_user(self, scenario_corpus):
        assert build_notifications(scenario_corpus, LocalUser("nobody")) == []

    def test_reply_to_same_id_on_another_feed_is_not_a_reply(self, local_user):
        posts = [
            make_post("X", "local", 1, author_url="https://local.example/social.org"),
            make_post("R", "u2", 2, parent="https://other.example/social.org#X"),
        ]
        assert build_notifications(posts, local_user) == []

    def test_feed_qualified_reply_to_own_post(self, local_user):
        posts = [
            make_post("X", "local", 1, author_url="https://local.example/social.org"),
            make_post("X", "u3", 1, author_url="https://other.example/social.org"),
            make_post("R", "u2", 2, parent="https://local.example/social.org#X"),
        ]
        units = build_notifications(posts, local_user)
        assert [(u.post.id, u.kind) for u in units] == [("R", NotificationKind.REPLY)]
