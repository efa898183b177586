"""Reviewer selection: deterministic fallback, scripted draws, distinctness."""

import pytest

from review_assigner.domain import User
from review_assigner.services.reviewer_selection import (
    SystemRandomSource,
    choose_one,
    choose_reviewers,
)


def _users(*ids):
    return [User.create(i, i.upper(), "team") for i in ids]


class TestChooseReviewers:

    def test_no_candidates(self, scripted):
        assert choose_reviewers([], scripted()) == []

    def test_single_candidate_needs_no_draw(self, scripted):
        rand = scripted()
        assert choose_reviewers(_users("u1"), rand) == ["u1"]
        assert rand.calls == []

    def test_without_random_source_takes_head(self):
        assert choose_reviewers(_users("u1", "u2", "u3"), None) == ["u1", "u2"]

    def test_second_draw_skips_first_pick(self, scripted):
        # i=1, j=1 -> j bumped to 2
        rand = scripted(1, 1)
        assert choose_reviewers(_users("u1", "u2", "u3", "u4"), rand) == ["u2", "u3"]
        assert rand.calls == [4, 3]

    def test_second_draw_below_first_pick(self, scripted):
        rand = scripted(2, 0)
        assert choose_reviewers(_users("u1", "u2", "u3"), rand) == ["u3", "u1"]

    def test_two_candidates_always_both(self, scripted):
        for i in (0, 1):
            picked = choose_reviewers(_users("a", "b"), scripted(i, 0))
            assert sorted(picked) == ["a", "b"]

    def test_every_draw_yields_distinct_pair(self, scripted):
        users = _users("a", "b", "c", "d", "e")
        for i in range(5):
            for j in range(4):
                first, second = choose_reviewers(users, scripted(i, j))
                assert first != second


class TestChooseOne:

    def test_empty(self, scripted):
        assert choose_one([], scripted()) is None

    def test_without_random_source_takes_first(self):
        assert choose_one(_users("u1", "u2"), None) == "u1"

    def test_indexes_candidates(self, scripted):
        assert choose_one(_users("u1", "u2", "u3"), scripted(2)) == "u3"


class TestSystemRandomSource:

    def test_seeded_sources_agree(self):
        a = SystemRandomSource(seed=42)
        b = SystemRandomSource(seed=42)
        assert [a.intn(10) for _ in range(20)] == [b.intn(10) for _ in range(20)]

    def test_range(self):
        rand = SystemRandomSource(seed=1)
        assert all(0 <= rand.intn(3) < 3 for _ in range(100))

    def test_non_positive_n_rejected(self):
        with pytest.raises(ValueError):
            SystemRandomSource().intn(0)
