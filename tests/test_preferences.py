import pytest
from models import ParticipantPreferences, Submission
from preferences import merge_priorities
from priorities import Priority
from random_source import RandomSource

H, M, L, N = Priority.HIGH, Priority.MEDIUM, Priority.LOW, Priority.NEVER


class NoDrawRandom(RandomSource):
    """Fails the test if any random draw is made."""

    def pick(self, items):
        raise AssertionError("unexpected pick")

    def pick_and_take(self, items):
        raise AssertionError("unexpected pick_and_take")


def prefs(*submissions, selected=0, hint=None):
    return ParticipantPreferences(
        submissions=list(submissions),
        selected_index=selected,
        highest_priority_role=hint,
    )


class TestSingleSubmission:
    def test_copies_selected_submission(self):
        p = prefs(
            Submission("s1", {"A": H, "B": M, "C": L, "D": N}),
            Submission("s2", {"Z": H}),
        )
        merged = merge_priorities({"p1": p}, NoDrawRandom())
        assert merged["p1"] == {H: {"A"}, M: {"B"}, L: {"C"}}

    def test_never_is_not_a_key(self):
        merged = merge_priorities({"p1": prefs(Submission("s1", {"A": N}))}, NoDrawRandom())
        assert N not in merged["p1"]
        assert set(merged["p1"]) == {H, M, L}

    def test_uses_selected_index(self):
        p = prefs(Submission("s1", {"A": H}), Submission("s2", {"B": H}), selected=1)
        merged = merge_priorities({"p1": p}, NoDrawRandom())
        assert merged["p1"][H] == {"B"}


class TestMultiSubmission:
    def test_hint_wins_and_others_demoted(self):
        p = prefs(
            Submission("s1", {"A": H, "C": L}),
            Submission("s2", {"B": H, "C": M}),
            hint="B",
        )
        merged = merge_priorities({"p1": p}, NoDrawRandom(), multi_submission=True)
        assert merged["p1"][H] == {"B"}
        assert merged["p1"][M] == {"A", "C"}
        assert merged["p1"][L] == set()

    def test_random_tie_break_without_hint(self):
        p = prefs(Submission("s1", {"A": H}), Submission("s2", {"B": H}))
        seen = set()
        for seed in range(30):
            merged = merge_priorities({"p1": p}, RandomSource(seed), multi_submission=True)
            assert len(merged["p1"][H]) == 1
            assert merged["p1"][H] | merged["p1"][M] == {"A", "B"}
            seen |= merged["p1"][H]
        assert seen == {"A", "B"}

    def test_hint_not_high_is_ignored(self):
        p = prefs(
            Submission("s1", {"A": H, "B": L}),
            Submission("s2", {"C": H}),
            hint="B",
        )
        merged = merge_priorities({"p1": p}, RandomSource(5), multi_submission=True)
        assert merged["p1"][H] <= {"A", "C"}
        assert len(merged["p1"][H]) == 1
        assert "B" in merged["p1"][L]

    def test_single_high_needs_no_draw(self):
        p = prefs(Submission("s1", {"A": H}), Submission("s2", {"B": M}))
        merged = merge_priorities({"p1": p}, NoDrawRandom(), multi_submission=True)
        assert merged["p1"][H] == {"A"}

    def test_chosen_high_removed_from_lower_tiers(self):
        p = prefs(
            Submission("s1", {"A": H}),
            Submission("s2", {"A": L, "B": M}),
        )
        merged = merge_priorities({"p1": p}, NoDrawRandom(), multi_submission=True)
        assert merged["p1"][H] == {"A"}
        assert "A" not in merged["p1"][M]
        assert "A" not in merged["p1"][L]

    def test_non_candidates_ignored(self):
        hidden = Submission("s2", {"B": H}, round_start_candidate=False)
        p = prefs(Submission("s1", {"A": M}), hidden)
        merged = merge_priorities({"p1": p}, NoDrawRandom(), multi_submission=True)
        assert merged["p1"] == {H: set(), M: {"A"}, L: set()}

    @pytest.mark.parametrize("seed", range(10))
    def test_tiers_mutually_exclusive(self, seed):
        p = prefs(
            Submission("s1", {"A": H, "B": M, "C": L}),
            Submission("s2", {"B": H, "C": M, "D": L}),
            Submission("s3", {"C": H, "A": L, "D": M}),
        )
        tiers = merge_priorities({"p1": p}, RandomSource(seed), multi_submission=True)["p1"]
        assert len(tiers[H]) == 1
        assert not tiers[H] & tiers[M]
        assert not tiers[H] & tiers[L]
        assert not tiers[M] & tiers[L]
        assert tiers[H] | tiers[M] | tiers[L] == {"A", "B", "C", "D"}

    def test_merge_twice_same_shape(self):
        p = prefs(
            Submission("s1", {"A": H, "C": L}),
            Submission("s2", {"B": H, "D": L}),
        )
        first = merge_priorities({"p1": p}, RandomSource(1), multi_submission=True)["p1"]
        second = merge_priorities({"p1": p}, RandomSource(2), multi_submission=True)["p1"]
        assert first[H] | first[M] == second[H] | second[M]
        assert first[L] == second[L]
        assert len(first[H]) == len(second[H]) == 1
