import pytest
from models import UNASSIGNED, UNLIMITED, Assignment, ParticipantPreferences, RoleCatalog, RoleDef, Submission
from overflow import assign_overflow, overflow_submission
from priorities import PreferenceUnavailable, Priority
from random_source import RandomSource

STAY = PreferenceUnavailable.STAY_UNASSIGNED
SPAWN = PreferenceUnavailable.SPAWN_AS_OVERFLOW


@pytest.fixture
def catalog():
    return RoleCatalog([
        RoleDef("Engineer", weight=0),
        RoleDef("Passenger", weight=0, is_overflow=True),
        RoleDef("Visitor", weight=0, is_overflow=True),
    ])


def single(mode, sid="s"):
    return ParticipantPreferences(submissions=[
        Submission(sid, {"Engineer": Priority.HIGH}, preference_unavailable=mode),
    ])


class TestOverflowSubmission:
    def test_single_mode_spawn(self):
        prefs = single(SPAWN)
        assert overflow_submission(prefs, RandomSource(0), False) is prefs.selected

    def test_single_mode_stay(self):
        assert overflow_submission(single(STAY), RandomSource(0), False) is None

    def test_multi_mode_only_willing_candidates(self):
        prefs = ParticipantPreferences(submissions=[
            Submission("stay", {}, preference_unavailable=STAY),
            Submission("spawn", {}, preference_unavailable=SPAWN),
            Submission("hidden", {}, preference_unavailable=SPAWN, round_start_candidate=False),
        ])
        for seed in range(10):
            chosen = overflow_submission(prefs, RandomSource(seed), True)
            assert chosen.submission_id == "spawn"

    def test_multi_mode_nobody_willing(self):
        prefs = ParticipantPreferences(submissions=[
            Submission("a", {}, preference_unavailable=STAY),
            Submission("b", {}, preference_unavailable=SPAWN, round_start_candidate=False),
        ])
        assert overflow_submission(prefs, RandomSource(0), True) is None


class TestAssignOverflow:
    def test_no_pools_is_noop(self, catalog):
        assigned = {}
        assign_overflow(assigned, ["p1"], {"p1": single(SPAWN)}, {}, catalog, RandomSource(0))
        assert assigned == {}

    def test_places_into_overflow_role(self, catalog):
        assigned = {}
        slots = {"Alpha": {"Engineer": 0, "Passenger": UNLIMITED}}
        prefs = {"p1": single(SPAWN, sid="main")}
        assign_overflow(assigned, ["p1"], prefs, slots, catalog, RandomSource(0))
        entry = assigned["p1"]
        assert entry.role_id == "Passenger"
        assert entry.pool_id == "Alpha"
        assert entry.submission.submission_id == "main"

    def test_stay_unassigned(self, catalog):
        assigned = {}
        slots = {"Alpha": {"Passenger": UNLIMITED}}
        assign_overflow(assigned, ["p1"], {"p1": single(STAY)}, slots, catalog, RandomSource(0))
        assert assigned["p1"] == UNASSIGNED
        assert assigned["p1"].role_id is None
        assert assigned["p1"].pool_id is None
        assert assigned["p1"].submission is None

    def test_no_overflow_role_anywhere(self, catalog):
        assigned = {}
        slots = {"Alpha": {"Engineer": 3}, "Beta": {"Engineer": UNLIMITED}}
        assign_overflow(assigned, ["p1"], {"p1": single(SPAWN)}, slots, catalog, RandomSource(0))
        assert assigned["p1"] == UNASSIGNED

    def test_skips_pools_without_overflow(self, catalog):
        slots = {"Alpha": {"Engineer": 3}, "Beta": {"Visitor": UNLIMITED}}
        for seed in range(10):
            assigned = {}
            assign_overflow(assigned, ["p1"], {"p1": single(SPAWN)}, slots, catalog, RandomSource(seed))
            assert assigned["p1"].pool_id == "Beta"
            assert assigned["p1"].role_id == "Visitor"

    def test_already_assigned_untouched(self, catalog):
        existing = Assignment("Engineer", "Alpha", None)
        assigned = {"p1": existing}
        slots = {"Alpha": {"Passenger": UNLIMITED}}
        assign_overflow(assigned, ["p1"], {"p1": single(SPAWN)}, slots, catalog, RandomSource(0))
        assert assigned["p1"] is existing

    def test_finite_overflow_capacity(self, catalog):
        assigned = {}
        slots = {"Alpha": {"Passenger": 1}}
        prefs = {"p1": single(SPAWN), "p2": single(SPAWN)}
        assign_overflow(assigned, ["p1", "p2"], prefs, slots, catalog, RandomSource(0))
        placed = [pid for pid, e in assigned.items() if e.is_assigned]
        assert len(placed) == 1
        assert slots["Alpha"]["Passenger"] == 0
        assert len(assigned) == 2
