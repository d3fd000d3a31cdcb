"""
Round-start allocation: merge preferences, run the proportional lottery,
place leftovers into overflow roles and derive per-pool access flags.

Only reports where participants should go. The supplied pools are never
modified; all capacity bookkeeping happens on a working copy.
"""

from access import calc_extended_access, count_by_pool
from allocator import allocate_roles, working_slots
from eligibility import CandidateObserver
from models import AllocationContractError, Assignment, ParticipantPreferences, Pool, RoleCatalog
from overflow import assign_overflow
from preferences import merge_priorities
from random_source import RandomSource


def check_results(
    assigned: dict[str, Assignment],
    participants,
    pool_slots: dict[str, dict],
) -> None:
    """Raise AllocationContractError if the result breaks a bookkeeping invariant."""
    expected = list(participants)
    if len(set(expected)) != len(expected):
        raise AllocationContractError("Participant list contains duplicates.")
    missing = set(expected) - set(assigned)
    if missing:
        raise AllocationContractError(f"No result for participant(s): {sorted(missing)}")
    extra = set(assigned) - set(expected)
    if extra:
        raise AllocationContractError(f"Result for unknown participant(s): {sorted(extra)}")

    for participant_id, entry in assigned.items():
        if entry.pool_id is not None and entry.pool_id not in pool_slots:
            raise AllocationContractError(
                f"Participant {participant_id!r} placed in unknown pool {entry.pool_id!r}."
            )

    for pool_id, slots in pool_slots.items():
        for role_id, cap in slots.items():
            if cap is not None and cap < 0:
                raise AllocationContractError(
                    f"Role {role_id!r} in pool {pool_id!r} ended with {cap} slots."
                )


def run_round_start(
    preferences: dict[str, ParticipantPreferences],
    pools: list[Pool],
    catalog: RoleCatalog,
    bans,
    rng: RandomSource,
    multi_submission: bool = False,
    use_round_start_slots: bool = True,
    on_candidates: CandidateObserver | None = None,
    verbose: bool = False,
) -> dict:
    """
    Returns:
      {
        "assignments":     {participant_id: Assignment},
        "pool_counts":     {pool_id: int},
        "extended_access": {pool_id: bool},
        "unassigned":      [participant_id, ...],
        "remaining_slots": {pool_id: {role_id: int | None}},
        "notes":           [str, ...],
      }
    """
    notes: list[str] = []
    pool_slots = working_slots(pools, use_round_start_slots)
    participants = list(preferences)

    assigned: dict[str, Assignment] = {}
    if participants and pools:
        merged = merge_priorities(preferences, rng, multi_submission)
        assigned = allocate_roles(
            merged,
            preferences,
            pool_slots,
            catalog,
            bans,
            rng,
            multi_submission=multi_submission,
            on_candidates=on_candidates,
            notes=notes,
        )
        assign_overflow(
            assigned, participants, preferences, pool_slots, catalog, rng, multi_submission
        )
    elif participants:
        notes.append("No pools available; every participant stays unassigned.")

    # Without pools the overflow pass is a no-op, so fill the gaps here.
    for participant_id in participants:
        if participant_id not in assigned:
            assigned[participant_id] = Assignment()

    check_results(assigned, participants, pool_slots)

    counts = count_by_pool(assigned, pool_slots)
    extended_access = calc_extended_access(counts, pools)
    unassigned = [pid for pid, entry in assigned.items() if not entry.is_assigned]

    if verbose:
        print(
            f"[INFO] Round start: {len(participants) - len(unassigned)} of "
            f"{len(participants)} participant(s) placed across {len(pools)} pool(s)."
        )
        for pool_id, flag in extended_access.items():
            print(f"[INFO] Pool {pool_id} on extended access: {flag}")

    return {
        "assignments": assigned,
        "pool_counts": counts,
        "extended_access": extended_access,
        "unassigned": unassigned,
        "remaining_slots": pool_slots,
        "notes": notes,
    }
