from eligibility import CandidateObserver, get_candidates
from models import (
    UNLIMITED,
    AllocationContractError,
    Assignment,
    ParticipantPreferences,
    Pool,
    RoleCatalog,
)
from priorities import ALLOCATION_TIERS, Priority
from random_source import RandomSource

# Odds of a submission being the one recorded for a role, by how it ranked it.
SUBMISSION_WEIGHTS = {
    Priority.LOW: 1,
    Priority.MEDIUM: 3,
    Priority.HIGH: 9,
}


def working_slots(pools: list[Pool], round_start: bool) -> dict[str, dict]:
    """Fresh pool_id -> {role_id: capacity} copy that allocation may consume."""
    return {pool.pool_id: pool.slots_for(round_start) for pool in pools}


def pick_submission(
    prefs: ParticipantPreferences,
    role_id: str,
    rng: RandomSource,
    multi_submission: bool,
):
    """
    Submission recorded for a participant placed in role_id.

    With multiple submissions, draw among the round-start candidates that list
    the role, weighted toward those that ranked it higher.
    """
    if not multi_submission:
        return prefs.selected
    options = []
    weights = []
    for submission in prefs.round_start_candidates:
        priority = submission.priority_of(role_id)
        if priority in SUBMISSION_WEIGHTS:
            options.append(submission)
            weights.append(SUBMISSION_WEIGHTS[priority])
    if not options:
        return prefs.selected
    return rng.weighted_pick(options, weights)


def _share_weight(active_slice: dict) -> int:
    # Unlimited slots count once so they cannot swamp the split.
    return sum(1 if cap is UNLIMITED else cap for cap in active_slice.values())


def compute_pool_shares(
    active_slices: dict[str, dict],
    candidate_count: int,
    rng: RandomSource,
) -> dict[str, int]:
    """
    How many of this slice's candidates each pool should take.

    Each pool gets floor(pool_weight / total_weight * candidates); any
    shortfall from rounding goes, whole, to one randomly chosen pool.
    Returns {} when no pool has any capacity in the slice.
    """
    weights = {pool_id: _share_weight(active) for pool_id, active in active_slices.items()}
    total = sum(weights.values())
    if total == 0:
        return {}

    shares = {pool_id: (w * candidate_count) // total for pool_id, w in weights.items()}
    distributed = sum(shares.values())
    if distributed < candidate_count:
        choice = rng.pick(list(shares))
        shares[choice] += candidate_count - distributed
    return shares


def allocate_roles(
    merged: dict,
    preferences: dict[str, ParticipantPreferences],
    pool_slots: dict[str, dict],
    catalog: RoleCatalog,
    bans,
    rng: RandomSource,
    multi_submission: bool = False,
    on_candidates: CandidateObserver | None = None,
    notes: list | None = None,
) -> dict[str, Assignment]:
    """
    Weighted proportional lottery over every pool.

    Works weight tiers from the highest down and, inside each, priorities
    HIGH -> LOW. For every (weight, priority) slice the candidates are split
    across pools in proportion to their open slots, then each pool fills its
    share by sweeping its roles in random order and drawing one waiting
    candidate per role per sweep.

    pool_slots is consumed in place. merged is not modified.
    Participants who fit nowhere are simply absent from the returned map.
    """
    catalog.rebuild_index()
    remaining = dict(merged)
    assigned: dict[str, Assignment] = {}
    if notes is None:
        notes = []

    for weight in catalog.ordered_weights:
        weight_roles = catalog.roles_by_weight[weight]

        for priority in ALLOCATION_TIERS:
            if not remaining:
                return assigned

            candidates = get_candidates(
                weight, priority, remaining, catalog, bans, on_candidates
            )
            if not candidates:
                continue

            waiting: dict[str, set[str]] = {}
            for participant_id, roles in candidates.items():
                for role_id in roles:
                    waiting.setdefault(role_id, set()).add(participant_id)
            unplaced = len(candidates)

            active_slices = {
                pool_id: {r: cap for r, cap in slots.items() if r in weight_roles}
                for pool_id, slots in pool_slots.items()
            }
            shares = compute_pool_shares(active_slices, len(candidates), rng)
            if not shares:
                notes.append(
                    f"No open slots at weight {weight} for "
                    f"{len(candidates)} {priority.name.lower()}-priority candidate(s)."
                )
                continue

            for pool_id, active in active_slices.items():
                if shares[pool_id] == 0:
                    continue

                role_order = list(active)
                rng.shuffle(role_order)

                while True:
                    prior = shares[pool_id]
                    for role_id in role_order:
                        if shares[pool_id] == 0:
                            break
                        cap = active[role_id]
                        if cap is not UNLIMITED and cap <= 0:
                            continue
                        if not waiting.get(role_id):
                            continue

                        participant_id = rng.pick(waiting[role_id])
                        for role_waiting in waiting.values():
                            role_waiting.discard(participant_id)

                        if cap is not UNLIMITED:
                            active[role_id] = cap - 1
                            pool_slots[pool_id][role_id] -= 1
                            if pool_slots[pool_id][role_id] < 0:
                                raise AllocationContractError(
                                    f"Role {role_id!r} in pool {pool_id!r} went below zero slots."
                                )

                        submission = pick_submission(
                            preferences[participant_id], role_id, rng, multi_submission
                        )
                        remaining.pop(participant_id, None)
                        assigned[participant_id] = Assignment(role_id, pool_id, submission)
                        shares[pool_id] -= 1
                        unplaced -= 1

                        if unplaced == 0:
                            break
                    if unplaced == 0 or prior == shares[pool_id]:
                        break

                if unplaced == 0:
                    break

    return assigned
