from models import UNASSIGNED, UNLIMITED, Assignment, ParticipantPreferences, RoleCatalog
from priorities import PreferenceUnavailable
from random_source import RandomSource


def overflow_submission(
    prefs: ParticipantPreferences,
    rng: RandomSource,
    multi_submission: bool,
):
    """The submission to place as overflow, or None if the participant opted out."""
    if multi_submission:
        willing = [
            s for s in prefs.round_start_candidates
            if s.preference_unavailable == PreferenceUnavailable.SPAWN_AS_OVERFLOW
        ]
        return rng.pick(willing) if willing else None

    selected = prefs.selected
    if selected.preference_unavailable == PreferenceUnavailable.SPAWN_AS_OVERFLOW:
        return selected
    return None


def assign_overflow(
    assigned: dict[str, Assignment],
    participants,
    preferences: dict[str, ParticipantPreferences],
    pool_slots: dict[str, dict],
    catalog: RoleCatalog,
    rng: RandomSource,
    multi_submission: bool = False,
) -> None:
    """
    Give every participant missing from `assigned` an overflow role, if they
    accept one and some pool has one; otherwise record them as unassigned.

    Pools and each pool's overflow roles are tried in random order. Mutates
    `assigned` in place. Does nothing at all when there are no pools.
    """
    pool_ids = list(pool_slots)
    if not pool_ids:
        return

    for participant_id in participants:
        if participant_id in assigned:
            continue

        submission = overflow_submission(preferences[participant_id], rng, multi_submission)
        if submission is None:
            assigned[participant_id] = UNASSIGNED
            continue

        rng.shuffle(pool_ids)
        placed = None
        for pool_id in pool_ids:
            slots = pool_slots[pool_id]
            overflows = [
                r for r, cap in slots.items()
                if catalog.is_overflow(r) and (cap is UNLIMITED or cap > 0)
            ]
            rng.shuffle(overflows)
            if not overflows:
                continue
            role_id = overflows[0]
            if slots[role_id] is not UNLIMITED:
                slots[role_id] -= 1
            placed = Assignment(role_id, pool_id, submission)
            break

        assigned[participant_id] = placed if placed is not None else UNASSIGNED
