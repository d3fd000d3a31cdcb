from models import ParticipantPreferences
from priorities import ALLOCATION_TIERS, Priority
from random_source import RandomSource


def _empty_tiers() -> dict[Priority, set[str]]:
    return {tier: set() for tier in ALLOCATION_TIERS}


def _merge_single(prefs: ParticipantPreferences) -> dict[Priority, set[str]]:
    merged = _empty_tiers()
    for role_id, priority in prefs.selected.role_priorities.items():
        if priority in merged:
            merged[priority].add(role_id)
    return merged


def _merge_multi(prefs: ParticipantPreferences, rng: RandomSource) -> dict[Priority, set[str]]:
    """
    Fold every round-start candidate submission into one tier map.

    Exactly one HIGH role survives: the participant's hinted top role when one
    of their submissions ranks it HIGH, otherwise a random pick among the HIGH
    roles. Every other HIGH role is demoted to MEDIUM.
    """
    merged = _empty_tiers()
    hint = prefs.highest_priority_role
    hint_is_high = False
    high_roles: list[str] = []

    for submission in prefs.round_start_candidates:
        for role_id, priority in submission.role_priorities.items():
            if priority == Priority.HIGH:
                if hint is not None and role_id == hint:
                    hint_is_high = True
                elif role_id not in high_roles:
                    high_roles.append(role_id)
            elif priority in merged:
                merged[priority].add(role_id)

    chosen = None
    if hint_is_high:
        chosen = hint
    elif len(high_roles) == 1:
        chosen = high_roles.pop()
    elif high_roles:
        chosen = rng.pick_and_take(high_roles)

    if chosen is not None:
        merged[Priority.HIGH].add(chosen)
    merged[Priority.MEDIUM].update(high_roles)

    # Tiers are mutually exclusive per participant.
    if chosen is not None:
        merged[Priority.MEDIUM].discard(chosen)
        merged[Priority.LOW].discard(chosen)
    merged[Priority.LOW] -= merged[Priority.MEDIUM]
    return merged


def merge_priorities(
    preferences: dict[str, ParticipantPreferences],
    rng: RandomSource,
    multi_submission: bool = False,
) -> dict[str, dict[Priority, set[str]]]:
    """
    Collapse each participant's submissions into a single
    {HIGH, MEDIUM, LOW} -> role ids map. NEVER is never a key.
    """
    merged: dict[str, dict[Priority, set[str]]] = {}
    for participant_id, prefs in preferences.items():
        if multi_submission:
            merged[participant_id] = _merge_multi(prefs, rng)
        else:
            merged[participant_id] = _merge_single(prefs)
    return merged
