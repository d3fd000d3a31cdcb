from typing import Callable, Optional

from models import RoleCatalog
from priorities import Priority

# Observer signature: (participant_id, candidate role ids) -> ignored.
CandidateObserver = Callable[[str, list], None]


def get_candidates(
    weight: Optional[int],
    priority: Optional[Priority],
    merged: dict,
    catalog: RoleCatalog,
    bans,
    on_candidates: Optional[CandidateObserver] = None,
) -> dict[str, list[str]]:
    """
    Roles each participant both wants and may hold.

    weight=None keeps every weight; priority=None unions every tier.
    Roles unknown to the catalog and roles the ban authority reports for the
    participant are dropped. Participants left with no roles are omitted.

    on_candidates is called once per participant with a copy of the wanted
    roles before filtering; whatever it does to that copy is not used.
    """
    out: dict[str, list[str]] = {}

    for participant_id, tiers in merged.items():
        if tiers is None:
            continue
        banned = bans.get_banned_roles(participant_id) if bans is not None else None

        if priority is None:
            wanted: set[str] = set()
            for tier_roles in tiers.values():
                wanted |= tier_roles
        else:
            wanted = tiers.get(priority, set())

        ordered = sorted(wanted, key=str)
        if on_candidates is not None:
            on_candidates(participant_id, list(ordered))

        available: list[str] = []
        for role_id in ordered:
            role = catalog.get(role_id)
            if role is None:
                continue
            if weight is not None and role.weight != weight:
                continue
            if banned and role_id in banned:
                continue
            available.append(role_id)

        if available:
            out[participant_id] = available

    return out
