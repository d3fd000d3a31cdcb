"""
Domain shapes shared by the allocation modules.

Pools, roles and bans are read-only inputs supplied fresh for each call.
Capacity values are ints, or UNLIMITED (None) for roles without a cap.
"""

from dataclasses import dataclass, field

from priorities import Priority, PreferenceUnavailable, normalize_priorities

UNLIMITED = None


@dataclass(frozen=True)
class RoleDef:
    role_id: str
    weight: int = 0
    is_overflow: bool = False
    label: str = ""


class RoleCatalog:
    """Read-only role definitions with a weight -> role ids index."""

    def __init__(self, roles):
        self._roles: dict[str, RoleDef] = {r.role_id: r for r in roles}
        self.roles_by_weight: dict[int, set[str]] = {}
        self.ordered_weights: list[int] = []
        self.rebuild_index()

    def rebuild_index(self) -> None:
        by_weight: dict[int, set[str]] = {}
        for role in self._roles.values():
            by_weight.setdefault(role.weight, set()).add(role.role_id)
        self.roles_by_weight = by_weight
        self.ordered_weights = sorted(by_weight, reverse=True)

    def get(self, role_id: str) -> RoleDef | None:
        return self._roles.get(role_id)

    def __contains__(self, role_id) -> bool:
        return role_id in self._roles

    def __iter__(self):
        return iter(self._roles.values())

    def __len__(self) -> int:
        return len(self._roles)

    def is_overflow(self, role_id: str) -> bool:
        role = self._roles.get(role_id)
        return role is not None and role.is_overflow


@dataclass
class Pool:
    """
    One independently tracked destination (e.g. a station).

    slots:              role id -> current open capacity
    round_start_slots:  role id -> capacity to use at round start; falls back
                        to slots when not given
    """

    pool_id: str
    slots: dict = field(default_factory=dict)
    round_start_slots: dict | None = None
    extended_access_threshold: int = 15
    label: str = ""

    def slots_for(self, round_start: bool) -> dict:
        if round_start and self.round_start_slots is not None:
            return dict(self.round_start_slots)
        return dict(self.slots)

    def overflow_roles(self, catalog: RoleCatalog) -> list[str]:
        return [role_id for role_id in self.slots if catalog.is_overflow(role_id)]


class BanList:
    """In-memory ban authority: participant -> set of disallowed role ids."""

    def __init__(self, bans: dict | None = None):
        self._bans: dict[str, set[str]] = {
            pid: set(roles) for pid, roles in (bans or {}).items()
        }

    def get_banned_roles(self, participant_id: str) -> set[str] | None:
        return self._bans.get(participant_id)

    def ban(self, participant_id: str, role_id: str) -> None:
        self._bans.setdefault(participant_id, set()).add(role_id)


@dataclass(eq=False)
class Submission:
    """One character record a participant offers for allocation."""

    submission_id: str
    role_priorities: dict = field(default_factory=dict)
    preference_unavailable: PreferenceUnavailable = PreferenceUnavailable.SPAWN_AS_OVERFLOW
    round_start_candidate: bool = True

    def __post_init__(self):
        self.role_priorities = normalize_priorities(self.role_priorities)

    def priority_of(self, role_id: str) -> Priority:
        return self.role_priorities.get(role_id, Priority.NEVER)

    def to_dict(self) -> dict:
        return {
            "submission_id": self.submission_id,
            "role_priorities": {r: p.name.lower() for r, p in self.role_priorities.items()},
            "preference_unavailable": self.preference_unavailable.value,
            "round_start_candidate": self.round_start_candidate,
        }


@dataclass
class ParticipantPreferences:
    submissions: list = field(default_factory=list)
    selected_index: int = 0
    highest_priority_role: str | None = None

    @property
    def selected(self) -> Submission:
        return self.submissions[self.selected_index]

    @property
    def round_start_candidates(self) -> list:
        return [s for s in self.submissions if s.round_start_candidate]


@dataclass(frozen=True)
class Assignment:
    """Where one participant should go. pool_id None marks the invalid pool."""

    role_id: str | None = None
    pool_id: str | None = None
    submission: Submission | None = None

    @property
    def is_assigned(self) -> bool:
        return self.role_id is not None and self.pool_id is not None

    def to_dict(self) -> dict:
        return {
            "role_id": self.role_id,
            "pool_id": self.pool_id,
            "submission_id": self.submission.submission_id if self.submission else None,
        }


UNASSIGNED = Assignment()


class AllocationContractError(RuntimeError):
    """Raised when allocation bookkeeping breaks an invariant it must keep."""
