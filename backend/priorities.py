from enum import Enum, IntEnum


class Priority(IntEnum):
    NEVER = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3


# Tiers that take part in allocation, highest first.
ALLOCATION_TIERS = (Priority.HIGH, Priority.MEDIUM, Priority.LOW)


class PreferenceUnavailable(Enum):
    """What to do with a participant when none of their roles can be given."""

    STAY_UNASSIGNED = "stay_unassigned"
    SPAWN_AS_OVERFLOW = "spawn_as_overflow"


_PRIORITY_ALIASES = {
    "never": Priority.NEVER,
    "none": Priority.NEVER,
    "low": Priority.LOW,
    "medium": Priority.MEDIUM,
    "med": Priority.MEDIUM,
    "high": Priority.HIGH,
}

_UNAVAILABLE_ALIASES = {
    "stay": PreferenceUnavailable.STAY_UNASSIGNED,
    "stay_unassigned": PreferenceUnavailable.STAY_UNASSIGNED,
    "stay_in_lobby": PreferenceUnavailable.STAY_UNASSIGNED,
    "overflow": PreferenceUnavailable.SPAWN_AS_OVERFLOW,
    "spawn_as_overflow": PreferenceUnavailable.SPAWN_AS_OVERFLOW,
}


def parse_priority(raw) -> Priority | None:
    """
    Parses a priority given as a name ('High', 'medium') or an integer 0-3.
    Returns None if the value cannot be read as a priority.
    """
    if isinstance(raw, Priority):
        return raw
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        try:
            return Priority(raw)
        except ValueError:
            return None
    text = str(raw).strip().lower()
    if not text:
        return None
    if text.isdigit():
        return parse_priority(int(text))
    return _PRIORITY_ALIASES.get(text)


def parse_unavailable_mode(raw) -> PreferenceUnavailable:
    """
    Missing value -> SPAWN_AS_OVERFLOW (the default for new submissions).
    Unrecognized value -> STAY_UNASSIGNED.
    """
    if isinstance(raw, PreferenceUnavailable):
        return raw
    if raw is None or not str(raw).strip():
        return PreferenceUnavailable.SPAWN_AS_OVERFLOW
    key = str(raw).strip().lower().replace("-", "_").replace(" ", "_")
    return _UNAVAILABLE_ALIASES.get(key, PreferenceUnavailable.STAY_UNASSIGNED)


def normalize_priorities(priorities: dict) -> dict:
    """
    Return a cleaned copy of a role -> Priority map.

    NEVER entries are dropped. Only the first HIGH role survives as HIGH;
    any later HIGH is demoted to MEDIUM.
    """
    cleaned = {}
    has_high = False
    for role_id, priority in priorities.items():
        if priority == Priority.NEVER:
            continue
        if priority == Priority.HIGH:
            if has_high:
                priority = Priority.MEDIUM
            has_high = True
        cleaned[role_id] = Priority(priority)
    return cleaned
