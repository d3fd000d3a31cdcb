import pandas as pd

from models import Assignment, Pool

_FRAME_COLUMNS = ["participant_id", "role_id", "pool_id", "submission_id"]


def count_by_pool(assigned: dict[str, Assignment], pool_ids) -> dict[str, int]:
    """Participants placed in each pool. Every listed pool appears, even at 0."""
    counts = {pool_id: 0 for pool_id in pool_ids}
    for entry in assigned.values():
        if entry.is_assigned and entry.pool_id in counts:
            counts[entry.pool_id] += 1
    return counts


def calc_extended_access(counts: dict[str, int], pools: list[Pool]) -> dict[str, bool]:
    """A pool runs on extended access when its headcount is at or under its threshold."""
    thresholds = {pool.pool_id: pool.extended_access_threshold for pool in pools}
    return {
        pool_id: count <= thresholds[pool_id]
        for pool_id, count in counts.items()
        if pool_id in thresholds
    }


def assignments_frame(assigned: dict[str, Assignment]) -> pd.DataFrame:
    rows = [
        {"participant_id": participant_id, **entry.to_dict()}
        for participant_id, entry in assigned.items()
    ]
    if not rows:
        return pd.DataFrame(columns=_FRAME_COLUMNS)
    return pd.DataFrame(rows, columns=_FRAME_COLUMNS)


def role_counts(assigned: dict[str, Assignment]) -> dict[str, dict[str, int]]:
    """pool_id -> role_id -> number of participants placed there."""
    frame = assignments_frame(assigned).dropna(subset=["pool_id", "role_id"])
    out: dict[str, dict[str, int]] = {}
    if len(frame) == 0:
        return out
    grouped = frame.groupby(["pool_id", "role_id"]).size()
    for (pool_id, role_id), n in grouped.items():
        out.setdefault(str(pool_id), {})[str(role_id)] = int(n)
    return out
