import os
import sys

import pandas as pd

from models import UNLIMITED, BanList, Pool, RoleCatalog, RoleDef

_BOOL_TRUTHY = {"true", "1", "yes", "y"}
_UNLIMITED_TOKENS = {"", "unlimited", "inf", "none", "nan", "-"}

ROLE_COLUMNS = ["role_id", "label", "weight", "is_overflow"]
POOL_COLUMNS = ["pool_id", "label", "extended_access_threshold"]
SLOT_COLUMNS = ["pool_id", "role_id", "slots", "round_start_slots"]
BAN_COLUMNS = ["participant_id", "role_id"]


def _safe_int(val, default=None):
    try:
        if pd.isna(val):
            return default
        text = str(val).strip()
        if not text:
            return default
        return int(float(text))
    except (TypeError, ValueError):
        return default


def _safe_bool_col(df: pd.DataFrame, col: str) -> pd.DataFrame:
    """Normalize a boolean column to Python bool (TRUE/true/1/yes/y). Blank → False."""
    def _coerce(x):
        if isinstance(x, bool):
            return x
        if x is None or (isinstance(x, float) and pd.isna(x)):
            return False
        if isinstance(x, (int, float)):
            return bool(x)
        return str(x).strip().lower() in _BOOL_TRUTHY

    if col in df.columns:
        df[col] = df[col].apply(_coerce)
    return df


def parse_capacity(raw, label: str = "") -> int | None:
    """
    Blank / 'unlimited' → UNLIMITED. Negative numbers clamp to 0.
    Unparseable values are treated as 0 open slots.
    """
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return UNLIMITED
    text = str(raw).strip().lower()
    if text in _UNLIMITED_TOKENS:
        return UNLIMITED
    value = _safe_int(text)
    if value is None:
        print(f"[WARN] Unreadable slot count {raw!r}{label}; treating as 0.")
        return 0
    if value < 0:
        print(f"[WARN] Negative slot count {value}{label}; clamped to 0.")
        return 0
    return value


def _read_csv(data_path: str, name: str, columns: list[str], required: bool = True) -> pd.DataFrame:
    path = os.path.join(data_path, f"{name}.csv")
    if not os.path.isfile(path):
        if required:
            raise FileNotFoundError(path)
        return pd.DataFrame(columns=columns)
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    for col in columns:
        if col not in df.columns:
            df[col] = ""
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df


def build_catalog(roles_df: pd.DataFrame) -> RoleCatalog:
    roles_df = _safe_bool_col(roles_df.copy(), "is_overflow")
    roles = []
    for _, row in roles_df.iterrows():
        role_id = str(row["role_id"]).strip()
        if not role_id:
            continue
        roles.append(
            RoleDef(
                role_id=role_id,
                weight=_safe_int(row.get("weight"), 0),
                is_overflow=bool(row.get("is_overflow", False)),
                label=str(row.get("label", "") or role_id),
            )
        )
    return RoleCatalog(roles)


def build_pools(
    pools_df: pd.DataFrame,
    slots_df: pd.DataFrame,
    default_threshold: int = 15,
) -> list[Pool]:
    has_round_start = (
        "round_start_slots" in slots_df.columns
        and (slots_df["round_start_slots"].astype(str).str.strip() != "").any()
    )

    pools: dict[str, Pool] = {}
    for _, row in pools_df.iterrows():
        pool_id = str(row["pool_id"]).strip()
        if not pool_id:
            continue
        pools[pool_id] = Pool(
            pool_id=pool_id,
            slots={},
            round_start_slots={} if has_round_start else None,
            extended_access_threshold=_safe_int(
                row.get("extended_access_threshold"), default_threshold
            ),
            label=str(row.get("label", "") or pool_id),
        )

    orphaned_pools: set[str] = set()
    for _, row in slots_df.iterrows():
        pool_id = str(row["pool_id"]).strip()
        role_id = str(row["role_id"]).strip()
        if not pool_id or not role_id:
            continue
        if pool_id not in pools:
            orphaned_pools.add(pool_id)
            continue
        where = f" for {role_id} in {pool_id}"
        pool = pools[pool_id]
        pool.slots[role_id] = parse_capacity(row.get("slots"), where)
        if pool.round_start_slots is not None:
            raw_start = row.get("round_start_slots")
            if str(raw_start).strip() == "":
                pool.round_start_slots[role_id] = pool.slots[role_id]
            else:
                pool.round_start_slots[role_id] = parse_capacity(raw_start, where)

    if orphaned_pools:
        print(f"[WARN] {len(orphaned_pools)} pool_id(s) in pool_slots not found in pools sheet: {sorted(orphaned_pools)}")
    return list(pools.values())


def build_bans(bans_df: pd.DataFrame) -> BanList:
    bans = BanList()
    for _, row in bans_df.iterrows():
        participant_id = str(row["participant_id"]).strip()
        role_id = str(row["role_id"]).strip()
        if participant_id and role_id:
            bans.ban(participant_id, role_id)
    return bans


def load_data(data_path: str, default_threshold: int = 15) -> dict:
    """Load role catalog, pools and bans from a directory of CSVs. Raises on missing files."""
    if not os.path.isdir(data_path):
        raise FileNotFoundError(data_path)

    roles_df = _read_csv(data_path, "roles", ROLE_COLUMNS)
    pools_df = _read_csv(data_path, "pools", POOL_COLUMNS)
    slots_df = _read_csv(data_path, "pool_slots", SLOT_COLUMNS)
    bans_df = _read_csv(data_path, "bans", BAN_COLUMNS, required=False)

    catalog = build_catalog(roles_df)
    pools = build_pools(pools_df, slots_df, default_threshold)
    bans = build_bans(bans_df)

    # ── Startup data integrity checks ──────────────────────────────────────
    slot_roles = set(slots_df["role_id"].tolist()) - {""}
    orphaned = {r for r in slot_roles if r not in catalog}
    if orphaned:
        print(f"[WARN] {len(orphaned)} role(s) in pool_slots not found in roles sheet: {sorted(orphaned)}")

    ban_roles = set(bans_df["role_id"].tolist()) - {""}
    unknown_bans = {r for r in ban_roles if r not in catalog}
    if unknown_bans:
        print(f"[WARN] {len(unknown_bans)} banned role(s) not found in roles sheet: {sorted(unknown_bans)}")

    no_overflow = [p.pool_id for p in pools if not p.overflow_roles(catalog)]
    if no_overflow:
        print(f"[WARN] {len(no_overflow)} pool(s) have no overflow role: {sorted(no_overflow)}", file=sys.stderr)

    return {
        "roles_df": roles_df,
        "pools_df": pools_df,
        "slots_df": slots_df,
        "bans_df": bans_df,
        "catalog": catalog,
        "pools": pools,
        "bans": bans,
    }
