"""
Data-quality gate for the role and pool catalog.

Checks the rules a pool must satisfy before round-start allocation can use
it. Designed to be importable for tests and runnable as a standalone CLI.

Usage:
    python scripts/validate_pools.py --pool Alpha
    python scripts/validate_pools.py --all
    python scripts/validate_pools.py --all --path path/to/data
"""

import argparse
import os
import sys

import pandas as pd


# ── Validation result ─────────────────────────────────────────────────────────

class ValidationResult:
    """Collects errors and warnings for a single pool validation run."""

    def __init__(self, pool_id: str):
        self.pool_id = pool_id
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def error(self, msg: str) -> None:
        self.errors.append(msg)

    def warn(self, msg: str) -> None:
        self.warnings.append(msg)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        lines = [f"[{status}] Pool '{self.pool_id}'"]
        for e in self.errors:
            lines.append(f"  [ERROR] {e}")
        for w in self.warnings:
            lines.append(f"  [WARN]  {w}")
        if self.passed and not self.warnings:
            lines.append("  All checks passed.")
        return "\n".join(lines)


_UNLIMITED_TOKENS = {"", "unlimited", "inf", "none", "nan", "-"}


def _pool_rows(pool_id: str, slots_df: pd.DataFrame) -> pd.DataFrame:
    if slots_df is None or len(slots_df) == 0:
        return pd.DataFrame(columns=["pool_id", "role_id", "slots", "round_start_slots"])
    return slots_df[slots_df["pool_id"].astype(str).str.strip() == pool_id]


def _is_valid_capacity(raw) -> bool:
    text = str(raw if raw is not None else "").strip().lower()
    if text in _UNLIMITED_TOKENS:
        return True
    try:
        return int(text) >= 0
    except ValueError:
        return False


# ── Individual checks ─────────────────────────────────────────────────────────

def check_pool_exists(pool_id: str, pools_df: pd.DataFrame, result: ValidationResult) -> None:
    """Pool must exist in pools.csv."""
    if pools_df is None or len(pools_df) == 0:
        result.error("No pools found or pools.csv is empty.")
        return
    if pool_id not in pools_df["pool_id"].astype(str).str.strip().tolist():
        result.error(f"Pool '{pool_id}' not found in pools.csv.")


def check_has_slots(pool_id: str, slots_df: pd.DataFrame, result: ValidationResult) -> None:
    if len(_pool_rows(pool_id, slots_df)) == 0:
        result.error(f"Pool '{pool_id}' has no rows in pool_slots.csv.")


def check_slot_roles_known(
    pool_id: str,
    slots_df: pd.DataFrame,
    roles_df: pd.DataFrame,
    result: ValidationResult,
) -> None:
    """Every role a pool offers must be defined in roles.csv."""
    known = set(roles_df["role_id"].astype(str).str.strip().tolist())
    offered = _pool_rows(pool_id, slots_df)["role_id"].astype(str).str.strip().tolist()
    unknown = sorted({r for r in offered if r and r not in known})
    if unknown:
        result.error(f"Pool offers role(s) missing from roles.csv: {unknown}")


def check_slot_values(pool_id: str, slots_df: pd.DataFrame, result: ValidationResult) -> None:
    """Slot counts must be non-negative integers, or blank/'unlimited'."""
    rows = _pool_rows(pool_id, slots_df)
    for _, row in rows.iterrows():
        for col in ("slots", "round_start_slots"):
            if col not in rows.columns:
                continue
            if not _is_valid_capacity(row.get(col)):
                result.error(
                    f"Role '{row['role_id']}' has invalid {col} value {row.get(col)!r}."
                )


def check_has_overflow(
    pool_id: str,
    slots_df: pd.DataFrame,
    roles_df: pd.DataFrame,
    result: ValidationResult,
) -> None:
    """Without an overflow role, leftover participants cannot be placed here."""
    overflow_ids = set(
        roles_df.loc[
            roles_df["is_overflow"].astype(str).str.strip().str.lower().isin({"true", "1", "yes", "y"}),
            "role_id",
        ].astype(str).str.strip()
    )
    offered = set(_pool_rows(pool_id, slots_df)["role_id"].astype(str).str.strip())
    if not offered & overflow_ids:
        result.warn("Pool has no overflow role; unplaced participants will stay unassigned.")


def check_weight_coverage(
    pool_id: str,
    slots_df: pd.DataFrame,
    roles_df: pd.DataFrame,
    result: ValidationResult,
) -> None:
    """Warn about weight tiers in the catalog this pool offers no slot for."""
    weights = {}
    for _, row in roles_df.iterrows():
        try:
            weights[str(row["role_id"]).strip()] = int(str(row.get("weight", "0")).strip() or 0)
        except ValueError:
            result.error(f"Role '{row['role_id']}' has a non-integer weight {row.get('weight')!r}.")
    offered = set(_pool_rows(pool_id, slots_df)["role_id"].astype(str).str.strip())
    covered = {weights[r] for r in offered if r in weights}
    missing = sorted(set(weights.values()) - covered, reverse=True)
    if missing:
        result.warn(f"No roles offered at weight tier(s): {missing}")


def validate_pool(
    pool_id: str,
    pools_df: pd.DataFrame,
    slots_df: pd.DataFrame,
    roles_df: pd.DataFrame,
) -> ValidationResult:
    result = ValidationResult(pool_id)
    check_pool_exists(pool_id, pools_df, result)
    check_has_slots(pool_id, slots_df, result)
    check_slot_roles_known(pool_id, slots_df, roles_df, result)
    check_slot_values(pool_id, slots_df, result)
    check_has_overflow(pool_id, slots_df, roles_df, result)
    check_weight_coverage(pool_id, slots_df, roles_df, result)
    return result


# ── CLI ───────────────────────────────────────────────────────────────────────

def main(args=None):
    parser = argparse.ArgumentParser(
        description="Validate pool and role data before round-start allocation.",
    )
    parser.add_argument("--pool", type=str, help="Pool ID to validate.")
    parser.add_argument("--all", action="store_true", help="Validate every pool in pools.csv.")
    parser.add_argument(
        "--path", type=str,
        default=os.path.join(os.path.dirname(__file__), "..", "data"),
        help="Path to the data directory.",
    )
    opts = parser.parse_args(args)

    if not opts.pool and not opts.all:
        parser.error("Provide --pool POOL_ID or --all.")

    # Import data_loader (add backend/ to path)
    backend_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend")
    sys.path.insert(0, backend_dir)
    from data_loader import load_data

    data = load_data(opts.path)

    if opts.all:
        pool_ids = data["pools_df"]["pool_id"].astype(str).str.strip().tolist()
        if not pool_ids:
            print("[INFO] No pools found in data directory.")
            return 0
    else:
        pool_ids = [opts.pool.strip()]

    all_passed = True
    for pid in pool_ids:
        result = validate_pool(pid, data["pools_df"], data["slots_df"], data["roles_df"])
        print(result.summary())
        if not result.passed:
            all_passed = False

    return 0 if all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
