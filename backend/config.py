import os

from dotenv import load_dotenv

load_dotenv()

BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")

_BOOL_TRUTHY = {"true", "1", "yes", "y", "on"}
_BOOL_FALSY = {"false", "0", "no", "n", "off"}


def _env_int(name: str, default: int | None, minimum: int | None = None) -> int | None:
    raw = os.environ.get(name, "")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if minimum is not None:
        value = max(minimum, value)
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = str(os.environ.get(name, "") or "").strip().lower()
    if raw in _BOOL_TRUTHY:
        return True
    if raw in _BOOL_FALSY:
        return False
    return default


def _env_path(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if not raw:
        return default
    if not os.path.isabs(raw):
        return os.path.join(PROJECT_ROOT, raw)
    return raw


class Settings:
    """Runtime switches for allocation, read from the environment."""

    def __init__(
        self,
        data_path: str = DEFAULT_DATA_PATH,
        multi_submission_selection: bool = False,
        use_round_start_slots: bool = True,
        default_extended_access_threshold: int = 15,
        allocation_seed: int | None = None,
    ):
        self.data_path = data_path
        self.multi_submission_selection = multi_submission_selection
        self.use_round_start_slots = use_round_start_slots
        self.default_extended_access_threshold = default_extended_access_threshold
        self.allocation_seed = allocation_seed

    def __repr__(self) -> str:
        return (
            f"Settings(data_path={self.data_path!r}, "
            f"multi_submission_selection={self.multi_submission_selection}, "
            f"use_round_start_slots={self.use_round_start_slots}, "
            f"default_extended_access_threshold={self.default_extended_access_threshold}, "
            f"allocation_seed={self.allocation_seed})"
        )


def load_settings() -> Settings:
    return Settings(
        data_path=_env_path("DATA_PATH", DEFAULT_DATA_PATH),
        multi_submission_selection=_env_bool("MULTI_SUBMISSION_SELECTION", False),
        use_round_start_slots=_env_bool("USE_ROUND_START_SLOTS", True),
        default_extended_access_threshold=_env_int(
            "DEFAULT_EXTENDED_ACCESS_THRESHOLD", 15, minimum=0
        ),
        allocation_seed=_env_int("ALLOCATION_SEED", None),
    )
