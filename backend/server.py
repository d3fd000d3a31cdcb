import os
import sys
import time
import threading
from collections import defaultdict

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request

from access import role_counts
from config import DEFAULT_DATA_PATH, load_settings
from data_loader import load_data
from models import UNLIMITED
from payloads import parse_participants, validate_allocate_body
from random_source import RandomSource
from round_start import run_round_start

app = Flask(__name__)

settings = load_settings()
DATA_PATH = settings.data_path
_data_lock = threading.Lock()
_allocation_lock = threading.Lock()
_data_mtime = None

# -- Rate limiting (manual token bucket, 10 req/min per IP) ----------------
_RATE_LIMIT_MAX = 10
_RATE_LIMIT_WINDOW = 60  # seconds
_rate_limit_lock = threading.Lock()
_rate_limit_tracker: dict[str, list[float]] = defaultdict(list)

_SLOW_REQUEST_LOG_MS = 750.0


def _check_rate_limit(ip: str) -> bool:
    """Return True if request is allowed, False if rate-limited."""
    now = time.time()
    with _rate_limit_lock:
        for seen_ip in list(_rate_limit_tracker):
            recent = [t for t in _rate_limit_tracker[seen_ip] if now - t < _RATE_LIMIT_WINDOW]
            if recent:
                _rate_limit_tracker[seen_ip] = recent
            else:
                del _rate_limit_tracker[seen_ip]
        if len(_rate_limit_tracker[ip]) >= _RATE_LIMIT_MAX:
            return False
        _rate_limit_tracker[ip].append(now)
        return True


def _data_file_mtime(path: str):
    try:
        if os.path.isdir(path):
            mtimes = [
                os.path.getmtime(os.path.join(path, f))
                for f in os.listdir(path)
                if f.endswith(".csv")
            ]
            return max(mtimes) if mtimes else None
        return os.path.getmtime(path)
    except OSError:
        return None


def _error_response(error_code: str, message: str, status: int = 400):
    return jsonify({
        "mode": "error",
        "error": {
            "error_code": error_code,
            "message": message,
        },
    }), status


def _load():
    return load_data(DATA_PATH, settings.default_extended_access_threshold)


# ── Startup data load ──────────────────────────────────────────────────────────
try:
    _data = _load()
    _data_mtime = _data_file_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_data['catalog'])} roles and {len(_data['pools'])} pools from {DATA_PATH}")
except FileNotFoundError:
    # A stale DATA_PATH falls back to the bundled data directory.
    if DATA_PATH != DEFAULT_DATA_PATH and os.path.exists(DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default data ({DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = DEFAULT_DATA_PATH
        _data = _load()
        _data_mtime = _data_file_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_data['catalog'])} roles and {len(_data['pools'])} pools from {DATA_PATH}")
    else:
        print(f"[FATAL] Data directory not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load data: {exc}", file=sys.stderr)
    sys.exit(1)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload the CSV-backed catalog when DATA_PATH changes on disk.

    Returns True when a reload occurred, else False.
    """
    global _data, _data_mtime

    with _data_lock:
        latest_mtime = _data_file_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_data = _load()
        except Exception as exc:
            print(f"[WARN] Data reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False

        _data = new_data
        _data_mtime = latest_mtime
        print(f"[OK] Reloaded {len(new_data['catalog'])} roles from {DATA_PATH}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": "1.0.0",
        "multi_submission_selection": settings.multi_submission_selection,
    })


def _slots_json(slots: dict) -> dict:
    return {role_id: ("unlimited" if cap is UNLIMITED else cap) for role_id, cap in slots.items()}


@app.route("/roles", methods=["GET"])
def get_roles():
    _refresh_data_if_needed()
    catalog = _data["catalog"]
    by_weight = []
    for weight in catalog.ordered_weights:
        roles = sorted(
            (catalog.get(r) for r in catalog.roles_by_weight[weight]),
            key=lambda role: role.role_id,
        )
        by_weight.append({
            "weight": weight,
            "roles": [
                {"role_id": r.role_id, "label": r.label, "is_overflow": r.is_overflow}
                for r in roles
            ],
        })
    return jsonify({"weights": by_weight})


@app.route("/pools", methods=["GET"])
def get_pools():
    _refresh_data_if_needed()
    return jsonify({
        "pools": [
            {
                "pool_id": pool.pool_id,
                "label": pool.label,
                "extended_access_threshold": pool.extended_access_threshold,
                "slots": _slots_json(pool.slots),
                "round_start_slots": _slots_json(pool.slots_for(True)),
            }
            for pool in _data["pools"]
        ]
    })


@app.route("/allocate", methods=["POST"])
def allocate():
    if not app.config.get("TESTING", False):
        ip = request.headers.get("X-Forwarded-For", request.remote_addr or "unknown").split(",")[0].strip()
        if not _check_rate_limit(ip):
            return _error_response(
                "RATE_LIMITED", "Too many requests. Please wait a minute and try again.", 429
            )

    body = request.get_json(silent=True)
    error_code, message = validate_allocate_body(body)
    if error_code:
        return _error_response(error_code, message)

    _refresh_data_if_needed()
    preferences = parse_participants(body["participants"])
    multi = body.get("multi_submission")
    if multi is None:
        multi = settings.multi_submission_selection
    round_start = body.get("use_round_start_slots")
    if round_start is None:
        round_start = settings.use_round_start_slots
    seed = body.get("seed", settings.allocation_seed)

    with _allocation_lock:
        result = run_round_start(
            preferences,
            _data["pools"],
            _data["catalog"],
            _data["bans"],
            RandomSource(seed),
            multi_submission=multi,
            use_round_start_slots=round_start,
        )

    return jsonify({
        "mode": "allocation",
        "assignments": {pid: entry.to_dict() for pid, entry in result["assignments"].items()},
        "role_counts": role_counts(result["assignments"]),
        "pool_counts": result["pool_counts"],
        "extended_access": result["extended_access"],
        "unassigned": result["unassigned"],
        "notes": result["notes"],
    })


app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/roles", endpoint="api_roles", view_func=get_roles, methods=["GET"])
app.add_url_rule("/api/pools", endpoint="api_pools", view_func=get_pools, methods=["GET"])
app.add_url_rule("/api/allocate", endpoint="api_allocate", view_func=allocate, methods=["POST"])


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
