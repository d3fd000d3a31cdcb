"""
Pure request parsing/validation for the /allocate endpoint.
No Flask or data-loader imports.
"""

from models import ParticipantPreferences, Submission
from priorities import parse_priority, parse_unavailable_mode

MAX_PARTICIPANTS = 500
MAX_SUBMISSIONS = 20


def _validate_submission(pid: str, idx: int, raw) -> tuple[str | None, str | None]:
    if not isinstance(raw, dict):
        return "INVALID_INPUT", f"Submission {idx} of '{pid}' must be an object."
    roles = raw.get("roles", {})
    if not isinstance(roles, dict):
        return "INVALID_INPUT", f"Submission {idx} of '{pid}': 'roles' must be an object of role -> priority."
    for role_id, priority in roles.items():
        if parse_priority(priority) is None:
            return "INVALID_INPUT", (
                f"Submission {idx} of '{pid}': priority {priority!r} for role '{role_id}' "
                "must be one of never, low, medium, high."
            )
    candidate = raw.get("round_start_candidate")
    if candidate is not None and not isinstance(candidate, bool):
        return "INVALID_INPUT", f"Submission {idx} of '{pid}': 'round_start_candidate' must be true or false."
    return None, None


def validate_allocate_body(body) -> tuple[str | None, str | None]:
    """Returns (error_code, message) on invalid input, (None, None) on success."""
    if not isinstance(body, dict):
        return "INVALID_INPUT", "Request body must be a JSON object."
    participants = body.get("participants")
    if not isinstance(participants, dict):
        return "INVALID_INPUT", "'participants' must be an object keyed by participant id."
    if len(participants) > MAX_PARTICIPANTS:
        return "INVALID_INPUT", f"At most {MAX_PARTICIPANTS} participants per request."

    for flag in ("multi_submission", "use_round_start_slots"):
        val = body.get(flag)
        if val is not None and not isinstance(val, bool):
            return "INVALID_INPUT", f"'{flag}' must be true or false."
    seed = body.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        return "INVALID_INPUT", "'seed' must be an integer."

    seen_ids = set()
    for pid, raw in participants.items():
        clean_id = str(pid).strip()
        if not clean_id:
            return "INVALID_INPUT", "Participant ids must be non-empty."
        if clean_id in seen_ids:
            return "INVALID_INPUT", f"Participant id '{clean_id}' appears more than once."
        seen_ids.add(clean_id)
        if not isinstance(raw, dict):
            return "INVALID_INPUT", f"Participant '{pid}' must be an object."
        submissions = raw.get("submissions")
        if submissions is None:
            submissions = [raw]
        if not isinstance(submissions, list) or not submissions:
            return "INVALID_INPUT", f"Participant '{pid}' needs at least one submission."
        if len(submissions) > MAX_SUBMISSIONS:
            return "INVALID_INPUT", f"Participant '{pid}' has more than {MAX_SUBMISSIONS} submissions."
        for idx, sub in enumerate(submissions):
            code, msg = _validate_submission(pid, idx, sub)
            if code:
                return code, msg
        selected = raw.get("selected_index", 0)
        if isinstance(selected, bool) or not isinstance(selected, int) or not (0 <= selected < len(submissions)):
            return "INVALID_INPUT", f"Participant '{pid}': 'selected_index' is out of range."
    return None, None


def _parse_submission(pid: str, idx: int, raw: dict) -> Submission:
    priorities = {
        str(role_id).strip(): parse_priority(priority)
        for role_id, priority in (raw.get("roles") or {}).items()
    }
    return Submission(
        submission_id=str(raw.get("id") or f"{pid}#{idx}"),
        role_priorities=priorities,
        preference_unavailable=parse_unavailable_mode(raw.get("preference_unavailable")),
        round_start_candidate=raw.get("round_start_candidate", True) is not False,
    )


def parse_participants(participants: dict) -> dict[str, ParticipantPreferences]:
    """Build ParticipantPreferences from an already validated 'participants' object."""
    out: dict[str, ParticipantPreferences] = {}
    for pid, raw in participants.items():
        pid = str(pid).strip()
        submissions = raw.get("submissions")
        if submissions is None:
            submissions = [raw]
        hint = raw.get("highest_priority_role")
        out[pid] = ParticipantPreferences(
            submissions=[_parse_submission(pid, i, s) for i, s in enumerate(submissions)],
            selected_index=int(raw.get("selected_index", 0)),
            highest_priority_role=str(hint).strip() if hint else None,
        )
    return out
