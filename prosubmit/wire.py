from __future__ import annotations

"""JSON codec for the program service's submission endpoint.

Two response shapes are in circulation:
- the current one, carrying a `status` string (and sometimes `errmsg`)
- an older one, carrying `cmdStartSuccess`/`cmdEndSuccess` booleans

Both are adapted onto `JobOutcome` here so nothing downstream sees the
difference.
"""

import json
from typing import Any

from .models import JobOutcome, JobRequest, OutcomeStatus


class DecodeError(ValueError):
    """Raised when a response body cannot be decoded into a JobOutcome."""


def encode_job_request(request: JobRequest) -> bytes:
    # "parameta" is the service's spelling.
    payload = {"filename": request.filename, "parameta": request.parameters}
    return json.dumps(payload).encode("utf-8")


def _optional_text(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _optional_flag(payload: dict[str, Any], key: str) -> bool:
    value = payload.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DecodeError(f"field {key!r} must be a boolean, got {type(value).__name__}")
    return value


def _artifact_locations(payload: dict[str, Any]) -> tuple[str, ...]:
    """Read `outURLs`, normalizing an absent or null list to an empty tuple."""
    value = payload.get("outURLs")
    if value is None:
        return ()
    if not isinstance(value, list):
        raise DecodeError(f"field 'outURLs' must be a list, got {type(value).__name__}")
    for entry in value:
        if not isinstance(entry, str):
            raise DecodeError("field 'outURLs' must contain only strings")
    return tuple(value)


def _legacy_status(payload: dict[str, Any]) -> str:
    """Translate start/end success flags into the current status vocabulary."""
    if not _optional_flag(payload, "cmdStartSuccess"):
        return OutcomeStatus.SERVER_ERROR.value
    if not _optional_flag(payload, "cmdEndSuccess"):
        return OutcomeStatus.PROGRAM_ERROR.value
    return OutcomeStatus.OK.value


def outcome_from_payload(payload: Any) -> JobOutcome:
    """Adapt a decoded JSON object from either response shape onto JobOutcome."""
    if not isinstance(payload, dict):
        raise DecodeError(f"response must be a JSON object, got {type(payload).__name__}")

    if "status" not in payload and (
        "cmdStartSuccess" in payload or "cmdEndSuccess" in payload
    ):
        raw_status = _legacy_status(payload)
    else:
        raw_status = _optional_text(payload, "status")

    return JobOutcome(
        raw_status=raw_status,
        stdout=_optional_text(payload, "stdout"),
        stderr=_optional_text(payload, "stderr"),
        error_message=_optional_text(payload, "errmsg"),
        artifact_locations=_artifact_locations(payload),
    )


def decode_job_outcome(body: bytes | str) -> JobOutcome:
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError("response body is not valid UTF-8") from exc
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"failed to decode response JSON: {exc}") from exc
    return outcome_from_payload(payload)
