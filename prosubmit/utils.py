from __future__ import annotations

"""Helpers for reading the service's registered-program listing."""

import json
import re
from typing import Iterable, List

from .client import ProgramServiceClient

_NAME_TOKEN_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.+\-]*$")
_LIST_KEYS = ("programs", "pro", "names")


def _dedupe_keep_order(values: Iterable[str]) -> List[str]:
    """Deduplicate while preserving original item order."""
    seen = set()
    ordered = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def _json_names(payload: object) -> List[str] | None:
    """Extract names from a JSON list, or an object holding one; None if neither."""
    if isinstance(payload, dict):
        for key in _LIST_KEYS:
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
        else:
            # A mapping of name -> description.
            return [str(key) for key in payload]
    if not isinstance(payload, list):
        return None

    names: List[str] = []
    for entry in payload:
        if isinstance(entry, str):
            names.append(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
            names.append(entry["name"])
    return names


def parse_program_list(text: str) -> List[str]:
    """
    Parse registered program names from a `/pro/all` response body.

    JSON bodies (a list of names, a list of `{"name": ...}` objects, or an
    object wrapping such a list) are read structurally. Anything else is read
    as text with one program per line, taking the first token of each line.
    """
    text = (text or "").strip()
    if not text:
        return []

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        payload = None
    else:
        names = _json_names(payload)
        if names is not None:
            return _dedupe_keep_order(name.strip() for name in names if name.strip())

    parsed: List[str] = []
    for line in text.splitlines():
        stripped = line.strip().lstrip("-*+ ").strip()
        if not stripped:
            continue
        token = stripped.split()[0].rstrip(":,;")
        if _NAME_TOKEN_RE.match(token):
            parsed.append(token)
    return _dedupe_keep_order(parsed)


def load_available_programs(client: ProgramServiceClient) -> List[str]:
    """Fetch and parse the names of every program registered with the service."""
    return parse_program_list(client.list_programs())
