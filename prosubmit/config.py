from __future__ import annotations

"""Configuration parsing for prosubmit.conf files.

Only the `[client]` section is read; unknown keys are ignored.
"""

import os
import re
from dataclasses import dataclass

from .activity import DEFAULT_LOG_PATH
from .transfer import TRANSFER_BACKENDS

DEFAULT_CONFIG_PATH = os.path.join(os.path.expanduser("~"), ".prosubmit.conf")
DEFAULT_TRANSFER_TIMEOUT = 300.0


@dataclass
class ClientConfig:
    """Connection and transfer settings loaded from prosubmit.conf."""

    base_url: str = ""
    log_file: str = DEFAULT_LOG_PATH
    transfer_backend: str = "http"
    transfer_timeout: float | None = DEFAULT_TRANSFER_TIMEOUT
    download_workers: int | None = None


def _strip_comments(record: str) -> str:
    """Drop inline comments while preserving leading assignment content."""
    hash_pos = record.find("#")
    if hash_pos == -1:
        return record
    return record[:hash_pos]


def _parse_backend(value: str) -> str:
    backend = value.strip().lower()
    if backend not in TRANSFER_BACKENDS:
        raise ValueError(
            "transferBackend must be one of %s, got %r"
            % (", ".join(TRANSFER_BACKENDS), value)
        )
    return backend


def _parse_timeout(value: str) -> float | None:
    """Parse seconds; "none" or 0 disables the timeout."""
    text = value.strip().lower()
    if text in ("", "none"):
        return None
    try:
        seconds = float(text)
    except ValueError:
        raise ValueError(f"transferTimeout must be a number, got {value!r}") from None
    if seconds < 0:
        raise ValueError("transferTimeout cannot be negative")
    return seconds or None


def _parse_workers(value: str) -> int | None:
    text = value.strip().lower()
    if text in ("", "none"):
        return None
    try:
        workers = int(text)
    except ValueError:
        raise ValueError(f"downloadWorkers must be an integer, got {value!r}") from None
    if workers < 1:
        raise ValueError("downloadWorkers must be at least 1")
    return workers


def load_client_config(path: str = DEFAULT_CONFIG_PATH) -> ClientConfig:
    """
    Parse client configuration from disk, then apply environment overrides.

    A missing file yields defaults. `PROSUBMIT_URL` and `PROSUBMIT_TRANSFER`
    override `baseURL` and `transferBackend`.
    """

    cfg = ClientConfig()
    if path and os.path.exists(path):
        section_re = re.compile(r"^\s*\[([^\]]+)\]\s*$")
        kv_re = re.compile(r"^\s*(\w+)\s*=\s*(.*?)\s*$")
        in_client_section = False

        with open(path, "r", encoding="utf-8") as fp:
            for raw_record in fp:
                record = _strip_comments(raw_record).strip()
                if not record:
                    continue

                section_match = section_re.match(record)
                if section_match:
                    in_client_section = section_match.group(1) == "client"
                    continue

                if not in_client_section:
                    continue

                kv_match = kv_re.match(record)
                if not kv_match:
                    continue

                key, value = kv_match.group(1), kv_match.group(2)
                if key == "baseURL":
                    cfg.base_url = value
                elif key == "logFile":
                    cfg.log_file = value
                elif key == "transferBackend":
                    cfg.transfer_backend = _parse_backend(value)
                elif key == "transferTimeout":
                    cfg.transfer_timeout = _parse_timeout(value)
                elif key == "downloadWorkers":
                    cfg.download_workers = _parse_workers(value)

    forced_url = os.environ.get("PROSUBMIT_URL")
    if forced_url:
        cfg.base_url = forced_url
    forced_backend = os.environ.get("PROSUBMIT_TRANSFER")
    if forced_backend:
        cfg.transfer_backend = _parse_backend(forced_backend)

    return cfg
