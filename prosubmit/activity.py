from __future__ import annotations

"""Diagnostic activity log shared by the client, the retriever and the runner."""

import sys
import threading
import time
from typing import TextIO

DEFAULT_LOG_PATH = "log.txt"

_PREFIX = "[prosubmit]"
_CONSOLE_PREVIEW = 160


class ActivityLog:
    """Append-only diagnostic log with an optional console echo.

    A disabled log is silent: it writes nothing and never creates the file.
    An enabled log appends each line to `path` (when set) and echoes it to
    `stream` (stdout by default).
    """

    def __init__(
        self,
        path: str | None = DEFAULT_LOG_PATH,
        *,
        enabled: bool = False,
        stream: TextIO | None = None,
    ) -> None:
        self.path = path
        self.enabled = enabled
        self.stream = stream
        self._fp: TextIO | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> "ActivityLog":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._fp is not None:
                try:
                    self._fp.close()
                finally:
                    self._fp = None

    def log(self, message: str) -> None:
        """Record one line when the log is enabled."""
        if not self.enabled:
            return
        self._emit(message, message)

    def trace(self, label: str, text: str) -> None:
        """Record a payload (request/response body) under a label.

        Newlines are escaped so one payload stays on one line. The console copy
        is truncated; the file copy is kept whole.
        """
        if not self.enabled:
            return
        flat = text.replace("\r", "\\r").replace("\n", "\\n")
        preview = flat
        if len(preview) > _CONSOLE_PREVIEW:
            preview = preview[: _CONSOLE_PREVIEW - 3] + "..."
        self._emit(f"{label}: {flat}", f"{label}: {preview}")

    def _emit(self, file_message: str, console_message: str) -> None:
        stamp = time.strftime("%Y/%m/%d %H:%M:%S")
        with self._lock:
            if self.path:
                try:
                    if self._fp is None:
                        self._fp = open(self.path, "a", encoding="utf-8")
                    self._fp.write(f"{stamp} {_PREFIX} {file_message}\n")
                    self._fp.flush()
                except OSError:
                    pass
            stream = self.stream if self.stream is not None else sys.stdout
            try:
                stream.write(f"{stamp} {_PREFIX} {console_message}\n")
                stream.flush()
            except (OSError, ValueError):
                pass
