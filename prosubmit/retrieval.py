from __future__ import annotations

"""Concurrent retrieval of run artifacts into a local directory.

Every location gets its own unit of work: download into a private staging
directory, then move into the destination under the location's basename. A
failure in one unit is recorded on that unit's ArtifactResult and never stops
the others.
"""

import os
import posixpath
import shutil
import tempfile
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import unquote, urlsplit

from .activity import ActivityLog
from .models import ArtifactResult, ErrorKind
from .transfer import Transfer, TransferError


class RelocateError(OSError):
    """Raised when a downloaded artifact cannot be placed in the destination."""


def artifact_basename(location: str) -> str:
    """Return the final path segment of a URL or path, ignoring query/fragment."""
    parts = urlsplit(location)
    path = parts.path if parts.scheme or parts.netloc else location
    return posixpath.basename(unquote(path).replace("\\", "/"))


def _relocate(staged_path: str, destination_directory: str, basename: str) -> str:
    if not basename or basename in (".", ".."):
        raise RelocateError("cannot derive a file name from the artifact location")
    if not os.path.isdir(destination_directory):
        raise RelocateError(f"destination is not a directory: {destination_directory}")
    target = os.path.join(destination_directory, basename)
    try:
        shutil.move(staged_path, target)
    except OSError as exc:
        raise RelocateError(f"cannot move artifact to {target}: {exc}") from exc
    return target


class ArtifactRetriever:
    """Downloads artifact locations in parallel and aggregates per-artifact failures."""

    def __init__(
        self,
        transfer: Transfer,
        *,
        log: ActivityLog | None = None,
        max_workers: int | None = None,
    ) -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.transfer = transfer
        self.log = log if log is not None else ActivityLog(None)
        self.max_workers = max_workers

    def retrieve_all(
        self, locations: Sequence[str], destination_directory: str
    ) -> list[ArtifactResult]:
        """Retrieve every location; results come back in input order.

        Returns only after every unit has finished. Locations whose basename
        repeats an earlier one are not downloaded and report a collision.
        """
        if not locations:
            return []

        results: list[ArtifactResult | None] = [None] * len(locations)
        pending: list[tuple[int, str, str]] = []
        claimed: dict[str, str] = {}
        for index, location in enumerate(locations):
            try:
                basename = artifact_basename(location)
            except ValueError as exc:
                results[index] = ArtifactResult(
                    location=location,
                    local_path="",
                    error=ErrorKind.RELOCATE,
                    detail=f"cannot derive a file name from {location!r}: {exc}",
                )
                self.log.log(f"skip {location}: {results[index].detail}")
                continue
            target = os.path.join(destination_directory, basename)
            if basename and basename in claimed:
                results[index] = ArtifactResult(
                    location=location,
                    local_path=target,
                    error=ErrorKind.COLLISION,
                    detail=f"file name {basename!r} already claimed by {claimed[basename]}",
                )
                self.log.log(f"skip {location}: {results[index].detail}")
                continue
            claimed[basename] = location
            pending.append((index, location, basename))

        if pending:
            workers = len(pending)
            if self.max_workers is not None:
                workers = min(workers, self.max_workers)
            with tempfile.TemporaryDirectory(prefix="prosubmit-") as staging_dir:
                with ThreadPoolExecutor(
                    max_workers=workers, thread_name_prefix="prosubmit-download"
                ) as executor:
                    futures = [
                        (
                            index,
                            executor.submit(
                                self._retrieve_one,
                                location,
                                basename,
                                os.path.join(staging_dir, "%d.part" % index),
                                destination_directory,
                            ),
                        )
                        for index, location, basename in pending
                    ]
                    for index, future in futures:
                        results[index] = future.result()

        return [result for result in results if result is not None]

    def _retrieve_one(
        self,
        location: str,
        basename: str,
        staged_path: str,
        destination_directory: str,
    ) -> ArtifactResult:
        target = os.path.join(destination_directory, basename)
        self.log.log(f"download {location}")
        try:
            self.transfer.download(location, staged_path)
        except (TransferError, ValueError, OSError) as exc:
            self.log.log(f"download failed {location}: {exc}")
            return ArtifactResult(
                location=location,
                local_path=target,
                error=ErrorKind.TRANSFER,
                detail=str(exc),
            )
        try:
            target = _relocate(staged_path, destination_directory, basename)
        except RelocateError as exc:
            self.log.log(f"relocate failed {location}: {exc}")
            return ArtifactResult(
                location=location,
                local_path=target,
                error=ErrorKind.RELOCATE,
                detail=str(exc),
            )
        self.log.log(f"placed {location} -> {target}")
        return ArtifactResult(location=location, local_path=target)
