from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OutcomeStatus(str, Enum):
    """Closed set of remote run outcomes, valued by their wire spelling."""

    OK = "ok"
    PROGRAM_ERROR = "program error"
    PROGRAM_TIMEOUT = "program timeout"
    SERVER_ERROR = "server error"

    @classmethod
    def from_wire(cls, text: str | None) -> "OutcomeStatus":
        """Map a wire status string, treating anything unknown as a server error."""
        if text is None:
            return cls.SERVER_ERROR
        try:
            return cls(str(text).strip())
        except ValueError:
            return cls.SERVER_ERROR


class ErrorKind(str, Enum):
    """Why a single artifact did not arrive in the destination directory."""

    TRANSFER = "transfer"
    RELOCATE = "relocate"
    COLLISION = "collision"


@dataclass(frozen=True)
class JobRequest:
    """Typed request for running a registered program on an uploaded file."""

    filename: str
    parameters: str = ""

    def __post_init__(self) -> None:
        if not self.filename.strip():
            raise ValueError("filename must be a non-empty string")
        if "/" in self.filename or "\\" in self.filename:
            raise ValueError("filename must be a basename, not a path: %s" % self.filename)
        if self.filename in (".", ".."):
            raise ValueError("filename must name a file: %s" % self.filename)


@dataclass(frozen=True)
class JobOutcome:
    """Decoded result of one remote program run."""

    raw_status: str
    stdout: str = ""
    stderr: str = ""
    error_message: str = ""
    artifact_locations: tuple[str, ...] = ()

    @property
    def status(self) -> OutcomeStatus:
        return classify(self)

    @property
    def ok(self) -> bool:
        """True when the remote run classified as `ok`."""
        return self.status is OutcomeStatus.OK

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the service's own field names."""
        return {
            "status": self.raw_status,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "outURLs": list(self.artifact_locations),
            "errmsg": self.error_message,
        }


def classify(outcome: JobOutcome) -> OutcomeStatus:
    """Classify a decoded outcome into the closed four-way status set."""
    return OutcomeStatus.from_wire(outcome.raw_status)


@dataclass
class ArtifactResult:
    """Where one artifact ended up, or why it did not."""

    location: str
    local_path: str
    error: ErrorKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location,
            "local_path": self.local_path,
            "error": self.error.value if self.error is not None else None,
            "detail": self.detail,
        }


@dataclass
class RunReport:
    """Aggregate of one orchestrated run: the remote outcome plus every artifact."""

    outcome: JobOutcome
    artifacts: list[ArtifactResult] = field(default_factory=list)

    @property
    def failed_artifacts(self) -> list[ArtifactResult]:
        return [artifact for artifact in self.artifacts if not artifact.ok]

    @property
    def ok(self) -> bool:
        """True when every artifact arrived; the remote status is not considered."""
        return not self.failed_artifacts

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.to_dict(),
            "artifacts": [artifact.to_dict() for artifact in self.artifacts],
        }
