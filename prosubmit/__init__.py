"""Client for running registered programs on a remote program service."""

from .activity import ActivityLog
from .client import ProgramServiceClient, SubmissionError
from .models import (
    ArtifactResult,
    ErrorKind,
    JobOutcome,
    JobRequest,
    OutcomeStatus,
    RunReport,
    classify,
)
from .retrieval import ArtifactRetriever, RelocateError
from .runner import run_job
from .transfer import (
    CurlTransfer,
    HTTPTransfer,
    Transfer,
    TransferError,
    TransferResult,
    make_transfer,
)
from .utils import load_available_programs, parse_program_list
from .wire import DecodeError, decode_job_outcome, encode_job_request

__all__ = [
    "ActivityLog",
    "ProgramServiceClient",
    "SubmissionError",
    "ArtifactResult",
    "ErrorKind",
    "JobOutcome",
    "JobRequest",
    "OutcomeStatus",
    "RunReport",
    "classify",
    "ArtifactRetriever",
    "RelocateError",
    "run_job",
    "CurlTransfer",
    "HTTPTransfer",
    "Transfer",
    "TransferError",
    "TransferResult",
    "make_transfer",
    "load_available_programs",
    "parse_program_list",
    "DecodeError",
    "decode_job_outcome",
    "encode_job_request",
]
