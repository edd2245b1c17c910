from __future__ import annotations

"""Client for a remote program service.

The service hosts named, pre-registered programs. A run is two calls:
- upload the input file to `{base_url}/upload`
- POST a JSON job request to `{base_url}/pro/{program}` and decode the outcome
"""

import os
from importlib.metadata import PackageNotFoundError, version as package_version

import httpx

from .activity import ActivityLog
from .models import JobOutcome, JobRequest
from .transfer import HTTPTransfer, Transfer, TransferError, TransferResult
from .wire import DecodeError, decode_job_outcome, encode_job_request


class SubmissionError(RuntimeError):
    """Raised when the service cannot be reached or the exchange breaks off."""


def _resolve_client_version() -> str:
    """Resolve installed package version for the User-Agent header."""
    try:
        return package_version("prosubmit")
    except PackageNotFoundError:
        return "0.0.0"


def _normalize_base_url(base_url: str) -> str:
    base_url = base_url.strip()
    if not base_url:
        raise ValueError("base_url must be a non-empty string")
    return base_url.rstrip("/")


def _require_program_name(program_name: str) -> str:
    program_name = program_name.strip()
    if not program_name:
        raise ValueError("program name must be a non-empty string")
    if "/" in program_name:
        raise ValueError("program name cannot contain '/': %s" % program_name)
    return program_name


class ProgramServiceClient:
    """Submits jobs to one program service and uploads their input files."""

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.Client | None = None,
        transfer: Transfer | None = None,
        log: ActivityLog | None = None,
        timeout: float | None = None,
    ) -> None:
        """Bind the client to `base_url`.

        When `http_client` is omitted the client creates and owns one, using
        `timeout` for every request. `transfer` defaults to an HTTP transfer
        sharing the same httpx client. `log` defaults to a silent log.
        """
        self.base_url = _normalize_base_url(base_url)
        self.client_version = _resolve_client_version()
        self._owns_http_client = http_client is None
        self.http_client = (
            http_client if http_client is not None else httpx.Client(timeout=timeout)
        )
        self.transfer = transfer if transfer is not None else HTTPTransfer(self.http_client)
        self.log = log if log is not None else ActivityLog(None)

    def __enter__(self) -> "ProgramServiceClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http_client:
            self.http_client.close()

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}/upload"

    def program_url(self, program_name: str) -> str:
        return f"{self.base_url}/pro/{_require_program_name(program_name)}"

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": f"prosubmit/{self.client_version}",
        }

    def upload(self, local_path: str) -> TransferResult:
        """Upload `local_path` to the service; raises TransferError on failure."""
        if not os.path.isfile(local_path):
            raise TransferError(f"input file does not exist: {local_path}")
        self.log.log("-- File upload to server --")
        try:
            result = self.transfer.upload(local_path, self.upload_url)
        except TransferError as exc:
            if exc.result is not None:
                self._log_transfer(exc.result)
            self.log.log(f"upload failed: {exc}")
            raise
        self._log_transfer(result)
        return result

    def _log_transfer(self, result: TransferResult) -> None:
        self.log.log("commands: %s" % " ".join(result.args))
        self.log.trace("stdout", result.stdout)
        self.log.trace("stderr", result.stderr)

    def submit(
        self,
        program_name: str,
        uploaded_file_basename: str,
        parameters: str = "",
    ) -> JobOutcome:
        """Run `program_name` on a previously uploaded file.

        Issues exactly one POST and returns the decoded outcome. The remote
        status is not interpreted here; a failed remote run is still a
        successful submission.
        """
        url = self.program_url(program_name)
        request = JobRequest(filename=uploaded_file_basename, parameters=parameters)
        body = encode_job_request(request)

        self.log.log(f"url: {url}")
        self.log.log(f"uploadFile: {request.filename}")
        self.log.trace("requestBody", body.decode("utf-8"))

        try:
            response = self.http_client.post(url, content=body, headers=self._headers())
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.log.log(f"submission failed: {exc}")
            raise SubmissionError(f"POST {url} failed: {exc}") from exc

        self.log.trace("responseBody", response.text)
        try:
            outcome = decode_job_outcome(response.content)
        except DecodeError as exc:
            self.log.log(f"decode failed: {exc}")
            if response.is_error:
                raise DecodeError(f"HTTP {response.status_code} from {url}: {exc}") from exc
            raise
        self.log.log(
            "status=%s artifacts=%d" % (outcome.raw_status, len(outcome.artifact_locations))
        )
        return outcome

    def list_programs(self) -> str:
        """Return the raw body of `{base_url}/pro/all`."""
        url = f"{self.base_url}/pro/all"
        self.log.log(f"url: {url}")
        try:
            response = self.http_client.get(
                url, headers={"User-Agent": f"prosubmit/{self.client_version}"}
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SubmissionError(f"GET {url} failed: {exc}") from exc
        self.log.trace("responseBody", response.text)
        if response.is_error:
            raise SubmissionError(
                f"GET {url} returned HTTP {response.status_code}: {response.text.strip()}"
            )
        return response.text
