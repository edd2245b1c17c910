from __future__ import annotations

"""Transfer operations: push one local file to the service, pull one artifact back.

Two backends share the same contract:
- `HTTPTransfer` talks HTTP directly through an `httpx.Client`
- `CurlTransfer` shells out to the curl command-line tool
"""

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from urllib.parse import unquote, urlsplit

import httpx

from .builder import UPLOAD_FIELD, CurlCommandBuilder

TRANSFER_BACKENDS = ("http", "curl")


@dataclass
class TransferResult:
    """Captured output of one transfer operation."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    extra: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when `returncode == 0`."""
        return self.returncode == 0


class TransferError(RuntimeError):
    """Raised when an upload or download transfer fails."""

    def __init__(self, message: str, result: TransferResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class Transfer:
    """Base contract for transfer backends."""

    def upload(self, local_path: str, url: str) -> TransferResult:
        raise NotImplementedError

    def download(self, url: str, target_path: str) -> TransferResult:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "Transfer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _local_source_path(location: str) -> str | None:
    """Return a filesystem path for file:// URLs and bare paths, else None."""
    parts = urlsplit(location)
    if parts.scheme in ("http", "https"):
        return None
    if parts.scheme == "file":
        return unquote(parts.path)
    if parts.scheme and len(parts.scheme) > 1:
        # Unknown scheme; single letters are Windows drive prefixes.
        return None
    return location


class HTTPTransfer(Transfer):
    """Transfers over HTTP with httpx; local paths are copied directly."""

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self._owns_client = http_client is None
        self.http_client = (
            http_client if http_client is not None else httpx.Client(timeout=timeout)
        )

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def upload(self, local_path: str, url: str) -> TransferResult:
        args = ["POST", url, f"{UPLOAD_FIELD}=@{local_path}"]
        try:
            with open(local_path, "rb") as fp:
                response = self.http_client.post(
                    url,
                    files={UPLOAD_FIELD: (os.path.basename(local_path), fp)},
                )
        except OSError as exc:
            raise TransferError(f"cannot read {local_path}: {exc}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransferError(f"upload to {url} failed: {exc}") from exc
        return self._checked(args, response)

    def download(self, url: str, target_path: str) -> TransferResult:
        source_path = _local_source_path(url)
        if source_path is not None:
            return self._copy_local(source_path, target_path)

        args = ["GET", url, "-o", target_path]
        try:
            response = self.http_client.get(url, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransferError(f"download of {url} failed: {exc}") from exc
        result = self._checked(args, response, keep_body=False)
        try:
            with open(target_path, "wb") as fp:
                fp.write(response.content)
        except OSError as exc:
            raise TransferError(f"cannot write {target_path}: {exc}", result) from exc
        return result

    @staticmethod
    def _copy_local(source_path: str, target_path: str) -> TransferResult:
        args = ["copy", source_path, target_path]
        try:
            shutil.copyfile(source_path, target_path)
        except OSError as exc:
            result = TransferResult(args=args, returncode=1, stderr=str(exc))
            raise TransferError(f"cannot copy {source_path}: {exc}", result) from exc
        return TransferResult(args=args, returncode=0)

    @staticmethod
    def _checked(
        args: list[str], response: httpx.Response, *, keep_body: bool = True
    ) -> TransferResult:
        failed = response.is_error
        result = TransferResult(
            args=args,
            returncode=1 if failed else 0,
            stdout=response.text if keep_body or failed else "",
            extra={"http_status": str(response.status_code)},
        )
        if failed:
            result.stderr = f"HTTP {response.status_code} {response.reason_phrase}"
            raise TransferError(
                f"{args[0]} {args[1]} returned HTTP {response.status_code}", result
            )
        return result


class CurlTransfer(Transfer):
    """Transfers by running curl in a subprocess."""

    def __init__(
        self,
        *,
        timeout: float | None = None,
        builder: CurlCommandBuilder | None = None,
    ) -> None:
        self.timeout = timeout
        self.builder = builder if builder is not None else CurlCommandBuilder()

    def upload(self, local_path: str, url: str) -> TransferResult:
        return self._run(
            self.builder.build_upload_args(local_path, url, timeout=self.timeout)
        )

    def download(self, url: str, target_path: str) -> TransferResult:
        return self._run(
            self.builder.build_download_args(url, target_path, timeout=self.timeout)
        )

    @staticmethod
    def _run(args: list[str]) -> TransferResult:
        try:
            proc = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise TransferError(f"cannot run {args[0]}: {exc}") from exc

        result = TransferResult(
            args=args,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        if not result.ok:
            detail = result.stderr.strip() or "no error output"
            raise TransferError(
                "%s exited with code %d: %s" % (args[0], result.returncode, detail),
                result,
            )
        return result


def make_transfer(
    backend: str,
    *,
    http_client: httpx.Client | None = None,
    timeout: float | None = None,
) -> Transfer:
    """Create the transfer backend named `backend` ("http" or "curl")."""
    if backend == "http":
        return HTTPTransfer(http_client, timeout=timeout)
    if backend == "curl":
        return CurlTransfer(timeout=timeout)
    raise ValueError(
        "unknown transfer backend %r (expected one of: %s)"
        % (backend, ", ".join(TRANSFER_BACKENDS))
    )
