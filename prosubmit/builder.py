from __future__ import annotations

"""Argument builders for the curl transfer backend."""

UPLOAD_FIELD = "file"


def _append_max_time(args: list[str], timeout: float | None) -> None:
    """Append --max-time when a positive per-transfer timeout is configured."""
    if timeout is None:
        return
    if timeout <= 0:
        raise ValueError("timeout must be positive when provided")
    args.extend(["--max-time", "%g" % timeout])


def _require(value: str, name: str) -> None:
    if not value or not value.strip():
        raise ValueError(f"{name} cannot be empty")


def _form_file_value(local_path: str) -> str:
    """Return a -F value naming `local_path`, quoted so curl reads no directives from it."""
    escaped = local_path.replace("\\", "\\\\").replace('"', '\\"')
    return f'{UPLOAD_FIELD}=@"{escaped}"'


class CurlCommandBuilder:
    """Builds curl argument vectors for upload and download transfers."""

    def __init__(self, executable: str = "curl") -> None:
        self.executable = executable

    def build_upload_args(
        self, local_path: str, url: str, *, timeout: float | None = None
    ) -> list[str]:
        """Build a multipart POST carrying `local_path` under the upload field."""
        _require(local_path, "local_path")
        _require(url, "url")
        args = [self.executable, "-sS", "-f"]
        _append_max_time(args, timeout)
        args.extend(["-X", "POST", "-F", _form_file_value(local_path), url])
        return args

    def build_download_args(
        self, url: str, target_path: str, *, timeout: float | None = None
    ) -> list[str]:
        """Build a redirect-following GET written to `target_path`."""
        _require(url, "url")
        _require(target_path, "target_path")
        args = [self.executable, "-sS", "-f", "-L"]
        _append_max_time(args, timeout)
        args.extend(["-o", target_path, url])
        return args
