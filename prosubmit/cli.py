from __future__ import annotations

import argparse
import json
import sys

import httpx

from .activity import ActivityLog
from .client import ProgramServiceClient, SubmissionError
from .config import DEFAULT_CONFIG_PATH, load_client_config
from .models import JobOutcome, RunReport
from .retrieval import ArtifactRetriever
from .runner import run_job
from .transfer import TRANSFER_BACKENDS, TransferError, make_transfer
from .utils import parse_program_list

_OUTCOME_JSON_HELP = """\
Print the outcome as JSON:
  {"status": ..., "stdout": ..., "stderr": ..., "outURLs": [...], "errmsg": ...}
status is one of "ok", "program error", "program timeout", "server error"."""

_EPILOG = (
    "example: pro-submit --url http://127.0.0.1:8082 --name convertToJson "
    "-i test.txt -o out -p \"-s ss -d dd\""
)


def _make_http_client(
    timeout: float | None, workers: int | None = None
) -> httpx.Client:
    # One connection per download worker; None leaves the pool unbounded.
    return httpx.Client(
        timeout=timeout,
        limits=httpx.Limits(max_connections=workers, max_keepalive_connections=20),
    )


def _emit_outcome_text(outcome: JobOutcome) -> None:
    sys.stdout.write(outcome.stdout + "\n")
    sys.stdout.write(outcome.stderr + "\n")
    sys.stdout.flush()
    if not outcome.ok:
        message = "remote status: %s" % (outcome.raw_status or "<missing>")
        if outcome.error_message:
            message += " (%s)" % outcome.error_message
        sys.stderr.write(message + "\n")


def _emit_outcome_json(outcome: JobOutcome) -> None:
    sys.stdout.write(json.dumps(outcome.to_dict(), indent=2) + "\n")
    sys.stdout.flush()


def _emit_artifact_failures(report: RunReport) -> None:
    for artifact in report.failed_artifacts:
        sys.stderr.write(
            "error: artifact %s (%s): %s\n"
            % (artifact.location, artifact.error.value, artifact.detail)
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pro-submit",
        description=(
            "Run a program registered on a remote program service against a "
            "local file and collect its output files."
        ),
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-url",
        "--url",
        default=None,
        help="Service base URL, e.g. http://127.0.0.1:8082 (required)",
    )
    parser.add_argument(
        "-name",
        "--name",
        default=None,
        help="Registered program name, e.g. convertToJson (required unless --list)",
    )
    parser.add_argument(
        "-i",
        "--input",
        default=None,
        help="Input file handed to the program (required unless --list)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Directory receiving the program's output files (required unless --list)",
    )
    parser.add_argument(
        "-p",
        "--parameters",
        default="",
        help='Parameters passed through to the program, e.g. -p "-name mike"',
    )
    parser.add_argument(
        "-l",
        "--log",
        action="store_true",
        help="Write a detailed activity log and echo it to the console",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Activity log path (default: from config, else log.txt)",
    )
    parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help=_OUTCOME_JSON_HELP,
    )
    parser.add_argument(
        "-a",
        "--list",
        dest="list_programs",
        action="store_true",
        help="List programs registered on the service (needs only --url)",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format for --list",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to client config (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--transfer",
        choices=list(TRANSFER_BACKENDS),
        default=None,
        help="Transfer backend for upload/download (default: from config, else http)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Maximum simultaneous downloads (default: one per output file)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request/transfer timeout in seconds (default: from config, else 300)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 when the remote status is not ok",
    )
    return parser


def _missing_arguments(ns: argparse.Namespace, base_url: str) -> list[str]:
    missing: list[str] = []
    if not base_url:
        missing.append("--url")
    if ns.list_programs:
        return missing
    for option, value in (
        ("--name", ns.name),
        ("--input", ns.input),
        ("--output", ns.output),
    ):
        if not value:
            missing.append(option)
    return missing


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)

    try:
        cfg = load_client_config(ns.config)
    except (OSError, ValueError) as exc:
        sys.stderr.write(f"error: invalid config {ns.config}: {exc}\n")
        return 2

    base_url = ns.url or cfg.base_url
    missing = _missing_arguments(ns, base_url)
    if missing:
        parser.error("missing required arguments: %s" % ", ".join(missing))
    if ns.workers is not None and ns.workers < 1:
        parser.error("--workers must be at least 1")

    timeout = ns.timeout if ns.timeout is not None else cfg.transfer_timeout
    if timeout is not None and timeout <= 0:
        timeout = None
    workers = ns.workers if ns.workers is not None else cfg.download_workers
    backend = ns.transfer or cfg.transfer_backend

    log = ActivityLog(ns.log_file or cfg.log_file, enabled=ns.log)
    http_client = _make_http_client(timeout, workers=workers)
    transfer = make_transfer(backend, http_client=http_client, timeout=timeout)
    try:
        client = ProgramServiceClient(
            base_url, http_client=http_client, transfer=transfer, log=log
        )
        if ns.list_programs:
            text = client.list_programs()
            if ns.format == "json":
                sys.stdout.write(json.dumps(parse_program_list(text), indent=2) + "\n")
            elif text:
                sys.stdout.write(text if text.endswith("\n") else text + "\n")
            return 0

        retriever = ArtifactRetriever(transfer, log=log, max_workers=workers)
        report = run_job(
            client,
            retriever,
            program_name=ns.name,
            input_file=ns.input,
            output_dir=ns.output,
            parameters=ns.parameters,
            render=_emit_outcome_json if ns.json else _emit_outcome_text,
            log=log,
        )
    except (ValueError, TransferError, SubmissionError, OSError) as exc:
        log.log(f"fatal: {exc}")
        sys.stderr.write(f"error: {exc}\n")
        return 2
    finally:
        transfer.close()
        http_client.close()
        log.close()

    _emit_artifact_failures(report)
    if report.failed_artifacts:
        return 1
    if ns.check and not report.outcome.ok:
        return 1
    return 0
