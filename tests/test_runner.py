from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from prosubmit.client import ProgramServiceClient
from prosubmit.models import JobOutcome, OutcomeStatus
from prosubmit.retrieval import ArtifactRetriever
from prosubmit.runner import run_job
from prosubmit.transfer import TransferError


class _FakeService:
    def __init__(self, outcome_body: dict, *, upload_status: int = 200) -> None:
        self.outcome_body = outcome_body
        self.upload_status = upload_status
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.paths.append(request.url.path)
        if request.url.path == "/upload":
            return httpx.Response(self.upload_status, text="upload")
        if request.url.path.startswith("/pro/"):
            return httpx.Response(200, json=self.outcome_body)
        if request.url.path.startswith("/out/"):
            return httpx.Response(200, content=request.url.path.encode("utf-8"))
        return httpx.Response(404)


def _setup(service: _FakeService) -> tuple[ProgramServiceClient, ArtifactRetriever]:
    client = ProgramServiceClient(
        "http://svc", http_client=httpx.Client(transport=httpx.MockTransport(service))
    )
    return client, ArtifactRetriever(client.transfer)


def test_run_job_sequences_upload_submit_render_retrieve(tmp_path: Path) -> None:
    input_file = tmp_path / "test.txt"
    input_file.write_text("input", encoding="utf-8")
    output_dir = tmp_path / "out"
    output_dir.mkdir()
    service = _FakeService(
        {
            "status": "ok",
            "stdout": "done",
            "stderr": "",
            "outURLs": ["http://svc/out/a.json", "http://svc/out/b.json"],
        }
    )
    rendered: list[JobOutcome] = []
    client, retriever = _setup(service)

    report = run_job(
        client,
        retriever,
        program_name="convertToJson",
        input_file=str(input_file),
        output_dir=str(output_dir),
        parameters="-s ss -d dd",
        render=rendered.append,
    )

    assert service.paths[:2] == ["/upload", "/pro/convertToJson"]
    assert sorted(service.paths[2:]) == ["/out/a.json", "/out/b.json"]
    assert [outcome.stdout for outcome in rendered] == ["done"]
    assert report.ok
    assert (output_dir / "a.json").read_text(encoding="utf-8") == "/out/a.json"
    assert (output_dir / "b.json").read_text(encoding="utf-8") == "/out/b.json"


def test_run_job_retrieves_even_when_remote_program_failed(tmp_path: Path) -> None:
    input_file = tmp_path / "test.txt"
    input_file.write_text("input", encoding="utf-8")
    service = _FakeService(
        {
            "status": "program error",
            "stdout": "",
            "stderr": "traceback",
            "outURLs": ["http://svc/out/partial.log"],
        }
    )
    client, retriever = _setup(service)

    report = run_job(
        client,
        retriever,
        program_name="prog",
        input_file=str(input_file),
        output_dir=str(tmp_path),
    )

    assert report.outcome.status is OutcomeStatus.PROGRAM_ERROR
    assert report.ok
    assert (tmp_path / "partial.log").exists()


def test_run_job_timeout_with_no_artifacts(tmp_path: Path) -> None:
    input_file = tmp_path / "test.txt"
    input_file.write_text("input", encoding="utf-8")
    output_dir = tmp_path / "out"
    output_dir.mkdir()
    service = _FakeService(
        {"status": "program timeout", "stdout": "", "stderr": "killed", "outURLs": []}
    )
    client, retriever = _setup(service)

    report = run_job(
        client,
        retriever,
        program_name="slow",
        input_file=str(input_file),
        output_dir=str(output_dir),
    )

    assert report.outcome.status is OutcomeStatus.PROGRAM_TIMEOUT
    assert report.artifacts == []
    assert list(output_dir.iterdir()) == []


def test_run_job_upload_failure_stops_before_submission(tmp_path: Path) -> None:
    input_file = tmp_path / "test.txt"
    input_file.write_text("input", encoding="utf-8")
    service = _FakeService({"status": "ok"}, upload_status=500)
    client, retriever = _setup(service)

    with pytest.raises(TransferError):
        run_job(
            client,
            retriever,
            program_name="prog",
            input_file=str(input_file),
            output_dir=str(tmp_path),
        )
    assert service.paths == ["/upload"]
