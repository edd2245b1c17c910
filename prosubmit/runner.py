from __future__ import annotations

import os
from typing import Callable

from .activity import ActivityLog
from .client import ProgramServiceClient
from .models import JobOutcome, RunReport
from .retrieval import ArtifactRetriever


def run_job(
    client: ProgramServiceClient,
    retriever: ArtifactRetriever,
    *,
    program_name: str,
    input_file: str,
    output_dir: str,
    parameters: str = "",
    render: Callable[[JobOutcome], None] | None = None,
    log: ActivityLog | None = None,
) -> RunReport:
    """Upload `input_file`, run `program_name` on it and fetch every artifact.

    Upload and submission failures propagate immediately. Artifact failures
    are collected on the returned report. Retrieval runs whatever the remote
    status is.
    """
    log = log if log is not None else client.log

    client.upload(input_file)
    outcome = client.submit(program_name, os.path.basename(input_file), parameters)
    if render is not None:
        render(outcome)

    log.log(
        "-- Retrieving %d artifact(s) into %s --"
        % (len(outcome.artifact_locations), output_dir)
    )
    artifacts = retriever.retrieve_all(outcome.artifact_locations, output_dir)
    report = RunReport(outcome=outcome, artifacts=artifacts)
    log.log(
        "finished status=%s artifacts=%d failed=%d"
        % (outcome.status.value, len(artifacts), len(report.failed_artifacts))
    )
    return report
