from __future__ import annotations

import io
import threading
from pathlib import Path

from prosubmit.activity import ActivityLog


def test_disabled_log_is_silent(tmp_path: Path) -> None:
    stream = io.StringIO()
    log = ActivityLog(str(tmp_path / "log.txt"), enabled=False, stream=stream)

    log.log("hello")
    log.trace("body", "{}")
    log.close()

    assert stream.getvalue() == ""
    assert not (tmp_path / "log.txt").exists()


def test_enabled_log_writes_file_and_console(tmp_path: Path) -> None:
    stream = io.StringIO()
    path = tmp_path / "log.txt"
    with ActivityLog(str(path), enabled=True, stream=stream) as log:
        log.log("hello")

    file_lines = path.read_text(encoding="utf-8").splitlines()
    assert len(file_lines) == 1
    assert file_lines[0].endswith("[prosubmit] hello")
    assert stream.getvalue().endswith("[prosubmit] hello\n")


def test_log_appends_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "log.txt"
    for message in ("first", "second"):
        with ActivityLog(str(path), enabled=True, stream=io.StringIO()) as log:
            log.log(message)
    assert len(path.read_text(encoding="utf-8").splitlines()) == 2


def test_trace_escapes_newlines_and_truncates_console(tmp_path: Path) -> None:
    stream = io.StringIO()
    path = tmp_path / "log.txt"
    payload = "line1\nline2\n" + "x" * 400
    with ActivityLog(str(path), enabled=True, stream=stream) as log:
        log.trace("responseBody", payload)

    file_text = path.read_text(encoding="utf-8")
    assert "responseBody: line1\\nline2\\n" in file_text
    assert "x" * 400 in file_text
    console = stream.getvalue()
    assert console.count("\n") == 1
    assert console.rstrip("\n").endswith("...")
    assert "x" * 400 not in console


def test_console_only_log(tmp_path: Path) -> None:
    stream = io.StringIO()
    log = ActivityLog(None, enabled=True, stream=stream)
    log.log("no file")
    assert "no file" in stream.getvalue()
    assert list(tmp_path.iterdir()) == []


def test_concurrent_writes_keep_whole_lines(tmp_path: Path) -> None:
    path = tmp_path / "log.txt"
    log = ActivityLog(str(path), enabled=True, stream=io.StringIO())

    def worker(index: int) -> None:
        for line in range(50):
            log.log("worker-%d line-%d" % (index, line))

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    log.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 200
    assert all("[prosubmit] worker-" in line for line in lines)
