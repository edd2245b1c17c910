from __future__ import annotations

from pathlib import Path

import pytest

from prosubmit.config import DEFAULT_TRANSFER_TIMEOUT, load_client_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROSUBMIT_URL", raising=False)
    monkeypatch.delenv("PROSUBMIT_TRANSFER", raising=False)


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    cfg = load_client_config(str(tmp_path / "absent.conf"))
    assert cfg.base_url == ""
    assert cfg.log_file == "log.txt"
    assert cfg.transfer_backend == "http"
    assert cfg.transfer_timeout == DEFAULT_TRANSFER_TIMEOUT
    assert cfg.download_workers is None


def test_client_section_is_parsed(tmp_path: Path) -> None:
    path = tmp_path / "prosubmit.conf"
    path.write_text(
        "\n".join(
            [
                "# global comment",
                "[server]",
                "baseURL = http://ignored",
                "[client]",
                "baseURL = http://127.0.0.1:8082   # local service",
                "logFile = /var/tmp/pro.log",
                "transferBackend = CURL",
                "transferTimeout = 45",
                "downloadWorkers = 4",
                "unknownKey = whatever",
            ]
        ),
        encoding="utf-8",
    )

    cfg = load_client_config(str(path))

    assert cfg.base_url == "http://127.0.0.1:8082"
    assert cfg.log_file == "/var/tmp/pro.log"
    assert cfg.transfer_backend == "curl"
    assert cfg.transfer_timeout == 45.0
    assert cfg.download_workers == 4


def test_timeout_can_be_disabled(tmp_path: Path) -> None:
    path = tmp_path / "prosubmit.conf"
    path.write_text("[client]\ntransferTimeout = none\n", encoding="utf-8")
    assert load_client_config(str(path)).transfer_timeout is None


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "prosubmit.conf"
    path.write_text("[client]\nbaseURL = http://file\n", encoding="utf-8")
    monkeypatch.setenv("PROSUBMIT_URL", "http://env")
    monkeypatch.setenv("PROSUBMIT_TRANSFER", "curl")

    cfg = load_client_config(str(path))

    assert cfg.base_url == "http://env"
    assert cfg.transfer_backend == "curl"


@pytest.mark.parametrize(
    "line",
    [
        "transferBackend = ftp",
        "transferTimeout = soon",
        "transferTimeout = -1",
        "downloadWorkers = 0",
        "downloadWorkers = many",
    ],
)
def test_invalid_values_raise(tmp_path: Path, line: str) -> None:
    path = tmp_path / "prosubmit.conf"
    path.write_text("[client]\n" + line + "\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_client_config(str(path))
