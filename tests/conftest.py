from __future__ import annotations

from pathlib import Path

import pytest

from app.deka import config, utils


def _configure_temp_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setattr(config, "DATA_DIR", data_dir)
    monkeypatch.setattr(config, "LOG_DIR", data_dir / "logs")
    monkeypatch.setattr(config, "LOG_FILE", data_dir / "logs" / "latest.log")
    monkeypatch.setattr(config, "ARTIFACT_DIR", data_dir / "screenshots")
    monkeypatch.setattr(utils, "_LOGGER_INITIALISED", False)
    return data_dir


@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    return _configure_temp_paths(tmp_path, monkeypatch)
