from __future__ import annotations

from pathlib import Path
import sys

import pytest


@pytest.fixture(autouse=True)
def tmp_working_directory(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> Path:
    tmp_working_directory = tmp_path_factory.mktemp("test_cwd")
    monkeypatch.chdir(tmp_working_directory)
    return tmp_working_directory


@pytest.fixture(autouse=True)
def _mock_platform(monkeypatch: pytest.MonkeyPatch) -> None:
    """Detached worker processes are spawned differently on Windows; pin the
    POSIX code path so assertions on spawn arguments hold everywhere.
    """
    monkeypatch.setattr(sys, "platform", "linux")
