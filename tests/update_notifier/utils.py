from __future__ import annotations

from pathlib import Path
import time


def wait_for_file(path: Path, *, timeout: float = 5.0, delay: float = 0.05) -> Path:
    deadline = time.monotonic() + timeout
    while not path.exists():
        if time.monotonic() >= deadline:
            raise AssertionError(f"{path} did not appear within {timeout}s")
        time.sleep(delay)
    return path


def wait_until(predicate, *, timeout: float = 5.0, delay: float = 0.05) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() >= deadline:
            raise AssertionError(f"condition not met within {timeout}s")
        time.sleep(delay)
