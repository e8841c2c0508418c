from __future__ import annotations

from typing import Protocol


class UpdateChecker(Protocol):
    def trigger_check(
        self, package_name: str, current_version: str, check_interval: float
    ) -> None: ...
