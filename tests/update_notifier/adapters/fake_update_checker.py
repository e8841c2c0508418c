from __future__ import annotations

from upnotify.update_notifier.ports.update_checker import UpdateChecker


class FakeUpdateChecker(UpdateChecker):
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.trigger_check_calls: list[tuple[str, str, float]] = []

    def trigger_check(
        self, package_name: str, current_version: str, check_interval: float
    ) -> None:
        self.trigger_check_calls.append((package_name, current_version, check_interval))
        if self._error is not None:
            raise self._error
