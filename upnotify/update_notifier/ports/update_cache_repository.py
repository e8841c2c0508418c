from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class UpdateRecord:
    version: str
    expire_at: float
    notified: bool = False


class UpdateCacheRepository(Protocol):
    def get(self, package_name: str) -> UpdateRecord | None: ...
    def set(self, package_name: str, record: UpdateRecord) -> None: ...
    def acquire_check_lock(self, package_name: str) -> bool: ...
    def release_check_lock(self, package_name: str) -> None: ...
