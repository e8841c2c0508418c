from __future__ import annotations

from collections.abc import Callable
import json
import logging
import os
from pathlib import Path
import tempfile
import time

from upnotify.update_notifier.ports.update_cache_repository import (
    UpdateCacheRepository,
    UpdateRecord,
)

logger = logging.getLogger(__name__)

CACHE_SUBDIRECTORY = "update-notifier"
# locks and in-flight temp files live beside the records, never among them
STATE_SUBDIRECTORY = ".update-notifier-state"
CHECK_LOCK_STALE_AFTER_SECONDS = 60.0


def record_file_name(package_name: str) -> str:
    # scoped npm names ("@scope/name") must stay a single path component
    return f"{package_name.replace('/', '+')}-latest.json"


def check_lock_stale_after(fetch_timeout: float) -> float:
    return max(CHECK_LOCK_STALE_AFTER_SECONDS, 2 * fetch_timeout)


class FileSystemUpdateCacheRepository(UpdateCacheRepository):
    """Stores one JSON record per package under ``<cache_dir>/update-notifier``.

    Records are replaced atomically (write to a temp file in the state
    directory, then ``os.replace``) so concurrent readers never observe a
    partial write. A lock older than ``lock_stale_after`` seconds belongs to a
    check that died and may be taken over; it must exceed the lookup timeout.
    """

    def __init__(
        self,
        cache_dir: Path | str,
        *,
        lock_stale_after: float = CHECK_LOCK_STALE_AFTER_SECONDS,
        get_current_timestamp: Callable[[], float] = time.time,
    ) -> None:
        self._directory = Path(cache_dir) / CACHE_SUBDIRECTORY
        self._state_directory = Path(cache_dir) / STATE_SUBDIRECTORY
        self._lock_stale_after = lock_stale_after
        self._get_current_timestamp = get_current_timestamp

    @property
    def directory(self) -> Path:
        return self._directory

    def record_path(self, package_name: str) -> Path:
        return self._directory / record_file_name(package_name)

    def _lock_path(self, package_name: str) -> Path:
        return self._state_directory / f"{package_name.replace('/', '+')}-check.lock"

    def get(self, package_name: str) -> UpdateRecord | None:
        try:
            content = self.record_path(package_name).read_text(encoding="utf-8")
        except OSError:
            return None

        try:
            data = json.loads(content)
            version = data.get("version")
            expire_at = data.get("expireAt")
            notified = data.get("notified", False)
        except (AttributeError, json.JSONDecodeError):
            return None

        if not isinstance(version, str) or not version:
            return None

        if isinstance(expire_at, bool) or not isinstance(expire_at, int | float):
            return None

        if not isinstance(notified, bool):
            return None

        return UpdateRecord(
            version=version, expire_at=float(expire_at), notified=notified
        )

    def set(self, package_name: str, record: UpdateRecord) -> None:
        payload = json.dumps({
            "version": record.version,
            "expireAt": record.expire_at,
            "notified": record.notified,
        })
        temp_path: str | None = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            self._state_directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._state_directory,
                prefix=".tmp-",
                suffix=".json",
                delete=False,
            ) as temp_file:
                temp_path = temp_file.name
                temp_file.write(payload)
            os.replace(temp_path, self.record_path(package_name))
            temp_path = None
        except OSError:
            logger.warning(
                "Failed to write update record for %s", package_name, exc_info=True
            )
        finally:
            if temp_path is not None:
                Path(temp_path).unlink(missing_ok=True)

    def acquire_check_lock(self, package_name: str) -> bool:
        lock_path = self._lock_path(package_name)
        try:
            self._state_directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.warning(
                "Unable to create %s", self._state_directory, exc_info=True
            )
            return False

        if self._is_abandoned(lock_path):
            logger.debug("Replacing abandoned check lock %s", lock_path)
            self.release_check_lock(package_name)

        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        except OSError:
            logger.warning("Unable to create check lock %s", lock_path, exc_info=True)
            return False

        with os.fdopen(fd, "w", encoding="utf-8") as lock_file:
            lock_file.write(str(os.getpid()))
        return True

    def release_check_lock(self, package_name: str) -> None:
        try:
            self._lock_path(package_name).unlink(missing_ok=True)
        except OSError:
            logger.warning(
                "Unable to release check lock for %s", package_name, exc_info=True
            )

    def _is_abandoned(self, lock_path: Path) -> bool:
        try:
            acquired_at = lock_path.stat().st_mtime
        except OSError:
            return False
        return self._get_current_timestamp() - acquired_at >= self._lock_stale_after
