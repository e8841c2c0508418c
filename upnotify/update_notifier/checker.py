from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from pathlib import Path
import subprocess
import sys
import threading
import time

from upnotify.update_notifier.adapters.filesystem_update_cache_repository import (
    FileSystemUpdateCacheRepository,
)
from upnotify.update_notifier.ports.update_cache_repository import (
    UpdateCacheRepository,
    UpdateRecord,
)
from upnotify.update_notifier.ports.update_checker import UpdateChecker
from upnotify.update_notifier.ports.update_gateway import (
    DEFAULT_GATEWAY_MESSAGES,
    UpdateGateway,
    UpdateGatewayCause,
    UpdateGatewayError,
)
from upnotify.update_notifier.staleness import compute_expire_at
from upnotify.update_notifier.versions import parse_version

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 5.0
WORKER_MODULE = "upnotify.update_notifier.worker"


def _describe_gateway_error(error: UpdateGatewayError) -> str:
    if message := getattr(error, "user_message", None):
        return message

    cause = getattr(error, "cause", UpdateGatewayCause.UNKNOWN)
    if isinstance(cause, UpdateGatewayCause):
        return DEFAULT_GATEWAY_MESSAGES.get(
            cause, DEFAULT_GATEWAY_MESSAGES[UpdateGatewayCause.UNKNOWN]
        )

    return DEFAULT_GATEWAY_MESSAGES[UpdateGatewayCause.UNKNOWN]


async def run_update_check(
    package_name: str,
    current_version: str,
    check_interval: float,
    gateway: UpdateGateway,
    repository: UpdateCacheRepository,
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    get_current_timestamp: Callable[[], float] = time.time,
) -> UpdateRecord | None:
    """Look up the latest published version and persist it as the next record.

    Returns the written record, or ``None`` when the check was abandoned. The
    package's check lock is released whatever the outcome.
    """
    try:
        return await _check_and_store(
            package_name,
            current_version,
            check_interval,
            gateway,
            repository,
            timeout=timeout,
            get_current_timestamp=get_current_timestamp,
        )
    finally:
        repository.release_check_lock(package_name)


async def _check_and_store(
    package_name: str,
    current_version: str,
    check_interval: float,
    gateway: UpdateGateway,
    repository: UpdateCacheRepository,
    *,
    timeout: float,
    get_current_timestamp: Callable[[], float],
) -> UpdateRecord | None:
    logger.debug(
        "Looking up the latest version of %s (running %s)",
        package_name,
        current_version,
    )
    try:
        async with asyncio.timeout(timeout):
            update = await gateway.fetch_update(package_name)
    except UpdateGatewayError as error:
        logger.warning(
            "Update check for %s abandoned: %s",
            package_name,
            _describe_gateway_error(error),
        )
        return None
    except TimeoutError:
        logger.warning(
            "Update check for %s timed out after %ss", package_name, timeout
        )
        return None

    if update is None:
        logger.info("No published version found for %s", package_name)
        return None

    if parse_version(update.latest_version) is None:
        logger.warning(
            "Ignoring unparseable version %r for %s",
            update.latest_version,
            package_name,
        )
        return None

    previous = repository.get(package_name)
    record = UpdateRecord(
        version=update.latest_version,
        expire_at=compute_expire_at(get_current_timestamp(), check_interval),
        notified=(
            previous is not None
            and previous.version == update.latest_version
            and previous.notified
        ),
    )
    repository.set(package_name, record)
    return record


class DetachedProcessUpdateChecker(UpdateChecker):
    """Runs the check in a detached interpreter that outlives the caller."""

    def __init__(
        self,
        cache_dir: Path | str,
        *,
        registry: str = "pypi",
        registry_url: str | None = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        repository: UpdateCacheRepository | None = None,
    ) -> None:
        self._cache_dir = Path(cache_dir)
        self._registry = registry
        self._registry_url = registry_url
        self._timeout = timeout
        self._repository = repository or FileSystemUpdateCacheRepository(cache_dir)

    def build_command(
        self, package_name: str, current_version: str, check_interval: float
    ) -> list[str]:
        command = [
            sys.executable,
            "-m",
            WORKER_MODULE,
            "--cache-dir",
            str(self._cache_dir),
            "--package",
            package_name,
            "--current-version",
            current_version,
            "--interval",
            str(check_interval),
            "--registry",
            self._registry,
            "--timeout",
            str(self._timeout),
        ]
        if self._registry_url:
            command += ["--registry-url", self._registry_url]
        return command

    def trigger_check(
        self, package_name: str, current_version: str, check_interval: float
    ) -> None:
        command = self.build_command(package_name, current_version, check_interval)
        if sys.platform == "win32":
            detach = {
                "creationflags": subprocess.DETACHED_PROCESS
                | subprocess.CREATE_NEW_PROCESS_GROUP
            }
        else:
            detach = {"start_new_session": True}

        try:
            subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                close_fds=True,
                **detach,
            )
        except OSError:
            logger.warning(
                "Failed to start update check for %s", package_name, exc_info=True
            )
            self._repository.release_check_lock(package_name)


class ThreadUpdateChecker(UpdateChecker):
    """Runs the check on a daemon thread of the current process.

    Only suitable for hosts that keep running long enough for the lookup to
    finish; short-lived CLIs should use ``DetachedProcessUpdateChecker``.
    """

    def __init__(
        self,
        gateway: UpdateGateway,
        repository: UpdateCacheRepository,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        get_current_timestamp: Callable[[], float] = time.time,
    ) -> None:
        self._gateway = gateway
        self._repository = repository
        self._timeout = timeout
        self._get_current_timestamp = get_current_timestamp

    def trigger_check(
        self, package_name: str, current_version: str, check_interval: float
    ) -> None:
        thread = threading.Thread(
            target=self._run,
            args=(package_name, current_version, check_interval),
            name=f"upnotify-check-{package_name}",
            daemon=True,
        )
        thread.start()

    def _run(
        self, package_name: str, current_version: str, check_interval: float
    ) -> None:
        try:
            asyncio.run(
                run_update_check(
                    package_name,
                    current_version,
                    check_interval,
                    self._gateway,
                    self._repository,
                    timeout=self._timeout,
                    get_current_timestamp=self._get_current_timestamp,
                )
            )
        except Exception:
            logger.warning(
                "Update check for %s failed unexpectedly", package_name, exc_info=True
            )
