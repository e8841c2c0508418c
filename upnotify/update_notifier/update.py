from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
import time
from typing import Any

from upnotify.update_notifier.adapters.filesystem_update_cache_repository import (
    FileSystemUpdateCacheRepository,
    check_lock_stale_after,
)
from upnotify.update_notifier.checker import DetachedProcessUpdateChecker
from upnotify.update_notifier.config import (
    UpdateNotifierConfig,
    load_update_notifier_config,
)
from upnotify.update_notifier.ports.update_cache_repository import (
    UpdateCacheRepository,
    UpdateRecord,
)
from upnotify.update_notifier.ports.update_checker import UpdateChecker
from upnotify.update_notifier.staleness import (
    DEFAULT_UPDATE_CHECK_INTERVAL_SECONDS,
    Staleness,
    decide,
)
from upnotify.update_notifier.versions import is_newer

logger = logging.getLogger(__name__)


def _trigger_check_once(
    package_name: str,
    current_version: str,
    check_interval: float,
    repository: UpdateCacheRepository,
    checker: UpdateChecker,
) -> None:
    if not repository.acquire_check_lock(package_name):
        logger.debug("Update check for %s already in flight", package_name)
        return
    try:
        checker.trigger_check(package_name, current_version, check_interval)
    except Exception:
        repository.release_check_lock(package_name)
        logger.warning(
            "Failed to trigger update check for %s", package_name, exc_info=True
        )


def check_for_update(
    package_name: str,
    current_version: str,
    repository: UpdateCacheRepository,
    checker: UpdateChecker,
    check_interval: float = DEFAULT_UPDATE_CHECK_INTERVAL_SECONDS,
    get_current_timestamp: Callable[[], float] = time.time,
) -> str | None:
    """Return a newer version to announce, at most once per version.

    Never waits on the registry: when the cached record is missing or stale a
    background check is triggered for a later invocation, and this call answers
    from whatever is cached now.
    """
    record = repository.get(package_name)
    staleness = decide(record, get_current_timestamp(), check_interval)

    announce: str | None = None
    if (
        record is not None
        and not record.notified
        and is_newer(record.version, current_version)
    ):
        repository.set(
            package_name,
            UpdateRecord(
                version=record.version, expire_at=record.expire_at, notified=True
            ),
        )
        announce = record.version

    # the flip above is persisted before the check starts so a refresh that
    # finds the same version carries notified=True over
    if staleness is not Staleness.FRESH:
        _trigger_check_once(
            package_name, current_version, check_interval, repository, checker
        )

    return announce


def update_notifier(
    config: Mapping[str, Any] | UpdateNotifierConfig,
    *,
    repository: UpdateCacheRepository | None = None,
    checker: UpdateChecker | None = None,
) -> str | None:
    """Check ``config["pkg"]`` for an update using the on-disk cache.

    ``config`` accepts ``cacheDir``/``cache_dir``, ``pkg`` (``name`` and
    ``version``) and ``updateCheckInterval``/``update_check_interval`` in
    seconds. Invalid configuration raises ``UpdateNotifierConfigError``.
    """
    resolved = load_update_notifier_config(config)
    resolved_repository = repository or FileSystemUpdateCacheRepository(
        resolved.cache_dir,
        lock_stale_after=check_lock_stale_after(resolved.fetch_timeout),
    )
    resolved_checker = checker or DetachedProcessUpdateChecker(
        resolved.cache_dir,
        registry=resolved.registry,
        registry_url=resolved.registry_url,
        timeout=resolved.fetch_timeout,
        repository=resolved_repository,
    )
    return check_for_update(
        resolved.pkg.name,
        resolved.pkg.version,
        resolved_repository,
        resolved_checker,
        check_interval=resolved.update_check_interval,
    )
