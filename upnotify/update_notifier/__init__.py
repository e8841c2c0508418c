from __future__ import annotations

from upnotify.update_notifier.adapters.filesystem_update_cache_repository import (
    FileSystemUpdateCacheRepository,
)
from upnotify.update_notifier.adapters.npm_update_gateway import NpmUpdateGateway
from upnotify.update_notifier.adapters.pypi_update_gateway import PyPIUpdateGateway
from upnotify.update_notifier.checker import (
    DetachedProcessUpdateChecker,
    ThreadUpdateChecker,
    run_update_check,
)
from upnotify.update_notifier.config import (
    PackageInfo,
    Registry,
    UpdateNotifierConfig,
    UpdateNotifierConfigError,
    load_update_notifier_config,
)
from upnotify.update_notifier.ports.update_cache_repository import (
    UpdateCacheRepository,
    UpdateRecord,
)
from upnotify.update_notifier.ports.update_checker import UpdateChecker
from upnotify.update_notifier.ports.update_gateway import (
    DEFAULT_GATEWAY_MESSAGES,
    Update,
    UpdateGateway,
    UpdateGatewayCause,
    UpdateGatewayError,
)
from upnotify.update_notifier.staleness import Staleness, decide
from upnotify.update_notifier.update import check_for_update, update_notifier

__all__ = [
    "DEFAULT_GATEWAY_MESSAGES",
    "DetachedProcessUpdateChecker",
    "FileSystemUpdateCacheRepository",
    "NpmUpdateGateway",
    "PackageInfo",
    "PyPIUpdateGateway",
    "Registry",
    "Staleness",
    "ThreadUpdateChecker",
    "Update",
    "UpdateCacheRepository",
    "UpdateChecker",
    "UpdateGateway",
    "UpdateGatewayCause",
    "UpdateGatewayError",
    "UpdateNotifierConfig",
    "UpdateNotifierConfigError",
    "UpdateRecord",
    "check_for_update",
    "decide",
    "load_update_notifier_config",
    "run_update_check",
    "update_notifier",
]
