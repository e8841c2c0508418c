from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

from upnotify import __version__
from upnotify.update_notifier.adapters.filesystem_update_cache_repository import (
    FileSystemUpdateCacheRepository,
    check_lock_stale_after,
)
from upnotify.update_notifier.adapters.npm_update_gateway import NpmUpdateGateway
from upnotify.update_notifier.adapters.pypi_update_gateway import PyPIUpdateGateway
from upnotify.update_notifier.checker import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    run_update_check,
)
from upnotify.update_notifier.config import Registry
from upnotify.update_notifier.ports.update_gateway import UpdateGateway

logger = logging.getLogger(__name__)

LOG_FILE_NAME = "update-notifier.log"


def build_update_gateway(
    registry: Registry, *, base_url: str | None = None, timeout: float
) -> UpdateGateway:
    match registry:
        case Registry.NPM:
            if base_url:
                return NpmUpdateGateway(base_url=base_url, timeout=timeout)
            return NpmUpdateGateway(timeout=timeout)
        case Registry.PYPI:
            if base_url:
                return PyPIUpdateGateway(base_url=base_url, timeout=timeout)
            return PyPIUpdateGateway(timeout=timeout)


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Look up the latest published version of a package and "
        "record it in the update notifier cache."
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--cache-dir", type=Path, required=True, metavar="DIR")
    parser.add_argument("--package", required=True, metavar="NAME")
    parser.add_argument("--current-version", required=True, metavar="VERSION")
    parser.add_argument(
        "--interval",
        type=float,
        required=True,
        metavar="SECONDS",
        help="How long the written record stays fresh.",
    )
    parser.add_argument(
        "--registry", type=Registry, choices=list(Registry), default=Registry.PYPI
    )
    parser.add_argument("--registry-url", metavar="URL")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_FETCH_TIMEOUT_SECONDS,
        metavar="SECONDS",
        help="Upper bound for the registry lookup.",
    )
    return parser.parse_args(argv)


def _configure_logging(cache_dir: Path) -> None:
    # stdio is detached, so the log file is the only trace of a failed check
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(
            cache_dir / LOG_FILE_NAME, encoding="utf-8"
        )
    except OSError:
        handler = logging.NullHandler()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(process)d %(levelname)s %(name)s: %(message)s",
        handlers=[handler],
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_arguments(argv)
    _configure_logging(args.cache_dir)

    repository = FileSystemUpdateCacheRepository(
        args.cache_dir, lock_stale_after=check_lock_stale_after(args.timeout)
    )
    gateway = build_update_gateway(
        args.registry, base_url=args.registry_url, timeout=args.timeout
    )
    try:
        record = asyncio.run(
            run_update_check(
                args.package,
                args.current_version,
                args.interval,
                gateway,
                repository,
                timeout=args.timeout,
            )
        )
    except Exception:
        logger.warning("Update check for %s failed", args.package, exc_info=True)
        return 1

    if record is None:
        return 1
    logger.info("Recorded %s %s as the latest version", args.package, record.version)
    return 0


if __name__ == "__main__":
    sys.exit(main())
