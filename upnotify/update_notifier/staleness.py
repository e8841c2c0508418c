from __future__ import annotations

from enum import StrEnum, auto

from upnotify.update_notifier.ports.update_cache_repository import UpdateRecord

DEFAULT_UPDATE_CHECK_INTERVAL_SECONDS = 24 * 60 * 60


class Staleness(StrEnum):
    FRESH = auto()
    STALE = auto()
    MISSING = auto()


def compute_expire_at(now: float, check_interval: float) -> float:
    return now + check_interval


def decide(record: UpdateRecord | None, now: float, check_interval: float) -> Staleness:
    """Decide whether a background check is due for ``record``.

    A record claiming freshness beyond ``now + check_interval`` (the interval
    was shortened since it was written, or the clock moved backwards) is stale.
    """
    if record is None:
        return Staleness.MISSING
    if record.expire_at <= now or record.expire_at > now + check_interval:
        return Staleness.STALE
    return Staleness.FRESH
