from __future__ import annotations

import pytest

from tests.update_notifier.adapters.fake_update_cache_repository import (
    FakeUpdateCacheRepository,
)
from tests.update_notifier.adapters.fake_update_checker import FakeUpdateChecker
from upnotify.update_notifier.ports.update_cache_repository import UpdateRecord
from upnotify.update_notifier.update import check_for_update

PACKAGE = "vercel"
DAY = 24 * 60 * 60


@pytest.fixture
def current_timestamp() -> float:
    return 1765278683.0


def _check(
    repository: FakeUpdateCacheRepository,
    checker: FakeUpdateChecker,
    current_timestamp: float,
    current_version: str = "27.3.0",
    check_interval: float = DAY,
) -> str | None:
    return check_for_update(
        PACKAGE,
        current_version,
        repository,
        checker,
        check_interval=check_interval,
        get_current_timestamp=lambda: current_timestamp,
    )


def test_returns_nothing_and_triggers_a_check_when_no_record_exists(
    current_timestamp: float,
) -> None:
    repository = FakeUpdateCacheRepository()
    checker = FakeUpdateChecker()

    assert _check(repository, checker, current_timestamp) is None
    assert checker.trigger_check_calls == [(PACKAGE, "27.3.0", DAY)]
    assert repository.set_calls == 0


def test_reports_a_newer_cached_version_once_and_marks_it_notified(
    current_timestamp: float,
) -> None:
    repository = FakeUpdateCacheRepository({
        PACKAGE: UpdateRecord(version="28.0.0", expire_at=current_timestamp + 60)
    })
    checker = FakeUpdateChecker()

    assert _check(repository, checker, current_timestamp) == "28.0.0"
    assert repository.records[PACKAGE] == UpdateRecord(
        version="28.0.0", expire_at=current_timestamp + 60, notified=True
    )
    assert _check(repository, checker, current_timestamp) is None
    assert checker.trigger_check_calls == []


def test_does_not_trigger_a_check_while_the_record_is_fresh(
    current_timestamp: float,
) -> None:
    repository = FakeUpdateCacheRepository({
        PACKAGE: UpdateRecord(
            version="27.3.0", expire_at=current_timestamp + 60, notified=False
        )
    })
    checker = FakeUpdateChecker()

    assert _check(repository, checker, current_timestamp) is None
    assert checker.trigger_check_calls == []
    assert repository.set_calls == 0


def test_stale_record_triggers_a_check_and_still_answers_from_the_cache(
    current_timestamp: float,
) -> None:
    repository = FakeUpdateCacheRepository({
        PACKAGE: UpdateRecord(version="28.0.0", expire_at=current_timestamp - 1)
    })
    checker = FakeUpdateChecker()

    assert _check(repository, checker, current_timestamp) == "28.0.0"
    assert checker.trigger_check_calls == [(PACKAGE, "27.3.0", DAY)]
    assert repository.records[PACKAGE].notified is True


def test_stale_record_already_notified_triggers_a_check_but_reports_nothing(
    current_timestamp: float,
) -> None:
    repository = FakeUpdateCacheRepository({
        PACKAGE: UpdateRecord(
            version="28.0.0", expire_at=current_timestamp - 1, notified=True
        )
    })
    checker = FakeUpdateChecker()

    assert _check(repository, checker, current_timestamp) is None
    assert len(checker.trigger_check_calls) == 1


@pytest.mark.parametrize(
    "current_version", ["28.0.0", "29.0.0", "999.0.0"], ids=["equal", "newer", "far"]
)
def test_never_reports_a_version_that_is_not_newer(
    current_timestamp: float, current_version: str
) -> None:
    repository = FakeUpdateCacheRepository({
        PACKAGE: UpdateRecord(version="28.0.0", expire_at=current_timestamp + 60)
    })
    checker = FakeUpdateChecker()

    for _ in range(3):
        assert (
            _check(repository, checker, current_timestamp, current_version) is None
        )

    assert repository.records[PACKAGE].notified is False


@pytest.mark.parametrize(
    ("cached", "current"),
    [("not-a-version", "1.0.0"), ("2.0.0", "not-a-version")],
    ids=["cached_invalid", "current_invalid"],
)
def test_reports_nothing_when_a_version_cannot_be_parsed(
    current_timestamp: float, cached: str, current: str
) -> None:
    repository = FakeUpdateCacheRepository({
        PACKAGE: UpdateRecord(version=cached, expire_at=current_timestamp + 60)
    })

    assert _check(repository, FakeUpdateChecker(), current_timestamp, current) is None


def test_skips_triggering_while_a_check_is_in_flight(current_timestamp: float) -> None:
    repository = FakeUpdateCacheRepository()
    checker = FakeUpdateChecker()

    _check(repository, checker, current_timestamp)
    _check(repository, checker, current_timestamp)

    assert len(checker.trigger_check_calls) == 1
    assert PACKAGE in repository.locks


def test_releases_the_lock_when_triggering_fails(current_timestamp: float) -> None:
    repository = FakeUpdateCacheRepository()
    checker = FakeUpdateChecker(error=RuntimeError("cannot spawn"))

    assert _check(repository, checker, current_timestamp) is None
    assert PACKAGE not in repository.locks


def test_a_shortened_interval_forces_a_recheck(current_timestamp: float) -> None:
    repository = FakeUpdateCacheRepository({
        PACKAGE: UpdateRecord(
            version="27.3.0", expire_at=current_timestamp + DAY, notified=False
        )
    })
    checker = FakeUpdateChecker()

    _check(repository, checker, current_timestamp, check_interval=0.001)

    assert checker.trigger_check_calls == [(PACKAGE, "27.3.0", 0.001)]


@pytest.mark.parametrize(
    ("cached", "current", "expected"),
    [
        ("28.0.0", "28.0.0-canary.1", "28.0.0"),
        ("1.0.0", "1.0.0-rc.1", "1.0.0"),
        ("1.0.0-rc.2", "1.0.0-rc.1", "1.0.0-rc.2"),
        ("1.0.0-rc.1", "1.0.0", None),
        ("1.0.0-beta.3", "1.0.0-rc.1", None),
    ],
    ids=[
        "canary_to_release",
        "rc_to_release",
        "rc_to_next_rc",
        "release_ignores_its_rc",
        "rc_ignores_older_beta",
    ],
)
def test_orders_prereleases_below_their_release(
    current_timestamp: float, cached: str, current: str, expected: str | None
) -> None:
    repository = FakeUpdateCacheRepository({
        PACKAGE: UpdateRecord(version=cached, expire_at=current_timestamp + 60)
    })

    assert (
        _check(repository, FakeUpdateChecker(), current_timestamp, current)
        == expected
    )
