"""Tests for writing auth log entries and the login statistics of a user."""

import time

import pytest

from conftest import make_tracker
from models.auth_log import AuthLog
from security.errors import AuthLogStoreError


def _latest(user):
    return user.auth_logs.order_by(AuthLog.id.desc()).first()


def test_log_auth(user) -> None:
    tracker = make_tracker(user)
    now = int(time.time())

    assert tracker.log_auth() is not None

    auth_log = _latest(user)
    assert auth_log is not None
    assert auth_log.date >= now
    assert auth_log.error is None


def test_log_auth_override(user) -> None:
    tracker = make_tracker(user)
    tracker.log_auth({"error": 71})
    assert _latest(user).error == "71"


def test_log_auth_error(user) -> None:
    tracker = make_tracker(user)
    tracker.log_auth_error(71)
    assert _latest(user).error == "71"


def test_custom_date_value(user) -> None:
    make_tracker(user, date_default=18).log_auth()
    assert _latest(user).date == 18

    make_tracker(user, date_default=lambda identity: 81).log_auth()
    assert _latest(user).date == 81


def test_custom_error_value(user) -> None:
    tracker = make_tracker(user, error_default=56)
    tracker.log_auth({"date": 10})

    assert _latest(user).error == "56"
    assert tracker.get_last_login_date() == 10


def test_custom_data(user) -> None:
    tracker = make_tracker(user, default_data={"ip": "10.10.10.10", "url": "http://test.url"})
    tracker.log_auth()

    auth_log = _latest(user)
    assert auth_log.ip == "10.10.10.10"
    assert auth_log.url == "http://test.url"


def test_custom_data_callback(user) -> None:
    seen = []

    def data(identity):
        seen.append(identity)
        return {"ip": "20.20.20.20", "url": "http://test.url"}

    make_tracker(user, default_data=data).log_auth()

    auth_log = _latest(user)
    assert auth_log.ip == "20.20.20.20"
    assert auth_log.url == "http://test.url"
    assert seen == [user]


def test_unknown_data_keys_are_ignored(user) -> None:
    make_tracker(user).log_auth({"date": 5, "no_such_column": "x", "id": 999})

    auth_log = _latest(user)
    assert auth_log.date == 5
    assert auth_log.id != 999


def test_get_last_login_date(user) -> None:
    tracker = make_tracker(user)
    tracker.log_auth({"date": 10})
    tracker.log_auth({"date": 20})
    tracker.log_auth_error(5, {"date": 30})

    assert tracker.get_last_login_date() == 20


def test_get_pre_last_login_date(user) -> None:
    tracker = make_tracker(user)
    tracker.log_auth({"date": 10})
    tracker.log_auth({"date": 20})
    tracker.log_auth({"date": 30})
    tracker.log_auth_error(5, {"date": 40})

    assert tracker.get_pre_last_login_date() == 20
    assert tracker.login_date(2) == 10
    assert tracker.login_date(3) is None


def test_single_success_after_failures(user) -> None:
    tracker = make_tracker(user)
    for date in (10, 20, 30):
        tracker.log_auth_error("password", {"date": date})
    tracker.log_auth({"date": 40})

    assert tracker.get_last_login_date() == 40
    assert tracker.get_pre_last_login_date() is None


def test_has_failed_login_sequence(user) -> None:
    tracker = make_tracker(user)
    tracker.log_auth({"date": 10})
    tracker.log_auth_error(5, {"date": 20})
    tracker.log_auth_error(5, {"date": 30})
    tracker.log_auth_error(5, {"date": 40})

    assert tracker.has_failed_login_sequence(2) is True
    assert tracker.has_failed_login_sequence(3) is True
    assert tracker.has_failed_login_sequence(4) is False
    assert tracker.has_failed_login_sequence(5) is False


def test_failed_login_sequence_without_history(user) -> None:
    assert make_tracker(user).has_failed_login_sequence(1) is False


def test_same_date_ordered_by_insertion(user) -> None:
    tracker = make_tracker(user)
    tracker.log_auth({"date": 10})
    tracker.log_auth_error("password", {"date": 10})

    assert tracker.has_failed_login_sequence(1) is True
    assert tracker.has_failed_login_sequence(2) is False


def test_failure_does_not_move_last_success(user) -> None:
    tracker = make_tracker(user)
    tracker.log_auth({"date": 10})
    before = tracker.find_successful_auth_log(0)

    tracker.log_auth_error("password", {"date": 20})

    assert tracker.find_successful_auth_log(0).id == before.id


def test_success_becomes_last_and_shifts_previous(user) -> None:
    tracker = make_tracker(user)
    tracker.log_auth({"date": 10})
    previous = tracker.get_last_successful_auth_log()

    latest = tracker.log_auth({"date": 20})

    assert tracker.get_last_successful_auth_log().id == latest.id
    assert tracker.get_pre_last_successful_auth_log().id == previous.id


def test_cached_statistics_need_refresh_for_foreign_writes(user) -> None:
    tracker = make_tracker(user)
    tracker.log_auth({"date": 10})
    assert tracker.get_last_login_date() == 10

    make_tracker(user).log_auth({"date": 20})

    assert tracker.get_last_login_date() == 10
    assert tracker.get_last_login_date(refresh=True) == 20


def test_cached_absence(user) -> None:
    tracker = make_tracker(user)
    assert tracker.get_last_successful_auth_log() is None

    make_tracker(user).log_auth({"date": 10})

    assert tracker.get_last_successful_auth_log() is None
    assert tracker.get_last_successful_auth_log(refresh=True) is not None


class _BrokenStore:
    def find_one(self, *args, **kwargs):
        raise AuthLogStoreError("boom")

    def recent(self, *args, **kwargs):
        raise AuthLogStoreError("boom")


def test_cached_lookup_degrades_on_store_error(user) -> None:
    from security.auth_log import AuthLogIdentity, AuthLogSettings

    tracker = AuthLogIdentity(user, store=_BrokenStore(), settings=AuthLogSettings(gc_probability=0))

    assert tracker.get_last_successful_auth_log() is None
    assert tracker.get_pre_last_login_date() is None
    with pytest.raises(AuthLogStoreError):
        tracker.has_failed_login_sequence(3)


def test_user_auth_log_tracker_is_reused(user) -> None:
    assert user.auth_log is user.auth_log
    assert user.auth_log.settings.gc_probability == 0
