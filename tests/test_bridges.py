"""Tests for ``authspine.bridges``."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime, timedelta, timezone

import pytest

from authspine.bridges import MySQLBridge, PostgreSQLBridge, SQLBridge, SQLiteBridge, as_utc
from authspine.errors import ScanTypeError
from authspine.models import ZERO_TIME


class FakePsycopg2Error(Exception):
    def __init__(self, pgcode):
        super().__init__("duplicate key value violates unique constraint")
        self.pgcode = pgcode


class FakePsycopg3Error(Exception):
    def __init__(self, sqlstate):
        super().__init__("duplicate key")
        self.sqlstate = sqlstate


class FakeConnectorError(Exception):
    def __init__(self, errno):
        super().__init__(f"{errno}: Duplicate entry")
        self.errno = errno


@pytest.fixture(params=[SQLiteBridge, PostgreSQLBridge, MySQLBridge])
def bridge(request: pytest.FixtureRequest) -> SQLBridge:
    return request.param()


class TestProtocol:
    def test_isinstance(self, bridge):
        assert isinstance(bridge, SQLBridge)

    def test_update_matches_insert(self, bridge):
        exc = RuntimeError("something else")
        assert bridge.is_duplicate_update(exc) is bridge.is_duplicate_insert(exc) is False

    def test_wrong_scan_type(self, bridge):
        with pytest.raises(ScanTypeError):
            bridge.convert_time_scan(12345)

    def test_roundtrip_zero_time(self, bridge):
        assert bridge.convert_time_scan(bridge.convert_time(ZERO_TIME)) == ZERO_TIME

    def test_roundtrip_non_utc(self, bridge):
        dt = datetime(2023, 7, 1, 18, 30, 15, 123456, tzinfo=timezone(timedelta(hours=-5)))
        back = bridge.convert_time_scan(bridge.convert_time(dt))
        assert back == dt
        assert back.tzinfo is UTC


class TestAsUTC:
    def test_naive_is_taken_as_utc(self):
        assert as_utc(datetime(2020, 1, 1, 12)) == datetime(2020, 1, 1, 12, tzinfo=UTC)

    def test_aware_is_converted(self):
        dt = datetime(2020, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(dt).hour == 10


class TestSQLiteBridge:
    def test_fixed_width_text(self):
        bridge = SQLiteBridge()
        assert bridge.time_scan_type() is str
        assert bridge.convert_time(ZERO_TIME) == "0001-01-01 00:00:00.000000"
        assert bridge.convert_time(datetime(2019, 9, 9, tzinfo=UTC)) == "2019-09-09 00:00:00.000000"

    def test_text_order_follows_time_order(self):
        bridge = SQLiteBridge()
        earlier = bridge.convert_time(datetime(999, 12, 31, 23, 59, tzinfo=UTC))
        later = bridge.convert_time(datetime(2019, 1, 1, tzinfo=UTC))
        assert earlier < later

    def test_duplicates(self):
        bridge = SQLiteBridge()
        assert bridge.is_duplicate_insert(
            sqlite3.IntegrityError("UNIQUE constraint failed: auth_user.username")
        )
        assert not bridge.is_duplicate_insert(
            sqlite3.IntegrityError("NOT NULL constraint failed: auth_user.email")
        )
        assert not bridge.is_duplicate_insert(sqlite3.OperationalError("UNIQUE constraint failed"))


class TestPostgreSQLBridge:
    def test_duplicates(self):
        bridge = PostgreSQLBridge()
        assert bridge.is_duplicate_insert(FakePsycopg2Error("23505"))
        assert bridge.is_duplicate_insert(FakePsycopg3Error("23505"))
        assert not bridge.is_duplicate_insert(FakePsycopg2Error("23502"))

    def test_aware_values(self):
        assert PostgreSQLBridge().convert_time(datetime(2020, 1, 1)).tzinfo is UTC


class TestMySQLBridge:
    def test_duplicates(self):
        bridge = MySQLBridge()
        assert bridge.is_duplicate_insert(FakeConnectorError(1062))
        assert bridge.is_duplicate_insert(Exception(1062, "Duplicate entry 'a' for key 'username'"))
        assert not bridge.is_duplicate_insert(FakeConnectorError(1048))
        assert not bridge.is_duplicate_insert(Exception("1062"))

    def test_naive_values(self):
        dt = datetime(2020, 1, 1, 12, tzinfo=timezone(timedelta(hours=1)))
        assert MySQLBridge().convert_time(dt) == datetime(2020, 1, 1, 11)
