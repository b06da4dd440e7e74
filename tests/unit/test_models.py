"""Tests for core domain models and log helpers."""

import dataclasses

import pytest

from applogs.core import logs
from applogs.core.models import (
    DailyStat,
    LogEntry,
    LogInput,
    LogLevel,
    LogQuery,
    RetentionPolicy,
    StatsTotals,
)
from applogs.core.stats import dense_range, expiry_cutoff, sum_totals

pytestmark = [pytest.mark.tier(1), pytest.mark.core]


class TestLogHelpers:
    def test_level_helpers(self) -> None:
        assert logs.info("a").level is LogLevel.INFO
        assert logs.warn("a").level is LogLevel.WARN
        assert logs.error("a").level is LogLevel.ERROR
        assert logs.debug("a").level is LogLevel.DEBUG

    def test_log_accepts_level_name(self) -> None:
        item = logs.log("ERROR", "failed", {"k": 1}, request_id="r1")
        assert item == LogInput(LogLevel.ERROR, "failed", {"k": 1}, "r1")

    def test_to_payload_omits_unset_fields(self) -> None:
        assert logs.info("hello").to_payload() == {"level": "INFO", "message": "hello"}

    def test_materialize_assigns_id_and_timestamp(self, clock) -> None:
        entry = logs.materialize(logs.info("m"), clock)
        assert entry.timestamp == "2024-01-15T12:00:00.000Z"
        assert entry.id

    def test_materialize_keeps_supplied_timestamp(self, clock) -> None:
        item = LogInput(LogLevel.INFO, "m", timestamp="2020-01-01T00:00:00.000Z")
        assert logs.materialize(item, clock).timestamp == "2020-01-01T00:00:00.000Z"

    def test_ids_are_unique(self) -> None:
        assert len({logs.new_id() for _ in range(100)}) == 100

    def test_api_key_is_48_hex_chars(self) -> None:
        key = logs.new_api_key()
        assert len(key) == 48
        int(key, 16)

    def test_matches_bounds(self) -> None:
        entry = LogEntry("1", LogLevel.INFO, "m", "2024-01-15T00:00:00.000Z")
        assert logs.matches(entry, LogQuery(since="2024-01-15T00:00:00.000Z"))
        assert not logs.matches(entry, LogQuery(until="2024-01-15T00:00:00.000Z"))
        assert not logs.matches(entry, LogQuery(level=LogLevel.ERROR))
        assert not logs.matches(entry, LogQuery(request_id="r"))


class TestDailyStat:
    def test_incremented_returns_new_record(self) -> None:
        stat = DailyStat(date="2024-01-15")
        updated = stat.incremented(LogLevel.WARN, 3)
        assert updated.warn == 3
        assert stat.warn == 0
        assert updated.total == 3

    def test_models_are_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            DailyStat(date="2024-01-15").info = 1  # type: ignore[misc]

    def test_totals_shape(self) -> None:
        totals = sum_totals([DailyStat("d1", info=2), DailyStat("d2", info=1, error=4)])
        assert totals == StatsTotals(info=3, error=4)
        assert totals.to_dict() == {
            "total": 7,
            "by_level": {"debug": 0, "info": 3, "warn": 0, "error": 4},
        }


class TestRetention:
    def test_rejects_non_positive_age(self) -> None:
        with pytest.raises(ValueError):
            RetentionPolicy(max_age_days=0)

    def test_cutoff_keeps_max_age_days_including_today(self, clock) -> None:
        today = clock().date()
        assert expiry_cutoff(today, RetentionPolicy(max_age_days=3)) == "2024-01-13"

    def test_dense_range_fills_gaps_and_hides_expired(self, clock) -> None:
        today = clock().date()
        stored = {
            "2024-01-15": DailyStat("2024-01-15", info=1),
            "2024-01-12": DailyStat("2024-01-12", error=9),
        }
        series = dense_range(stored, today, 5, RetentionPolicy(max_age_days=3))
        assert [s.date for s in series] == [
            "2024-01-15",
            "2024-01-14",
            "2024-01-13",
            "2024-01-12",
            "2024-01-11",
        ]
        assert series[0].info == 1
        assert all(s.total == 0 for s in series[1:])
