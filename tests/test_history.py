"""Unit tests for the soil moisture history buffer."""

from __future__ import annotations

from datetime import timedelta, timezone

from services.history import HistoryBuffer, format_time_of_day


def test_append_keeps_only_most_recent_fifteen_oldest_first() -> None:
    buffer = HistoryBuffer()

    for index in range(20):
        buffer.append(index, float(index))

    samples = buffer.samples()
    assert len(samples) == 15
    assert [sample.timestamp for sample in samples] == list(range(5, 20))
    assert buffer.latest().value == 19.0


def test_append_drops_non_numeric_values() -> None:
    buffer = HistoryBuffer()

    assert buffer.append(1, "42") is False
    assert buffer.append(2, None) is False
    assert buffer.append(3, True) is False
    assert buffer.append(4, 42) is True

    assert [sample.timestamp for sample in buffer.samples()] == [4]


def test_from_snapshot_sorts_numerically_and_truncates() -> None:
    snapshot = {str(1000 + step * 60_000): float(step) for step in reversed(range(20))}
    snapshot["900"] = 5.0

    buffer = HistoryBuffer.from_snapshot(snapshot)

    timestamps = [sample.timestamp for sample in buffer.samples()]
    assert len(timestamps) == 15
    assert timestamps == sorted(timestamps)
    assert timestamps[-1] == 1000 + 19 * 60_000
    assert 900 not in timestamps


def test_from_snapshot_drops_malformed_entries() -> None:
    buffer = HistoryBuffer.from_snapshot(
        {"1000": 10, "not-a-time": 20, "2000": "wet", "3000": 30.5}
    )

    assert [(s.timestamp, s.value) for s in buffer.samples()] == [(1000, 10.0), (3000, 30.5)]


def test_from_empty_snapshot_is_empty() -> None:
    assert len(HistoryBuffer.from_snapshot(None)) == 0
    assert len(HistoryBuffer.from_snapshot({})) == 0
    assert HistoryBuffer().latest() is None


def test_labels_are_formatted_at_read_time() -> None:
    buffer = HistoryBuffer(capacity=3)
    buffer.append((13 * 60 + 5) * 60_000, 40)

    assert buffer.labels(timezone.utc) == ["13:05"]
    assert format_time_of_day(0, timezone.utc) == "00:00"


def test_non_finite_values_are_dropped() -> None:
    buffer = HistoryBuffer()

    assert buffer.append(1, float("inf")) is False
    assert buffer.append(2, float("nan")) is False
    assert buffer.append(3, 10**400) is False

    snapshot = {"1000": float("inf"), "1500": float("-inf"), "1800": float("nan"), "2000": 40}
    restored = HistoryBuffer.from_snapshot(snapshot)

    assert [(s.timestamp, s.value) for s in restored.samples()] == [(2000, 40.0)]


def test_out_of_range_timestamps_are_dropped() -> None:
    snapshot = {"-5": 10, "2000": 40, str(10**20): 50}

    buffer = HistoryBuffer.from_snapshot(snapshot)

    assert [sample.timestamp for sample in buffer.samples()] == [2000]
    assert buffer.labels(timezone(timedelta(hours=14))) == ["14:00"]
