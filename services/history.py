"""Capacity-bounded soil moisture history."""

from __future__ import annotations

import logging
import math
from collections import deque
from datetime import datetime, tzinfo
from typing import Any, Deque, List, Mapping, Optional

from models.records import Sample

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 15
# End of 9999-12-30 UTC: one day short of datetime.max so any UTC offset still renders.
MAX_TIMESTAMP_MS = 253_402_214_399_999


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _as_timestamp(key: Any) -> Optional[int]:
    try:
        stamp = int(str(key).strip())
    except ValueError:
        return None
    return stamp if 0 <= stamp <= MAX_TIMESTAMP_MS else None


class HistoryBuffer:
    """Most recent ``capacity`` samples, oldest first."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be positive.")
        self.capacity = capacity
        self._samples: Deque[Sample] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, timestamp: int, value: Any) -> bool:
        """Insert at the tail; returns ``False`` when the value is not numeric."""
        number = _as_number(value)
        if number is None:
            logger.debug("Dropping non-numeric history sample", extra={"invalid_value": value})
            return False
        self._samples.append(Sample(timestamp=timestamp, value=number))
        return True

    @classmethod
    def from_snapshot(
        cls, snapshot: Optional[Mapping[Any, Any]], capacity: int = DEFAULT_CAPACITY
    ) -> "HistoryBuffer":
        """Rebuild from a full ``timestamp -> value`` mapping."""
        buffer = cls(capacity)
        if not snapshot:
            return buffer

        samples: List[Sample] = []
        for key, value in snapshot.items():
            timestamp = _as_timestamp(key)
            number = _as_number(value)
            if timestamp is None or number is None:
                logger.debug(
                    "Dropping malformed history entry",
                    extra={"field": str(key), "invalid_value": value},
                )
                continue
            samples.append(Sample(timestamp=timestamp, value=number))

        samples.sort(key=lambda sample: sample.timestamp)
        buffer._samples.extend(samples[-capacity:])
        return buffer

    def samples(self) -> List[Sample]:
        return list(self._samples)

    def latest(self) -> Optional[Sample]:
        return self._samples[-1] if self._samples else None

    def labels(self, tz: tzinfo) -> List[str]:
        return [format_time_of_day(sample.timestamp, tz) for sample in self._samples]


def format_time_of_day(timestamp_ms: int, tz: tzinfo) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz).strftime("%H:%M")
