"""
Tests for CircularBuffer and HistoryBuffer
"""
from datetime import datetime, timezone

import pytest

from core.models.circular_buffer import CircularBuffer, HistoryBuffer


class TestCircularBuffer:
    """Test CircularBuffer basic operations"""

    def test_append_and_get(self) -> None:
        """Test basic append and get operations"""
        buffer = CircularBuffer(capacity=5)

        buffer.append(10.0)
        buffer.append(20.0)
        buffer.append(30.0)

        assert buffer.size() == 3
        assert buffer.get(0) == 10.0
        assert buffer.get(2) == 30.0
        assert buffer.get(-1) == 30.0

    def test_circular_wrap_around(self) -> None:
        """Test that buffer wraps around and keeps chronological order"""
        buffer = CircularBuffer(capacity=3)

        for value in (1.0, 2.0, 3.0, 4.0, 5.0):
            buffer.append(value)

        assert buffer.size() == 3
        assert buffer.is_full()
        assert buffer.get_all() == [3.0, 4.0, 5.0]

    def test_out_of_range(self) -> None:
        """Test invalid index raises IndexError"""
        buffer = CircularBuffer(capacity=2)
        buffer.append(1.0)
        with pytest.raises(IndexError):
            buffer.get(1)

    def test_invalid_capacity(self) -> None:
        """Test non-positive capacity is rejected"""
        with pytest.raises(ValueError):
            CircularBuffer(capacity=0)

    def test_clear(self) -> None:
        """Test clearing the buffer"""
        buffer = CircularBuffer(capacity=5)
        buffer.append(1.0)
        buffer.append(2.0)

        buffer.clear()
        assert buffer.size() == 0
        assert buffer.get_all() == []


class TestHistoryBuffer:
    """Test HistoryBuffer eviction and ordering"""

    def test_default_capacity(self) -> None:
        assert HistoryBuffer().capacity == 10

    def test_never_exceeds_capacity(self) -> None:
        """Test buffer length stays bounded after many pushes"""
        buffer = HistoryBuffer()
        for i in range(100):
            buffer.push(float(i))
            assert len(buffer) <= 10
        assert len(buffer) == 10

    def test_oldest_evicted_first(self) -> None:
        """Push 11 values: the first is gone, the last 10 remain in order"""
        buffer = HistoryBuffer()
        for level in range(1, 12):
            buffer.push(float(level))

        assert buffer.snapshot() == [float(level) for level in range(2, 12)]

    def test_samples_carry_timestamps(self) -> None:
        """Test samples keep the level and the instant they were recorded"""
        buffer = HistoryBuffer(capacity=3)
        at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        buffer.push(42.0, recorded_at=at)
        buffer.push(43.0)

        samples = buffer.samples()
        assert samples[0].level == 42.0
        assert samples[0].recorded_at == at
        assert samples[1].recorded_at.tzinfo is not None
        assert buffer.latest().level == 43.0

    def test_empty_buffer(self) -> None:
        buffer = HistoryBuffer()
        assert buffer.snapshot() == []
        assert buffer.latest() is None
        assert not buffer.is_full()
