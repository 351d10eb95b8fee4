"""
CircularBuffer for bounded, chronologically ordered sample storage.
HistoryBuffer wraps it to keep the most recent water level samples that
feed the trend engine.
"""
from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from core.models.reading import HistorySample

T = TypeVar("T")

# Number of recent samples kept for trend inference
DEFAULT_HISTORY_CAPACITY = 10


class CircularBuffer(Generic[T]):
    """
    Fixed-capacity ring of items.
    - O(1) insertion at the end
    - O(1) random access by logical index (0 = oldest)
    - Overwrites oldest when full
    """

    __slots__ = ('capacity', 'buffer', 'write_index', 'count')

    def __init__(self, capacity: int):
        """
        Initialize circular buffer.

        Args:
            capacity: Maximum number of items to store (must be positive)
        """
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.buffer: List[Optional[T]] = [None] * capacity
        self.write_index = 0  # Next position to write
        self.count = 0  # Number of valid entries (0 to capacity)

    def append(self, item: T) -> None:
        """Add an item, evicting the oldest one when full. O(1)."""
        self.buffer[self.write_index] = item
        self.write_index = (self.write_index + 1) % self.capacity
        if self.count < self.capacity:
            self.count += 1

    def get(self, index: int) -> T:
        """
        Get item at logical index (0 = oldest, count-1 = newest).
        Negative indices count from the newest entry.
        """
        if index < 0:
            index += self.count
        if index < 0 or index >= self.count:
            raise IndexError(f"Index {index} out of range [0, {self.count})")
        physical_index = (self.write_index - self.count + index) % self.capacity
        return self.buffer[physical_index]

    def get_all(self) -> List[T]:
        """Get all valid entries in chronological order."""
        start = self.write_index - self.count
        return [self.buffer[(start + i) % self.capacity] for i in range(self.count)]

    def is_full(self) -> bool:
        """Check if buffer is at capacity."""
        return self.count == self.capacity

    def size(self) -> int:
        """Get number of valid entries."""
        return self.count

    def clear(self) -> None:
        """Clear all entries."""
        self.buffer = [None] * self.capacity
        self.write_index = 0
        self.count = 0


class HistoryBuffer:
    """
    Recent water level samples, oldest first.

    Samples are appended and never mutated; pushing past capacity evicts
    the oldest sample.
    """

    __slots__ = ('_ring',)

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY):
        self._ring: CircularBuffer[HistorySample] = CircularBuffer(capacity)

    @property
    def capacity(self) -> int:
        return self._ring.capacity

    def push(self, level: float, recorded_at: Optional[datetime] = None) -> None:
        """Append a level sample stamped with recorded_at (defaults to now, UTC)."""
        if recorded_at is None:
            recorded_at = datetime.now(timezone.utc)
        self._ring.append(HistorySample(level=level, recorded_at=recorded_at))

    def snapshot(self) -> List[float]:
        """Recent levels, most recent last."""
        return [sample.level for sample in self._ring.get_all()]

    def samples(self) -> List[HistorySample]:
        return self._ring.get_all()

    def latest(self) -> Optional[HistorySample]:
        if self._ring.size() == 0:
            return None
        return self._ring.get(-1)

    def is_full(self) -> bool:
        return self._ring.is_full()

    def clear(self) -> None:
        self._ring.clear()

    def __len__(self) -> int:
        return self._ring.size()
