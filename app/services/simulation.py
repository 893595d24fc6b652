from __future__ import annotations

import math
import random
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

FAULT_PROBABILITY = 0.4
FAULT_TYPES = ("timeout", "invalid_data", "service_unavailable")

LEAK_CHUNK_BYTES = 1024 * 1024
CPU_ITERATIONS = 10_000_000

SLOW_DELAY_MIN = 2.0
SLOW_DELAY_SPAN = 3.0

_PROCESS_STARTED = time.monotonic()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def uptime_seconds() -> float:
    return time.monotonic() - _PROCESS_STARTED


def slow_delay(rng: random.Random | None = None) -> float:
    """Random delay in [2.0, 5.0) seconds."""

    rng = rng or random
    return SLOW_DELAY_MIN + rng.random() * SLOW_DELAY_SPAN


def roll_fault(rng: random.Random | None = None) -> str | None:
    """Return an error type for a simulated failure, or None on success."""

    rng = rng or random
    if rng.random() < FAULT_PROBABILITY:
        return rng.choice(FAULT_TYPES)
    return None


def burn_cpu(iterations: int = CPU_ITERATIONS) -> float:
    counter = 0.0
    for i in range(iterations):
        counter += math.sqrt(i)
    return counter


@dataclass
class LeakedObject:
    timestamp: datetime
    data: bytearray


@dataclass
class LeakStore:
    """Process-wide list of 1 MiB buffers. Entries are never removed."""

    _items: list[LeakedObject] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def leak(self) -> int:
        obj = LeakedObject(timestamp=utcnow(), data=bytearray(LEAK_CHUNK_BYTES))
        with self._lock:
            self._items.append(obj)
            return len(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def retained_bytes(self) -> int:
        with self._lock:
            return sum(len(item.data) for item in self._items)


_LEAKS: LeakStore | None = None


def get_leak_store() -> LeakStore:
    global _LEAKS
    if _LEAKS is None:
        _LEAKS = LeakStore()
    return _LEAKS


def reset_leak_store() -> None:
    """Start over with an empty store (used by tests)."""

    global _LEAKS
    _LEAKS = LeakStore()
