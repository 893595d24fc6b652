import math
import random
import threading

from app.services.simulation import (
    FAULT_TYPES,
    LEAK_CHUNK_BYTES,
    LeakStore,
    burn_cpu,
    roll_fault,
    slow_delay,
    uptime_seconds,
)


class _FixedRandom:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value

    def choice(self, seq):
        return seq[-1]


def test_fault_rate_is_close_to_forty_percent() -> None:
    rng = random.Random(1234)
    outcomes = [roll_fault(rng) for _ in range(1000)]
    errors = [o for o in outcomes if o is not None]

    rate = len(errors) / len(outcomes)
    assert 0.35 <= rate <= 0.45
    assert set(errors) <= set(FAULT_TYPES)
    # Every type shows up over 1000 draws.
    assert set(errors) == set(FAULT_TYPES)


def test_fault_threshold_is_strict() -> None:
    assert roll_fault(_FixedRandom(0.39999)) == "service_unavailable"
    assert roll_fault(_FixedRandom(0.4)) is None


def test_slow_delay_bounds() -> None:
    assert slow_delay(_FixedRandom(0.0)) == 2.0
    assert slow_delay(_FixedRandom(0.999999)) < 5.0
    rng = random.Random(7)
    assert all(2.0 <= slow_delay(rng) < 5.0 for _ in range(200))


def test_burn_cpu_sums_square_roots() -> None:
    assert math.isclose(burn_cpu(5), sum(math.sqrt(i) for i in range(5)))
    assert burn_cpu(0) == 0.0


def test_uptime_is_monotonic() -> None:
    first = uptime_seconds()
    second = uptime_seconds()
    assert 0 <= first <= second


def test_leak_store_never_loses_appends_under_threads() -> None:
    store = LeakStore()

    def worker() -> None:
        for _ in range(5):
            store.leak()

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 20
    assert store.retained_bytes == 20 * LEAK_CHUNK_BYTES
