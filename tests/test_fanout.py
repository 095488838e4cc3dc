from __future__ import annotations

import threading
import time

import pytest

from treasury_reports.fanout import fan_out


def test_results_keep_input_order():
    def slow_square(n: int) -> int:
        time.sleep(0.01 * (5 - n))
        return n * n

    assert fan_out(range(5), slow_square, concurrency=3) == [0, 1, 4, 9, 16]


def test_concurrency_is_bounded():
    lock = threading.Lock()
    active = 0
    peak = 0

    def work(_: int) -> None:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1

    fan_out(range(10), work, concurrency=2)
    assert peak <= 2


def test_first_failure_is_reraised():
    def boom(n: int) -> int:
        if n == 3:
            raise LookupError("month 3")
        return n

    with pytest.raises(LookupError, match="month 3"):
        fan_out(range(6), boom, concurrency=2)


def test_sequential_and_empty():
    assert fan_out([], lambda x: x, concurrency=4) == []
    assert fan_out([1, 2], lambda x: -x, concurrency=1) == [-1, -2]


@pytest.mark.parametrize("bad", [0, -1, True])
def test_invalid_concurrency(bad):
    with pytest.raises(ValueError):
        fan_out([1], lambda x: x, concurrency=bad)
