"""Bounded fan-out of independent provider calls over a thread pool.

``fan_out`` runs ``fn`` over ``items`` with at most ``concurrency`` calls in
flight and returns results in input order. The first failure cancels work that
has not started yet and is re-raised unchanged, so callers never see a partial
result set (a month series with a silent gap, for instance).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


def fan_out(
    items: Iterable[InT],
    fn: Callable[[InT], OutT],
    *,
    concurrency: int,
) -> list[OutT]:
    if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    work = list(items)
    if not work:
        return []
    if concurrency == 1 or len(work) == 1:
        return [fn(item) for item in work]

    with ThreadPoolExecutor(max_workers=min(concurrency, len(work))) as pool:
        futures: list[Future[OutT]] = [pool.submit(fn, item) for item in work]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        failed = next((f for f in futures if f in done and f.exception() is not None), None)
        if failed is not None:
            for f in pending:
                f.cancel()
            raise failed.exception()  # type: ignore[misc]

    return [f.result() for f in futures]


__all__ = ["fan_out"]
