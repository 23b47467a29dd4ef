"""Bounded-concurrency, settle-all task runner.

Guarantees
----------
* At most ``concurrency`` tasks are in flight at any time.
* Tasks are admitted strictly in the order supplied.
* The call returns only after every task has settled; one failing task
  never cancels the others.
* Results come back in input order regardless of completion order.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SettledTask(Generic[T]):
    """Outcome of one task: either ``value`` or ``error`` is meaningful."""

    index: int
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_bounded(
    tasks: Sequence[Callable[[], Awaitable[T]]],
    concurrency: int,
    *,
    on_settled: Callable[[SettledTask[T]], None] | None = None,
) -> list[SettledTask[T]]:
    """Run deferred *tasks* with at most *concurrency* in flight.

    Parameters
    ----------
    tasks:
        Zero-argument callables returning awaitables.  Nothing runs
        until a worker picks the task up.
    concurrency:
        Maximum number of tasks awaited at once (``>= 1``).
    on_settled:
        Invoked synchronously after each task settles.

    Raises
    ------
    ValueError
        If *concurrency* is lower than 1.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    results: list[SettledTask[T] | None] = [None] * len(tasks)
    pending = iter(enumerate(tasks))

    async def worker() -> None:
        # Workers share one iterator, so admission follows input order.
        for index, task in pending:
            try:
                outcome: SettledTask[T] = SettledTask(index=index, value=await task())
            except Exception as exc:  # noqa: BLE001
                outcome = SettledTask(index=index, error=exc)
            results[index] = outcome
            if on_settled is not None:
                on_settled(outcome)

    workers = min(concurrency, len(tasks))
    await asyncio.gather(*(worker() for _ in range(workers)))
    return [result for result in results if result is not None]
