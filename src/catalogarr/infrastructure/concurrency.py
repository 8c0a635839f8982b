"""Bounded task group for provider fan-out.

One primitive, two strategies:

- ``fan_out_collect_all``: run every task under a semaphore with a per-task
  timeout and wait until all of them settle.  A failing task never cancels
  its siblings; its exception is captured in the ``Outcome``.
- ``race_to_first_complete``: a sliding window of at most ``window`` tasks
  started in order.  As soon as an accepted result arrives, in-flight tasks
  are cancelled and factories that never started are never invoked.

No automatic retries.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import TypeVar

import structlog

from catalogarr.domain.ports.concurrency import Outcome, TaskFactory

log = structlog.get_logger(__name__)

T = TypeVar("T")


class BoundedTaskGroup:
    """Implements ``TaskGroupPort`` on top of asyncio.

    Args:
        limit: Max tasks in flight for ``fan_out_collect_all`` and the
            default window for ``race_to_first_complete``.
        timeout: Per-task timeout in seconds (``None`` = unbounded).
    """

    def __init__(self, limit: int = 8, timeout: float | None = 10.0) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self._limit = limit
        self._timeout = timeout

    @property
    def limit(self) -> int:
        return self._limit

    async def _settle(self, factory: TaskFactory[T]) -> Outcome[T]:
        try:
            value = await asyncio.wait_for(factory(), timeout=self._timeout)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            return Outcome(error=exc)
        return Outcome(value=value)

    async def fan_out_collect_all(
        self, factories: Sequence[TaskFactory[T]]
    ) -> list[Outcome[T]]:
        semaphore = asyncio.Semaphore(self._limit)

        async def _run_one(factory: TaskFactory[T]) -> Outcome[T]:
            async with semaphore:
                return await self._settle(factory)

        outcomes = await asyncio.gather(*(_run_one(f) for f in factories))
        failed = sum(1 for o in outcomes if not o.ok)
        if failed:
            log.debug("fan_out_partial_failure", total=len(outcomes), failed=failed)
        return list(outcomes)

    async def race_to_first_complete(
        self,
        factories: Sequence[TaskFactory[T]],
        accept: Callable[[T], bool],
        *,
        window: int | None = None,
    ) -> tuple[int | None, list[Outcome[T] | None]]:
        size = max(1, window or self._limit)
        outcomes: list[Outcome[T] | None] = [None] * len(factories)
        pending: dict[asyncio.Task[Outcome[T]], int] = {}
        next_index = 0
        winner: int | None = None

        try:
            while next_index < len(factories) or pending:
                while next_index < len(factories) and len(pending) < size:
                    task = asyncio.create_task(self._settle(factories[next_index]))
                    pending[task] = next_index
                    next_index += 1

                done, _ = await asyncio.wait(
                    pending.keys(), return_when=asyncio.FIRST_COMPLETED
                )
                for task in sorted(done, key=lambda t: pending[t]):
                    index = pending.pop(task)
                    outcome = task.result()
                    outcomes[index] = outcome
                    if (
                        winner is None
                        and outcome.ok
                        and accept(outcome.value)  # type: ignore[arg-type]
                    ):
                        winner = index
                if winner is not None:
                    break
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if winner is not None:
            log.debug(
                "race_settled",
                winner=winner,
                started=next_index,
                total=len(factories),
            )
        return winner, outcomes
