"""Port for bounded fan-out over provider calls."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")

TaskFactory = Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Settled result of one task: either a value or the error it raised."""

    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TaskGroupPort(Protocol):
    """Concurrency strategies used by the aggregation use cases."""

    async def fan_out_collect_all(
        self, factories: Sequence[TaskFactory[T]]
    ) -> list[Outcome[T]]:
        """Run all tasks, wait for every one to settle."""
        ...

    async def race_to_first_complete(
        self,
        factories: Sequence[TaskFactory[T]],
        accept: Callable[[T], bool],
        *,
        window: int | None = None,
    ) -> tuple[int | None, list[Outcome[T] | None]]:
        """Run tasks in order until one result is accepted.

        Returns the winning index (or None) and the outcomes; tasks that
        never started or were cancelled have ``None`` outcomes.
        """
        ...
