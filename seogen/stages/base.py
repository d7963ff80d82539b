"""Stage contract shared by both pipelines."""

from __future__ import annotations

import concurrent.futures
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class StageTimeoutError(TimeoutError):
    """A stage call exceeded the configured time limit."""


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of one stage call. ``data is None`` means the stage failed.

    Cost is reported on failure too and always counts toward the run total.
    """

    data: T | None
    cost: Decimal = Decimal("0")

    @classmethod
    def success(cls, data: T, cost: Decimal | float | str = "0") -> "StageResult[T]":
        return cls(data=data, cost=Decimal(str(cost)))

    @classmethod
    def failure(cls, cost: Decimal | float | str = "0") -> "StageResult[T]":
        return cls(data=None, cost=Decimal(str(cost)))

    @property
    def ok(self) -> bool:
        return self.data is not None


def call_stage(
    fn: Callable[..., T],
    *args: Any,
    timeout: float | None = None,
    name: str | None = None,
    **kwargs: Any,
) -> T:
    """Invoke a stage, optionally bounded by ``timeout`` seconds.

    The stage keeps running on its worker thread after a timeout; only the
    pipeline stops waiting for it.
    """
    if timeout is None:
        return fn(*args, **kwargs)
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            label = name or getattr(fn, "__name__", type(fn).__name__)
            raise StageTimeoutError(f"Stage '{label}' timed out after {timeout:g}s") from None
    finally:
        executor.shutdown(wait=False)
