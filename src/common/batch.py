"""Bounded-concurrency batch execution with per-item isolation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_CONCURRENCY = 4


@dataclass
class BatchResult(Generic[R]):
    """Outcome of one batch run.

    `results` holds the return values of the items that succeeded, `errors`
    maps the key of each failed item to a short description of its error.
    """

    succeeded: int = 0
    failed: int = 0
    results: list[R] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errors": dict(self.errors),
        }


async def run_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    concurrency: int = DEFAULT_CONCURRENCY,
    key: Callable[[T], Any] | None = None,
) -> BatchResult[R]:
    """Run `worker` over `items` with at most `concurrency` calls in flight.

    A new item starts as soon as a slot frees. An exception raised for one
    item is recorded against that item and never cancels the others.
    Cancellation and other BaseExceptions still propagate.

    Args:
        items: Items to process.
        worker: Coroutine function called once per item.
        concurrency: Maximum number of simultaneous worker calls.
        key: Maps an item to the identifier used in `errors` (default: index).

    Returns:
        BatchResult with per-item success/failure counts.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    items = list(items)
    semaphore = asyncio.Semaphore(concurrency)

    async def _run(item: T) -> R:
        async with semaphore:
            return await worker(item)

    outcomes = await asyncio.gather(*(_run(item) for item in items), return_exceptions=True)

    result: BatchResult[R] = BatchResult()
    for index, (item, outcome) in enumerate(zip(items, outcomes)):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            item_key = str(key(item)) if key else str(index)
            result.failed += 1
            result.errors[item_key] = f"{type(outcome).__name__}: {outcome}"
            logger.error("Item %s failed: %s", item_key, outcome, exc_info=outcome)
            continue
        result.succeeded += 1
        result.results.append(outcome)

    logger.info(
        "Batch finished: %d succeeded, %d failed (concurrency=%d)",
        result.succeeded,
        result.failed,
        concurrency,
    )
    return result
