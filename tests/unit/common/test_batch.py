"""Tests for common.batch module."""

import asyncio

import pytest

from common.batch import BatchResult, run_bounded


class TestRunBounded:
    def test_collects_results_in_order(self) -> None:
        async def double(value: int) -> int:
            return value * 2

        result = asyncio.run(run_bounded([1, 2, 3], double, concurrency=2))

        assert result.succeeded == 3
        assert result.failed == 0
        assert result.results == [2, 4, 6]

    def test_failure_is_isolated(self) -> None:
        async def worker(value: int) -> int:
            if value == 2:
                raise ValueError("bad item")
            return value

        result = asyncio.run(run_bounded([1, 2, 3], worker, key=lambda v: f"item-{v}"))

        assert result.succeeded == 2
        assert result.failed == 1
        assert result.results == [1, 3]
        assert result.errors == {"item-2": "ValueError: bad item"}

    def test_errors_keyed_by_index_without_key(self) -> None:
        async def worker(value: int) -> int:
            raise RuntimeError("boom")

        result = asyncio.run(run_bounded(["a"], worker))

        assert result.errors == {"0": "RuntimeError: boom"}

    def test_never_exceeds_concurrency(self) -> None:
        active = 0
        peak = 0

        async def worker(value: int) -> int:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return value

        result = asyncio.run(run_bounded(range(10), worker, concurrency=3))

        assert result.succeeded == 10
        assert peak <= 3

    def test_rejects_zero_concurrency(self) -> None:
        async def worker(value: int) -> int:
            return value

        with pytest.raises(ValueError):
            asyncio.run(run_bounded([1], worker, concurrency=0))

    def test_empty_input(self) -> None:
        async def worker(value: int) -> int:
            return value

        result = asyncio.run(run_bounded([], worker))

        assert result.total == 0


class TestBatchResult:
    def test_as_dict(self) -> None:
        result = BatchResult(succeeded=2, failed=1, results=[1, 2], errors={"3": "ValueError: x"})
        assert result.as_dict() == {
            "total": 3,
            "succeeded": 2,
            "failed": 1,
            "errors": {"3": "ValueError: x"},
        }
