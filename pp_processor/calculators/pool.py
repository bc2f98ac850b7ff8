import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
import functools
import os
from typing import ParamSpec, TypeVar

P = ParamSpec("P")
T = TypeVar("T")


class CalculationPool:
    """Bounded worker pool for CPU-heavy difficulty and performance calculation."""

    def __init__(self, max_workers: int | None = None):
        self.max_workers = max_workers or os.cpu_count() or 1
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="pp-calculation")

    def submit(self, func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> "asyncio.Future[T]":
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(self._executor, functools.partial(func, *args, **kwargs))

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
