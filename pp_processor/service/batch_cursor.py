from __future__ import annotations

import abc
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TYPE_CHECKING

from pp_processor.database.calculation_progress import ScoreCalculation, TotalPPCalculation
from pp_processor.dependencies.database import transaction, with_db

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

if TYPE_CHECKING:
    from loguru import Logger


class ProgressStore(abc.ABC):
    @abc.abstractmethod
    async def load(self) -> int | None:
        raise NotImplementedError

    @abc.abstractmethod
    async def save(self, value: int) -> None:
        raise NotImplementedError


class ScoreCalculationProgress(ProgressStore):
    """One ``score_calculation`` row per named process."""

    def __init__(self, engine: AsyncEngine, process_id: int):
        self.engine = engine
        self.process_id = process_id

    async def load(self) -> int | None:
        async with with_db(self.engine) as session:
            row = await session.get(ScoreCalculation, self.process_id)
            return row.score_id if row is not None else None

    async def save(self, value: int) -> None:
        async with transaction(self.engine) as session:
            row = await session.get(ScoreCalculation, self.process_id)
            if row is None:
                session.add(ScoreCalculation(process_id=self.process_id, score_id=value))
            else:
                row.score_id = value


class TotalPPCalculationProgress(ProgressStore):
    """The single-row ``total_pp_calculation`` table."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def load(self) -> int | None:
        async with with_db(self.engine) as session:
            row = (await session.exec(select(TotalPPCalculation))).first()
            return row.id if row is not None else None

    async def save(self, value: int) -> None:
        async with transaction(self.engine) as session:
            result = await session.execute(update(TotalPPCalculation).values(id=value))
            if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
                session.add(TotalPPCalculation(id=value))


class BatchCursor:
    """Resumable position of a sweep over an ID range.

    The next ID is persisted before the current one is processed, so a crash
    resumes after the ID that was in flight rather than retrying it.
    """

    def __init__(self, progress: ProgressStore, start_id: int, end_id: int | None = None):
        self.progress = progress
        self.start_id = start_id
        self.end_id = end_id
        self._position: int | None = None

    async def open(self) -> int:
        position = await self.progress.load()
        if position is None:
            position = self.start_id
            await self.progress.save(position)
        self._position = position
        return position

    async def next(self) -> int | None:
        """The ID the sweep would process next, ``None`` once past the end bound."""
        if self._position is None:
            await self.open()
        assert self._position is not None
        if self.end_id is not None and self._position > self.end_id:
            return None
        return self._position

    async def advance(self, next_id: int) -> None:
        await self.progress.save(next_id)
        self._position = next_id

    async def sweep(self) -> AsyncIterator[int]:
        while (current := await self.next()) is not None:
            await self.advance(current + 1)
            yield current


async def run_batch(cursor: BatchCursor, process: Callable[[int], Awaitable[object]], logger: "Logger") -> int:
    """Sweep ``cursor``, containing failures of a single ID to that ID."""
    processed = 0
    async for current in cursor.sweep():
        try:
            await process(current)
        except Exception:
            logger.exception(f"Failed to process ID {current}")
        processed += 1
    return processed
