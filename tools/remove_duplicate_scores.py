"""Remove duplicate scores of the same player on the same beatmap, keeping the highest one."""

from __future__ import annotations

import asyncio
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pp_processor.config import settings
from pp_processor.database import PROCESSOR_TABLES
from pp_processor.dependencies.database import check_connection, create_engine, create_tables
from pp_processor.log import task_logger
from pp_processor.service.batch_cursor import BatchCursor, ScoreCalculationProgress, run_batch
from pp_processor.service.duplicate_scores import DuplicateScoreRemover
from pp_processor.storage.replay import ReplayBlobStore

logger = task_logger("RemoveDuplicateScores")

PROCESS_ID = 3
START_ID = 1
END_ID: int | None = None


async def main() -> int:
    official_engine = create_engine(settings.official_database_url)
    processor_engine = create_engine(settings.processor_database_url)
    try:
        await check_connection(official_engine)
        await check_connection(processor_engine)
        await create_tables(processor_engine, PROCESSOR_TABLES)
    except Exception:
        logger.exception("Failed to connect to the databases")
        await official_engine.dispose()
        await processor_engine.dispose()
        return 1

    replays = ReplayBlobStore.from_settings(settings)
    try:
        remover = DuplicateScoreRemover(official_engine, replays)
        cursor = BatchCursor(ScoreCalculationProgress(processor_engine, PROCESS_ID), START_ID, END_ID)
        logger.info(f"Process {PROCESS_ID} starting from score ID {await cursor.open()}")
        processed = await run_batch(cursor, remover.remove_duplicates, logger)
        logger.success(f"Process {PROCESS_ID} finished, {processed} score(s) processed")
    finally:
        await replays.close()
        await official_engine.dispose()
        await processor_engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
