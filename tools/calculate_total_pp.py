"""Recompute every player's total pp and accuracy from their best scores."""

from __future__ import annotations

import asyncio
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pp_processor.config import settings
from pp_processor.database import PROCESSOR_TABLES
from pp_processor.dependencies.database import check_connection, create_engine, create_tables
from pp_processor.log import task_logger
from pp_processor.service.batch_cursor import BatchCursor, TotalPPCalculationProgress, run_batch
from pp_processor.service.total_pp import TotalPPService

logger = task_logger("CalculateTotalPP")

START_ID = 1
END_ID: int | None = 500000


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

    try:
        service = TotalPPService(official_engine)
        cursor = BatchCursor(TotalPPCalculationProgress(processor_engine), START_ID, END_ID)
        logger.info(f"Starting from user ID {await cursor.open()}")
        processed = await run_batch(cursor, service.recalculate, logger)
        logger.success(f"Finished, {processed} user(s) processed")
    finally:
        await official_engine.dispose()
        await processor_engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
