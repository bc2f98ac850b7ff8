"""Recalculate score and best score pp from the stored rows, damped by their pp multiplier."""

from __future__ import annotations

import asyncio
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pp_processor.config import settings
from pp_processor.dependencies.context import connect
from pp_processor.log import task_logger
from pp_processor.service.batch_cursor import BatchCursor, ScoreCalculationProgress, run_batch
from pp_processor.service.score_pp import ScorePPService

logger = task_logger("CalculateScorePP")

PROCESS_ID = 1
START_ID = 1
END_ID: int | None = None


async def main() -> int:
    try:
        ctx = await connect(settings, workers=1, require_analyzer=False)
    except Exception:
        logger.exception("Failed to initialize")
        return 1

    try:
        service = ScorePPService.from_context(ctx)
        cursor = BatchCursor(ScoreCalculationProgress(ctx.processor_engine, PROCESS_ID), START_ID, END_ID)
        logger.info(f"Process {PROCESS_ID} starting from score ID {await cursor.open()}")
        processed = await run_batch(cursor, service.recalculate, logger)
        logger.success(f"Process {PROCESS_ID} finished, {processed} score(s) processed")
    finally:
        await ctx.close()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
