from __future__ import annotations

from .batch_cursor import BatchCursor, ScoreCalculationProgress, TotalPPCalculationProgress, run_batch
from .beatmap_service import BeatmapService
from .best_play_ranker import BestPlayRanker, calculate_total_pp, calculate_weighted_accuracy

__all__ = [
    "BatchCursor",
    "BeatmapService",
    "BestPlayRanker",
    "ScoreCalculationProgress",
    "TotalPPCalculationProgress",
    "calculate_total_pp",
    "calculate_weighted_accuracy",
    "run_batch",
]
