from ._base import (
    CalculateError,
    ConvertError,
    DifficultyError,
    MissingReplayDataError,
    PerformanceCalculator,
    PerformanceError,
)

__all__ = [
    "CalculateError",
    "ConvertError",
    "DifficultyError",
    "MissingReplayDataError",
    "PerformanceCalculator",
    "PerformanceError",
]
