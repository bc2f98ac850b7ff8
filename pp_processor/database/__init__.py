from .beatmap import Beatmap
from .best_score import BestScore
from .calculation_progress import ScoreCalculation, TotalPPCalculation
from .difficulty_attributes import DifficultyAttributesCache
from .pp_profile import PlayerPPProfile
from .score import Score, ScoreBase
from .user import User

OFFICIAL_TABLES = [
    Score.__table__,  # pyright: ignore[reportAttributeAccessIssue]
    BestScore.__table__,  # pyright: ignore[reportAttributeAccessIssue]
    User.__table__,  # pyright: ignore[reportAttributeAccessIssue]
]
PROCESSOR_TABLES = [
    ScoreCalculation.__table__,  # pyright: ignore[reportAttributeAccessIssue]
    TotalPPCalculation.__table__,  # pyright: ignore[reportAttributeAccessIssue]
    Beatmap.__table__,  # pyright: ignore[reportAttributeAccessIssue]
    DifficultyAttributesCache.__table__,  # pyright: ignore[reportAttributeAccessIssue]
    PlayerPPProfile.__table__,  # pyright: ignore[reportAttributeAccessIssue]
]

__all__ = [
    "OFFICIAL_TABLES",
    "PROCESSOR_TABLES",
    "Beatmap",
    "BestScore",
    "DifficultyAttributesCache",
    "PlayerPPProfile",
    "Score",
    "ScoreBase",
    "ScoreCalculation",
    "TotalPPCalculation",
    "User",
]
