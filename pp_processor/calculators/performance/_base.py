import abc

from pp_processor.calculators.pool import CalculationPool
from pp_processor.models.performance import CalculationParameters, DifficultyAttributes, PerformanceAttributes


class CalculateError(Exception):
    """An error occurred during performance calculation."""


class DifficultyError(CalculateError):
    """The difficulty could not be calculated."""


class ConvertError(DifficultyError):
    """A beatmap cannot be converted with the given mods."""


class PerformanceError(CalculateError):
    """The performance could not be calculated."""


class MissingReplayDataError(CalculateError):
    """Replay-based calculation was requested without decoded replay data."""


class PerformanceCalculator(abc.ABC):
    def __init__(self, pool: CalculationPool | None = None):
        self.pool = pool or CalculationPool(1)

    @abc.abstractmethod
    async def calculate_difficulty(self, beatmap_raw: str, params: CalculationParameters) -> DifficultyAttributes:
        raise NotImplementedError

    @abc.abstractmethod
    async def calculate_performance(
        self, beatmap_raw: str, difficulty: DifficultyAttributes, params: CalculationParameters
    ) -> PerformanceAttributes:
        """``difficulty`` may come from the attributes cache rather than this calculator."""
        raise NotImplementedError

    async def init(self) -> None:
        """Initialize the calculator (if needed)."""
        pass
