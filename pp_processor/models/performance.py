from typing import TYPE_CHECKING

from pp_processor.models.mods import DroidMods, construct_mod_descriptor, parse_mod_descriptor
from pp_processor.models.replay import Accuracy, ReplayData, SliderCheesePenalty

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from pp_processor.database.score import ScoreBase


PP_NORM_EXPONENT = 1.1


def _combine(*values: float) -> float:
    return sum(v**PP_NORM_EXPONENT for v in values) ** (1 / PP_NORM_EXPONENT)


class PerformanceAttributes(BaseModel):
    pp: float
    aim: float = 0
    speed: float = 0
    accuracy: float = 0
    flashlight: float = 0
    effective_miss_count: float = 0

    def penalized(self, params: "CalculationParameters") -> "PerformanceAttributes":
        """Rescale the total after applying the tap and slider-cheese penalties to its skill values.

        The total is recombined with the same power-mean norm that produced it, keeping
        whatever global multiplier the calculator applied on top.
        """
        if not params.is_penalized:
            return self
        base = _combine(self.aim, self.speed, self.accuracy, self.flashlight)
        if base <= 0:
            return self

        cheese = params.slider_cheese_penalty
        aim = self.aim * cheese.aim_penalty
        speed = self.speed / params.tap_penalty
        flashlight = self.flashlight * cheese.flashlight_penalty
        pp = _combine(aim, speed, self.accuracy, flashlight) * self.pp / base
        return self.model_copy(update={"pp": pp, "aim": aim, "speed": speed, "flashlight": flashlight})


class DifficultyAttributes(BaseModel):
    star_rating: float
    max_combo: int
    aim_difficulty: float = 0
    speed_difficulty: float = 0
    flashlight_difficulty: float = 0
    slider_factor: float = 0
    approach_rate: float | None = None
    overall_difficulty: float | None = None


class CalculationParameters(BaseModel):
    accuracy: Accuracy
    combo: int | None = None
    mods: DroidMods = Field(default_factory=DroidMods)
    tap_penalty: float = 1.0
    slider_cheese_penalty: SliderCheesePenalty = Field(default_factory=SliderCheesePenalty)

    @classmethod
    def from_score(cls, score: "ScoreBase") -> "CalculationParameters":
        return cls(
            accuracy=Accuracy(n300=score.perfect, n100=score.good, n50=score.bad, nmiss=score.miss),
            combo=score.combo,
            mods=parse_mod_descriptor(score.mods),
        )

    @classmethod
    def from_replay(cls, data: ReplayData) -> "CalculationParameters":
        return cls(
            accuracy=data.accuracy.model_copy(),
            combo=data.max_combo if data.is_replay_v3() else None,
            mods=data.mods,
            tap_penalty=data.tap_penalty,
            slider_cheese_penalty=data.slider_cheese_penalty.model_copy(),
        )

    def with_penalties(self, data: ReplayData) -> "CalculationParameters":
        return self.model_copy(
            update={"tap_penalty": data.tap_penalty, "slider_cheese_penalty": data.slider_cheese_penalty.model_copy()}
        )

    @property
    def is_penalized(self) -> bool:
        return self.tap_penalty > 1 or self.slider_cheese_penalty.is_penalized

    @property
    def mods_key(self) -> str:
        return construct_mod_descriptor(self.mods)

    def apply_beatmap(self, object_count: int) -> None:
        # 未判定的物件计为 miss
        remaining = object_count - self.accuracy.total_hits
        if remaining > 0:
            self.accuracy.nmiss += remaining


class PerformanceResult(BaseModel):
    params: CalculationParameters
    difficulty: DifficultyAttributes
    performance: PerformanceAttributes

    @property
    def total(self) -> float:
        return self.performance.pp
