from datetime import datetime
import math

from pp_processor.models.mods import DroidMods
from pp_processor.models.score import Rank

from pydantic import BaseModel, Field


class Accuracy(BaseModel):
    n300: int = 0
    n100: int = 0
    n50: int = 0
    nmiss: int = 0

    @property
    def total_hits(self) -> int:
        return self.n300 + self.n100 + self.n50 + self.nmiss

    def value(self) -> float:
        """Accuracy as a fraction, NaN when nothing was hit at all."""
        total = self.total_hits
        if total == 0:
            return math.nan
        return (self.n300 * 300 + self.n100 * 100 + self.n50 * 50) / (total * 300)

    def equals(self, other: "Accuracy") -> bool:
        return (
            self.n300 == other.n300
            and self.n100 == other.n100
            and self.n50 == other.n50
            and self.nmiss == other.nmiss
        )


class SliderCheesePenalty(BaseModel):
    aim_penalty: float = 1.0
    flashlight_penalty: float = 1.0
    visual_penalty: float = 1.0

    @property
    def is_penalized(self) -> bool:
        return self.aim_penalty < 1 or self.flashlight_penalty < 1 or self.visual_penalty < 1


class ReplayData(BaseModel):
    """Decoded replay, as produced by a ``ReplayAnalyzer``.

    Fields beyond ``hash`` and ``accuracy`` are only meaningful when the replay
    version carries them, see the ``is_replay_v*`` helpers.

    Penalties are filled in by analyzers that check for three-finger tapping and
    slider cheesing. ``tap_penalty`` divides the speed value, the slider-cheese
    penalties scale the skill values they name.
    """

    version: int
    hash: str
    accuracy: Accuracy
    score: int = 0
    max_combo: int = 0
    hit300k: int = 0
    hit100k: int = 0
    rank: Rank | None = None
    converted_mods: str = ""
    speed_multiplier: float = 1.0
    force_ar: float | None = None
    force_od: float | None = None
    force_cs: float | None = None
    force_hp: float | None = None
    time: datetime | None = None
    tap_penalty: float = 1.0
    slider_cheese_penalty: SliderCheesePenalty = Field(default_factory=SliderCheesePenalty)

    def is_replay_v3(self) -> bool:
        return self.version >= 3

    def is_replay_v4(self) -> bool:
        return self.version >= 4

    def is_replay_v5(self) -> bool:
        return self.version >= 5

    @property
    def mods(self) -> DroidMods:
        return DroidMods(
            mods=self.converted_mods,
            speed_multiplier=self.speed_multiplier,
            force_ar=self.force_ar,
            force_od=self.force_od,
            force_cs=self.force_cs,
            force_hp=self.force_hp,
        )
