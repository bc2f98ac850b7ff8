from typing import Any

from pp_processor.models.performance import CalculationParameters, DifficultyAttributes, PerformanceAttributes

from ._base import (
    CalculateError,
    ConvertError,
    DifficultyError,
    PerformanceCalculator as BasePerformanceCalculator,
    PerformanceError,
)

try:
    import rosu_pp_py as rosu
except ImportError:
    raise ImportError(
        "rosu-pp-py is not installed. "
        "Please install it.\n"
        "   pip install 'pp-processor[rosu]'"
    )


class RosuPerformanceCalculator(BasePerformanceCalculator):
    @staticmethod
    def _statistics_kwargs(params: CalculationParameters) -> dict[str, Any]:
        mods = params.mods
        kwargs: dict[str, Any] = {
            "mods": mods.to_api_mods(),
            "clock_rate": mods.clock_rate,
        }
        # Forced statistics are used as-is, mods do not adjust them.
        for stat, value in (("ar", mods.force_ar), ("cs", mods.force_cs), ("od", mods.force_od), ("hp", mods.force_hp)):
            if value is not None:
                kwargs[stat] = value
                kwargs[f"{stat}_with_mods"] = True
        return kwargs

    async def calculate_difficulty(self, beatmap_raw: str, params: CalculationParameters) -> DifficultyAttributes:
        try:
            map = rosu.Beatmap(content=beatmap_raw)
            diff_calculator = rosu.Difficulty(**self._statistics_kwargs(params))
            diff = await self.pool.submit(diff_calculator.calculate, map)
            return DifficultyAttributes(
                star_rating=diff.stars,
                max_combo=diff.max_combo,
                aim_difficulty=diff.aim or 0,
                speed_difficulty=diff.speed or 0,
                flashlight_difficulty=diff.flashlight or 0,
                slider_factor=diff.slider_factor or 0,
                approach_rate=diff.ar,
                overall_difficulty=diff.od,
            )
        except rosu.ConvertError as e:  # pyright: ignore[reportAttributeAccessIssue]
            raise ConvertError(f"Beatmap convert error: {e}")
        except rosu.ParseError as e:  # pyright: ignore[reportAttributeAccessIssue]
            raise DifficultyError(f"Beatmap parse error: {e}")
        except Exception as e:
            raise CalculateError(f"Unknown error: {e}") from e

    async def calculate_performance(
        self, beatmap_raw: str, difficulty: DifficultyAttributes, params: CalculationParameters
    ) -> PerformanceAttributes:
        try:
            map = rosu.Beatmap(content=beatmap_raw)
            accuracy = params.accuracy
            perf = rosu.Performance(
                lazer=False,
                combo=params.combo if params.combo is not None else difficulty.max_combo,
                n300=accuracy.n300,
                n100=accuracy.n100,
                n50=accuracy.n50,
                misses=accuracy.nmiss,
                **self._statistics_kwargs(params),
            )
            attr = await self.pool.submit(perf.calculate, map)
            return PerformanceAttributes(
                pp=attr.pp,
                aim=attr.pp_aim or 0,
                speed=attr.pp_speed or 0,
                accuracy=attr.pp_accuracy or 0,
                flashlight=attr.pp_flashlight or 0,
                effective_miss_count=attr.effective_miss_count or 0,
            )
        except rosu.ParseError as e:  # pyright: ignore[reportAttributeAccessIssue]
            raise PerformanceError(f"Beatmap parse error: {e}")
        except Exception as e:
            raise CalculateError(f"Unknown error: {e}") from e


PerformanceCalculator = RosuPerformanceCalculator
