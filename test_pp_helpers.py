"""PP 计算的纯函数部分"""

from conftest import make_beatmap, make_replay, make_score
from pp_processor.calculator import dampen_pp
from pp_processor.models.performance import CalculationParameters, PerformanceAttributes
from pp_processor.models.replay import SliderCheesePenalty
from pp_processor.service.total_pp import aggregate_best_scores

import pytest


def test_dampening_never_amplifies():
    assert dampen_pp(100, None) == 100
    assert dampen_pp(100, 0.5) == 50
    assert dampen_pp(100, 1.5) == 100


def test_best_score_aggregation():
    total = aggregate_best_scores([(100, 1.0), (90, 0.9), (80, 0.8)])
    assert total.pp == pytest.approx(257.7)
    assert total.accuracy == pytest.approx((1.0 + 0.9 * 0.95 + 0.8 * 0.95**2) / (1 + 0.95 + 0.95**2))
    assert aggregate_best_scores([]) == (0, 1.0)


def test_unpenalized_performance_is_unchanged():
    performance = PerformanceAttributes(pp=120, aim=60, speed=40, accuracy=20)
    params = CalculationParameters.from_replay(make_replay(make_score(1)))
    assert performance.penalized(params) is performance


def test_penalties_scale_their_skill_values():
    performance = PerformanceAttributes(pp=120, aim=60, speed=40, accuracy=20, flashlight=10)
    params = CalculationParameters.from_replay(
        make_replay(
            make_score(1),
            tap_penalty=2.0,
            slider_cheese_penalty=SliderCheesePenalty(aim_penalty=0.5, flashlight_penalty=0.8),
        )
    )

    penalized = performance.penalized(params)

    assert (penalized.aim, penalized.speed, penalized.flashlight) == pytest.approx((30, 20, 8))
    assert penalized.accuracy == 20
    assert penalized.pp < performance.pp


def test_override_parameters_keep_replay_penalties():
    score = make_score(1)
    data = make_replay(score, tap_penalty=1.5)
    params = CalculationParameters.from_score(score).with_penalties(data)
    assert params.tap_penalty == 1.5
    assert params.mods == score.parsed_mods


@pytest.mark.parametrize(
    "hit_length, total_length, too_short",
    [
        (90, 100, False),
        (29, 30, True),
        (60, 120, True),
        (30, 50, False),
        (30, 0, True),
    ],
)
def test_beatmap_length_requirement(hit_length, total_length, too_short):
    assert make_beatmap(hit_length=hit_length, total_length=total_length).is_too_short == too_short
