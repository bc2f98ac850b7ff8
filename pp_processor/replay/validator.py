import math
from typing import TYPE_CHECKING

from pp_processor.models.replay import ReplayData

if TYPE_CHECKING:
    from pp_processor.database.score import ScoreBase


def is_valid(score: "ScoreBase", data: ReplayData) -> bool:
    """Whether the decoded replay actually backs ``score``.

    Checks are cumulative by replay version: v1 and v2 only carry the hash and
    hit counts, v3 adds score/combo/rank/mods, v4 the speed multiplier and v5
    forced difficulty statistics.
    """
    if (
        score.hash != data.hash
        or not score.hit_accuracy.equals(data.accuracy)
        # no hits at all
        or math.isnan(data.accuracy.value())
    ):
        return False

    score_mods = score.parsed_mods

    if data.is_replay_v3():
        if score.score != data.score or score.combo != data.max_combo or score.mark != data.rank:
            return False

        # Extended judgements are only present on database rows.
        geki = getattr(score, "geki", None)
        katu = getattr(score, "katu", None)
        if (geki is not None and geki != data.hit300k) or (katu is not None and katu != data.hit100k):
            return False

        # Mods are compared last as they are the most costly.
        if score_mods.droid_string != data.mods.droid_string:
            return False

    if data.is_replay_v4() and score_mods.speed_multiplier != data.speed_multiplier:
        return False

    if data.is_replay_v5() and (
        score_mods.force_cs != data.force_cs
        or score_mods.force_ar != data.force_ar
        or score_mods.force_od != data.force_od
        or score_mods.force_hp != data.force_hp
    ):
        return False

    return True
