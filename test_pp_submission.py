"""玩家 PP 档案提交"""

import os

from conftest import encode_replay, make_beatmap, make_replay, make_score
from pp_processor.database import PlayerPPProfile
from pp_processor.dependencies.database import with_db
from pp_processor.models.beatmap import BeatmapRankStatus
from pp_processor.service.best_play_ranker import calculate_total_pp
from pp_processor.service.pp_submission import PPSubmissionService, ReplaySubmission

import pytest

pytestmark = pytest.mark.asyncio

OTHER_HASH = "2" * 32
LOVED_HASH = "3" * 32
SHORT_HASH = "4" * 32


@pytest.fixture
def submission(processor_engine, official_engine, beatmaps, replays, analyzer, evaluator) -> PPSubmissionService:
    beatmaps.add(make_beatmap(2, hash=OTHER_HASH))
    beatmaps.add(make_beatmap(3, hash=LOVED_HASH, status=BeatmapRankStatus.LOVED))
    beatmaps.add(make_beatmap(4, hash=SHORT_HASH, hit_length=20, total_length=25))
    return PPSubmissionService(
        processor_engine, official_engine, beatmaps, replays, analyzer, evaluator  # pyright: ignore[reportArgumentType]
    )


def replay_of(score_id: int, **kwargs) -> ReplaySubmission:
    return ReplaySubmission(score_id, encode_replay(make_replay(make_score(score_id, **kwargs))))


async def load_profile(engine, uid: int) -> PlayerPPProfile | None:
    async with with_db(engine) as session:
        return await session.get(PlayerPPProfile, uid)


async def test_first_submission_creates_profile(submission, processor_engine, best_path):
    result = await submission.submit(7, [replay_of(1), replay_of(2, hash=OTHER_HASH, miss=10, perfect=82)])

    assert [s.success for s in result.statuses] == [True, True]
    assert all(s.replay_needs_persistence for s in result.statuses)
    assert result.play_count_increment == 2

    profile = await load_profile(processor_engine, 7)
    assert profile is not None
    entries = profile.get_entries()
    assert [e.score_id for e in entries] == [1, 2]
    assert profile.pp_total == pytest.approx(calculate_total_pp(entries))
    assert result.new_total_pp == round(profile.pp_total, 2)
    assert profile.playc == 2
    assert os.path.exists(best_path(1)) and os.path.exists(best_path(2))


async def test_lower_play_on_same_beatmap_is_not_persisted(submission, processor_engine, best_path):
    await submission.submit(7, [replay_of(1)])

    result = await submission.submit(7, [replay_of(5, perfect=80, good=16)])

    status = result.statuses[0]
    assert status.success and not status.replay_needs_persistence
    assert result.pp_gained == 0
    assert not os.path.exists(best_path(5))
    profile = await load_profile(processor_engine, 7)
    assert profile is not None and [e.score_id for e in profile.get_entries()] == [1]
    assert profile.playc == 2


async def test_better_play_replaces_and_deletes_old_replay(submission, processor_engine, best_path):
    await submission.submit(7, [replay_of(1, perfect=80, good=16)])

    result = await submission.submit(7, [replay_of(6)])

    assert result.pp_gained > 0
    assert os.path.exists(best_path(6))
    assert not os.path.exists(best_path(1))
    profile = await load_profile(processor_engine, 7)
    assert profile is not None and [e.score_id for e in profile.get_entries()] == [6]


async def test_rejected_submissions(submission, processor_engine):
    result = await submission.submit(
        7,
        [
            ReplaySubmission(8, b"garbage"),
            replay_of(9, hash=LOVED_HASH),
            replay_of(10, hash="9" * 32),
            replay_of(11, hash=SHORT_HASH),
            replay_of(12, mods="h|AR9"),
        ],
    )

    assert [s.reason for s in result.statuses] == [
        "No replay data found",
        "Beatmap is not ranked",
        "Beatmap not found",
        "Beatmap is too short",
        "Score uses custom statistics",
    ]
    assert result.play_count_increment == 0
    profile = await load_profile(processor_engine, 7)
    assert profile is not None and profile.get_entries() == [] and profile.weighted_accuracy == 1.0
