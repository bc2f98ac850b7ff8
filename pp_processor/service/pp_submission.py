from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pp_processor.calculator import PerformanceEvaluator
from pp_processor.calculators.performance import CalculateError
from pp_processor.database.best_score import BestScore
from pp_processor.database.pp_profile import PlayerPPProfile
from pp_processor.dependencies.database import transaction, with_db
from pp_processor.log import service_logger
from pp_processor.models.mods import construct_mod_descriptor
from pp_processor.models.pp import PPEntry
from pp_processor.replay.analyzer import ReplayAnalyzer, decode_replay
from pp_processor.service.best_play_ranker import (
    BestPlayRanker,
    calculate_total_pp,
    calculate_weighted_accuracy,
)
from pp_processor.storage.replay import ReplayBlobStore

from sqlalchemy.ext.asyncio import AsyncEngine

if TYPE_CHECKING:
    from pp_processor.dependencies.context import ProcessorContext
    from pp_processor.service.beatmap_service import BeatmapService

logger = service_logger("PPSubmission")


@dataclass
class ReplaySubmission:
    score_id: int
    raw: bytes


@dataclass
class SubmissionStatus:
    score_id: int
    success: bool
    pp: float = 0
    reason: str = ""
    replay_needs_persistence: bool = False


@dataclass
class SubmissionResult:
    pp_gained: float
    new_total_pp: float
    play_count_increment: int
    statuses: list[SubmissionStatus] = field(default_factory=list)


class PPSubmissionService:
    """Submits replays into a player's ranked list of top plays.

    The profile lives in the processor database. Replays that enter the list
    are persisted to the best store after the profile is committed, and
    replays that leave it are deleted unless a best score still refers to them.
    """

    def __init__(
        self,
        processor_engine: AsyncEngine,
        official_engine: AsyncEngine,
        beatmaps: "BeatmapService",
        replays: ReplayBlobStore,
        analyzer: ReplayAnalyzer,
        evaluator: PerformanceEvaluator,
        ranker: BestPlayRanker | None = None,
    ):
        self.processor_engine = processor_engine
        self.official_engine = official_engine
        self.beatmaps = beatmaps
        self.replays = replays
        self.analyzer = analyzer
        self.evaluator = evaluator
        self.ranker = ranker or BestPlayRanker()

    @classmethod
    def from_context(cls, ctx: "ProcessorContext") -> "PPSubmissionService":
        return cls(
            ctx.processor_engine,
            ctx.official_engine,
            ctx.beatmaps,
            ctx.replays,
            ctx.require_analyzer(),
            ctx.evaluator,
        )

    async def _to_entry(self, submission: ReplaySubmission) -> PPEntry | str:
        data = await decode_replay(self.analyzer, submission.raw, f"Replay of score ID {submission.score_id}")
        if data is None:
            return "No replay data found"

        beatmap = await self.beatmaps.get_beatmap(data.hash)
        if beatmap is None:
            return "Beatmap not found"
        if not beatmap.has_pp:
            return "Beatmap is not ranked"
        if beatmap.is_too_short:
            return "Beatmap is too short"
        if data.mods.uses_custom_statistics:
            return "Score uses custom statistics"

        try:
            result = await self.evaluator.evaluate_replay(beatmap, data)
        except CalculateError as e:
            return str(e)

        accuracy = result.params.accuracy
        return PPEntry(
            hash=beatmap.hash,
            score_id=submission.score_id,
            title=beatmap.title,
            pp=round(result.total, 2),
            accuracy=round(accuracy.value(), 4),
            mods=construct_mod_descriptor(result.params.mods),
            combo=result.params.combo if result.params.combo is not None else result.difficulty.max_combo,
            miss=accuracy.nmiss,
        )

    async def submit(self, uid: int, submissions: list[ReplaySubmission]) -> SubmissionResult:
        async with with_db(self.processor_engine) as session:
            profile = await session.get(PlayerPPProfile, uid)
        previous_total = profile.pp_total if profile is not None else 0.0
        entries = profile.get_entries() if profile is not None else []

        statuses: list[SubmissionStatus] = []
        to_persist: dict[int, bytes] = {}
        evicted: list[PPEntry] = []
        play_count_increment = 0

        for submission in submissions:
            entry = await self._to_entry(submission)
            if isinstance(entry, str):
                statuses.append(SubmissionStatus(submission.score_id, False, reason=entry))
                continue

            needs_persistence = False
            if self.ranker.can_insert(entries, entry):
                result = self.ranker.insert(entries, entry)
                needs_persistence = result.accepted and not result.evicted_replay_needs_deletion
                evicted.extend(result.evicted)
                if needs_persistence:
                    to_persist[submission.score_id] = submission.raw

            play_count_increment += 1
            statuses.append(
                SubmissionStatus(submission.score_id, True, entry.pp, replay_needs_persistence=needs_persistence)
            )

        new_total = calculate_total_pp(entries)
        async with transaction(self.processor_engine) as session:
            row = await session.get(PlayerPPProfile, uid)
            if row is None:
                row = PlayerPPProfile(uid=uid)
                session.add(row)
            row.set_entries(entries)
            row.pp_total = new_total
            row.weighted_accuracy = calculate_weighted_accuracy(entries)
            row.playc += play_count_increment

        kept = {e.score_id for e in entries}
        for status in statuses:
            if status.replay_needs_persistence and status.score_id in kept:
                if not await self.replays.write_best(status.score_id, to_persist[status.score_id]):
                    status.success = False
                    status.reason = "Replay persistence failed"
        await self._delete_evicted_replays([e for e in evicted if e.score_id not in kept])

        logger.info(
            f"Submitted {len(submissions)} replay(s) of player {uid}, "
            f"total pp {previous_total:.2f} -> {new_total:.2f}"
        )
        return SubmissionResult(
            pp_gained=round(new_total - previous_total, 2),
            new_total_pp=round(new_total, 2),
            play_count_increment=play_count_increment,
            statuses=statuses,
        )

    async def _delete_evicted_replays(self, evicted: list[PPEntry]) -> None:
        if not evicted:
            return
        async with with_db(self.official_engine) as session:
            for entry in evicted:
                if await session.get(BestScore, entry.score_id) is None:
                    await self.replays.delete_best(entry.score_id)
