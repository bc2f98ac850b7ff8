from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from pp_processor.calculator import PerformanceEvaluator
from pp_processor.calculators.performance import PerformanceCalculator, PerformanceError
from pp_processor.database import OFFICIAL_TABLES, PROCESSOR_TABLES, Beatmap, BestScore, Score
from pp_processor.dependencies.database import create_engine, create_tables, transaction
from pp_processor.models.beatmap import BeatmapRankStatus
from pp_processor.models.performance import CalculationParameters, DifficultyAttributes, PerformanceAttributes
from pp_processor.models.replay import Accuracy, ReplayData
from pp_processor.replay.analyzer import ReplayAnalyzer
from pp_processor.storage.local import LocalStorageService
from pp_processor.storage.replay import ReplayBlobStore
from pp_processor.utils import utcnow

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

BEATMAP_HASH = "0123456789abcdef0123456789abcdef"
BEATMAP_CONTENT = "osu file format v14"
BROKEN_BEATMAP_CONTENT = "not a beatmap"
MAX_COMBO = 200


class FakeReplayAnalyzer(ReplayAnalyzer):
    """Replays are ``ReplayData`` dumped as JSON."""

    async def analyze(self, raw: bytes) -> ReplayData | None:
        return ReplayData.model_validate_json(raw)


class FakePerformanceCalculator(PerformanceCalculator):
    async def calculate_difficulty(self, beatmap_raw: str, params: CalculationParameters) -> DifficultyAttributes:
        if beatmap_raw == BROKEN_BEATMAP_CONTENT:
            raise PerformanceError("Beatmap parse error")
        return DifficultyAttributes(star_rating=5.0 * params.mods.clock_rate, max_combo=MAX_COMBO)

    async def calculate_performance(
        self, beatmap_raw: str, difficulty: DifficultyAttributes, params: CalculationParameters
    ) -> PerformanceAttributes:
        if beatmap_raw == BROKEN_BEATMAP_CONTENT:
            raise PerformanceError("Beatmap parse error")
        combo = params.combo if params.combo is not None else difficulty.max_combo
        pp = params.accuracy.value() * 100 * params.mods.clock_rate + combo / 10 - params.accuracy.nmiss
        return PerformanceAttributes(
            pp=pp,
            aim=pp * 0.5,
            speed=pp * 0.3,
            accuracy=pp * 0.2,
            effective_miss_count=params.accuracy.nmiss,
        )


class FakeBeatmapService:
    def __init__(self):
        self.beatmaps: dict[int, Beatmap] = {}
        self.files: dict[int, str] = {}

    def add(self, beatmap: Beatmap, content: str | None = BEATMAP_CONTENT) -> Beatmap:
        self.beatmaps[beatmap.id] = beatmap
        if content is not None:
            self.files[beatmap.id] = content
        return beatmap

    async def get_beatmap(self, id_or_hash: int | str) -> Beatmap | None:
        if isinstance(id_or_hash, int):
            return self.beatmaps.get(id_or_hash)
        return next((b for b in self.beatmaps.values() if b.hash == id_or_hash), None)

    async def get_beatmap_file(self, beatmap_id: int) -> str | None:
        return self.files.get(beatmap_id)

    async def close(self) -> None:
        pass


def make_beatmap(
    beatmap_id: int = 1,
    hash: str = BEATMAP_HASH,
    status: BeatmapRankStatus = BeatmapRankStatus.RANKED,
    object_count: int = 100,
    hit_length: int = 90,
    total_length: int = 100,
    last_checked: datetime | None = None,
) -> Beatmap:
    return Beatmap(
        id=beatmap_id,
        hash=hash,
        title="Artist - Title (Mapper) [Insane]",
        hit_length=hit_length,
        total_length=total_length,
        max_combo=MAX_COMBO,
        object_count=object_count,
        ranked_status=status,
        last_checked=last_checked or utcnow(),
    )


def make_score(score_id: int, uid: int = 1, hash: str = BEATMAP_HASH, **kwargs: Any) -> Score:
    values: dict[str, Any] = {
        "mods": "h|x1.25",
        "score": 1_000_000,
        "combo": 180,
        "mark": "A",
        "geki": 20,
        "perfect": 90,
        "katu": 3,
        "good": 6,
        "bad": 2,
        "miss": 2,
        "date": datetime(2024, 5, 1, 12, 0, 0),
        "accuracy": 0.93,
    }
    values.update(kwargs)
    return Score(id=score_id, uid=uid, hash=hash, **values)


def make_best_score(score: Score, pp: float, **kwargs: Any) -> BestScore:
    values = score.model_dump(exclude={"pp", "pp_multiplier"})
    values.update(pp=pp, pp_multiplier=1.0)
    values.update(kwargs)
    return BestScore(**values)


def make_replay(row: Score, version: int = 5, **kwargs: Any) -> ReplayData:
    """A replay agreeing with ``row`` on every field its version carries."""
    mods = row.parsed_mods
    values: dict[str, Any] = {
        "version": version,
        "hash": row.hash,
        "accuracy": Accuracy(n300=row.perfect, n100=row.good, n50=row.bad, nmiss=row.miss),
        "score": row.score,
        "max_combo": row.combo,
        "hit300k": row.geki,
        "hit100k": row.katu,
        "rank": row.mark,
        "converted_mods": mods.mods,
        "speed_multiplier": mods.speed_multiplier,
        "force_ar": mods.force_ar,
        "force_od": mods.force_od,
        "force_cs": mods.force_cs,
        "force_hp": mods.force_hp,
        "time": row.date,
    }
    values.update(kwargs)
    return ReplayData(**values)


def encode_replay(data: ReplayData) -> bytes:
    return data.model_dump_json().encode()


@pytest_asyncio.fixture
async def official_engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'official.db'}")
    await create_tables(engine, OFFICIAL_TABLES)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def processor_engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'processor.db'}")
    await create_tables(engine, PROCESSOR_TABLES)
    yield engine
    await engine.dispose()


@pytest.fixture
def replay_dirs(tmp_path) -> tuple[str, str]:
    return str(tmp_path / "replays" / "online"), str(tmp_path / "replays" / "best")


@pytest_asyncio.fixture
async def replays(replay_dirs) -> AsyncIterator[ReplayBlobStore]:
    online, best = replay_dirs
    store = ReplayBlobStore(
        LocalStorageService(online, file_mode=0o777),
        LocalStorageService(best, file_mode=0o777),
    )
    yield store
    await store.close()


@pytest.fixture
def analyzer() -> FakeReplayAnalyzer:
    return FakeReplayAnalyzer()


@pytest.fixture
def calculator() -> FakePerformanceCalculator:
    return FakePerformanceCalculator()


@pytest.fixture
def beatmaps() -> FakeBeatmapService:
    service = FakeBeatmapService()
    service.add(make_beatmap())
    return service


@pytest.fixture
def evaluator(calculator, beatmaps, processor_engine) -> PerformanceEvaluator:
    return PerformanceEvaluator(calculator, beatmaps, processor_engine)  # pyright: ignore[reportArgumentType]


async def insert_rows(engine: AsyncEngine, *rows: Any) -> None:
    async with transaction(engine) as session:
        for row in rows:
            session.add(row)


@pytest.fixture
def online_path(replay_dirs):
    def _path(score_id: int) -> str:
        return f"{replay_dirs[0]}/{score_id}.odr"

    return _path


@pytest.fixture
def best_path(replay_dirs):
    def _path(score_id: int) -> str:
        return f"{replay_dirs[1]}/{score_id}.odr"

    return _path
