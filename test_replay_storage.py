"""回放文件存储"""

import os
import stat

from pp_processor.storage.local import LocalStorageService
from pp_processor.storage.replay import ReplayBlobStore, ReplayFolder, ReplaySource

import pytest

pytestmark = pytest.mark.asyncio


async def test_write_best_sets_permissions(replays, best_path):
    assert await replays.write_best(10, b"replay")

    assert await replays.read_best(10) == b"replay"
    assert stat.S_IMODE(os.stat(best_path(10)).st_mode) == 0o777


async def test_online_and_best_are_separate(replays, online_path):
    os.makedirs(os.path.dirname(online_path(10)), exist_ok=True)
    with open(online_path(10), "wb") as f:
        f.write(b"online")

    assert await replays.read_online(10) == b"online"
    assert await replays.read_best(10) is None


async def test_delete_is_best_effort(replays, best_path):
    await replays.delete_best(404)

    await replays.write_best(11, b"replay")
    await replays.delete_best(11)
    assert not os.path.exists(best_path(11))


async def test_failed_write_is_reported(replays, best_path):
    # A directory in place of the file makes the write fail.
    os.makedirs(best_path(12))
    assert not await replays.write_best(12, b"replay")


async def test_reads_go_through_the_source(replay_dirs):
    class MemorySource(ReplaySource):
        async def read(self, folder: ReplayFolder, score_id: int) -> bytes | None:
            return f"{folder.remote_path}/{score_id}".encode()

    store = ReplayBlobStore(
        LocalStorageService(replay_dirs[0]), LocalStorageService(replay_dirs[1]), MemorySource()
    )
    assert await store.read_online(1) == b"upload/1"
    assert await store.read_best(1) == b"bestpp/1"
    assert await store.write_best(1, b"local")
    assert open(f"{replay_dirs[1]}/1.odr", "rb").read() == b"local"
