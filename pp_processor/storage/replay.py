from __future__ import annotations

import abc
from enum import Enum
from typing import TYPE_CHECKING

from pp_processor.log import log

from .local import LocalStorageService

if TYPE_CHECKING:
    from pp_processor.config import Settings
    from pp_processor.fetcher import ReplayFetcher

logger = log("ReplayBlobStore")

REPLAY_FILE_MODE = 0o777


class ReplayFolder(str, Enum):
    ONLINE = "online"
    BEST = "best"

    @property
    def remote_path(self) -> str:
        return {ReplayFolder.ONLINE: "upload", ReplayFolder.BEST: "bestpp"}[self]


def replay_file_name(score_id: int) -> str:
    return f"{score_id}.odr"


class ReplaySource(abc.ABC):
    """Where replay bytes are read from. Writes always go to the local store."""

    @abc.abstractmethod
    async def read(self, folder: ReplayFolder, score_id: int) -> bytes | None:
        raise NotImplementedError


class LocalReplaySource(ReplaySource):
    def __init__(self, storages: dict[ReplayFolder, LocalStorageService]):
        self.storages = storages

    async def read(self, folder: ReplayFolder, score_id: int) -> bytes | None:
        try:
            return await self.storages[folder].read_file(replay_file_name(score_id))
        except FileNotFoundError:
            return None
        except RuntimeError as e:
            logger.warning(f"Failed to read {folder.value} replay of score {score_id}: {e}")
            return None


class RemoteReplaySource(ReplaySource):
    def __init__(self, fetcher: "ReplayFetcher"):
        self.fetcher = fetcher

    async def read(self, folder: ReplayFolder, score_id: int) -> bytes | None:
        return await self.fetcher.get_replay(folder.remote_path, score_id)


class ReplayBlobStore:
    """Replay files addressed by score ID, in an online and a best location."""

    def __init__(
        self,
        online: LocalStorageService,
        best: LocalStorageService,
        source: ReplaySource | None = None,
    ):
        self.storages = {ReplayFolder.ONLINE: online, ReplayFolder.BEST: best}
        self.source = source or LocalReplaySource(self.storages)

    @classmethod
    def from_settings(cls, settings: "Settings", source: ReplaySource | None = None) -> "ReplayBlobStore":
        return cls(
            LocalStorageService(settings.online_replay_path, file_mode=REPLAY_FILE_MODE),
            LocalStorageService(settings.best_replay_path, file_mode=REPLAY_FILE_MODE),
            source,
        )

    async def read_online(self, score_id: int) -> bytes | None:
        return await self.source.read(ReplayFolder.ONLINE, score_id)

    async def read_best(self, score_id: int) -> bytes | None:
        return await self.source.read(ReplayFolder.BEST, score_id)

    async def write_best(self, score_id: int, content: bytes) -> bool:
        try:
            await self.storages[ReplayFolder.BEST].write_file(replay_file_name(score_id), content)
        except (RuntimeError, ValueError) as e:
            logger.error(f"Failed to persist best replay of score {score_id}: {e}")
            return False
        return True

    async def delete_online(self, score_id: int) -> None:
        await self._delete(ReplayFolder.ONLINE, score_id)

    async def delete_best(self, score_id: int) -> None:
        await self._delete(ReplayFolder.BEST, score_id)

    async def _delete(self, folder: ReplayFolder, score_id: int) -> None:
        try:
            await self.storages[folder].delete_file(replay_file_name(score_id))
        except RuntimeError as e:
            logger.warning(f"Failed to delete {folder.value} replay of score {score_id}: {e}")

    async def close(self) -> None:
        for storage in self.storages.values():
            await storage.close()
