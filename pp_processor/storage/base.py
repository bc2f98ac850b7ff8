from __future__ import annotations

import abc


class StorageService(abc.ABC):
    @abc.abstractmethod
    async def write_file(self, file_path: str, content: bytes) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def read_file(self, file_path: str) -> bytes:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_file(self, file_path: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        pass
