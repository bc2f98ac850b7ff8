from __future__ import annotations

import os
from pathlib import Path

from .base import StorageService

import aiofiles
import aiofiles.os

chmod = aiofiles.os.wrap(os.chmod)


class LocalStorageService(StorageService):
    def __init__(self, storage_path: str, file_mode: int | None = None):
        self.storage_path = Path(storage_path).resolve()
        self.storage_path.mkdir(parents=True, exist_ok=True)
        self.file_mode = file_mode

    def _get_file_path(self, file_path: str) -> Path:
        clean_path = file_path.lstrip("/")
        full_path = self.storage_path / clean_path

        try:
            full_path.resolve().relative_to(self.storage_path)
        except ValueError:
            raise ValueError(f"Invalid file path: {file_path}")

        return full_path

    async def write_file(self, file_path: str, content: bytes) -> None:
        full_path = self._get_file_path(file_path)
        full_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            async with aiofiles.open(full_path, "wb") as f:
                await f.write(content)
            # Some filesystems ignore the creation mode, so set it explicitly afterwards.
            if self.file_mode is not None:
                await chmod(full_path, self.file_mode)
        except OSError as e:
            raise RuntimeError(f"Failed to write file: {e}")

    async def read_file(self, file_path: str) -> bytes:
        full_path = self._get_file_path(file_path)

        if not await aiofiles.os.path.exists(full_path):
            raise FileNotFoundError(f"File not found: {file_path}")

        try:
            async with aiofiles.open(full_path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise RuntimeError(f"Failed to read file: {e}")

    async def delete_file(self, file_path: str) -> None:
        full_path = self._get_file_path(file_path)

        if not await aiofiles.os.path.exists(full_path):
            return

        try:
            await aiofiles.os.remove(full_path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise RuntimeError(f"Failed to delete file: {e}")
