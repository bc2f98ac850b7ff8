from __future__ import annotations

from .base import StorageService
from .local import LocalStorageService
from .replay import (
    LocalReplaySource,
    RemoteReplaySource,
    ReplayBlobStore,
    ReplayFolder,
    ReplaySource,
)

__all__ = [
    "LocalReplaySource",
    "LocalStorageService",
    "RemoteReplaySource",
    "ReplayBlobStore",
    "ReplayFolder",
    "ReplaySource",
    "StorageService",
]
