"""Store of per-file range sets plus its snapshot codec and storage backends."""

from .snapshot import Snapshot, decode_range, decode_snapshot, encode_snapshot
from .storage import JsonFileStorage, MemoryStorage, SnapshotStorage
from .store import Store, StoreUpdate, build_store

__all__ = [
    "JsonFileStorage",
    "MemoryStorage",
    "Snapshot",
    "SnapshotStorage",
    "Store",
    "StoreUpdate",
    "build_store",
    "decode_range",
    "decode_snapshot",
    "encode_snapshot",
]
