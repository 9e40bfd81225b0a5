"""核心逻辑：共享快照、读写锁与并发采集。"""

from .aggregator import Aggregator, FetchJob
from .rwlock import RWLock
from .snapshot import Frame, Measurement, Snapshot

__all__ = [
    "Aggregator",
    "FetchJob",
    "Frame",
    "Measurement",
    "RWLock",
    "Snapshot",
]
