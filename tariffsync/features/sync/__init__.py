"""Sync feature: pipeline passes and the recurring scheduler."""

from tariffsync.features.sync.pipeline import SyncPassResult, SyncPipeline
from tariffsync.features.sync.routes import router
from tariffsync.features.sync.scheduler import SyncScheduler
from tariffsync.features.sync.schemas import SchedulerState, SchedulerStatus

__all__ = [
    "SchedulerState",
    "SchedulerStatus",
    "SyncPassResult",
    "SyncPipeline",
    "SyncScheduler",
    "router",
]
