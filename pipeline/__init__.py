"""Run-level orchestration of the cross-posting core."""

from pipeline.sync import SyncOrchestrator, SyncReport

__all__ = ["SyncOrchestrator", "SyncReport"]
