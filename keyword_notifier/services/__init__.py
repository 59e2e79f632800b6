"""Services that run fetch cycles on a schedule."""

from keyword_notifier.services.factory import build_scheduler, create_adapter, open_store
from keyword_notifier.services.fetch_cycle import CycleResult, FetchCycle
from keyword_notifier.services.scheduler import ScheduledSource, Scheduler, SourceState

__all__ = [
    "CycleResult",
    "FetchCycle",
    "ScheduledSource",
    "Scheduler",
    "SourceState",
    "build_scheduler",
    "create_adapter",
    "open_store",
]
