"""
Scheduler - runs every source's fetch cycle on its own fixed interval.

Each source is an independent asyncio task with two states:

    IDLE --tick--> RUNNING --cycle done (success or failure)--> IDLE

A tick starts one fetch cycle; the next tick fires `interval_seconds` after
the previous one started (immediately, if the cycle overran). There is no
backoff, jitter or early retry after a failure. Cycles of one source never
overlap, and a slow or failing source never delays another one.

Features:
- Concurrent per-source loops
- Graceful shutdown (all sources stop together)
- One-shot run of every source for manual triggers
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from keyword_notifier.observability.logging import bind_context
from keyword_notifier.observability.metrics import MetricsCollector, get_metrics
from keyword_notifier.services.fetch_cycle import CycleResult, FetchCycle

logger = structlog.get_logger(__name__)


class SourceState(str, Enum):
    """Scheduler state of one source."""

    IDLE = "idle"
    RUNNING = "running"


@dataclass
class ScheduledSource:
    """A fetch cycle and the interval it runs at."""

    cycle: FetchCycle
    interval_seconds: float

    @property
    def name(self) -> str:
        return self.cycle.source


class Scheduler:
    """
    Drives one fetch cycle per source, forever.

    Usage:
        scheduler = Scheduler([ScheduledSource(cycle, 300)])
        await scheduler.start()  # Runs until stopped
    """

    def __init__(
        self,
        jobs: list[ScheduledSource],
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize scheduler.

        Args:
            jobs: One scheduled fetch cycle per source
            metrics: Metrics collector (default: global instance)
        """
        names = [job.name for job in jobs]
        if len(set(names)) != len(names):
            raise ValueError(f"Each source can only be scheduled once: {names}")

        self._jobs = {job.name: job for job in jobs}
        self._states = {name: SourceState.IDLE for name in self._jobs}
        self._last_results: dict[str, CycleResult] = {}
        self._running = False
        self._tasks: list[asyncio.Task] = []
        self._metrics = metrics or get_metrics()

        logger.info(
            "Scheduler initialized",
            sources={name: job.interval_seconds for name, job in self._jobs.items()},
        )

    async def start(self) -> None:
        """
        Start every source loop.

        Runs until stop() is called or the surrounding task is cancelled.
        """
        self._running = True

        logger.info("Starting scheduler")

        try:
            self._tasks = [
                asyncio.create_task(
                    self._run_source(job),
                    name=f"source_{name}",
                )
                for name, job in self._jobs.items()
            ]

            await asyncio.gather(*self._tasks, return_exceptions=True)

        except asyncio.CancelledError:
            logger.info("Scheduler cancelled")
            for task in self._tasks:
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
            raise
        finally:
            self._running = False
            await self._cleanup()

    async def stop(self) -> None:
        """Stop all source loops together."""
        logger.info("Stopping scheduler")
        self._running = False

        for task in self._tasks:
            task.cancel()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _cleanup(self) -> None:
        """Clean up resources."""
        self._tasks.clear()
        await self.aclose()
        logger.info("Scheduler cleaned up")

    async def aclose(self) -> None:
        """Close the HTTP clients of every source adapter."""
        for job in self._jobs.values():
            await job.cycle.adapter.aclose()

    async def _run_source(self, job: ScheduledSource) -> None:
        """
        Run a single source in a loop.

        Args:
            job: Scheduled fetch cycle
        """
        bind_context(source=job.name)
        logger.info("Starting source loop", interval_seconds=job.interval_seconds)

        while self._running:
            tick_started = time.monotonic()

            try:
                await self._run_cycle(job)
            except asyncio.CancelledError:
                break
            except Exception as e:
                # FetchCycle.run() reports expected failures as results; this
                # only catches bugs, which must not kill the loop either
                logger.exception("Unexpected error in fetch cycle", error=str(e))

            remaining = job.interval_seconds - (time.monotonic() - tick_started)

            try:
                await asyncio.sleep(max(0.0, remaining))
            except asyncio.CancelledError:
                break

        logger.info("Source loop stopped")

    async def _run_cycle(self, job: ScheduledSource) -> CycleResult:
        self._states[job.name] = SourceState.RUNNING
        self._metrics.set_running(job.name, True)
        try:
            result = await job.cycle.run()
            self._last_results[job.name] = result
            return result
        finally:
            self._states[job.name] = SourceState.IDLE
            self._metrics.set_running(job.name, False)

    async def run_once(self) -> dict[str, CycleResult]:
        """
        Run one cycle for every source concurrently.

        Useful for testing or manual triggers.

        Returns:
            Dictionary of source name -> cycle result
        """
        names = list(self._jobs)
        results = await asyncio.gather(
            *(self._run_cycle_isolated(self._jobs[name]) for name in names)
        )
        return dict(zip(names, results))

    async def _run_cycle_isolated(self, job: ScheduledSource) -> CycleResult:
        """Run one cycle, turning an unexpected exception into a failed result."""
        try:
            return await self._run_cycle(job)
        except Exception as e:
            logger.exception("Unexpected error in fetch cycle", source=job.name, error=str(e))
            self._metrics.record_failure(job.name, type(e).__name__)
            result = CycleResult(
                source=job.name,
                keyword=job.cycle.keyword,
                status="fetch_failed",
                error=f"{type(e).__name__}: {e}",
            )
            self._last_results[job.name] = result
            return result

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    @property
    def states(self) -> dict[str, SourceState]:
        """Current state of every source."""
        return dict(self._states)

    @property
    def last_results(self) -> dict[str, CycleResult]:
        """Result of the most recent cycle of every source that has run."""
        return dict(self._last_results)

    def status(self) -> dict[str, Any]:
        """Summarize scheduler state for health reporting."""
        sources: dict[str, Any] = {}
        for name, job in self._jobs.items():
            last = self._last_results.get(name)
            sources[name] = {
                "state": self._states[name].value,
                "interval_seconds": job.interval_seconds,
                "keyword": job.cycle.keyword,
                "last_status": last.status if last else None,
                "last_stored": last.stored if last else None,
            }

        return {
            "running": self._running,
            "active_tasks": len([t for t in self._tasks if not t.done()]),
            "sources": sources,
        }
