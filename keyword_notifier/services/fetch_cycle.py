"""
Fetch cycle - one fetch, filter and persist pass for one source.

Sequence:
1. Fetch raw candidates (walking all pages for paginated sources)
2. Normalize them, applying the source's exclusion rules
3. Run the dedup gate
4. Persist survivors through the store
5. Report how many items were new

A fetch failure ends the cycle before the store is touched. A store failure
ends it without a partial write. Neither escapes run(): both come back as a
CycleResult with a failure status, so the scheduler can tell a broken source
apart from a source that simply had nothing new.
"""

import time
from dataclasses import dataclass
from typing import Literal

import structlog

from keyword_notifier.ingestion.base_adapter import PaginatedSource, SingleShotSource, SourceAdapter
from keyword_notifier.ingestion.deduplication import DedupGate, IdempotentWriteGate
from keyword_notifier.ingestion.http_client import FetchError
from keyword_notifier.ingestion.pagination import PaginationDriver, PaginationResult
from keyword_notifier.observability.metrics import MetricsCollector, get_metrics
from keyword_notifier.observability.tracing import get_tracer, traced
from keyword_notifier.storage.base import ItemStore, StoreError

logger = structlog.get_logger(__name__)

CycleStatus = Literal["success", "fetch_failed", "store_failed"]


@dataclass
class CycleResult:
    """Outcome of one fetch cycle."""

    source: str
    keyword: str
    status: CycleStatus
    fetched: int = 0
    excluded: int = 0
    stored: int = 0
    pages: int = 0
    error: str | None = None
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == "success"


class FetchCycle:
    """
    Composes a source adapter, the pagination driver, the dedup gate and
    the store into one end-to-end pass.

    Usage:
        cycle = FetchCycle(adapter, keyword="rustlang", store=repo)
        result = await cycle.run()
        if result.ok:
            print(f"{result.stored} new items")
    """

    def __init__(
        self,
        adapter: SourceAdapter,
        keyword: str,
        store: ItemStore,
        gate: DedupGate | None = None,
        driver: PaginationDriver | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize fetch cycle.

        Args:
            adapter: Paginated or single-shot source adapter
            keyword: Keyword searched on the source
            store: Store new items are persisted to
            gate: Dedup strategy (default: idempotent write)
            driver: Pagination driver for paginated sources
            metrics: Metrics collector (default: global instance)
        """
        if not isinstance(adapter, (PaginatedSource, SingleShotSource)):
            raise TypeError(
                f"{type(adapter).__name__} implements neither fetch_page() nor fetch_all()"
            )

        self.adapter = adapter
        self.keyword = keyword
        self.store = store
        self.gate = gate or IdempotentWriteGate()
        self.driver = driver or PaginationDriver()
        self._metrics = metrics or get_metrics()
        self._tracer = get_tracer("keyword_notifier.fetch_cycle")

    @property
    def source(self) -> str:
        return self.adapter.name

    async def collect(self) -> PaginationResult:
        """
        Fetch and normalize all candidates for this cycle.

        Raises:
            FetchError: If the source cannot be fetched or decoded
        """
        if isinstance(self.adapter, PaginatedSource):
            return await self.driver.collect(self.adapter, self.keyword)

        raw_items = await self.adapter.fetch_all(self.keyword)
        result = PaginationResult(pages=1)
        for raw in raw_items:
            item = self.adapter.normalize(raw)
            if item is None:
                result.excluded += 1
                continue
            result.items.append(item)
        return result

    async def run(self) -> CycleResult:
        """
        Run one cycle.

        Returns:
            CycleResult; status tells success from fetch or store failure
        """
        start_time = time.monotonic()
        log = logger.bind(source=self.source, keyword=self.keyword)

        with traced(
            self._tracer,
            "fetch_cycle",
            {"source": self.source, "keyword": self.keyword, "dedup": self.gate.strategy},
        ) as span:
            log.debug("Fetch cycle starting")

            try:
                collected = await self.collect()
            except FetchError as e:
                elapsed = time.monotonic() - start_time
                log.error("Fetch failed, skipping store", error=str(e), error_type=type(e).__name__)
                self._metrics.record_failure(self.source, type(e).__name__, elapsed)
                span.set_attribute("cycle.status", "fetch_failed")
                return CycleResult(
                    source=self.source,
                    keyword=self.keyword,
                    status="fetch_failed",
                    error=str(e),
                    elapsed_seconds=elapsed,
                )

            try:
                stored = await self.gate.persist(self.store, collected.items)
            except StoreError as e:
                elapsed = time.monotonic() - start_time
                log.error(
                    "Store write failed",
                    error=str(e),
                    candidates=len(collected.items),
                )
                self._metrics.record_failure(self.source, type(e).__name__, elapsed)
                span.set_attribute("cycle.status", "store_failed")
                return CycleResult(
                    source=self.source,
                    keyword=self.keyword,
                    status="store_failed",
                    fetched=collected.fetched,
                    excluded=collected.excluded,
                    pages=collected.pages,
                    error=str(e),
                    elapsed_seconds=elapsed,
                )

            elapsed = time.monotonic() - start_time
            self._metrics.record_cycle(
                self.source,
                fetched=collected.fetched,
                excluded=collected.excluded,
                stored=stored,
                pages=collected.pages,
                latency=elapsed,
            )
            span.set_attribute("cycle.status", "success")
            span.set_attribute("cycle.stored", stored)

            log.info(
                "Fetch cycle completed",
                fetched=collected.fetched,
                excluded=collected.excluded,
                pages=collected.pages,
                truncated=collected.truncated,
                stored=stored,
                elapsed_seconds=round(elapsed, 2),
            )

            return CycleResult(
                source=self.source,
                keyword=self.keyword,
                status="success",
                fetched=collected.fetched,
                excluded=collected.excluded,
                stored=stored,
                pages=collected.pages,
                elapsed_seconds=elapsed,
            )
