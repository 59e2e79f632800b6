"""
Builds source adapters, fetch cycles and the scheduler from settings.
"""

import structlog

from keyword_notifier.config.settings import Settings, get_settings
from keyword_notifier.config.sources import SourceConfig, build_source_configs
from keyword_notifier.ingestion.base_adapter import SourceAdapter
from keyword_notifier.ingestion.deduplication import create_dedup_gate
from keyword_notifier.ingestion.pagination import PaginationDriver
from keyword_notifier.ingestion.schemas import SourceName
from keyword_notifier.ingestion.stackoverflow_adapter import StackOverflowAdapter
from keyword_notifier.ingestion.twitter_adapter import TwitterAdapter
from keyword_notifier.observability.metrics import MetricsCollector
from keyword_notifier.services.fetch_cycle import FetchCycle
from keyword_notifier.services.scheduler import ScheduledSource, Scheduler
from keyword_notifier.storage.base import ItemStore
from keyword_notifier.storage.database import Database
from keyword_notifier.storage.memory import InMemoryItemStore
from keyword_notifier.storage.repository import ItemRepository

logger = structlog.get_logger(__name__)


def create_adapter(config: SourceConfig, settings: Settings) -> SourceAdapter:
    """
    Create the adapter for one configured source.

    Raises:
        ValueError: If the source is unknown or missing its credential
    """
    if config.name == SourceName.TWITTER:
        return TwitterAdapter(
            bearer_token=config.credential,
            max_results_per_request=config.page_size,
            timeout=settings.http_timeout_seconds,
        )

    if config.name == SourceName.STACKOVERFLOW:
        return StackOverflowAdapter(
            page_size=config.page_size,
            site=settings.stackoverflow_site,
            api_key=config.credential,
            timeout=settings.http_timeout_seconds,
        )

    raise ValueError(f"No adapter for source: {config.name}")


def build_scheduler(
    store: ItemStore,
    settings: Settings | None = None,
    metrics: MetricsCollector | None = None,
) -> Scheduler:
    """
    Wire one fetch cycle per enabled source into a scheduler.

    Args:
        store: Store shared by every source
        settings: Application settings (default: loaded from environment)
        metrics: Metrics collector (default: global instance)

    Raises:
        ValueError: If no source is enabled
    """
    settings = settings or get_settings()
    configs = build_source_configs(settings)

    if not configs:
        raise ValueError(
            "No sources enabled: set TWITTER_BEARER_TOKEN or STACKOVERFLOW_ENABLED=true"
        )

    jobs = []
    for config in configs:
        cycle = FetchCycle(
            adapter=create_adapter(config, settings),
            keyword=config.keyword,
            store=store,
            gate=create_dedup_gate(settings.dedup_strategy),
            driver=PaginationDriver(max_pages=config.max_pages),
            metrics=metrics,
        )
        jobs.append(ScheduledSource(cycle=cycle, interval_seconds=config.interval_seconds))
        logger.info("Source enabled", source=config)

    return Scheduler(jobs, metrics=metrics)


async def open_store(settings: Settings | None = None) -> tuple[ItemStore, Database | None]:
    """
    Open the configured item store.

    For the postgres backend the pool is connected and the table ensured;
    the caller owns the returned Database and must close it.

    Raises:
        Exception: Whatever the driver raises when the database is unreachable
    """
    settings = settings or get_settings()

    if not settings.uses_database:
        logger.warning("Using in-memory store, items are lost on restart")
        return InMemoryItemStore(), None

    database = Database(
        database_url=str(settings.database_url),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    await database.connect()

    repository = ItemRepository(database)
    try:
        await repository.create_tables()
    except Exception:
        await database.close()
        raise

    return repository, database
