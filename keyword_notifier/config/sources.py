"""
Per-source configuration derived from application settings.

Each polled source gets one immutable SourceConfig, built once at process
start. Sources without the credentials they need are left out.
"""

from dataclasses import dataclass

from keyword_notifier.config.settings import Settings
from keyword_notifier.ingestion.schemas import SourceName


@dataclass(frozen=True)
class SourceConfig:
    """Configuration for a single polled source."""

    name: SourceName
    keyword: str
    interval_seconds: int
    credential: str | None = None
    page_size: int = 100
    max_pages: int = 1

    def __repr__(self) -> str:
        # Never leak the credential into logs
        return (
            f"SourceConfig(name={self.name.value!r}, keyword={self.keyword!r}, "
            f"interval_seconds={self.interval_seconds}, page_size={self.page_size}, "
            f"max_pages={self.max_pages})"
        )


def build_source_configs(settings: Settings) -> list[SourceConfig]:
    """
    Build the list of enabled source configurations.

    Args:
        settings: Loaded application settings

    Returns:
        One SourceConfig per enabled source, in a stable order
    """
    configs: list[SourceConfig] = []

    if settings.twitter_configured:
        configs.append(
            SourceConfig(
                name=SourceName.TWITTER,
                keyword=settings.twitter_keyword or settings.keyword,
                interval_seconds=settings.twitter_interval_seconds
                or settings.poll_interval_seconds,
                credential=settings.twitter_bearer_token,
                page_size=settings.twitter_max_results,
                max_pages=settings.twitter_max_pages,
            )
        )

    if settings.stackoverflow_enabled:
        configs.append(
            SourceConfig(
                name=SourceName.STACKOVERFLOW,
                keyword=settings.stackoverflow_keyword or settings.keyword,
                interval_seconds=settings.stackoverflow_interval_seconds
                or settings.poll_interval_seconds,
                credential=settings.stackoverflow_api_key,
                page_size=settings.stackoverflow_page_size,
            )
        )

    return configs
