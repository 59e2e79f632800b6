"""
Response models for the listing API.
"""

from pydantic import BaseModel, Field

from keyword_notifier.ingestion.schemas import ShareableItem


class ItemListResponse(BaseModel):
    """Response model for the item listing."""

    items: list[ShareableItem] = Field(
        default_factory=list,
        description="Stored items, newest first",
    )
    total: int = Field(..., description="Number of items returned")
    source: str | None = Field(
        default=None,
        description="Source the listing was filtered to, if any",
    )


class ComponentHealth(BaseModel):
    """Health status for a single infrastructure component."""

    status: str = Field(..., description="healthy or unhealthy")
    latency_ms: float | None = Field(default=None, description="Check latency in milliseconds")
    details: dict | None = Field(default=None, description="Additional details")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy or unhealthy",
    )
    store: ComponentHealth = Field(..., description="Item store health")
    counts: dict[str, int] = Field(
        default_factory=dict,
        description="Stored item count per source",
    )
    scheduler: dict | None = Field(
        default=None,
        description="Scheduler state when running in the same process",
    )
    version: str = Field(default="0.1.0", description="Service version")
