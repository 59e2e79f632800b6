"""
Dependency injection for FastAPI endpoints.

The store and the (optional) in-process scheduler live on app.state; they
are set by create_app() or by the application lifespan.
"""

from fastapi import HTTPException, Request

from keyword_notifier.services.scheduler import Scheduler
from keyword_notifier.storage.base import ItemStore


async def get_item_store(request: Request) -> ItemStore:
    """Get the item store the app was started with."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Item store not initialized")
    return store


async def get_scheduler(request: Request) -> Scheduler | None:
    """Get the scheduler running in this process, if any."""
    return getattr(request.app.state, "scheduler", None)
