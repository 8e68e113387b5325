"""
Startup Orchestrator - brings the four datastores up concurrently, tolerating partial failure
"""
from typing import Dict, Optional
import asyncio
import logging

from prometheus_client import Gauge

from tourbook.context import AppContext
from tourbook.utils.datastore import Datastore

logger = logging.getLogger(__name__)

DATASTORE_UP = Gauge(
    'datastore_up',
    'Whether a datastore integration is bootstrapped and reachable',
    ['datastore']
)


async def bring_up(ctx: AppContext, store: Datastore) -> int:
    """connect -> ensure schema -> seed if empty -> mark up; returns rows seeded"""
    await store.connect()
    await store.ensure_schema()
    seeded = await store.seed_if_empty()
    ctx.status.mark_up(store.name)
    return seeded


async def initialize_datastores(ctx: AppContext) -> Dict[str, Optional[BaseException]]:
    """
    Initialize every datastore independently and wait for all of them.

    One store failing never aborts the others or the process; it is
    recorded as down and the service keeps running degraded.
    Returns {name: None on success, or the exception}.
    """
    stores = list(ctx.datastores.values())
    logger.info(f"Initializing datastores: {', '.join(store.name for store in stores)}")

    results = await asyncio.gather(
        *(bring_up(ctx, store) for store in stores),
        return_exceptions=True,
    )

    outcomes: Dict[str, Optional[BaseException]] = {}
    for store, result in zip(stores, results):
        if isinstance(result, BaseException):
            ctx.status.mark_down(store.name, str(result) or result.__class__.__name__)
            DATASTORE_UP.labels(datastore=store.name).set(0)
            logger.error(f"✗ {store.name}: unavailable ({result!r})")
            outcomes[store.name] = result
        else:
            DATASTORE_UP.labels(datastore=store.name).set(1)
            logger.info(f"✓ {store.name}: ready ({result} sample rows seeded)")
            outcomes[store.name] = None

    up = sum(1 for error in outcomes.values() if error is None)
    logger.info(f"Datastores ready: {up}/{len(stores)}")
    return outcomes


async def close_datastores(ctx: AppContext) -> None:
    """Close every store; a failing close is logged, never raised"""
    for store in ctx.datastores.values():
        try:
            await store.close()
        except Exception as e:
            logger.warning(f"Error closing {store.name}: {e}")

    if ctx.rate_limiter is not None:
        try:
            await ctx.rate_limiter.close()
        except Exception as e:
            logger.warning(f"Error closing rate limiter: {e}")
