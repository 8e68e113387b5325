"""
Cross-Datastore Health Aggregator
"""
from datetime import datetime, timezone
from typing import Any, Dict
import asyncio
import logging

from tourbook.context import AppContext
from tourbook.startup import DATASTORE_UP
from tourbook.utils.datastore import Datastore, DatastoreUnavailableError

logger = logging.getLogger(__name__)


async def probe(store: Datastore) -> Dict[str, Any]:
    """Run one liveness query; never raises"""
    try:
        details = await store.ping()
    except DatastoreUnavailableError as e:
        status = {"status": "unavailable", "error": str(e)}
    except Exception as e:
        logger.warning(f"Health probe for {store.name} failed: {e}")
        status = {"status": "error", "error": str(e)}
    else:
        status = {"status": "connected", **(details or {})}

    DATASTORE_UP.labels(datastore=store.name).set(1 if status["status"] == "connected" else 0)
    status["timestamp"] = datetime.now(timezone.utc)
    return status


async def aggregate_health(ctx: AppContext) -> Dict[str, Any]:
    """
    Probe every datastore concurrently and merge the results.

    The overall status is "healthy" as long as the aggregation itself
    completes; individual datastores report their own status.
    """
    stores = ctx.datastores
    results = await asyncio.gather(*(probe(store) for store in stores.values()))
    # A store can answer pings yet stay down after a failed schema step
    for name, result in zip(stores.keys(), results):
        result["bootstrapped"] = ctx.status.is_up(name)

    return {
        "status": "healthy",
        "databases": dict(zip(stores.keys(), results)),
        "bootstrap": ctx.status.snapshot(),
        "timestamp": datetime.now(timezone.utc),
    }
