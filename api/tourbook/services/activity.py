"""
Side-effect helpers: activity logs, daily analytics, notifications, sessions, financial records, metrics

Every helper schedules its write on the context's background runner and
returns immediately. A failing write is recorded on the runner, never
raised to the request. Writes to a store that never came up are skipped.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional
import asyncio
import logging

from fastapi import Request

from tourbook.context import AppContext
from tourbook.utils.datastore import Datastore

logger = logging.getLogger(__name__)

ADMIN_USER_ID = "admin"


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


def user_agent(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    return request.headers.get("user-agent")


def _spawn(
    ctx: AppContext,
    store: Datastore,
    write: Callable[[], Awaitable[Any]],
    name: str,
) -> Optional[asyncio.Task]:
    if not ctx.status.is_up(store.name):
        logger.debug(f"Skipping {name}: {store.name} is not available")
        return None
    return ctx.tasks.spawn(write(), name=name)


def log_activity(
    ctx: AppContext,
    request: Optional[Request],
    action: str,
    resource: str,
    resource_id: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
) -> Optional[asyncio.Task]:
    entry = {
        "user_id": user_id,
        "action": action,
        "resource": resource,
        "resource_id": str(resource_id) if resource_id is not None else None,
        "ip_address": client_ip(request),
        "user_agent": user_agent(request),
        "metadata": metadata or {},
        "timestamp": datetime.now(timezone.utc),
    }
    return _spawn(ctx, ctx.mongodb, lambda: ctx.mongodb.log_activity(entry), f"log_activity:{action}")


def track_daily(ctx: AppContext, **increments: float) -> Optional[asyncio.Task]:
    """Increment today's analytics counters"""
    day = datetime.now(timezone.utc).date()
    return _spawn(
        ctx,
        ctx.mongodb,
        lambda: ctx.mongodb.record_daily_metrics(day, **increments),
        f"track_daily:{day.isoformat()}",
    )


def notify(
    ctx: AppContext,
    user_id: str,
    notification_type: str,
    title: str,
    message: str,
    expires_in: timedelta,
) -> Optional[asyncio.Task]:
    expires_at = datetime.now(timezone.utc) + expires_in
    return _spawn(
        ctx,
        ctx.cassandra,
        lambda: ctx.cassandra.create_notification(user_id, notification_type, title, message, expires_at),
        f"notify:{notification_type}",
    )


def start_session(
    ctx: AppContext,
    request: Optional[Request],
    session_id: str,
    user_id: Any,
    session_data: Optional[Dict[str, str]] = None,
) -> Optional[asyncio.Task]:
    return _spawn(
        ctx,
        ctx.cassandra,
        lambda: ctx.cassandra.create_session(
            session_id, str(user_id), client_ip(request), user_agent(request), session_data
        ),
        f"start_session:{user_id}",
    )


def record_transaction(
    ctx: AppContext,
    transaction_type: str,
    amount: Any,
    description: str,
    category: str,
    reservation_id: Optional[int] = None,
) -> Optional[asyncio.Task]:
    return _spawn(
        ctx,
        ctx.oracle,
        lambda: ctx.oracle.record_transaction(transaction_type, amount, description, category, reservation_id),
        f"record_transaction:{category}",
    )


def record_metric(
    ctx: AppContext,
    metric_type: str,
    metric_name: str,
    value: float,
    tags: Optional[Dict[str, Any]] = None,
) -> Optional[asyncio.Task]:
    return _spawn(
        ctx,
        ctx.cassandra,
        lambda: ctx.cassandra.record_metric(metric_type, metric_name, value, tags),
        f"record_metric:{metric_type}",
    )
