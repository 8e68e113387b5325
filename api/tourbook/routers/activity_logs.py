"""
Activity Log Endpoints
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from tourbook.context import get_mongodb
from tourbook.utils.mongodb import MongoStore

router = APIRouter()


@router.get("")
async def list_activity_logs(
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    action: Optional[str] = Query(None, description="Filter by action, e.g. create_reservation"),
    resource: Optional[str] = Query(None, description="Filter by resource, e.g. reservations"),
    mongodb: MongoStore = Depends(get_mongodb),
):
    """
    Activity logs, newest first
    """
    logs, total = await mongodb.list_activity_logs(action=action, resource=resource, limit=limit, skip=skip)
    return {"data": logs, "total": total}
