"""
User Notification Endpoints
"""
from fastapi import APIRouter, Depends, Query
from typing import List

from tourbook.context import get_cassandra
from tourbook.schemas.company import NotificationResponse
from tourbook.utils.cassandra import CassandraStore

router = APIRouter()


@router.get("/{user_id}", response_model=List[NotificationResponse])
async def get_notifications(
    user_id: str,
    limit: int = Query(50, ge=1, le=200),
    cassandra: CassandraStore = Depends(get_cassandra),
):
    """
    Unexpired notifications of a user, newest first
    """
    return await cassandra.get_user_notifications(user_id, limit=limit)
