"""
Daily Analytics Endpoints
"""
from fastapi import APIRouter, Depends, Query
from datetime import datetime
from typing import Optional

from tourbook.context import get_mongodb
from tourbook.utils.mongodb import MongoStore

router = APIRouter()


@router.get("")
async def list_analytics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    limit: int = Query(30, ge=1, le=365),
    mongodb: MongoStore = Depends(get_mongodb),
):
    """
    Daily analytics documents, most recent day first
    """
    documents, total = await mongodb.list_analytics(start_date, end_date, limit=limit)
    return {"data": documents, "total": total}
