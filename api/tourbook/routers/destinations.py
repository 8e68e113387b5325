"""
Tour Destination Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional
import logging

from tourbook.context import AppContext, get_context, get_db, get_mongodb
from tourbook.models.destination import Destination
from tourbook.schemas.destination import (
    DestinationCreate,
    DestinationResponse,
    DestinationListResponse,
    DestinationStats,
    GalleryImageResponse,
    ReviewCreate,
    ReviewResponse,
)
from tourbook.services import activity
from tourbook.services.destination_cache import DestinationCacheService
from tourbook.utils.mongodb import MongoStore

router = APIRouter()
logger = logging.getLogger(__name__)

DATA_SOURCE_HEADER = "X-Data-Source"


def get_destination_cache(ctx: AppContext = Depends(get_context)) -> DestinationCacheService:
    cassandra = ctx.cassandra if ctx.status.is_up(ctx.cassandra.name) else None
    return DestinationCacheService(cassandra, ctx.tasks, ctx.settings.CACHE_TTL_DESTINATIONS)


async def _require_destination(db: AsyncSession, destination_id: int) -> Destination:
    destination = await db.get(Destination, destination_id)
    if not destination:
        raise HTTPException(status_code=404, detail="Destination not found")
    return destination


@router.get("", response_model=DestinationListResponse)
async def list_destinations(
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """
    List destinations, newest first; every row unless a limit is given
    """
    query = (
        select(Destination)
        .order_by(Destination.created_at.desc(), Destination.id.desc())
        .offset(offset)
    )
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    destinations = result.scalars().all()

    count_result = await db.execute(select(func.count()).select_from(Destination))
    total = count_result.scalar()

    return DestinationListResponse(
        destinations=destinations,
        total=total,
        limit=limit,
        offset=offset
    )


@router.post("", response_model=DestinationResponse, status_code=201)
async def create_destination(
    payload: DestinationCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a tour destination; name, location, price and duration_days are required
    """
    destination = Destination(**payload.model_dump())
    db.add(destination)
    await db.commit()
    await db.refresh(destination)

    logger.info(f"Destination created: {destination.id} {destination.name}")
    return destination


@router.get("/analytics/overview", response_model=DestinationStats)
async def destinations_overview(db: AsyncSession = Depends(get_db)):
    """
    Destination count and price statistics
    """
    result = await db.execute(
        select(
            func.count(Destination.id),
            func.avg(Destination.price),
            func.min(Destination.price),
            func.max(Destination.price),
        )
    )
    total, average, minimum, maximum = result.one()

    return DestinationStats(
        total_destinations=total or 0,
        average_price=float(average) if average is not None else None,
        min_price=float(minimum) if minimum is not None else None,
        max_price=float(maximum) if maximum is not None else None,
    )


@router.get("/{destination_id}", response_model=DestinationResponse)
async def get_destination(
    destination_id: int,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    cache: DestinationCacheService = Depends(get_destination_cache),
    ctx: AppContext = Depends(get_context),
):
    """
    Get a destination, served from the Cassandra cache when present
    """
    destination, source = await cache.get_destination(db, destination_id)
    if destination is None:
        raise HTTPException(status_code=404, detail="Destination not found")

    activity.log_activity(
        ctx, request, "view_destination", "destinations", destination_id,
        metadata={"destination_name": destination.name, "source": source},
    )
    activity.track_daily(ctx, destination_views=1, page_views=1)

    response.headers[DATA_SOURCE_HEADER] = source
    return destination


@router.get("/{destination_id}/reviews", response_model=List[ReviewResponse])
async def list_destination_reviews(
    destination_id: int,
    limit: int = Query(20, ge=1, le=100),
    mongodb: MongoStore = Depends(get_mongodb),
):
    """
    Client reviews of a destination, newest first
    """
    return await mongodb.list_reviews(str(destination_id), limit=limit)


@router.post("/{destination_id}/reviews", response_model=ReviewResponse, status_code=201)
async def add_destination_review(
    destination_id: int,
    payload: ReviewCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    mongodb: MongoStore = Depends(get_mongodb),
    ctx: AppContext = Depends(get_context),
):
    await _require_destination(db, destination_id)

    review = await mongodb.add_review({"destination_id": str(destination_id), **payload.model_dump()})
    activity.log_activity(
        ctx, request, "create_review", "reviews", review["id"],
        metadata={"destination_id": destination_id, "rating": payload.rating},
    )
    return review


@router.get("/{destination_id}/gallery", response_model=List[GalleryImageResponse])
async def get_destination_gallery(
    destination_id: int,
    mongodb: MongoStore = Depends(get_mongodb),
):
    """
    Gallery images of a destination, featured first
    """
    return await mongodb.list_gallery(str(destination_id))
