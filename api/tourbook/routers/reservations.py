"""
Reservation Endpoints

PostgreSQL holds the reservation. Oracle finances, MongoDB logs and
analytics, and Cassandra notifications are written in the background.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional
import logging

from tourbook.context import AppContext, best_effort, get_context, get_db
from tourbook.models.destination import Destination
from tourbook.models.reservation import Reservation, ReservationStatus
from tourbook.schemas.reservation import (
    ReservationCreate,
    ReservationResponse,
    ReservationStatusUpdate,
)
from tourbook.services import activity

router = APIRouter()
logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _reservation_response(
    reservation: Reservation,
    destination: Optional[Destination] = None,
    with_price: bool = False,
) -> ReservationResponse:
    response = ReservationResponse.model_validate(reservation)
    if destination is not None:
        response.destination_name = destination.name
        response.location = destination.location
        if with_price:
            response.destination_price = float(destination.price)
    return response


def _joined():
    return select(Reservation, Destination).join(
        Destination, Reservation.destination_id == Destination.id
    )


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    payload: ReservationCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    """
    Book a tour: total_price = destination price x number of people
    """
    destination = await db.get(Destination, payload.destination_id)
    if not destination:
        raise HTTPException(status_code=404, detail="Destination not found")

    total_price = (Decimal(str(destination.price)) * payload.number_of_people).quantize(CENTS)

    reservation = Reservation(
        client_name=payload.client_name,
        client_email=payload.client_email,
        destination_id=destination.id,
        travel_date=payload.travel_date,
        number_of_people=payload.number_of_people,
        total_price=total_price,
        status=ReservationStatus.PENDING.value,
    )
    db.add(reservation)
    await db.commit()
    await db.refresh(reservation)

    logger.info(f"Reservation {reservation.id} created for {destination.name} ({total_price})")

    activity.record_transaction(
        ctx, "INCOME", total_price,
        f"Reservation for {destination.name} - {payload.client_name}",
        "RESERVATION", reservation.id,
    )
    activity.log_activity(
        ctx, request, "create_reservation", "reservations", reservation.id,
        metadata={
            "client_name": payload.client_name,
            "destination_name": destination.name,
            "total_price": float(total_price),
            "number_of_people": payload.number_of_people,
        },
    )
    activity.track_daily(ctx, reservations=1, revenue=float(total_price))
    activity.notify(
        ctx, payload.client_email, "RESERVATION_CONFIRMED", "Reservation Confirmed",
        f"Your reservation for {destination.name} has been confirmed. Total: S/{total_price}",
        expires_in=timedelta(days=30),
    )

    return _reservation_response(reservation, destination)


@router.get("", response_model=List[ReservationResponse])
async def list_reservations(
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    """
    All reservations with their destination, newest first
    """
    result = await db.execute(
        _joined().order_by(Reservation.created_at.desc(), Reservation.id.desc())
    )
    rows = result.all()

    activity.log_activity(
        ctx, request, "view_reservations", "reservations", metadata={"count": len(rows)}
    )
    return [_reservation_response(reservation, destination) for reservation, destination in rows]


@router.get("/analytics/financial")
async def financial_report(
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    """
    Financial report: Oracle ledger, last 30 days of reservations, today's analytics.

    PostgreSQL is required; the Oracle and MongoDB sections are null when
    those stores are unavailable.
    """
    since = datetime.now(timezone.utc) - timedelta(days=30)
    result = await db.execute(
        select(
            func.count(Reservation.id),
            func.sum(Reservation.total_price),
            func.avg(Reservation.total_price),
            func.count(case((Reservation.status == ReservationStatus.CONFIRMED.value, 1))),
            func.count(case((Reservation.status == ReservationStatus.CANCELLED.value, 1))),
        ).where(Reservation.created_at >= since)
    )
    total, revenue, average, confirmed, cancelled = result.one()

    today = datetime.now(timezone.utc).date()
    financial_dashboard = await best_effort(ctx, ctx.oracle, ctx.oracle.get_financial_dashboard)
    daily_analytics = await best_effort(ctx, ctx.mongodb, lambda: ctx.mongodb.get_daily_analytics(today))

    return {
        "financial_dashboard": financial_dashboard,
        "reservation_statistics": {
            "total_reservations": total or 0,
            "total_revenue": float(revenue or 0),
            "average_reservation_value": float(average) if average is not None else None,
            "confirmed_reservations": confirmed or 0,
            "cancelled_reservations": cancelled or 0,
        },
        "daily_analytics": daily_analytics,
    }


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    result = await db.execute(_joined().where(Reservation.id == reservation_id))
    row = result.first()
    if not row:
        raise HTTPException(status_code=404, detail="Reservation not found")

    reservation, destination = row
    activity.log_activity(
        ctx, request, "view_reservation", "reservations", reservation_id,
        metadata={"client_name": reservation.client_name},
    )
    return _reservation_response(reservation, destination, with_price=True)


@router.put("/{reservation_id}/status", response_model=ReservationResponse)
async def update_reservation_status(
    reservation_id: int,
    payload: ReservationStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    """
    Move a reservation to pending, confirmed, cancelled or completed
    """
    reservation = await db.get(Reservation, reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")

    old_status = reservation.status
    new_status = payload.status.value
    reservation.status = new_status
    await db.commit()
    await db.refresh(reservation)

    logger.info(f"Reservation {reservation_id} status: {old_status} -> {new_status}")

    if payload.status == ReservationStatus.CANCELLED:
        activity.record_transaction(
            ctx, "EXPENSE", reservation.total_price,
            f"Cancellation of reservation - {reservation.client_name}",
            "CANCELLATION", reservation.id,
        )
    activity.log_activity(
        ctx, request, "update_reservation_status", "reservations", reservation_id,
        metadata={
            "old_status": old_status,
            "new_status": new_status,
            "client_name": reservation.client_name,
        },
    )
    activity.notify(
        ctx, reservation.client_email, "RESERVATION_STATUS_CHANGED", "Reservation Status Updated",
        f"Your reservation is now {new_status}",
        expires_in=timedelta(days=7),
    )

    return _reservation_response(reservation)
