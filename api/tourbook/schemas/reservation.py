"""
Reservation Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import date, datetime

from tourbook.models.reservation import ReservationStatus


class ReservationCreate(BaseModel):
    """Schema for booking a tour"""
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr
    destination_id: int = Field(..., ge=1)
    travel_date: date
    number_of_people: int = Field(..., ge=1)


class ReservationStatusUpdate(BaseModel):
    """Only pending, confirmed, cancelled and completed are accepted"""
    status: ReservationStatus


class ReservationResponse(BaseModel):
    """Schema for reservation response"""
    id: int
    client_name: str
    client_email: str
    destination_id: int
    travel_date: date
    number_of_people: int
    total_price: float
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    destination_name: Optional[str] = None
    location: Optional[str] = None
    destination_price: Optional[float] = None

    class Config:
        from_attributes = True
