"""
Destination Schemas
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class DestinationCreate(BaseModel):
    """Schema for creating a destination"""
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    duration_days: int = Field(..., ge=1)
    includes: List[str] = []
    image_url: Optional[str] = Field(None, max_length=500)


class DestinationResponse(BaseModel):
    """Schema for destination response (database row or cache entry)"""
    id: int
    name: str
    location: str
    description: Optional[str] = None
    price: float
    duration_days: int
    includes: List[str] = []
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("includes", mode="before")
    @classmethod
    def _includes_default(cls, value):
        return value or []

    class Config:
        from_attributes = True


class DestinationListResponse(BaseModel):
    """Schema for paginated destination list"""
    destinations: List[DestinationResponse]
    total: int
    limit: Optional[int] = None
    offset: int


class DestinationStats(BaseModel):
    total_destinations: int
    average_price: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class ReviewCreate(BaseModel):
    """Schema for a client review of a destination"""
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)


class ReviewResponse(BaseModel):
    id: str
    destination_id: str
    client_name: str
    rating: int
    comment: str
    is_verified: bool = False
    helpful_votes: int = 0
    created_at: Optional[datetime] = None


class GalleryImageResponse(BaseModel):
    id: str
    destination_id: str
    image_url: str
    image_title: str
    image_description: Optional[str] = None
    is_featured: bool = False
    upload_date: Optional[datetime] = None
    tags: List[str] = []
