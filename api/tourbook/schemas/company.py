"""
Company Schemas - contact form, site configuration, notifications
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict
from datetime import datetime
from uuid import UUID


class ContactMessage(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)


class SiteConfigUpdate(BaseModel):
    """Partial update of the single site configuration document"""
    site_name: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    social_media: Optional[Dict[str, str]] = None
    business_hours: Optional[Dict[str, str]] = None
    payment_methods: Optional[List[str]] = None


class NotificationResponse(BaseModel):
    notification_id: UUID
    user_id: str
    notification_type: str
    title: str
    message: str
    is_read: bool = False
    created_at: datetime
    expires_at: Optional[datetime] = None
