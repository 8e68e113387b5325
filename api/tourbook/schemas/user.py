"""
User Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class UserRegister(BaseModel):
    """Schema for user registration"""
    fullname: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class PhoneUpdate(BaseModel):
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=20)


class LogoutRequest(BaseModel):
    session_id: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Schema for user response; the password hash is never exposed"""
    id: int
    username: str
    email: EmailStr
    phone: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    message: str
    user: UserResponse


class LoginResponse(BaseModel):
    message: str
    user: UserResponse
    session_id: str
