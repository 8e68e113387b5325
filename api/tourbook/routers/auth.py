"""
Authentication Endpoints - registration, login sessions, profile phone
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from passlib.context import CryptContext
import logging
import uuid

from tourbook.context import AppContext, get_cassandra, get_context, get_db
from tourbook.models.user import User
from tourbook.schemas.user import (
    LoginResponse,
    LogoutRequest,
    PhoneUpdate,
    RegisterResponse,
    UserLogin,
    UserRegister,
)
from tourbook.services import activity
from tourbook.utils.cassandra import CassandraStore

router = APIRouter()
logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash"""
    return pwd_context.hash(password)


async def get_user_by_email(db: AsyncSession, email: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    user_data: UserRegister,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    """
    Register a new user account
    """
    if await get_user_by_email(db, user_data.email):
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        username=user_data.fullname,
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        await db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    await db.refresh(user)

    logger.info(f"New user registered: {user.email}")
    activity.log_activity(ctx, request, "register", "users", user.id, user_id=str(user.id))

    return {"message": "User registered successfully", "user": user}


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    """
    Check credentials and open a session
    """
    user = await get_user_by_email(db, credentials.email)
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    session_id = str(uuid.uuid4())
    activity.start_session(ctx, request, session_id, user.id, {"email": user.email, "role": user.role or "client"})
    activity.log_activity(ctx, request, "login", "users", user.id, user_id=str(user.id))

    logger.info(f"User logged in: {user.email}")
    return {"message": "Login successful", "user": user, "session_id": session_id}


@router.post("/logout")
async def logout(
    payload: LogoutRequest,
    request: Request,
    cassandra: CassandraStore = Depends(get_cassandra),
    ctx: AppContext = Depends(get_context),
):
    """
    Flag a session inactive; the session row is kept
    """
    if not await cassandra.deactivate_session(payload.session_id):
        raise HTTPException(status_code=404, detail="Session not found")

    activity.log_activity(ctx, request, "logout", "sessions", payload.session_id)
    return {"message": "Logged out successfully"}


@router.put("/update-phone", response_model=RegisterResponse)
async def update_phone(
    payload: PhoneUpdate,
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_by_email(db, payload.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.phone = payload.phone
    await db.commit()
    await db.refresh(user)

    logger.info(f"Phone updated for user: {user.email}")
    return {"message": "Phone updated successfully", "user": user}
