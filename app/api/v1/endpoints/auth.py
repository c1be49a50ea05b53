import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.security import (
    clear_session_cookie,
    create_session,
    delete_session,
    get_password_hash,
    set_session_cookie,
    verify_password,
)
from app.models.user import User
from app.schemas.auth import LoginRequest, LoginResponse
from app.schemas.user import UserCreate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(user: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new user"""
    result = await db.execute(select(User).where(User.email == user.email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )

    result = await db.execute(
        select(User).where(func.lower(User.username) == user.username.lower())
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already taken"
        )

    db_user = User(
        email=user.email,
        username=user.username,
        password_hash=get_password_hash(user.password),
    )
    db.add(db_user)
    await db.commit()
    logger.info("user_signed_up user_id=%s", db_user.id)

    return {"success": True}


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Log in with email and password and set the session cookie"""
    result = await db.execute(
        select(User).where(User.email == credentials.email.strip().lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info("login_failed email=%s", credentials.email.strip().lower())
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    existing_token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if existing_token:
        await delete_session(db, existing_token)

    session = await create_session(db, user.id)
    set_session_cookie(response, session.token)
    logger.info("user_logged_in user_id=%s", user.id)

    return LoginResponse(user=UserResponse.model_validate(user))


@router.post("/logout")
async def logout(request: Request, response: Response, db: AsyncSession = Depends(get_db)):
    """Delete the current session and expire the cookie"""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        await delete_session(db, token)
        logger.info("user_logged_out")

    clear_session_cookie(response)
    return {"success": True}
