import hashlib
import hmac
import logging
import secrets
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.utils import as_utc, utcnow
from app.models.user import User, UserSession

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 120000
PBKDF2_KEY_LENGTH = 64
PBKDF2_DIGEST = "sha512"


def get_password_hash(password: str) -> str:
    """Hash a password as ``salt:iterations:hex`` using PBKDF2-HMAC-SHA512"""
    salt = secrets.token_hex(16)
    derived = hashlib.pbkdf2_hmac(
        PBKDF2_DIGEST, password.encode("utf-8"), salt.encode("utf-8"),
        PBKDF2_ITERATIONS, dklen=PBKDF2_KEY_LENGTH,
    )
    return f"{salt}:{PBKDF2_ITERATIONS}:{derived.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a password against a stored ``salt:iterations:hex`` hash"""
    try:
        salt, iterations, original = stored_hash.split(":")
        iterations = int(iterations)
    except ValueError:
        return False
    if not salt or not iterations or not original:
        return False
    derived = hashlib.pbkdf2_hmac(
        PBKDF2_DIGEST, password.encode("utf-8"), salt.encode("utf-8"),
        iterations, dklen=PBKDF2_KEY_LENGTH,
    )
    return hmac.compare_digest(derived.hex(), original)


def generate_session_token() -> str:
    return secrets.token_hex(32)


async def create_session(db: AsyncSession, user_id: int) -> UserSession:
    session = UserSession(
        token=generate_session_token(),
        user_id=user_id,
        expires_at=utcnow() + timedelta(days=settings.SESSION_EXPIRE_DAYS),
    )
    db.add(session)
    await db.commit()
    return session


async def get_session(db: AsyncSession, token: str) -> Optional[UserSession]:
    """Return a live session; an expired one is deleted on the spot"""
    result = await db.execute(select(UserSession).where(UserSession.token == token))
    session = result.scalar_one_or_none()
    if not session:
        return None

    if as_utc(session.expires_at) <= utcnow():
        await db.delete(session)
        await db.commit()
        logger.info("session_expired user_id=%s", session.user_id)
        return None

    return session


async def delete_session(db: AsyncSession, token: str) -> None:
    await db.execute(delete(UserSession).where(UserSession.token == token))
    await db.commit()


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """Resolve the user behind the session cookie"""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    session = await get_session(db, token)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired"
        )

    return session.user


async def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required"
        )
    return current_user
