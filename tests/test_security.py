from datetime import timedelta

from sqlalchemy import select

from app.core.security import (
    create_session,
    generate_session_token,
    get_password_hash,
    get_session,
    verify_password,
)
from app.core.utils import utcnow
from app.models.user import UserSession
from tests.conftest import create_user


def test_password_hash_format():
    stored = get_password_hash("s3cret-password")
    salt, iterations, derived = stored.split(":")
    assert len(salt) == 32
    assert iterations == "120000"
    assert len(derived) == 128


def test_verify_password():
    stored = get_password_hash("s3cret-password")
    assert verify_password("s3cret-password", stored)
    assert not verify_password("wrong-password", stored)


def test_verify_password_rejects_malformed_hash():
    assert not verify_password("anything", "not-a-hash")
    assert not verify_password("anything", "salt:abc:deadbeef")
    assert not verify_password("anything", "salt:0:deadbeef")


def test_session_tokens_are_unique_hex():
    first, second = generate_session_token(), generate_session_token()
    assert first != second
    assert len(first) == 64
    int(first, 16)


async def test_live_session_is_returned(db):
    user = await create_user(db, "carol")
    session = await create_session(db, user.id)

    found = await get_session(db, session.token)
    assert found is not None
    assert found.user_id == user.id


async def test_expired_session_is_deleted_on_read(db):
    user = await create_user(db, "carol")
    session = await create_session(db, user.id)
    session.expires_at = utcnow() - timedelta(seconds=1)
    await db.commit()

    assert await get_session(db, session.token) is None

    result = await db.execute(select(UserSession).where(UserSession.token == session.token))
    assert result.scalar_one_or_none() is None


async def test_unknown_session_token(db):
    assert await get_session(db, "0" * 64) is None
