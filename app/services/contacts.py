"""Contact requests and the two-row contact graph built from them."""
import logging
from typing import List, Optional

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from app.models.contact import Contact, ContactRequest, ContactRequestStatus
from app.models.user import User

logger = logging.getLogger(__name__)

USER_SEARCH_LIMIT = 10


async def get_user_contacts(db: AsyncSession, user_id: int) -> List[Contact]:
    result = await db.execute(
        select(Contact)
        .where(Contact.user_id == user_id)
        .order_by(Contact.created_at.desc(), Contact.id.desc())
    )
    return list(result.scalars().all())


async def are_contacts(db: AsyncSession, user_id: int, other_user_id: int) -> bool:
    result = await db.execute(
        select(Contact.id).where(
            or_(
                and_(Contact.user_id == user_id, Contact.contact_user_id == other_user_id),
                and_(Contact.user_id == other_user_id, Contact.contact_user_id == user_id),
            )
        ).limit(1)
    )
    return result.first() is not None


async def create_contact_request(
    db: AsyncSession, requester_id: int, recipient_id: int
) -> ContactRequest:
    """Open a pending request from ``requester_id`` to ``recipient_id``"""
    if requester_id == recipient_id:
        raise InvalidInputError("You cannot add yourself as a contact")

    if await are_contacts(db, requester_id, recipient_id):
        raise ConflictError("This contact already exists")

    result = await db.execute(
        select(ContactRequest.id).where(
            and_(
                ContactRequest.requester_id == requester_id,
                ContactRequest.recipient_id == recipient_id,
                ContactRequest.status == ContactRequestStatus.PENDING.value,
            )
        ).limit(1)
    )
    if result.first() is not None:
        raise ConflictError("A request is already pending")

    requester = await db.get(User, requester_id)
    recipient = await db.get(User, recipient_id)
    if not requester or not recipient:
        raise NotFoundError("User not found")

    request = ContactRequest(
        requester_id=requester.id,
        requester_username=requester.username,
        requester_email=requester.email,
        recipient_id=recipient.id,
        status=ContactRequestStatus.PENDING.value,
    )
    db.add(request)
    await db.commit()
    await db.refresh(request)
    logger.info(
        "contact_request_created request_id=%s requester_id=%s recipient_id=%s",
        request.id, requester_id, recipient_id,
    )
    return request


async def _get_pending_request_for(
    db: AsyncSession, request_id: int, user_id: int
) -> ContactRequest:
    result = await db.execute(
        select(ContactRequest).where(
            and_(
                ContactRequest.id == request_id,
                ContactRequest.recipient_id == user_id,
                ContactRequest.status == ContactRequestStatus.PENDING.value,
            )
        )
    )
    request = result.scalar_one_or_none()
    if not request:
        raise NotFoundError("Request not found or already handled")
    return request


async def accept_contact_request(db: AsyncSession, request_id: int, user_id: int) -> Contact:
    """Accept a pending request addressed to ``user_id``.

    Creates one contact row per direction, each carrying the counterpart's
    username and email, and returns the row owned by the accepting user.
    A pending request in the opposite direction is accepted along with it;
    when the pair is already linked the existing row is returned.
    """
    request = await _get_pending_request_for(db, request_id, user_id)

    requester = await db.get(User, request.requester_id)
    recipient = await db.get(User, request.recipient_id)
    if not requester or not recipient:
        raise NotFoundError("User not found")

    await db.execute(
        update(ContactRequest)
        .where(
            and_(
                ContactRequest.requester_id == recipient.id,
                ContactRequest.recipient_id == requester.id,
                ContactRequest.status == ContactRequestStatus.PENDING.value,
            )
        )
        .values(status=ContactRequestStatus.ACCEPTED.value)
        .execution_options(synchronize_session=False)
    )
    request.status = ContactRequestStatus.ACCEPTED.value

    result = await db.execute(
        select(Contact).where(
            and_(Contact.user_id == recipient.id, Contact.contact_user_id == requester.id)
        )
    )
    contact = result.scalar_one_or_none()
    if contact:
        await db.commit()
        logger.info(
            "contact_request_accepted request_id=%s requester_id=%s recipient_id=%s existing=True",
            request_id, requester.id, recipient.id,
        )
        return contact

    db.add(Contact(
        user_id=requester.id,
        contact_user_id=recipient.id,
        contact_username=recipient.username,
        contact_email=recipient.email,
    ))
    contact = Contact(
        user_id=recipient.id,
        contact_user_id=requester.id,
        contact_username=requester.username,
        contact_email=requester.email,
    )
    db.add(contact)

    await db.commit()
    await db.refresh(contact)
    logger.info(
        "contact_request_accepted request_id=%s requester_id=%s recipient_id=%s",
        request_id, requester.id, recipient.id,
    )
    return contact


async def reject_contact_request(db: AsyncSession, request_id: int, user_id: int) -> None:
    request = await _get_pending_request_for(db, request_id, user_id)
    request.status = ContactRequestStatus.REJECTED.value
    await db.commit()
    logger.info("contact_request_rejected request_id=%s user_id=%s", request_id, user_id)


async def get_pending_contact_requests(db: AsyncSession, user_id: int) -> List[ContactRequest]:
    """Pending requests addressed to the user, newest first"""
    result = await db.execute(
        select(ContactRequest)
        .where(
            and_(
                ContactRequest.recipient_id == user_id,
                ContactRequest.status == ContactRequestStatus.PENDING.value,
            )
        )
        .order_by(ContactRequest.created_at.desc(), ContactRequest.id.desc())
    )
    return list(result.scalars().all())


async def remove_contact(db: AsyncSession, user_id: int, contact_id: int) -> bool:
    """Remove a contact of ``user_id`` together with its reverse row"""
    result = await db.execute(
        select(Contact).where(and_(Contact.id == contact_id, Contact.user_id == user_id))
    )
    contact = result.scalar_one_or_none()
    if not contact:
        return False

    await db.execute(
        delete(Contact).where(
            or_(
                Contact.id == contact.id,
                and_(
                    Contact.user_id == contact.contact_user_id,
                    Contact.contact_user_id == user_id,
                ),
            )
        )
    )
    await db.commit()
    logger.info(
        "contact_removed user_id=%s contact_user_id=%s", user_id, contact.contact_user_id
    )
    return True


async def find_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    """Exact username match ignoring case and a leading @"""
    username = username.strip().lstrip("@").lower()
    result = await db.execute(select(User).where(func.lower(User.username) == username))
    return result.scalar_one_or_none()


async def find_user_by_identifier(db: AsyncSession, identifier: str) -> Optional[User]:
    """Look a user up by email, or by username as ``find_user_by_username`` does"""
    identifier = identifier.strip()
    if "@" in identifier.lstrip("@"):
        result = await db.execute(select(User).where(User.email == identifier.lower()))
        return result.scalar_one_or_none()
    return await find_user_by_username(db, identifier)


async def search_users_by_username(
    db: AsyncSession, query: str, exclude_user_id: int
) -> List[User]:
    """Other users whose username contains ``query``, ignoring case"""
    escaped = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    search_term = f"%{escaped}%"
    result = await db.execute(
        select(User)
        .where(and_(User.id != exclude_user_id, User.username.ilike(search_term, escape="\\")))
        .order_by(User.username)
        .limit(USER_SEARCH_LIMIT)
    )
    return list(result.scalars().all())
