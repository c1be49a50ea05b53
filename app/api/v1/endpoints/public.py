from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.note import PublicNoteResponse
from app.services.notes import get_note_by_id
from app.services.shares import get_public_share_by_token

router = APIRouter()


@router.get("/shared/{token}")
async def read_shared_note(token: str, db: AsyncSession = Depends(get_db)):
    """Read a note through its public link; no session required"""
    public_share = await get_public_share_by_token(db, token)
    if not public_share:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid or expired share link"
        )

    note = await get_note_by_id(db, public_share.note_id)
    if not note:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Note not found"
        )

    return {
        "note": PublicNoteResponse.model_validate(note),
        "expires_at": public_share.expires_at,
    }
