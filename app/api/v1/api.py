from fastapi import APIRouter
from app.api.v1.endpoints import (
    admin, auth, contacts, habits, notes, reminders, shares, subscription, tasks, users,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(habits.router, prefix="/habits", tags=["habits"])
api_router.include_router(reminders.router, prefix="/reminders", tags=["reminders"])
api_router.include_router(shares.router, prefix="/shares", tags=["shares"])
api_router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
api_router.include_router(subscription.router, prefix="/subscription", tags=["subscription"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
