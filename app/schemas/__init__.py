from .user import UserCreate, UserResponse, UserSummary
from .auth import LoginRequest, LoginResponse
from .note import (
    NoteCreate, NoteUpdate, NoteResponse, NoteCreatedResponse, NoteListResponse, PublicNoteResponse,
)
from .task import (
    TaskCreate, TaskUpdate, TaskStatusUpdate, TaskResponse, TaskStats, SubTaskCreate, SubTaskResponse,
)
from .habit import (
    HabitCreate, HabitUpdate, HabitRecordUpdate, HabitResponse, HabitRecordResponse, HabitWeeklyStats,
)
from .reminder import ReminderCreate, ReminderResponse, ReminderListResponse
from .share import ShareCreate, ShareResponse, PublicShareResponse, OwnedShareDetail
from .contact import ContactRequestCreate, ContactRequestResponse, ContactResponse
from .subscription import SubscriptionResponse, PlanLimits, CheckoutResponse

__all__ = [
    "UserCreate", "UserResponse", "UserSummary",
    "LoginRequest", "LoginResponse",
    "NoteCreate", "NoteUpdate", "NoteResponse", "NoteCreatedResponse", "NoteListResponse",
    "PublicNoteResponse",
    "TaskCreate", "TaskUpdate", "TaskStatusUpdate", "TaskResponse", "TaskStats",
    "SubTaskCreate", "SubTaskResponse",
    "HabitCreate", "HabitUpdate", "HabitRecordUpdate", "HabitResponse", "HabitRecordResponse",
    "HabitWeeklyStats",
    "ReminderCreate", "ReminderResponse", "ReminderListResponse",
    "ShareCreate", "ShareResponse", "PublicShareResponse", "OwnedShareDetail",
    "ContactRequestCreate", "ContactRequestResponse", "ContactResponse",
    "SubscriptionResponse", "PlanLimits", "CheckoutResponse",
]
