from .user import User, UserSession
from .note import Note, NoteCategory
from .share import Share, PublicShare, ShareType, SharePermission
from .task import Task, SubTask, TaskStatus
from .habit import Habit, DailyHabitRecord, HabitStatus
from .reminder import Reminder
from .contact import Contact, ContactRequest, ContactRequestStatus
from .subscription import Subscription, SubscriptionPlan, SubscriptionStatus

__all__ = [
    "User", "UserSession",
    "Note", "NoteCategory",
    "Share", "PublicShare", "ShareType", "SharePermission",
    "Task", "SubTask", "TaskStatus",
    "Habit", "DailyHabitRecord", "HabitStatus",
    "Reminder",
    "Contact", "ContactRequest", "ContactRequestStatus",
    "Subscription", "SubscriptionPlan", "SubscriptionStatus",
]
