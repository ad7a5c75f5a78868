"""
Reminder models.

ReminderSpec is the in-memory description produced by the reminder generator;
Reminder is the persisted record, always tied to a Document of the same user.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

import pymongo
from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import IndexModel


class ReminderType(str, Enum):
    DUE_DATE = "DUE_DATE"
    EXPIRY = "EXPIRY"
    RENEWAL = "RENEWAL"
    PAYMENT = "PAYMENT"
    OTHER = "OTHER"


class ReminderStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    DISMISSED = "DISMISSED"


class ReminderSpec(BaseModel):
    """Not-yet-persisted reminder derived from an analysis."""

    title: str
    description: str
    reminder_date: datetime
    reminder_type: ReminderType
    status: ReminderStatus = ReminderStatus.PENDING


class Reminder(Document):
    """
    Scheduled notification for a document.
    notification_sent is reserved for a delivery mechanism.
    """

    user_id: str
    document_id: PydanticObjectId
    title: str
    description: Optional[str] = None
    reminder_date: datetime
    reminder_type: ReminderType = ReminderType.OTHER
    status: ReminderStatus = ReminderStatus.PENDING
    notification_sent: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "reminders"
        use_state_management = True
        indexes = [
            IndexModel([("user_id", pymongo.ASCENDING), ("reminder_date", pymongo.ASCENDING)]),
            IndexModel([("user_id", pymongo.ASCENDING), ("status", pymongo.ASCENDING)]),
            "document_id",
        ]

    @classmethod
    def from_spec(cls, spec: ReminderSpec, user_id: str, document_id: PydanticObjectId) -> "Reminder":
        return cls(user_id=user_id, document_id=document_id, **spec.model_dump())


def reminder_payload(reminder: Reminder, document: Optional[dict] = None) -> dict:
    """camelCase representation; `document` is an optional embedded summary."""
    return {
        "id": str(reminder.id),
        "user": reminder.user_id,
        "document": document if document is not None else str(reminder.document_id),
        "title": reminder.title,
        "description": reminder.description,
        "reminderDate": reminder.reminder_date.isoformat(),
        "reminderType": reminder.reminder_type.value,
        "status": reminder.status.value,
        "notificationSent": reminder.notification_sent,
        "createdAt": reminder.created_at.isoformat(),
    }
