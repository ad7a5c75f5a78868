"""
Reminder APIs: listing windows, status changes, snoozing and bulk operations.

Reminders are created only by document ingestion; these endpoints read and
mutate them for the owning user.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Annotated, List, Optional

from beanie import PydanticObjectId
from beanie.operators import In, Set
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from lifeos.api.auth import get_current_user
from lifeos.config import get_settings
from lifeos.models.document import Document
from lifeos.models.reminder import Reminder, ReminderStatus, ReminderType, reminder_payload
from lifeos.models.user import User

logger = logging.getLogger(__name__)
router = APIRouter()


class SnoozeRequest(BaseModel):
    days: int = Field(default=1, ge=1, le=365)


class BulkRequest(BaseModel):
    reminder_ids: Optional[List[PydanticObjectId]] = Field(default=None, alias="reminderIds")


def _document_summary(doc: Optional[Document]) -> Optional[dict]:
    if doc is None:
        return None
    return {
        "id": str(doc.id),
        "fileName": doc.file_name,
        "documentType": doc.document_type.value,
        "category": doc.category.value,
        "priority": doc.priority.value,
    }


async def _with_documents(reminders: List[Reminder]) -> List[dict]:
    """Serialize reminders with a short summary of their document embedded."""
    ids = list({r.document_id for r in reminders})
    docs = await Document.find(In(Document.id, ids)).to_list() if ids else []
    by_id = {doc.id: doc for doc in docs}
    return [reminder_payload(r, _document_summary(by_id.get(r.document_id))) for r in reminders]


def _bulk_ids(body: BulkRequest) -> List[PydanticObjectId]:
    if not body.reminder_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide an array of reminder IDs",
        )
    return body.reminder_ids


async def get_owned_reminder(reminder_id: PydanticObjectId, user: User) -> Reminder:
    reminder = await Reminder.get(reminder_id)
    if not reminder:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found")
    if reminder.user_id != user.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this reminder",
        )
    return reminder


@router.get("", response_model=dict, summary="List reminders")
async def list_reminders(
    current_user: Annotated[User, Depends(get_current_user)],
    reminder_status: Annotated[Optional[str], Query(alias="status")] = None,
    reminder_type: Annotated[Optional[str], Query(alias="type")] = None,
) -> dict:
    """All reminders of the caller, earliest first. Filters are case-insensitive."""
    filters = [Reminder.user_id == current_user.user_id]
    try:
        if reminder_status:
            filters.append(Reminder.status == ReminderStatus(reminder_status.upper()))
        if reminder_type:
            filters.append(Reminder.reminder_type == ReminderType(reminder_type.upper()))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    reminders = await Reminder.find(*filters).sort(+Reminder.reminder_date).to_list()
    return {"success": True, "count": len(reminders), "data": await _with_documents(reminders)}


@router.get("/upcoming", response_model=dict, summary="Pending reminders in the upcoming window")
async def upcoming_reminders(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    now = datetime.utcnow()
    until = now + timedelta(days=get_settings().upcoming_window_days)
    reminders = (
        await Reminder.find(
            Reminder.user_id == current_user.user_id,
            Reminder.status == ReminderStatus.PENDING,
            Reminder.reminder_date >= now,
            Reminder.reminder_date <= until,
        )
        .sort(+Reminder.reminder_date)
        .to_list()
    )

    data = []
    for reminder, payload in zip(reminders, await _with_documents(reminders)):
        days_until = math.ceil((reminder.reminder_date - now).total_seconds() / 86400)
        payload.update(daysUntil=days_until, isUrgent=days_until <= 3, isOverdue=days_until < 0)
        data.append(payload)
    return {"success": True, "count": len(data), "data": data}


@router.get("/overdue", response_model=dict, summary="Pending reminders already past")
async def overdue_reminders(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    reminders = (
        await Reminder.find(
            Reminder.user_id == current_user.user_id,
            Reminder.status == ReminderStatus.PENDING,
            Reminder.reminder_date < datetime.utcnow(),
        )
        .sort(+Reminder.reminder_date)
        .to_list()
    )
    return {"success": True, "count": len(reminders), "data": await _with_documents(reminders)}


@router.get("/today", response_model=dict, summary="Pending reminders due today (UTC)")
async def today_reminders(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    today = datetime.combine(datetime.utcnow().date(), datetime.min.time())
    tomorrow = today + timedelta(days=1)
    reminders = (
        await Reminder.find(
            Reminder.user_id == current_user.user_id,
            Reminder.status == ReminderStatus.PENDING,
            Reminder.reminder_date >= today,
            Reminder.reminder_date < tomorrow,
        )
        .sort(+Reminder.reminder_date)
        .to_list()
    )
    return {"success": True, "count": len(reminders), "data": await _with_documents(reminders)}


@router.get("/stats", response_model=dict, summary="Reminder statistics")
async def reminder_stats(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    owner = Reminder.user_id == current_user.user_id
    now = datetime.utcnow()
    soon = now + timedelta(days=get_settings().stats_upcoming_days)

    counts = {}
    for reminder_status in ReminderStatus:
        counts[reminder_status.value.lower()] = await Reminder.find(
            owner, Reminder.status == reminder_status
        ).count()
    overdue = await Reminder.find(
        owner, Reminder.status == ReminderStatus.PENDING, Reminder.reminder_date < now
    ).count()
    upcoming = await Reminder.find(
        owner,
        Reminder.status == ReminderStatus.PENDING,
        Reminder.reminder_date >= now,
        Reminder.reminder_date <= soon,
    ).count()
    by_type = await Reminder.find(owner).aggregate(
        [
            {"$group": {"_id": "$reminder_type", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
        ]
    ).to_list()

    return {
        "success": True,
        "data": {
            "total": await Reminder.find(owner).count(),
            **counts,
            "overdue": overdue,
            "upcoming": upcoming,
            "byType": by_type,
        },
    }


@router.delete("/bulk/delete", response_model=dict, summary="Delete several reminders")
async def bulk_delete_reminders(
    body: BulkRequest,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    ids = _bulk_ids(body)
    result = await Reminder.find(In(Reminder.id, ids), Reminder.user_id == current_user.user_id).delete()
    deleted = result.deleted_count if result else 0
    logger.info("Bulk deleted %d reminders for user %s", deleted, current_user.id)
    return {
        "success": True,
        "message": f"{deleted} reminder(s) deleted successfully",
        "deletedCount": deleted,
    }


@router.patch("/bulk/complete", response_model=dict, summary="Complete several reminders")
async def bulk_complete_reminders(
    body: BulkRequest,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    ids = _bulk_ids(body)
    result = await Reminder.find(In(Reminder.id, ids), Reminder.user_id == current_user.user_id).update(
        Set({Reminder.status: ReminderStatus.COMPLETED})
    )
    modified = result.modified_count if result else 0
    logger.info("Bulk completed %d reminders for user %s", modified, current_user.id)
    return {
        "success": True,
        "message": f"{modified} reminder(s) marked as completed",
        "modifiedCount": modified,
    }


@router.get("/{reminder_id}", response_model=dict, summary="Get a reminder")
async def get_reminder(
    reminder_id: PydanticObjectId,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    reminder = await get_owned_reminder(reminder_id, current_user)
    document = await Document.get(reminder.document_id)
    return {"success": True, "data": reminder_payload(reminder, _document_summary(document))}


async def _set_status(reminder: Reminder, new_status: ReminderStatus) -> Reminder:
    reminder.status = new_status
    await reminder.save_changes()
    logger.info("Reminder %s marked %s", reminder.id, new_status.value)
    return reminder


@router.patch("/{reminder_id}/complete", response_model=dict, summary="Mark a reminder completed")
async def complete_reminder(
    reminder_id: PydanticObjectId,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    reminder = await _set_status(await get_owned_reminder(reminder_id, current_user), ReminderStatus.COMPLETED)
    return {"success": True, "message": "Reminder marked as completed", "data": reminder_payload(reminder)}


@router.patch("/{reminder_id}/dismiss", response_model=dict, summary="Dismiss a reminder")
async def dismiss_reminder(
    reminder_id: PydanticObjectId,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    reminder = await _set_status(await get_owned_reminder(reminder_id, current_user), ReminderStatus.DISMISSED)
    return {"success": True, "message": "Reminder dismissed", "data": reminder_payload(reminder)}


@router.patch("/{reminder_id}/snooze", response_model=dict, summary="Postpone a reminder")
async def snooze_reminder(
    reminder_id: PydanticObjectId,
    current_user: Annotated[User, Depends(get_current_user)],
    body: Annotated[Optional[SnoozeRequest], Body()] = None,
) -> dict:
    """Shift the reminder forward by `days` (default 1) and make it pending again."""
    days = body.days if body else 1
    reminder = await get_owned_reminder(reminder_id, current_user)
    reminder.reminder_date = reminder.reminder_date + timedelta(days=days)
    reminder.status = ReminderStatus.PENDING
    await reminder.save_changes()
    logger.info("Reminder %s snoozed by %d day(s)", reminder.id, days)
    return {
        "success": True,
        "message": f"Reminder snoozed by {days} day(s)",
        "data": reminder_payload(reminder),
    }


@router.delete("/{reminder_id}", response_model=dict, summary="Delete a reminder")
async def delete_reminder(
    reminder_id: PydanticObjectId,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    reminder = await get_owned_reminder(reminder_id, current_user)
    await reminder.delete()
    logger.info("Reminder %s deleted", reminder_id)
    return {"success": True, "message": "Reminder deleted successfully"}
