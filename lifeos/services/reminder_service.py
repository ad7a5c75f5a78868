"""
Reminder scheduling rules.

Turns an analysis into reminder specs. Pure: the caller supplies `now`, so the
same inputs always give the same specs in the same order
(due, advance-due, expiry, advance-renewal).
"""

from datetime import date, datetime, timedelta
from typing import List, Optional

from lifeos.models.analysis import AnalysisResult
from lifeos.models.reminder import ReminderSpec, ReminderType

DUE_ADVANCE = timedelta(days=7)
RENEWAL_ADVANCE = timedelta(days=30)


def _at_midnight(day: date) -> datetime:
    return datetime.combine(day, datetime.min.time())


def _ahead_of(at: datetime, offset: timedelta) -> Optional[datetime]:
    """`at - offset`, or None when that falls before datetime.min."""
    try:
        return at - offset
    except OverflowError:
        return None


def generate_reminders(analysis: AnalysisResult, file_name: str, now: datetime) -> List[ReminderSpec]:
    """
    Derive reminders from the due and expiry dates of an analysis.
    Advance reminders are skipped when they would already lie in the past.
    `now` is a naive UTC datetime, like every stored timestamp.
    """
    specs: List[ReminderSpec] = []
    label = analysis.document_type.value
    summary = analysis.summary

    if analysis.due_date:
        due_at = _at_midnight(analysis.due_date)
        specs.append(
            ReminderSpec(
                title=f"{label} Payment Due",
                description=summary or f"{file_name} payment is due",
                reminder_date=due_at,
                reminder_type=ReminderType.DUE_DATE,
            )
        )
        advance_at = _ahead_of(due_at, DUE_ADVANCE)
        if advance_at is not None and advance_at > now:
            specs.append(
                ReminderSpec(
                    title=f"Upcoming: {label} Payment",
                    description=f"Reminder: {summary or file_name} due in 7 days",
                    reminder_date=advance_at,
                    reminder_type=ReminderType.DUE_DATE,
                )
            )

    if analysis.expiry_date:
        expiry_at = _at_midnight(analysis.expiry_date)
        specs.append(
            ReminderSpec(
                title=f"{label} Expiring Soon",
                description=summary or f"{file_name} is expiring",
                reminder_date=expiry_at,
                reminder_type=ReminderType.EXPIRY,
            )
        )
        renewal_at = _ahead_of(expiry_at, RENEWAL_ADVANCE)
        if renewal_at is not None and renewal_at > now:
            specs.append(
                ReminderSpec(
                    title=f"Renewal Reminder: {label}",
                    description=f"{summary or file_name} expires in 30 days - consider renewal",
                    reminder_date=renewal_at,
                    reminder_type=ReminderType.RENEWAL,
                )
            )

    return specs
