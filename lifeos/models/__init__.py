"""Beanie document models and Pydantic schemas."""

from lifeos.models.analysis import AnalysisResult, Category, DocumentType, Priority
from lifeos.models.document import Document, DocumentStatus, ExtractedData
from lifeos.models.reminder import Reminder, ReminderSpec, ReminderStatus, ReminderType
from lifeos.models.user import User

__all__ = [
    "AnalysisResult",
    "Category",
    "Document",
    "DocumentStatus",
    "DocumentType",
    "ExtractedData",
    "Priority",
    "Reminder",
    "ReminderSpec",
    "ReminderStatus",
    "ReminderType",
    "User",
]
