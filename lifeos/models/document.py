"""
Document model for uploaded scans.

Holds the stored file reference, the fields extracted by OCR + analysis,
and ownership. Created only by the ingestion worker.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

import pymongo
from beanie import Document, Indexed
from pydantic import BaseModel, Field
from pymongo import IndexModel

from lifeos.models.analysis import Category, DocumentType, Priority


class DocumentStatus(str, Enum):
    """Lifecycle states of a stored document."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    COMPLETED = "COMPLETED"


class ExtractedData(BaseModel):
    """Embedded fields pulled out of the document text (no separate collection)."""

    due_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    issue_date: Optional[datetime] = None
    amount: Optional[float] = Field(default=None, ge=0)
    id_number: Optional[str] = None
    provider: Optional[str] = None
    raw_text: str = ""
    summary: str = "Document uploaded"


class Document(Document):
    """
    Represents one ingested scan and what was extracted from it.
    user_id is the opaque owner id; reminders point back via document_id.
    """

    user_id: Indexed(str)
    file_name: str
    file_reference: str  # Opaque pointer into the file store
    document_type: DocumentType = DocumentType.OTHER
    category: Category = Category.PERSONAL
    extracted_data: ExtractedData = Field(default_factory=ExtractedData)
    priority: Priority = Priority.MEDIUM
    status: DocumentStatus = DocumentStatus.ACTIVE
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "documents"
        use_state_management = True
        indexes = [
            IndexModel([("user_id", pymongo.ASCENDING), ("uploaded_at", pymongo.DESCENDING)]),
            IndexModel([("user_id", pymongo.ASCENDING), ("priority", pymongo.ASCENDING)]),
        ]


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def document_payload(doc: Document) -> dict:
    """camelCase representation used by every documents endpoint."""
    data = doc.extracted_data
    return {
        "id": str(doc.id),
        "user": doc.user_id,
        "fileName": doc.file_name,
        "fileUrl": doc.file_reference,
        "documentType": doc.document_type.value,
        "category": doc.category.value,
        "extractedData": {
            "dueDate": _iso(data.due_date),
            "expiryDate": _iso(data.expiry_date),
            "issueDate": _iso(data.issue_date),
            "amount": data.amount,
            "idNumber": data.id_number,
            "provider": data.provider,
            "rawText": data.raw_text,
            "summary": data.summary,
        },
        "priority": doc.priority.value,
        "status": doc.status.value,
        "uploadedAt": doc.uploaded_at.isoformat(),
    }
