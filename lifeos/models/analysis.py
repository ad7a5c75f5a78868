"""
Structured output of the document analyzer.

The model is lenient on input: anything the generative backend gets wrong
(unknown enum values, malformed dates, negative amounts) is coerced to the
default rather than rejected, so a parsed response always validates.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class DocumentType(str, Enum):
    BILL = "bill"
    ID = "id"
    CERTIFICATE = "certificate"
    MEDICINE = "medicine"
    INSURANCE = "insurance"
    VEHICLE = "vehicle"
    WARRANTY = "warranty"
    OTHER = "other"


class Category(str, Enum):
    FINANCIAL = "Financial"
    GOVERNMENT = "Government"
    HEALTH = "Health"
    PERSONAL = "Personal"
    VEHICLE = "Vehicle"


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


DEFAULT_SUMMARY = "Document uploaded - analysis incomplete"

_DOCUMENT_TYPES = {member.value for member in DocumentType}
_PRIORITIES = {member.value for member in Priority}


class AnalysisResult(BaseModel):
    """
    Fields extracted from document text.
    document_type, category, priority and summary always carry a value.
    Accepts both the camelCase keys the model emits and snake_case.
    """

    model_config = ConfigDict(populate_by_name=True)

    document_type: DocumentType = Field(
        default=DocumentType.OTHER, validation_alias=AliasChoices("documentType", "document_type")
    )
    category: Category = Category.PERSONAL
    due_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("dueDate", "due_date"))
    expiry_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("expiryDate", "expiry_date")
    )
    issue_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("issueDate", "issue_date"))
    amount: Optional[float] = None
    id_number: Optional[str] = Field(default=None, validation_alias=AliasChoices("idNumber", "id_number"))
    provider: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    summary: str = DEFAULT_SUMMARY

    @field_validator("document_type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in _DOCUMENT_TYPES:
            return v.strip().lower()
        return DocumentType.OTHER

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, v: Any) -> Any:
        if isinstance(v, str):
            for member in Category:
                if member.value.lower() == v.strip().lower():
                    return member
        return Category.PERSONAL

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().upper() in _PRIORITIES:
            return v.strip().upper()
        return Priority.MEDIUM

    @field_validator("due_date", "expiry_date", "issue_date", mode="before")
    @classmethod
    def _coerce_date(cls, v: Any) -> Optional[date]:
        if v is None or (isinstance(v, date) and not isinstance(v, datetime)):
            return v
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str):
            try:
                return date.fromisoformat(v.strip()[:10])
            except ValueError:
                return None
        return None

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, v: Any) -> Optional[float]:
        if isinstance(v, bool):
            return None
        if isinstance(v, str):
            v = v.replace(",", "").strip()
        try:
            amount = float(v)
        except (TypeError, ValueError):
            return None
        return amount if amount >= 0 else None

    @field_validator("id_number", "provider", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return DEFAULT_SUMMARY

    def to_payload(self) -> dict:
        """camelCase view returned by the API."""
        return {
            "documentType": self.document_type.value,
            "category": self.category.value,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "expiryDate": self.expiry_date.isoformat() if self.expiry_date else None,
            "issueDate": self.issue_date.isoformat() if self.issue_date else None,
            "amount": self.amount,
            "idNumber": self.id_number,
            "provider": self.provider,
            "priority": self.priority.value,
            "summary": self.summary,
        }
