"""Pytest configuration and shared fixtures."""

import io
import uuid
from datetime import datetime
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from PIL import Image

from lifeos.api.auth import get_current_user
from lifeos.api.dependencies import get_file_store, get_ingestion_service
from lifeos.database import init_models
from lifeos.main import app
from lifeos.models.document import Document
from lifeos.models.reminder import Reminder, ReminderType
from lifeos.models.user import User
from lifeos.services.llm_service import DocumentAnalyzer
from lifeos.services.ocr_service import TextExtractor
from lifeos.services.storage_service import LocalFileStore
from lifeos.workers.document_processor import IngestionService, UploadedFile

FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0)

BILL_TEXT = "Electricity Bill, Due: 2025-01-10, Amount: 2500"
BILL_RESPONSE = (
    "Here is the analysis:\n"
    '{"documentType": "bill", "category": "Financial", "dueDate": "2025-01-10", '
    '"expiryDate": null, "issueDate": null, "amount": 2500, "idNumber": null, '
    '"provider": "City Power", "priority": "HIGH", "summary": "Electricity bill from City Power"}'
)


class FakeBackend:
    """Completion backend returning a canned response or raising."""

    def __init__(self, response: str = BILL_RESPONSE, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.prompts = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.response


def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (40, 20), color="white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
async def db():
    """Fresh in-memory Mongo database with Beanie bound to it."""
    client = AsyncMongoMockClient()
    database = client[f"lifeos_test_{uuid.uuid4().hex}"]
    await init_models(database)
    yield database


@pytest.fixture
async def user(db) -> User:
    user = User(subject="user-1", email="one@example.com")
    await user.insert()
    return user


@pytest.fixture
async def other_user(db) -> User:
    user = User(subject="user-2", email="two@example.com")
    await user.insert()
    return user


@pytest.fixture
def file_store(tmp_path) -> LocalFileStore:
    return LocalFileStore(tmp_path / "uploads")


@pytest.fixture
def stored_upload(file_store) -> UploadedFile:
    """A PNG already written to the file store, as the upload route leaves it."""
    reference = file_store.store(png_bytes(), "bill.png")
    return UploadedFile(file_name="bill.png", file_reference=reference)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def ingestion_service(file_store, backend) -> IngestionService:
    return IngestionService(
        extractor=TextExtractor(file_store),
        analyzer=DocumentAnalyzer(backend),
        file_store=file_store,
        clock=lambda: FIXED_NOW,
    )


async def make_document(owner: User, **fields) -> Document:
    """Insert a document directly, bypassing OCR and analysis."""
    fields.setdefault("file_name", "scan.png")
    fields.setdefault("file_reference", f"uploads/{uuid.uuid4().hex}_scan.png")
    doc = Document(user_id=owner.user_id, **fields)
    await doc.insert()
    return doc


async def make_reminder(owner: User, document: Document, reminder_date: datetime, **fields) -> Reminder:
    fields.setdefault("title", "bill Payment Due")
    fields.setdefault("reminder_type", ReminderType.DUE_DATE)
    reminder = Reminder(
        user_id=owner.user_id,
        document_id=document.id,
        reminder_date=reminder_date,
        **fields,
    )
    await reminder.insert()
    return reminder


@pytest.fixture
def login():
    """Switch the authenticated user seen by the API."""

    def _login(as_user: User) -> None:
        app.dependency_overrides[get_current_user] = lambda: as_user

    return _login


@pytest.fixture
async def client(db, user, login, file_store, ingestion_service):
    """HTTP client against the app with auth and services overridden."""
    login(user)
    app.dependency_overrides[get_file_store] = lambda: file_store
    app.dependency_overrides[get_ingestion_service] = lambda: ingestion_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
