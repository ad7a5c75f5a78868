"""
Document upload and management APIs.

POST /documents/upload: store the image, run the ingestion pipeline, return the
document with its analysis and the number of reminders created.
GET/PATCH/DELETE: list, inspect, re-status and delete the caller's documents.
Deleting a document also deletes its reminders and the stored file.
"""

import logging
from typing import Annotated, Optional

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from pydantic import BaseModel

from lifeos.api.auth import get_current_user
from lifeos.api.dependencies import get_file_store, get_ingestion_service
from lifeos.config import get_settings
from lifeos.exceptions import FileStoreError, StorageFailed
from lifeos.models.analysis import Category, DocumentType, Priority
from lifeos.models.document import Document, DocumentStatus, document_payload
from lifeos.models.reminder import Reminder
from lifeos.models.user import User
from lifeos.services.storage_service import LocalFileStore
from lifeos.workers.document_processor import IngestionService, UploadedFile

logger = logging.getLogger(__name__)
router = APIRouter()


class StatusUpdate(BaseModel):
    status: DocumentStatus


def _group_by(field: str) -> list:
    return [
        {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        {"$sort": {"count": -1}},
    ]


async def get_owned_document(document_id: PydanticObjectId, user: User) -> Document:
    """Fetch a document, 404 if missing and 403 if it belongs to someone else."""
    doc = await Document.get(document_id)
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    if doc.user_id != user.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this document",
        )
    return doc


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    response_model=dict,
    summary="Upload and analyze a document",
)
async def upload_document(
    current_user: Annotated[User, Depends(get_current_user)],
    file_store: Annotated[LocalFileStore, Depends(get_file_store)],
    ingestion: Annotated[IngestionService, Depends(get_ingestion_service)],
    file: Annotated[Optional[UploadFile], File()] = None,
) -> dict:
    """
    Accept a PNG/JPEG scan, store it, and run OCR + analysis + reminder
    generation before responding. Pipeline errors are rendered by the
    IngestionError handler (400 for unusable images, 500 for storage errors).
    """
    settings = get_settings()
    uploaded: Optional[UploadedFile] = None

    if file is not None and file.filename:
        if file.content_type not in settings.allowed_mime_types:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only image uploads allowed",
            )
        content = await file.read()
        max_bytes = settings.max_upload_size_mb * 1024 * 1024
        if len(content) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File size exceeds {settings.max_upload_size_mb} MB",
            )
        try:
            reference = file_store.store(content, file.filename)
        except FileStoreError as e:
            raise StorageFailed(str(e)) from e
        uploaded = UploadedFile(file_name=file.filename, file_reference=reference)
        logger.info("Saved upload %s for user %s", file.filename, current_user.id)

    result = await ingestion.ingest(current_user.user_id, uploaded)
    return {
        "success": True,
        "message": "Document uploaded and analyzed successfully",
        "data": result.to_payload(),
    }


@router.get("", response_model=dict, summary="List documents")
async def list_documents(
    current_user: Annotated[User, Depends(get_current_user)],
    category: Optional[Category] = None,
    document_type: Annotated[Optional[DocumentType], Query(alias="documentType")] = None,
    priority: Optional[Priority] = None,
    doc_status: Annotated[Optional[DocumentStatus], Query(alias="status")] = None,
) -> dict:
    """Return the caller's documents, newest first, with optional filters."""
    filters = [Document.user_id == current_user.user_id]
    if category:
        filters.append(Document.category == category)
    if document_type:
        filters.append(Document.document_type == document_type)
    if priority:
        filters.append(Document.priority == priority)
    if doc_status:
        filters.append(Document.status == doc_status)

    docs = await Document.find(*filters).sort(-Document.uploaded_at).to_list()
    return {
        "success": True,
        "count": len(docs),
        "data": [document_payload(d) for d in docs],
    }


@router.get("/stats", response_model=dict, summary="Document statistics")
async def get_stats(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    owner = Document.user_id == current_user.user_id
    total = await Document.find(owner).count()
    by_category = await Document.find(owner).aggregate(_group_by("category")).to_list()
    by_priority = await Document.find(owner).aggregate(_group_by("priority")).to_list()
    return {
        "success": True,
        "data": {
            "total": total,
            "byCategory": by_category,
            "byPriority": by_priority,
        },
    }


@router.get("/{document_id}", response_model=dict, summary="Get a document")
async def get_document(
    document_id: PydanticObjectId,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    doc = await get_owned_document(document_id, current_user)
    return {"success": True, "data": document_payload(doc)}


@router.patch("/{document_id}/status", response_model=dict, summary="Change document status")
async def update_document_status(
    document_id: PydanticObjectId,
    body: StatusUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    doc = await get_owned_document(document_id, current_user)
    doc.status = body.status
    await doc.save_changes()
    logger.info("Document %s status set to %s", doc.id, doc.status.value)
    return {"success": True, "data": document_payload(doc)}


@router.delete("/{document_id}", response_model=dict, summary="Delete a document")
async def delete_document(
    document_id: PydanticObjectId,
    current_user: Annotated[User, Depends(get_current_user)],
    file_store: Annotated[LocalFileStore, Depends(get_file_store)],
) -> dict:
    """Delete every reminder of the document, the document, then its stored file."""
    doc = await get_owned_document(document_id, current_user)

    result = await Reminder.find(Reminder.document_id == doc.id).delete()
    await doc.delete()
    file_store.delete(doc.file_reference)

    removed = result.deleted_count if result else 0
    logger.info("Deleted document %s and %d reminders", doc.id, removed)
    return {
        "success": True,
        "message": "Document deleted successfully",
        "remindersDeleted": removed,
    }
