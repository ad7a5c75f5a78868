"""Shared FastAPI dependencies for services built from settings."""

from typing import Annotated

from fastapi import Depends

from lifeos.config import get_settings
from lifeos.services.storage_service import LocalFileStore
from lifeos.workers.document_processor import IngestionService, build_ingestion_service


def get_file_store() -> LocalFileStore:
    return LocalFileStore(get_settings().upload_dir)


def get_ingestion_service(
    file_store: Annotated[LocalFileStore, Depends(get_file_store)],
) -> IngestionService:
    return build_ingestion_service(file_store, get_settings())
