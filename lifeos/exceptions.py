"""Custom exception classes for the application."""

from typing import Optional


class LifeOSError(Exception):
    """Base exception for all application errors."""

    pass


class IngestionError(LifeOSError):
    """
    Base for failures that abort an upload.

    `message` is the human-readable text returned to the client,
    `detail` carries the underlying reason and `status_code` the HTTP mapping.
    """

    status_code: int = 500
    default_message: str = "Error processing document"

    def __init__(self, detail: Optional[str] = None, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(detail or self.message)


class NoFileProvided(IngestionError):
    """Raised when the upload request carries no file."""

    status_code = 400
    default_message = "No file uploaded"


class ExtractionFailed(IngestionError):
    """Raised when OCR fails or yields too little text to be usable."""

    status_code = 400
    default_message = (
        "Could not extract text from image. "
        "Please ensure the image is clear and contains readable text."
    )


class StorageFailed(IngestionError):
    """Raised when the document record cannot be persisted."""

    status_code = 500
    default_message = "Error processing document"


class FileStoreError(LifeOSError):
    """Raised when uploaded bytes cannot be written to the file store."""

    pass
