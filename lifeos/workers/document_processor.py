"""
Document ingestion worker.

Runs the upload pipeline for one stored file:
extract text -> analyze -> save Document -> generate + save Reminders.

Stages run strictly in order. Until the Document is saved the stored file is
owned by this pipeline and is deleted on any exit (errors and cancellation
alike); once the Document exists the upload is committed and nothing is
rolled back. A reminder that fails to save is logged and skipped, which only
lowers reminders_created.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict

from lifeos.config import Settings, get_settings
from lifeos.exceptions import ExtractionFailed, NoFileProvided, StorageFailed
from lifeos.models.analysis import AnalysisResult
from lifeos.models.document import Document, DocumentStatus, ExtractedData, document_payload
from lifeos.models.reminder import Reminder, reminder_payload
from lifeos.services.llm_service import DocumentAnalyzer, build_analyzer, derive_priority
from lifeos.services.ocr_service import TextExtractor, build_text_extractor
from lifeos.services.reminder_service import generate_reminders
from lifeos.services.storage_service import LocalFileStore

logger = logging.getLogger(__name__)


class UploadedFile(BaseModel):
    """An upload whose bytes are already in the file store."""

    file_name: str
    file_reference: str


class IngestionResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    document: Document
    analysis: AnalysisResult
    reminders: List[Reminder]
    extracted_text_length: int

    @property
    def reminders_created(self) -> int:
        return len(self.reminders)

    def to_payload(self) -> dict:
        return {
            "document": document_payload(self.document),
            "analysis": self.analysis.to_payload(),
            "remindersCreated": self.reminders_created,
            "extractedTextLength": self.extracted_text_length,
            "reminders": [reminder_payload(r) for r in self.reminders],
        }


def _as_datetime(value) -> Optional[datetime]:
    return datetime.combine(value, datetime.min.time()) if value else None


class IngestionService:
    """Sequences the ingestion stages for a single upload."""

    def __init__(
        self,
        extractor: TextExtractor,
        analyzer: DocumentAnalyzer,
        file_store: LocalFileStore,
        recompute_priority: bool = False,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.extractor = extractor
        self.analyzer = analyzer
        self.file_store = file_store
        self.recompute_priority = recompute_priority
        self.clock = clock

    async def ingest(self, user_id: str, uploaded_file: Optional[UploadedFile]) -> IngestionResult:
        if uploaded_file is None:
            raise NoFileProvided("No file uploaded")

        logger.info("Ingesting %s for user %s", uploaded_file.file_name, user_id)
        committed = False
        try:
            text = await self._extract(user_id, uploaded_file)
            analysis = await self._analyze(text)
            document = await self._save_document(user_id, uploaded_file, text, analysis)
            committed = True
        finally:
            if not committed:
                self._discard_upload(uploaded_file.file_reference)

        reminders = await self._save_reminders(user_id, document, analysis, uploaded_file.file_name)
        logger.info(
            "Document %s ingested for user %s; %d reminders created",
            document.id,
            user_id,
            len(reminders),
        )
        return IngestionResult(
            document=document,
            analysis=analysis,
            reminders=reminders,
            extracted_text_length=len(text),
        )

    async def _extract(self, user_id: str, uploaded_file: UploadedFile) -> str:
        try:
            return await self.extractor.extract(uploaded_file.file_reference)
        except ExtractionFailed as e:
            logger.warning(
                "Stage extraction failed for user %s, file %s: %s",
                user_id,
                uploaded_file.file_reference,
                e.detail,
            )
            raise

    async def _analyze(self, text: str) -> AnalysisResult:
        analysis = await self.analyzer.analyze(text)
        if self.recompute_priority:
            priority = derive_priority(analysis.due_date, analysis.expiry_date, analysis.amount, self.clock())
            analysis = analysis.model_copy(update={"priority": priority})
        return analysis

    async def _save_document(
        self, user_id: str, uploaded_file: UploadedFile, text: str, analysis: AnalysisResult
    ) -> Document:
        document = Document(
            user_id=user_id,
            file_name=uploaded_file.file_name,
            file_reference=uploaded_file.file_reference,
            document_type=analysis.document_type,
            category=analysis.category,
            extracted_data=ExtractedData(
                due_date=_as_datetime(analysis.due_date),
                expiry_date=_as_datetime(analysis.expiry_date),
                issue_date=_as_datetime(analysis.issue_date),
                amount=analysis.amount,
                id_number=analysis.id_number,
                provider=analysis.provider,
                raw_text=text,
                summary=analysis.summary or "Document uploaded",
            ),
            priority=analysis.priority,
            status=DocumentStatus.ACTIVE,
        )
        try:
            await document.insert()
        except Exception as e:
            logger.exception(
                "Stage document-save failed for user %s, file %s: %s",
                user_id,
                uploaded_file.file_reference,
                e,
            )
            raise StorageFailed(str(e)) from e
        return document

    async def _save_reminders(
        self, user_id: str, document: Document, analysis: AnalysisResult, file_name: str
    ) -> List[Reminder]:
        saved: List[Reminder] = []
        try:
            specs = generate_reminders(analysis, file_name, self.clock())
        except Exception as e:
            logger.exception("Stage reminder-generation failed for document %s: %s", document.id, e)
            return saved
        for spec in specs:
            reminder = Reminder.from_spec(spec, user_id=user_id, document_id=document.id)
            try:
                await reminder.insert()
            except Exception as e:
                logger.exception(
                    "Stage reminder-save failed for document %s (%s): %s",
                    document.id,
                    spec.title,
                    e,
                )
                continue
            saved.append(reminder)
        if len(saved) < len(specs):
            logger.warning("Document %s: saved %d of %d reminders", document.id, len(saved), len(specs))
        return saved

    def _discard_upload(self, file_reference: str) -> None:
        try:
            self.file_store.delete(file_reference)
        except OSError as e:
            logger.error("Could not remove upload %s after failed ingestion: %s", file_reference, e)


def build_ingestion_service(file_store: LocalFileStore, settings: Optional[Settings] = None) -> IngestionService:
    settings = settings or get_settings()
    return IngestionService(
        extractor=build_text_extractor(file_store, settings),
        analyzer=build_analyzer(settings),
        file_store=file_store,
        recompute_priority=settings.recompute_priority,
    )
