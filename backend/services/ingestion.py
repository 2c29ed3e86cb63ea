"""
Document ingestion: upload -> OCR/PDF extraction -> translation -> persistence.

Extraction and translation are best effort. Their failures are recorded on
the document (``extraction_ok`` / ``translation_ok``) and never abort the
pipeline, so the owner always gets a row back. Blob staging failures do
abort, before any record exists.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import DocuLinguaError, BadRequest, Conflict, UploadFailed, InternalError
from models.document import Document
from services.blob_store import BlobStore, BlobStoreError
from services.document_store import DocumentStore
from services.extraction import TextExtractor, ExtractionError, classify_file_type, normalize_text
from services.translation import (
    Translator,
    TranslationError,
    TranslationValidationError,
    AUTO_DETECT,
    validate_language_code,
)
from utils.logger import get_logger

logger = get_logger("services.ingestion")


@dataclass
class UploadedFile:
    file_name: str
    content_type: Optional[str]
    data: bytes


@dataclass
class StepOutcome:
    text: str
    ok: bool


class IngestionPipeline:
    """
    Sequences the external collaborators for one request.

    All collaborators are injected so tests can swap any of them out.
    """

    def __init__(
        self,
        db: AsyncSession,
        blob_store: BlobStore,
        extractor: TextExtractor,
        translator: Translator,
        upload_prefix: str = "uploads",
    ):
        self.db = db
        self.store = DocumentStore(db)
        self.blob_store = blob_store
        self.extractor = extractor
        self.translator = translator
        self.upload_prefix = upload_prefix

    @staticmethod
    def _check_target_language(target_language: str) -> None:
        # Bad input is rejected up front; only provider failures degrade the record
        try:
            validate_language_code(target_language)
        except TranslationValidationError:
            raise BadRequest("Invalid targetLanguage format")

    async def _ensure_unique_name(self, owner_id: int, document_name: str) -> None:
        existing = await self.store.find_by_owner_and_name(owner_id, document_name)
        if existing is not None:
            logger.warning("Duplicate document name", extra={"owner_id": owner_id, "document_name": document_name})
            raise Conflict("A document with this name already exists")

    async def _extract(self, file: UploadedFile) -> StepOutcome:
        try:
            text = await self.extractor.extract(file.data, file.file_name)
        except ExtractionError as e:
            logger.warning("Extraction failed, continuing without text", extra={
                "file_name": file.file_name,
                "error": str(e),
            })
            return StepOutcome(text="", ok=False)
        return StepOutcome(text=normalize_text(text), ok=True)

    async def _translate(self, text: str, target_language: str) -> StepOutcome:
        if not text.strip():
            # Nothing to translate is not a translation failure
            return StepOutcome(text="", ok=True)
        try:
            translated = await self.translator.translate(text, AUTO_DETECT, target_language)
        except TranslationError as e:
            logger.warning("Translation failed, continuing without translation", extra={
                "target_language": target_language,
                "error": str(e),
            })
            return StepOutcome(text="", ok=False)
        return StepOutcome(text=translated, ok=True)

    async def _discard_blob(self, key: str) -> None:
        try:
            await self.blob_store.delete(key)
        except BlobStoreError as e:
            # Never surfaces to the caller and never rolls the record back
            logger.error("Staged blob cleanup failed", extra={"key": key, "error": str(e)})

    async def _finish(self, doc: Document, extraction: StepOutcome, translation: StepOutcome) -> Document:
        doc = await self.store.save_texts(
            doc,
            original_text=extraction.text,
            translated_text=translation.text,
            extraction_ok=extraction.ok,
            translation_ok=translation.ok,
        )
        await self.store.link_to_owner(doc)
        return doc

    async def ingest(
        self,
        owner_id: int,
        document_name: str,
        target_language: str,
        file: UploadedFile,
    ) -> Document:
        """Run the full upload pipeline and return the persisted record."""
        document_name = (document_name or "").strip()
        if not document_name:
            raise BadRequest("documentName is required")
        if file is None or not file.file_name:
            raise BadRequest("A file is required")
        self._check_target_language(target_language)

        logger.info("Ingestion started", extra={
            "owner_id": owner_id,
            "document_name": document_name,
            "file_name": file.file_name,
            "content_type": file.content_type,
            "size": len(file.data),
        })

        # Step 1: duplicate check, nothing written on conflict
        await self._ensure_unique_name(owner_id, document_name)

        # Step 2: stage the blob
        key = self.blob_store.make_key(self.upload_prefix, file.file_name)
        try:
            url = await self.blob_store.upload(key, file.data, file.content_type)
        except BlobStoreError as e:
            logger.error("Ingestion aborted - blob upload failed", extra={"owner_id": owner_id, "error": str(e)})
            raise UploadFailed("File upload failed") from e
        logger.info("STEP 2 (staging) complete", extra={"key": key, "url": url})

        try:
            # Step 3 + 4: classify and create the record with empty texts
            file_type = classify_file_type(file.content_type)
            doc = await self.store.create(
                owner_id=owner_id,
                document_name=document_name,
                original_file_name=file.file_name,
                file_type=file_type,
                target_language=target_language,
            )

            # Steps 5 + 6: extract from the retained buffer and normalize
            extraction = await self._extract(file)
            logger.info("STEP 5 (extraction) complete", extra={
                "document_id": doc.id,
                "ok": extraction.ok,
                "content_length": len(extraction.text),
            })

            # Step 7: translate
            translation = await self._translate(extraction.text, target_language)
            logger.info("STEP 7 (translation) complete", extra={
                "document_id": doc.id,
                "ok": translation.ok,
                "translated_length": len(translation.text),
            })

            # Steps 8 + 9: single update write, then link to owner
            doc = await self._finish(doc, extraction, translation)
        except DocuLinguaError:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error("Ingestion failed", extra={"owner_id": owner_id, "error": str(e)}, exc_info=True)
            raise InternalError(f"Error processing document: {e}") from e
        finally:
            # Step 10: the store is staging only
            await self._discard_blob(key)

        logger.info("Ingestion completed", extra={
            "document_id": doc.id,
            "extraction_ok": doc.extraction_ok,
            "translation_ok": doc.translation_ok,
        })
        return doc

    async def translate_only(
        self,
        owner_id: int,
        document_name: str,
        target_language: str,
        raw_text: str,
    ) -> Document:
        """Translate text supplied directly by the client; no blob, no extraction."""
        document_name = (document_name or "").strip()
        if not document_name:
            raise BadRequest("documentName is required")
        if raw_text is None:
            raise BadRequest("text is required")
        self._check_target_language(target_language)

        logger.info("Direct text translation started", extra={
            "owner_id": owner_id,
            "document_name": document_name,
            "text_length": len(raw_text),
        })

        await self._ensure_unique_name(owner_id, document_name)

        try:
            doc = await self.store.create(
                owner_id=owner_id,
                document_name=document_name,
                original_file_name=document_name,
                file_type="other",
                target_language=target_language,
            )
            normalized = StepOutcome(text=normalize_text(raw_text), ok=True)
            translation = await self._translate(normalized.text, target_language)
            doc = await self._finish(doc, normalized, translation)
        except DocuLinguaError:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error("Direct text translation failed", extra={"owner_id": owner_id, "error": str(e)}, exc_info=True)
            raise InternalError(f"Error translating text: {e}") from e

        logger.info("Direct text translation completed", extra={
            "document_id": doc.id,
            "translation_ok": doc.translation_ok,
        })
        return doc
