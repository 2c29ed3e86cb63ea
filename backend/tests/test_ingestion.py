"""
Ingestion Pipeline Tests
"""
import pytest

from core.errors import BadRequest, Conflict, InternalError, UploadFailed
from services.blob_store import BlobStoreError
from services.document_store import DocumentStore
from services.ingestion import IngestionPipeline, UploadedFile


@pytest.fixture
def pipeline(session, blob_store, extractor, translator):
    return IngestionPipeline(session, blob_store, extractor, translator, upload_prefix="uploads")


def pdf_upload(name="report.pdf", data=b"%PDF-1.4 fake"):
    return UploadedFile(file_name=name, content_type="application/pdf", data=data)


class TestIngest:
    async def test_happy_path(self, pipeline, session, test_user, blob_store, translator):
        doc = await pipeline.ingest(test_user.id, "Report", "fr", pdf_upload())

        assert doc.document_name == "Report"
        assert doc.original_file_name == "report.pdf"
        assert doc.file_type == "pdf"
        assert doc.original_text == "Hello world"
        assert doc.translated_text == "[fr] Hello world"
        assert doc.extraction_ok and doc.translation_ok
        assert translator.calls == [("Hello world", "auto", "fr")]

        # Staged blob is gone once the record is written
        assert blob_store.uploaded[0].startswith("uploads/")
        assert blob_store.uploaded[0].endswith(".pdf")
        assert blob_store.deleted == blob_store.uploaded
        assert blob_store.objects == {}

        docs, total = await DocumentStore(session).list_by_owner(test_user.id)
        assert total == 1

    async def test_missing_name(self, pipeline, test_user, blob_store):
        with pytest.raises(BadRequest):
            await pipeline.ingest(test_user.id, "  ", "fr", pdf_upload())
        assert blob_store.uploaded == []

    async def test_invalid_target_stages_nothing(self, pipeline, session, test_user, blob_store, extractor):
        with pytest.raises(BadRequest) as exc:
            await pipeline.ingest(test_user.id, "Report", "Spanish", pdf_upload())
        assert exc.value.message == "Invalid targetLanguage format"
        assert blob_store.uploaded == []
        assert extractor.calls == []
        _, total = await DocumentStore(session).list_by_owner(test_user.id)
        assert total == 0

    async def test_stored_text_has_no_line_breaks(self, pipeline, test_user, extractor, translator):
        extractor.text = "first line\r\n\nsecond\rthird\n"
        doc = await pipeline.ingest(test_user.id, "Scan", "fr", pdf_upload())
        assert "\r" not in doc.original_text
        assert "\n" not in doc.original_text
        assert doc.original_text == "first line second third "
        assert translator.calls[0][0] == doc.original_text

    async def test_duplicate_name_stages_nothing(self, pipeline, test_user, blob_store):
        await pipeline.ingest(test_user.id, "Report", "fr", pdf_upload())
        with pytest.raises(Conflict):
            await pipeline.ingest(test_user.id, "report", "fr", pdf_upload())
        assert len(blob_store.uploaded) == 1

    async def test_blob_store_down(self, pipeline, session, test_user, blob_store):
        blob_store.fail_upload = True
        with pytest.raises(UploadFailed):
            await pipeline.ingest(test_user.id, "Report", "fr", pdf_upload())
        _, total = await DocumentStore(session).list_by_owner(test_user.id)
        assert total == 0

    async def test_extraction_failure_still_returns_record(self, pipeline, test_user, extractor, translator):
        extractor.fail = True
        doc = await pipeline.ingest(test_user.id, "Report", "fr", pdf_upload())
        assert doc.id is not None
        assert doc.extraction_ok is False
        assert doc.original_text == ""
        # Nothing to translate
        assert doc.translation_ok is True
        assert translator.calls == []

    async def test_unsupported_type_is_recorded_not_raised(self, pipeline, test_user):
        upload = UploadedFile(file_name="notes.txt", content_type="text/plain", data=b"hello")
        doc = await pipeline.ingest(test_user.id, "Notes", "fr", upload)
        assert doc.file_type == "other"
        assert doc.extraction_ok is False

    async def test_translation_failure_still_returns_record(self, pipeline, test_user, translator):
        translator.fail = True
        doc = await pipeline.ingest(test_user.id, "Report", "fr", pdf_upload())
        assert doc.original_text == "Hello world"
        assert doc.translated_text == ""
        assert doc.translation_ok is False

    async def test_cleanup_failure_is_swallowed(self, pipeline, test_user, blob_store):
        blob_store.fail_delete = True
        doc = await pipeline.ingest(test_user.id, "Report", "fr", pdf_upload())
        assert doc.id is not None

    async def test_unexpected_error_becomes_internal_error(self, pipeline, test_user, blob_store, monkeypatch):
        async def broken(doc, extraction, translation):
            raise RuntimeError("disk full")

        monkeypatch.setattr(pipeline, "_finish", broken)
        with pytest.raises(InternalError, match="disk full"):
            await pipeline.ingest(test_user.id, "Report", "fr", pdf_upload())
        # Blob cleanup still ran
        assert blob_store.deleted == blob_store.uploaded

    async def test_image_upload(self, pipeline, test_user, extractor):
        extractor.text = "Line one\r\nLine two"
        upload = UploadedFile(file_name="scan.PNG", content_type="image/png", data=b"\x89PNG")
        doc = await pipeline.ingest(test_user.id, "Scan", "es", upload)
        assert doc.file_type == "image"
        assert doc.original_text == "Line one Line two"


class TestTranslateOnly:
    async def test_happy_path(self, pipeline, test_user, blob_store):
        doc = await pipeline.translate_only(test_user.id, "Greeting", "de", "Good\nmorning")
        assert doc.file_type == "other"
        assert doc.original_file_name == "Greeting"
        assert doc.original_text == "Good morning"
        assert doc.translated_text == "[de] Good morning"
        assert blob_store.uploaded == []

    async def test_duplicate_name(self, pipeline, test_user):
        await pipeline.translate_only(test_user.id, "Greeting", "de", "Hi")
        with pytest.raises(Conflict):
            await pipeline.translate_only(test_user.id, "GREETING", "de", "Hi again")

    async def test_invalid_target_rejected(self, pipeline, session, test_user, translator):
        with pytest.raises(BadRequest) as exc:
            await pipeline.translate_only(test_user.id, "Greeting", "German", "Hi")
        assert exc.value.message == "Invalid targetLanguage format"
        assert translator.calls == []
        _, total = await DocumentStore(session).list_by_owner(test_user.id)
        assert total == 0

    async def test_empty_text_skips_translation(self, pipeline, test_user, translator):
        doc = await pipeline.translate_only(test_user.id, "Blank", "de", "")
        assert doc.translation_ok is True
        assert translator.calls == []
