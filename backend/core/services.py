"""
Construction of the external service clients.

Each client is built from its own config object and handed out through a
FastAPI dependency, so a test can replace it with
``app.dependency_overrides[get_blob_store] = lambda: fake``.
"""
from functools import lru_cache
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from core.config import settings
from core.database import get_db
from services.blob_store import BlobStore, BlobStoreConfig
from services.extraction import TextExtractor
from services.ingestion import IngestionPipeline
from services.mailer import Mailer, MailerConfig
from services.translation import Translator, build_translator


def blob_store_config() -> BlobStoreConfig:
    return BlobStoreConfig(
        bucket=settings.STORAGE_BUCKET,
        endpoint_url=settings.STORAGE_ENDPOINT_URL,
        region=settings.STORAGE_REGION,
        access_key_id=settings.STORAGE_ACCESS_KEY_ID,
        secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY,
        public_base_url=settings.STORAGE_PUBLIC_BASE_URL,
        url_expiry_seconds=settings.STORAGE_URL_EXPIRY_SECONDS,
    )


def mailer_config() -> MailerConfig:
    return MailerConfig(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD,
        use_tls=settings.SMTP_USE_TLS,
        sender=settings.MAIL_SENDER,
    )


# Clients are created on first use and reused for the life of the app
@lru_cache
def get_blob_store() -> BlobStore:
    return BlobStore(blob_store_config())


@lru_cache
def get_text_extractor() -> TextExtractor:
    return TextExtractor(tesseract_cmd=settings.TESSERACT_CMD, language=settings.OCR_LANGUAGE)


@lru_cache
def get_translator() -> Translator:
    return build_translator(settings)


@lru_cache
def get_mailer() -> Mailer:
    return Mailer(mailer_config(), otp_expiry_minutes=settings.OTP_EXPIRY_MINUTES)


def get_ingestion_pipeline(
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    extractor: TextExtractor = Depends(get_text_extractor),
    translator: Translator = Depends(get_translator),
) -> IngestionPipeline:
    return IngestionPipeline(
        db=db,
        blob_store=blob_store,
        extractor=extractor,
        translator=translator,
        upload_prefix=settings.STORAGE_DOCUMENT_PREFIX,
    )
