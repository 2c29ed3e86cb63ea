from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = "DocuLingua Backend"
    app_version: str = "1.0.0"

    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 # 1 day

    # Database
    DATABASE_URL: str

    # Blob store (any S3-compatible bucket)
    STORAGE_BUCKET: str = "doculingua"
    STORAGE_ENDPOINT_URL: Optional[str] = None
    STORAGE_REGION: Optional[str] = None
    STORAGE_ACCESS_KEY_ID: Optional[str] = None
    STORAGE_SECRET_ACCESS_KEY: Optional[str] = None
    STORAGE_PUBLIC_BASE_URL: Optional[str] = None
    STORAGE_URL_EXPIRY_SECONDS: int = 3600
    STORAGE_DOCUMENT_PREFIX: str = "uploads"
    STORAGE_USER_IMAGE_PREFIX: str = "user-images"

    # Translation
    TRANSLATION_PROVIDER: str = "deep_translate"
    RAPID_API_KEY: Optional[str] = None
    RAPID_API_HOST: str = "deep-translate1.p.rapidapi.com"
    DEEP_TRANSLATE_URL: str = "https://deep-translate1.p.rapidapi.com/language/translate/v2"
    GOOGLE_TRANSLATE_API_KEY: Optional[str] = None
    GOOGLE_TRANSLATE_URL: str = "https://translation.googleapis.com/language/translate/v2"
    TRANSLATION_TIMEOUT_SECONDS: float = 30.0

    # OCR
    TESSERACT_CMD: Optional[str] = None
    OCR_LANGUAGE: str = "eng"

    # Mail
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    MAIL_SENDER: Optional[str] = None

    # Uploads / password reset
    MAX_UPLOAD_MB: int = 10
    OTP_EXPIRY_MINUTES: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None
    LOG_FILE: str = "doculingua.log"

    class Config:
        env_file = ".env"

settings = Settings()
