"""
Test Configuration and Fixtures
"""
import os

# Settings are read at import time
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.database import Base, get_db
from core.security import create_user_token, hash_password
from core.services import get_blob_store, get_text_extractor, get_translator, get_mailer
from main import app
from models.user import User
from services.blob_store import BlobStore, BlobStoreError
from services.extraction import EmptyInput, ExtractionFailed, engine_for
from services.translation import TranslationRemoteError, validate_language_code
import models.document  # noqa: F401


class FakeBlobStore:
    """In-memory stand-in for the S3 bucket."""

    make_key = staticmethod(BlobStore.make_key)

    def __init__(self):
        self.objects = {}
        self.uploaded = []
        self.deleted = []
        self.fail_upload = False
        self.fail_delete = False

    def url_for(self, key):
        return f"https://blobs.test/{key}"

    async def upload(self, key, data, content_type=None):
        if self.fail_upload:
            raise BlobStoreError("bucket unreachable")
        self.objects[key] = data
        self.uploaded.append(key)
        return self.url_for(key)

    async def download(self, key):
        if key not in self.objects:
            raise BlobStoreError(f"no such key {key}")
        return self.objects[key]

    async def delete(self, key):
        if self.fail_delete:
            raise BlobStoreError("bucket unreachable")
        self.objects.pop(key, None)
        self.deleted.append(key)


class FakeExtractor:
    """Same dispatch rules as TextExtractor, canned text instead of engines."""

    def __init__(self, text="Hello\nworld"):
        self.text = text
        self.fail = False
        self.calls = []

    async def extract(self, data, file_name):
        engine_for(file_name)
        if not data:
            raise EmptyInput()
        self.calls.append(file_name)
        if self.fail:
            raise ExtractionFailed("engine crashed")
        return self.text


class FakeTranslator:
    def __init__(self):
        self.fail = False
        self.calls = []

    async def translate(self, text, source, target):
        validate_language_code(source, allow_auto=True)
        validate_language_code(target)
        self.calls.append((text, source, target))
        if self.fail:
            raise TranslationRemoteError("provider returned HTTP 503", status_code=503)
        return f"[{target}] {text}"


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.result = True

    async def send(self, recipient, email_type, data=None):
        self.sent.append((recipient, email_type, data or {}))
        return self.result


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as db:
        yield db


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
async def client(session_factory, blob_store, extractor, translator, mailer):
    """HTTP client with the database and every external service replaced."""

    async def override_get_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_text_extractor] = lambda: extractor
    app.dependency_overrides[get_translator] = lambda: translator
    app.dependency_overrides[get_mailer] = lambda: mailer

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """Insert a user directly and return it."""

    async def _make_user(email="ana@example.com", password="secret123", full_name="Ana Test"):
        async with session_factory() as db:
            user = User(full_name=full_name, email=email, password_hash=hash_password(password))
            db.add(user)
            await db.commit()
            await db.refresh(user)
            return user

    return _make_user


@pytest.fixture
async def test_user(make_user):
    return await make_user()


@pytest.fixture
def auth_headers(test_user):
    return {"Authorization": f"Bearer {create_user_token(test_user)}"}


@pytest.fixture
def headers_for():
    def _headers_for(user):
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return _headers_for
