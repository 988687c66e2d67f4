"""
Shared fixtures: in-memory SQLite per test and a fake blob store in place of S3.
"""

import threading
import time
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from api_gateway.main import create_app
from member_service.pipeline import ProfilePipeline
from member_service.uploader import AttachmentUploader
from shared.config import Settings
from shared.database import init_db, make_engine, make_session_local
from shared.errors import StoreUnavailable


class FakeBlobStore:
    """Records every put(); fails or delays puts whose key ends with a given filename."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.delays: dict[str, float] = {}
        self._lock = threading.Lock()

    def _matches(self, key: str, names) -> str | None:
        for name in names:
            if key.endswith(f"-{name}"):
                return name
        return None

    def put(self, data: bytes, key: str, content_type: str) -> str:
        with self._lock:
            self.calls.append(key)
        delayed = self._matches(key, self.delays)
        if delayed:
            time.sleep(self.delays[delayed])
        if self._matches(key, self.fail_on):
            raise StoreUnavailable("S3 Upload Failed")
        with self._lock:
            self.objects[key] = (data, content_type)
        return f"https://test-bucket.s3.us-east-1.amazonaws.com/{key}"


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite://", upload_max_workers=4, max_certificates=3)


@pytest.fixture
def session_local(settings):
    engine = make_engine(settings.database_url)
    init_db(engine)
    yield make_session_local(engine)
    engine.dispose()


@pytest.fixture
def db(session_local) -> Generator[Session, None, None]:
    with session_local() as session:
        yield session


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def uploader(blob_store) -> AttachmentUploader:
    return AttachmentUploader(blob_store, max_workers=4)


@pytest.fixture
def pipeline(uploader) -> ProfilePipeline:
    return ProfilePipeline(uploader, max_certificates=3)


@pytest.fixture
def client(settings, session_local, blob_store) -> TestClient:
    app = create_app(settings, blob_store=blob_store, SessionLocal=session_local)
    return TestClient(app, raise_server_exceptions=False)
