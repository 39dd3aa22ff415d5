"""Shared fixtures: fake object store, recording notifier, app client on a temp SQLite DB."""

from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient

from tire_inspection_service.api.routes.inspections import get_inspection_manager, get_upload_url_issuer
from tire_inspection_service.config.settings import settings
from tire_inspection_service.core.errors import NotificationError
from tire_inspection_service.core.inspection_manager import InspectionManager
from tire_inspection_service.core.notifier import LowDepthNotifier
from tire_inspection_service.core.upload_urls import UploadUrlIssuer
from tire_inspection_service.infrastructure.storage import StorageProvider
from tire_inspection_service.main import app
from tire_inspection_service.models.inspection import TireInspection

BUCKET_HOST = "https://tire-images.s3.us-east-1.amazonaws.com"


class FakeStorage(StorageProvider):
    """Signs nothing; returns deterministic URLs"""

    def __init__(self):
        self.signed: List[Tuple[str, str, int]] = []

    async def generate_upload_url(self, key: str, content_type: str, expiration: int = 600) -> str:
        self.signed.append((key, content_type, expiration))
        return f"{BUCKET_HOST}/{key}?X-Amz-Expires={expiration}&X-Amz-Signature=fake"

    def public_url(self, key: str) -> str:
        return f"{BUCKET_HOST}/{key}"

    async def health_check(self) -> bool:
        return True


class RecordingNotifier(LowDepthNotifier):
    """Records alert requests instead of sending mail"""

    def __init__(self, fail: bool = False):
        super().__init__(email_user="", email_pass="", threshold=5.0)
        self.fail = fail
        self.calls: List[Tuple[str, List[TireInspection]]] = []

    async def notify(self, plate, records):
        self.calls.append((plate, records))
        if self.fail:
            raise NotificationError("SMTP dispatch failed: connection refused")
        return True


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'tires.db'}"
    monkeypatch.setattr(settings, "database_url", url)
    return url


@pytest.fixture
def override_dependencies(storage, notifier):
    app.dependency_overrides[get_upload_url_issuer] = lambda: UploadUrlIssuer(storage=storage)
    app.dependency_overrides[get_inspection_manager] = lambda: InspectionManager(
        storage=storage, notifier=notifier
    )
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(database_url, override_dependencies):
    with TestClient(app) as test_client:
        yield test_client
