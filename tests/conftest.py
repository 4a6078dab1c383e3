import os
import tempfile

# settings are read at import time, so point them somewhere harmless first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="tracker-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tracker_backend import models  # noqa: F401
from tracker_backend.database.session import Base, get_db
from tracker_backend.main import create_app
from tracker_backend.services.connection_manager import ConnectionManager, get_connection_manager
from tracker_backend.services.upload_service import UploadService, get_upload_service


class RecordingManager(ConnectionManager):
    """ConnectionManager that also remembers every broadcast."""

    def __init__(self):
        super().__init__()
        self.events = []

    async def broadcast(self, event_type, data):
        self.events.append((event_type, data))
        return await super().broadcast(event_type, data)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def manager():
    return RecordingManager()


@pytest.fixture
def upload_service(tmp_path):
    return UploadService(uploads_dir=str(tmp_path / "uploads"))


@pytest.fixture
def app(session_factory, manager, upload_service):
    application = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_connection_manager] = lambda: manager
    application.dependency_overrides[get_upload_service] = lambda: upload_service
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def order_payload():
    return {
        "customer": "Boulangerie Martin",
        "items": ["Croissants x20", "Baguettes x10"],
        "totalAmount": 10000,
        "paidAmount": 4000,
        "status": "partial",
        "note": "Livraison avant 8h",
    }
