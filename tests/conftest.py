"""
Shared fixtures: in-memory database, temporary blob store and a scripted
inference gateway.
"""
import os
import tempfile

# Settings are read once at import time, so point them at throwaway storage first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BLOB_DIR"] = tempfile.mkdtemp(prefix="teachclone-blobs-")
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.pop("TEACHCLONE_CONFIG", None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from teachclone.models.database_models import ApprovalStatus, Base, UserRole
from teachclone.models.database_service import create_user
from teachclone.models.teachclone_models import GatewayResponse
from teachclone.services.accounts import get_password_hash
from teachclone.services.uploads import upload_video
from teachclone.utils.blob_storage import LocalBlobStore


def ok(text):
    return GatewayResponse(success=True, text=text)


def fail(error="quota exceeded"):
    return GatewayResponse(success=False, error=error)


class FakeGateway:
    """Returns scripted responses per call kind and records every call"""

    def __init__(self, text=(), media=(), chat=()):
        self.responses = {"text": list(text), "media": list(media), "chat": list(chat)}
        self.calls = []

    def _next(self, kind):
        queue = self.responses[kind]
        if not queue:
            return fail(f"no scripted {kind} response")
        return queue.pop(0)

    async def generate_text(self, prompt):
        self.calls.append(("text", {"prompt": prompt}))
        return self._next("text")

    async def generate_from_media(self, prompt, media_bytes, mime_type):
        self.calls.append(("media", {"prompt": prompt, "size": len(media_bytes), "mime_type": mime_type}))
        return self._next("media")

    async def generate_chat(self, system_prompt, history, new_message):
        self.calls.append(("chat", {"system_prompt": system_prompt, "history": list(history), "new_message": new_message}))
        return self._next("chat")

    @property
    def kinds(self):
        return [kind for kind, _ in self.calls]


@pytest.fixture
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def failing_commit(db, monkeypatch):
    """Call the returned function to make every later commit on the session fail"""
    def _break():
        def commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
        monkeypatch.setattr(db, "commit", commit)
    return _break


@pytest.fixture
def blobs(tmp_path):
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.STUDENT, full_name="Test User", status=ApprovalStatus.APPROVED, password="secret123"):
        counter["n"] += 1
        return create_user(
            db,
            f"{role.value}{counter['n']}@example.com",
            get_password_hash(password),
            full_name,
            role,
            status,
        )
    return _make


@pytest.fixture
def teacher(make_user):
    return make_user(UserRole.TEACHER, "Sarah Khan")


@pytest.fixture
def student(make_user):
    return make_user(UserRole.STUDENT, "Ali Student")


@pytest.fixture
def make_video(db, blobs, teacher):
    def _make(data=b"\x00" * 1024, subject="Algebra", title="Solving Linear Equations",
              grade_level="Grade 8", filename="lesson.mp4", owner=None):
        result = upload_video(db, blobs, (owner or teacher).id, title, subject, grade_level, filename, data)
        assert result.success, result.message
        return result.video
    return _make
