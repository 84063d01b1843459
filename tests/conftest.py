"""
Pytest configuration and shared fixtures
"""

import asyncio
import os
import tempfile

# Settings are read once, so the environment must be in place before the
# application modules are imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_PATH"] = tempfile.mkdtemp(prefix="cyberbiz-tests-")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["MAIL_BACKEND"] = "log"
os.environ["APP_URL"] = "http://testserver"
os.environ["FRONTEND_URL"] = "http://frontend.test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cyberbiz.api.dependencies import get_db, get_file_storage, get_mail_sender
from cyberbiz.api.main import app
from cyberbiz.api.security import create_access_token, hash_password
from cyberbiz.api.services.mailer import MailError, Mailer
from cyberbiz.api.services.storage import FileStorage
from cyberbiz.db.enums import UserRole
from cyberbiz.db.models import Base, User

DEFAULT_PASSWORD = "password123"


class RecordingMailer(Mailer):
    """
    Mailer that keeps messages in memory; addresses in `failing` raise MailError.

    `sends_on_event_loop` counts sends that ran on the event loop thread.
    """

    def __init__(self):
        super().__init__("log", "no-reply@cyberbiz.test")
        self.sent = []
        self.failing = set()
        self.sends_on_event_loop = 0

    def send(self, to_email, subject, text, html=None, reply_to=None):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            self.sends_on_event_loop += 1
        if to_email in self.failing:
            raise MailError(f"Rejected recipient {to_email}")
        self.sent.append(
            {"to": to_email, "subject": subject, "text": text, "html": html, "reply_to": reply_to}
        )
        return None


@pytest.fixture
def engine():
    """In-memory SQLite database shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Session for arranging and inspecting data directly."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage(tmp_path) -> FileStorage:
    return FileStorage(tmp_path / "storage", "http://testserver/storage")


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def client(session_factory, storage, mailer):
    """API client with the database, storage and mailer swapped for test doubles."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage
    app.dependency_overrides[get_mail_sender] = lambda: mailer

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory creating users; each call gets a fresh email unless one is given."""
    counter = {"n": 0}

    def _make_user(role=UserRole.SEEKER, email=None, password=DEFAULT_PASSWORD, **fields):
        counter["n"] += 1
        user = User(
            full_name=fields.pop("full_name", f"Test {role.value.title()} {counter['n']}"),
            email=email or f"{role.value.lower()}{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def auth_headers(user: User) -> dict:
    """Bearer header for a user's current token version."""
    return {"Authorization": f"Bearer {create_access_token(user.id, user.token_version)}"}


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, email="admin@example.com", full_name="Admin User")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def seeker(make_user):
    return make_user(UserRole.SEEKER, email="seeker@example.com", full_name="Sara Seeker")


@pytest.fixture
def seeker_headers(seeker):
    return auth_headers(seeker)


@pytest.fixture
def employer(make_user):
    return make_user(
        UserRole.EMPLOYER, email="employer@example.com", full_name="Eli Employer", company_name="Acme PLC"
    )


@pytest.fixture
def employer_headers(employer):
    return auth_headers(employer)


@pytest.fixture
def headers_for():
    """Build auth headers for any user created in a test."""
    return auth_headers
