import os
import tempfile
from pathlib import Path

# Must be set before anything imports aei_portal.config.
os.environ["DISABLE_DOTENV"] = "1"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{Path(tempfile.mkdtemp()) / 'import.sqlite3'}"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp()
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""
os.environ["SMTP_HOST"] = ""
os.environ["ADMIN_NOTIFY_EMAIL"] = ""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

PASSWORD = "Testpass123!"
ADMIN_EMAIL = "admin@example.com"


@pytest.fixture()
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def app(tmp_path: Path, upload_dir: Path, monkeypatch: pytest.MonkeyPatch) -> FastAPI:
    """
    The portal app wired to a fresh SQLite file and upload directory per test.

    TestClient is used without a `with` block, so the startup hook (create_all
    on the configured DB, admin bootstrap) never runs.
    """
    from aei_portal import config
    from aei_portal import database as db

    engine = db.build_engine(f"sqlite+pysqlite:///{tmp_path / 'test.sqlite3'}")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    monkeypatch.setattr(db, "engine", engine)
    monkeypatch.setattr(db, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(config, "UPLOAD_DIR", str(upload_dir))
    monkeypatch.setattr(config, "LEVEL_AUTO_ADVANCE", False)

    from aei_portal import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from aei_portal.main import app as fastapi_app

    yield fastapi_app
    engine.dispose()


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from aei_portal import database

    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def admin(db_session):
    """Identity of a freshly bootstrapped admin (password: PASSWORD)."""
    from aei_portal.services.accounts import bootstrap_admin
    from aei_portal.utils.dependencies import Identity

    user = bootstrap_admin(db_session, email=ADMIN_EMAIL, password=PASSWORD)
    return Identity(user_id=user.id, role=user.role, email=user.email)


@pytest.fixture()
def identity_of():
    """Build the Identity a logged-in student/employer would carry."""
    from aei_portal.utils.dependencies import Identity

    def _identity(profile):
        return Identity(user_id=profile.user.id, role=profile.user.role, email=profile.user.email)

    return _identity


@pytest.fixture()
def make_student(db_session, admin):
    from aei_portal.schemas.profiles import StudentProfileIn
    from aei_portal.services.accounts import create_student_account

    def _make(email: str = "student@example.com", password: str = PASSWORD, **profile):
        return create_student_account(
            db_session, admin, email=email, password=password, profile=StudentProfileIn(**profile)
        )

    return _make


@pytest.fixture()
def make_employer(db_session, admin):
    from aei_portal.schemas.profiles import EmployerProfileIn
    from aei_portal.services.accounts import create_employer_account

    def _make(email: str = "employer@example.com", password: str = PASSWORD, **profile):
        return create_employer_account(
            db_session, admin, email=email, password=password, profile=EmployerProfileIn(**profile)
        )

    return _make


@pytest.fixture()
def login(client: TestClient):
    """Log `client` in; the session cookie stays on the client."""

    def _login(email: str, password: str = PASSWORD):
        r = client.post("/login", data={"email": email, "password": password}, follow_redirects=False)
        assert r.status_code == 303, r.text
        return r

    return _login
