import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment must be ready first
_TMP_DIR = Path(tempfile.mkdtemp(prefix="wastetrack-tests-"))
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["STATIC_DIR"] = str(_TMP_DIR / "static")
os.environ["LOG_FILE"] = str(_TMP_DIR / "logs" / "test.log")
os.environ["DISTRIBUTION_POLICY"] = "equal"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel, Session  # noqa: E402

from app.main import app  # noqa: E402
from app.db import core  # noqa: E402
from app.db.schema import (  # noqa: E402
    ActorRole, Admin, Collection, CollectionStatus, Recycler, Transporter, User
)
from app.services.auth import AuthService  # noqa: E402
from app.services.password import get_password_hash  # noqa: E402


PASSWORD = "secret123"

# Hashing is slow on purpose, reuse one hash for every fixture account
_PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
def reset_db():
    SQLModel.metadata.drop_all(core.engine)
    SQLModel.metadata.create_all(core.engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    """A separate session for arranging and inspecting rows."""
    with Session(core.engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def fetch():
    """Reads a row in a fresh session so nothing cached hides a write."""
    def _fetch(model, row_id):
        with Session(core.engine, expire_on_commit=False) as session:
            return session.get(model, row_id)
    return _fetch


def _save(db: Session, row):
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        data = dict(
            name=f"Citizen {n}",
            mobile=f"90000000{n:02d}",
            email=f"citizen{n}@example.com",
            hashed_password=_PASSWORD_HASH,
            street="1 Main Road",
            city="Pune",
            state="MH",
            pin_code="411001",
        )
        data.update(overrides)
        return _save(db, User(**data))
    return _make


@pytest.fixture
def make_transporter(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        data = dict(
            name=f"Driver {n}",
            mobile=f"80000000{n:02d}",
            email=f"driver{n}@example.com",
            hashed_password=_PASSWORD_HASH,
            vehicle_model="Tata Ace",
            license_plate=f"MH-12-AB-{1000 + n}",
        )
        data.update(overrides)
        return _save(db, Transporter(**data))
    return _make


@pytest.fixture
def make_recycler(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        data = dict(
            name=f"GreenCycle {n}",
            email=f"ops{n}@greencycle.example.com",
            hashed_password=_PASSWORD_HASH,
            address="Plot 7, MIDC",
            city="Pune",
            state="MH",
            zip_code="411019",
        )
        data.update(overrides)
        return _save(db, Recycler(**data))
    return _make


@pytest.fixture
def make_admin(db):
    def _make(**overrides):
        data = dict(
            name="Root",
            email="root@example.com",
            hashed_password=_PASSWORD_HASH,
        )
        data.update(overrides)
        return _save(db, Admin(**data))
    return _make


@pytest.fixture
def make_collection(db):
    def _make(user, transporter, recycler=None, status=CollectionStatus.COLLECTED,
              wet=0.0, dry=0.0, hazardous=0.0, weight=None):
        return _save(db, Collection(
            user_id=user.id,
            transporter_id=transporter.id,
            recycler_id=recycler.id if recycler else None,
            weight=weight if weight is not None else wet + dry + hazardous,
            wet=wet,
            dry=dry,
            hazardous=hazardous,
            location_lng=73.85,
            location_lat=18.52,
            status=status,
        ))
    return _make


@pytest.fixture
def auth_headers(db):
    """Bearer header for any account row; the role is inferred from its type."""
    roles = {
        User: ActorRole.USER,
        Transporter: ActorRole.TRANSPORTER,
        Recycler: ActorRole.RECYCLER,
        Admin: ActorRole.ADMIN,
    }

    def _headers(account):
        token = AuthService(db).generate_access_token(
            account.id, roles[type(account)])
        return {"Authorization": f"Bearer {token}"}
    return _headers
