import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENABLE_METRICS", "false")
os.environ.setdefault("AUTO_CREATE_DB", "false")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from legaliz.auth.security import create_access_token, get_password_hash
from legaliz.db import Base, enable_sqlite_foreign_keys, get_db
from legaliz.models.models import Case, Client, Role, Schedule, User
from legaliz.services.permissions import Actor


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    enable_sqlite_foreign_keys(eng)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def api(session_factory):
    from legaliz.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.state.limiter.enabled = False
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=Role.LAWYER, first_name=None, last_name="Tester", email=None, password="password123"):
        counter["n"] += 1
        role = Role(role)
        user = User(
            first_name=first_name or role.value.title(),
            last_name=last_name,
            email=email or f"{role.value}{counter['n']}@example.com",
            password_hash=get_password_hash(password),
            role=role.value,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_client(db):
    def _make(name="Client Co", user=None, email=None):
        client = Client(name=name, user_id=user.id if user else None, email=email)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    return _make


@pytest.fixture
def make_case(db):
    def _make(client, lawyer, title="Matter", status="open", progress=0):
        case = Case(title=title, description="", client_id=client.id, lawyer_id=lawyer.id, status=status, progress=progress)
        db.add(case)
        db.commit()
        db.refresh(case)
        return case

    return _make


@pytest.fixture
def make_event(db):
    def _make(case, start, title="Hearing", scheduled_by=None):
        if isinstance(start, str):
            start = datetime.fromisoformat(start)
        event = Schedule(
            case_id=case.id,
            scheduled_by=scheduled_by.id if scheduled_by else None,
            event_title=title,
            start_date=start,
            status="pending",
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    return _make


def actor_for(user) -> Actor:
    return Actor(id=user.id, role=Role(user.role))


@pytest.fixture
def actor():
    return actor_for


@pytest.fixture
def auth():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _headers
