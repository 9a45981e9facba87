from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from buildops.core.deps import get_current_user
from buildops.db.session import get_db
from buildops.main import app
from buildops.models import Base, Lead, Project, Role, User


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def _user(db, email: str, role: Role, name: str, organization_id: str | None = "org-1") -> User:
    user = User(
        email=email,
        hashed_password="not-used",
        role=role,
        full_name=name,
        is_active=True,
        organization_id=organization_id,
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture()
def users(db):
    people = SimpleNamespace(
        admin=_user(db, "admin@example.com", Role.ADMIN, "Asha Admin"),
        manager=_user(db, "manager@example.com", Role.MANAGER, "Mira Manager"),
        manager2=_user(db, "manager2@example.com", Role.MANAGER, "Milan Manager"),
        sales=_user(db, "sales@example.com", Role.SALES_TEAM_MEMBER, "Sam Sales"),
        head=_user(db, "head@example.com", Role.PROJECT_HEAD, "Priya Head"),
        worker=_user(db, "worker@example.com", Role.EXECUTION_TEAM, "Uma Worker"),
        accounts=_user(db, "accounts@example.com", Role.ACCOUNTS_TEAM, "Arun Accounts"),
        procurement=_user(db, "procurement@example.com", Role.PROCUREMENT_TEAM, "Pavan Procurement"),
    )
    db.commit()
    return people


@pytest.fixture()
def lead(db):
    record = Lead(client_name="Rao Family", project_name="Villa Interiors")
    db.add(record)
    db.commit()
    return record


@pytest.fixture()
def project(db):
    record = Project(client_name="Iyer Residence", project_name="Kitchen Remodel")
    db.add(record)
    db.commit()
    return record


@pytest.fixture()
def current(users):
    return {"user": users.sales}


@pytest.fixture()
def login_as(current):
    def _login(user: User) -> None:
        current["user"] = user

    return _login


@pytest.fixture()
def client(db, current):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_current_user():
        return current["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    client_instance = TestClient(app)
    try:
        yield client_instance
    finally:
        client_instance.close()
        app.dependency_overrides.clear()


@pytest.fixture()
def token_client(db, users):
    """Client that authenticates through real bearer tokens."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client_instance = TestClient(app)
    try:
        yield client_instance
    finally:
        client_instance.close()
        app.dependency_overrides.clear()
