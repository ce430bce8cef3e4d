import os
import sys
import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import models  # noqa: E402,F401 - registers every table on Base
from database import Base, enable_sqlite_foreign_keys  # noqa: E402
from models.client import Client  # noqa: E402
from models.employee import Department, Employee, Role  # noqa: E402


@pytest.fixture
def engine():
    # StaticPool keeps one in-memory database visible to TestClient's worker thread
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_employee(db):
    def _make(name="Operator", role=Role.EQUITY_DEALER, department=Department.EQUITY,
              is_active=True, secondary_role=None):
        employee = Employee(
            name=name,
            email=f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:6]}@example.com",
            department=department,
            role=role,
            secondary_role=secondary_role,
            is_active=is_active,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def make_client(db):
    def _make(code, operator, department=Department.EQUITY, **fields):
        client = Client(
            client_code=code,
            first_name="Test",
            last_name=code,
            department=department,
            operator_id=operator.id,
            **fields,
        )
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    return _make


@pytest.fixture
def admin(make_employee):
    return make_employee(name="Admin", role=Role.ADMIN, department=Department.ADMIN)
