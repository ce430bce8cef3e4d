from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.dependencies import get_db, verify_cron_secret
from api.exception_handlers import setup_exception_handlers
from api.routers import cron_api
from exceptions import AuthorizationError
from models.employee import Department, Role
from models.task import Task, TaskStatus
from utils import utcnow

SECRET = "s3cret-value"


@pytest.fixture
def client(session_factory, monkeypatch):
    monkeypatch.setenv("CRON_SECRET", SECRET)

    app = FastAPI()
    setup_exception_handlers(app)
    app.include_router(cron_api.router)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


def test_secret_header_and_bearer_are_accepted(monkeypatch):
    monkeypatch.setenv("CRON_SECRET", SECRET)

    assert verify_cron_secret(x_cron_secret=SECRET, authorization=None) is None
    assert verify_cron_secret(x_cron_secret=None, authorization=f"Bearer {SECRET}") is None


@pytest.mark.parametrize("header,authorization", [
    (None, None),
    ("wrong", None),
    (None, f"Basic {SECRET}"),
    (None, "Bearer wrong"),
])
def test_bad_secret_is_rejected(monkeypatch, header, authorization):
    monkeypatch.setenv("CRON_SECRET", SECRET)

    with pytest.raises(AuthorizationError):
        verify_cron_secret(x_cron_secret=header, authorization=authorization)


def test_unconfigured_secret_rejects_everything(monkeypatch):
    monkeypatch.setattr("api.dependencies.get_cron_secret", lambda: None)

    with pytest.raises(AuthorizationError):
        verify_cron_secret(x_cron_secret="", authorization=None)


def test_task_expiry_endpoint(client, db, admin, make_employee):
    back_office = make_employee(name="Priya", role=Role.BACK_OFFICE, department=Department.BACK_OFFICE)
    task = Task(title="t", description="-", assigned_to_id=back_office.id, assigned_by_id=admin.id,
                deadline=utcnow() - timedelta(minutes=1))
    db.add(task)
    db.commit()

    response = client.post("/cron/task-expiry", headers={"X-Cron-Secret": SECRET})

    assert response.status_code == 200
    assert response.json()["expired_count"] == 1
    db.expire_all()
    assert db.get(Task, task.id).status == TaskStatus.EXPIRED


def test_monthly_reset_endpoint_is_idempotent(client, admin):
    first = client.post("/cron/monthly-reset", headers={"Authorization": f"Bearer {SECRET}"})
    second = client.post("/cron/monthly-reset", headers={"Authorization": f"Bearer {SECRET}"})

    assert first.status_code == 200
    assert first.json()["skipped"] is False
    assert second.status_code == 200
    assert second.json()["skipped"] is True


def test_endpoint_without_secret_is_unauthorized(client):
    response = client.post("/cron/task-expiry")

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Unauthorized"}
