"""Tests for the reminder management endpoints."""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from lms_reminders.main import create_app
from lms_reminders.models.attempt_log import AttemptLog, OUTCOME_SENT
from lms_reminders.models.reminder import Reminder
from lms_reminders.models.task import TASK_SUBMITTED

from conftest import T0, add_log, add_reminder, add_student, add_task


@pytest.fixture
def client(settings, db_engine, channels, clock):
    app = create_app(settings=settings, db_engine=db_engine, channels=channels, clock=clock)
    with TestClient(app) as client:
        yield client


def _payload(student, task, **overrides):
    payload = {
        "student_id": student.id,
        "task_id": task.id,
        "lead_hours": 24,
        "frequency": 2,
        "channel": "email",
        "destination": "ayu@example.com",
    }
    payload.update(overrides)
    return payload


class TestCreateReminder:
    def test_creates_reminder(self, client, session):
        student = add_student(session)
        task = add_task(session, T0 + timedelta(days=2))

        response = client.post("/api/reminders", json=_payload(student, task))

        assert response.status_code == 201
        body = response.json()
        assert body["task_name"] == "Essay 1"
        assert body["course_name"] == "Academic Writing"
        assert body["active"] is True
        assert (body["lead_hours"], body["frequency"]) == (24, 2)

    def test_duplicate_active_reminder_conflicts(self, client, session):
        student = add_student(session)
        task = add_task(session, T0 + timedelta(days=2))
        client.post("/api/reminders", json=_payload(student, task))

        response = client.post("/api/reminders", json=_payload(student, task, channel="whatsapp"))

        assert response.status_code == 409

    def test_submitted_task_is_not_found(self, client, session):
        student = add_student(session)
        task = add_task(session, T0 + timedelta(days=2), status=TASK_SUBMITTED)

        assert client.post("/api/reminders", json=_payload(student, task)).status_code == 404

    def test_unknown_student_is_not_found(self, client, session):
        task = add_task(session, T0 + timedelta(days=2))

        response = client.post("/api/reminders", json={**_payload(add_student(session), task), "student_id": 999})

        assert response.status_code == 404

    def test_past_due_task_is_rejected(self, client, session):
        student = add_student(session)
        task = add_task(session, T0 - timedelta(minutes=1))

        assert client.post("/api/reminders", json=_payload(student, task)).status_code == 400

    @pytest.mark.parametrize(
        "overrides",
        [{"lead_hours": 0}, {"frequency": 11}, {"channel": "sms"}],
    )
    def test_invalid_fields_are_rejected(self, client, session, overrides):
        student = add_student(session)
        task = add_task(session, T0 + timedelta(days=2))

        assert client.post("/api/reminders", json=_payload(student, task, **overrides)).status_code == 422


class TestListAndDelete:
    def test_lists_open_reminders_soonest_first(self, client, session):
        student = add_student(session)
        later = add_reminder(session, add_task(session, T0 + timedelta(days=3)), student)
        sooner = add_reminder(session, add_task(session, T0 + timedelta(days=1)), student)
        add_reminder(session, add_task(session, T0 + timedelta(hours=5), status=TASK_SUBMITTED), student)
        add_reminder(session, add_task(session, T0 + timedelta(days=1)), add_student(session, "Budi"))

        response = client.get("/api/reminders", params={"student_id": student.id})

        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [sooner.id, later.id]

    def test_delete_removes_reminder_and_logs(self, client, session):
        reminder = add_reminder(session, add_task(session, T0 + timedelta(days=1)), add_student(session))
        add_log(session, reminder, OUTCOME_SENT, T0)

        response = client.delete(f"/api/reminders/{reminder.id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Reminder deleted successfully"}
        session.expire_all()
        assert session.exec(select(Reminder)).all() == []
        assert session.exec(select(AttemptLog)).all() == []

    def test_delete_unknown_reminder_is_not_found(self, client):
        assert client.delete("/api/reminders/12345").status_code == 404

    def test_delete_task_reminders(self, client, session):
        task = add_task(session, T0 + timedelta(days=1))
        add_reminder(session, task, add_student(session))
        add_reminder(session, task, add_student(session, "Budi"))

        response = client.delete(f"/api/tasks/{task.id}/reminders")

        assert response.json()["deleted"] == 2


class TestUpcoming:
    def test_lists_reminders_firing_soon(self, client, session):
        student = add_student(session)
        soon = add_reminder(session, add_task(session, T0 + timedelta(hours=2, minutes=30)), student, lead_hours=2)
        add_reminder(session, add_task(session, T0 + timedelta(hours=6)), student, lead_hours=2)

        response = client.get("/api/reminders/upcoming", params={"within_minutes": 60})

        assert response.status_code == 200
        [item] = response.json()
        assert item["id"] == soon.id
        assert item["student_name"] == "Ayu"
        assert item["minutes_until_reminder"] == 30
