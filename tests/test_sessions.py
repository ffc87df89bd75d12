"""
Tests for scheduled sessions: dashboard listing, completion, learning
progress and the clock-driven status upkeep used by the worker.
"""

from datetime import datetime, timedelta

import pytest
from conftest import auth_headers, make_booking, make_exchange_request, make_session, make_user

from app.domain.sessions.service import build_session_reminders, refresh_session_statuses
from app.models import ScheduledSession

API = "/api/v1/sessions"


@pytest.fixture
def booking(db):
    """Ada teaches Bob Python"""
    ada = make_user(db, "ada@example.com", first_name="Ada", last_name="Lovelace")
    bob = make_user(db, "bob@example.com", first_name="Bob", last_name="Marley")
    exchange_request = make_exchange_request(db, ada, bob, status="accepted")
    return make_booking(db, exchange_request, ada, bob, status="accepted")


class TestListSessions:
    """GET /sessions"""

    def test_order_and_dashboard(self, client, db, booking):
        now = datetime.utcnow()
        later = make_session(db, booking, scheduled_date=now + timedelta(days=3))
        sooner = make_session(db, booking, scheduled_date=now + timedelta(days=1))
        running = make_session(db, booking, scheduled_date=now - timedelta(minutes=10))
        old_done = make_session(db, booking, scheduled_date=now - timedelta(days=9), status="completed")
        new_done = make_session(db, booking, scheduled_date=now - timedelta(days=2), status="completed")

        response = client.get(API, headers=auth_headers(booking.recipient))

        assert response.status_code == 200
        data = response.json()["data"]
        assert [s["id"] for s in data["sessions"]] == [
            running.id, sooner.id, later.id, new_done.id, old_done.id,
        ]
        assert data["sessions"][0]["status"] == "active"
        assert data["sessions"][0]["userRole"] == "learner"
        assert data["sessions"][0]["instructor"]["name"] == "Ada Lovelace"
        assert data["dashboard"] == {"total": 5, "active": 1, "scheduled": 2, "completed": 2}
        assert data["pagination"]["total"] == 5

    def test_status_filter(self, client, db, booking):
        make_session(db, booking)
        done = make_session(
            db, booking, scheduled_date=datetime.utcnow() - timedelta(days=1), status="completed"
        )

        data = client.get(
            API, params={"status": "completed"}, headers=auth_headers(booking.proposer)
        ).json()["data"]

        assert [s["id"] for s in data["sessions"]] == [done.id]
        assert data["sessions"][0]["userRole"] == "instructor"
        # The dashboard always covers every session
        assert data["dashboard"]["total"] == 2

    def test_only_own_sessions(self, client, db, booking):
        make_session(db, booking)
        eve = make_user(db, "eve@example.com")

        data = client.get(API, headers=auth_headers(eve)).json()["data"]

        assert data["sessions"] == []
        assert data["dashboard"] == {"total": 0, "active": 0, "scheduled": 0, "completed": 0}


class TestCompleteSession:
    """POST /sessions/{id}/complete"""

    def test_complete_started_session(self, client, db, booking):
        session = make_session(db, booking, scheduled_date=datetime.utcnow() - timedelta(minutes=5))

        response = client.post(f"{API}/{session.id}/complete", headers=auth_headers(booking.recipient))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["completedAt"] is not None

    def test_cannot_complete_before_start(self, client, db, booking):
        session = make_session(db, booking)

        response = client.post(f"{API}/{session.id}/complete", headers=auth_headers(booking.proposer))

        assert response.status_code == 400
        assert response.json()["detail"] == "Session cannot be completed before it starts"

    def test_already_completed(self, client, db, booking):
        session = make_session(
            db, booking, scheduled_date=datetime.utcnow() - timedelta(days=1), status="completed"
        )

        response = client.post(f"{API}/{session.id}/complete", headers=auth_headers(booking.proposer))

        assert response.status_code == 400
        assert response.json()["detail"] == "Session is already completed"

    def test_outsider_forbidden(self, client, db, booking):
        session = make_session(db, booking, scheduled_date=datetime.utcnow() - timedelta(minutes=5))
        eve = make_user(db, "eve@example.com")

        response = client.post(f"{API}/{session.id}/complete", headers=auth_headers(eve))

        assert response.status_code == 403

    def test_not_found(self, client, db, booking):
        response = client.post(f"{API}/9999/complete", headers=auth_headers(booking.proposer))

        assert response.status_code == 404
        assert response.json()["detail"] == "Session not found"


class TestLearningProgress:
    """GET /sessions/learning-progress"""

    def test_progress_per_skill(self, client, db, booking):
        now = datetime.utcnow()
        make_session(db, booking, scheduled_date=now - timedelta(days=14), status="completed")
        make_session(db, booking, scheduled_date=now - timedelta(days=7), status="completed")
        upcoming = make_session(db, booking, scheduled_date=now + timedelta(days=1))
        make_session(db, booking, scheduled_date=now + timedelta(days=8))

        response = client.get(f"{API}/learning-progress", headers=auth_headers(booking.recipient))

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["skills"]) == 1
        python = data["skills"][0]
        assert python["skill"] == "Python"
        assert python["instructor"]["name"] == "Ada Lovelace"
        assert python["totalSessions"] == 4
        assert python["completedSessions"] == 2
        assert python["progress"] == 50
        assert python["nextSession"] == upcoming.scheduled_date.isoformat()
        assert data["summary"] == {
            "totalSkills": 1,
            "totalSessions": 4,
            "completedSessions": 2,
            "overallProgress": 50,
        }

    def test_instructor_has_no_learning_progress(self, client, db, booking):
        make_session(db, booking)

        data = client.get(f"{API}/learning-progress", headers=auth_headers(booking.proposer)).json()["data"]

        assert data["skills"] == []
        assert data["summary"]["overallProgress"] == 0


class TestStatusUpkeep:
    """refresh_session_statuses and build_session_reminders"""

    def test_refresh_marks_running_sessions_active(self, db, booking):
        now = datetime(2024, 3, 1, 12, 0)
        running = make_session(db, booking, scheduled_date=now - timedelta(minutes=30))
        ended = make_session(db, booking, scheduled_date=now - timedelta(hours=3))
        future = make_session(db, booking, scheduled_date=now + timedelta(hours=3), status="active")

        changed = refresh_session_statuses(db, now=now)

        assert changed == 2
        assert running.status == "active"
        assert ended.status == "scheduled"
        assert future.status == "scheduled"

    def test_refresh_completes_ended_sessions(self, db, booking):
        now = datetime(2024, 3, 1, 12, 0)
        ended = make_session(db, booking, scheduled_date=now - timedelta(hours=3))

        changed = refresh_session_statuses(db, complete_ended=True, now=now)

        assert changed == 1
        assert ended.status == "completed"
        assert ended.completed_at == now

    def test_reminders_for_sessions_starting_soon(self, db, booking):
        now = datetime(2024, 3, 1, 12, 0)
        soon = make_session(
            db, booking, scheduled_date=now + timedelta(minutes=30),
            meeting_link="https://meet.google.com/abc-defg-hij",
        )
        make_session(db, booking, scheduled_date=now + timedelta(hours=2))
        make_session(
            db, booking, scheduled_date=now + timedelta(minutes=45), reminder_sent_at=now - timedelta(minutes=5)
        )

        payloads = build_session_reminders(db, now=now)

        assert [p.user_id for p in payloads] == [booking.proposer_id, booking.recipient_id]
        assert all(p.type == "session_reminder" for p in payloads)
        assert all(p.data == {"sessionId": soon.id} for p in payloads)
        assert "https://meet.google.com/abc-defg-hij" in payloads[0].template.email_mjml

        db.expire_all()
        assert db.get(ScheduledSession, soon.id).reminder_sent_at == now
        # Already reminded
        assert build_session_reminders(db, now=now) == []
