"""
Tests for session booking negotiation and session generation, plus the
recurring schedule math behind it.
"""

import asyncio
from datetime import date, datetime, timedelta
from unittest.mock import patch

import pytest
from conftest import auth_headers, make_booking, make_exchange_request, make_user
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from app.domain.session_bookings.repository import SessionBookingRepository
from app.domain.session_bookings.scheduling import (
    build_schedule,
    get_start_date,
    next_date_for_day,
    weekday_index,
)
from app.domain.session_bookings.service import SessionBookingService
from app.models import ScheduledSession, SessionBooking

API = "/api/v1/session-bookings"

# 2024-01-01 is a Monday
MONDAY = date(2024, 1, 1)


class TestScheduling:
    """Start date selection and session date generation"""

    def test_weekday_index_is_sunday_first(self):
        assert weekday_index(date(2023, 12, 31)) == 0  # Sunday
        assert weekday_index(MONDAY) == 1
        assert weekday_index(date(2024, 1, 6)) == 6  # Saturday

    def test_start_today_when_listed(self):
        assert get_start_date(["Wednesday", "Monday"], MONDAY) == MONDAY

    def test_start_later_this_week_in_list_order(self):
        # Friday is listed first, so it wins over the nearer Wednesday
        assert get_start_date(["Friday", "Wednesday"], MONDAY) == date(2024, 1, 5)

    def test_start_next_week(self):
        tuesday = date(2024, 1, 2)
        assert get_start_date(["Monday"], tuesday) == date(2024, 1, 8)

    def test_start_wraps_to_sunday(self):
        saturday = date(2024, 1, 6)
        assert get_start_date(["Sunday", "Friday"], saturday) == date(2024, 1, 7)

    def test_next_date_for_day(self):
        assert next_date_for_day(MONDAY, "Monday", 0) == MONDAY
        assert next_date_for_day(MONDAY, "Wednesday", 0) == date(2024, 1, 3)
        assert next_date_for_day(MONDAY, "Sunday", 1) == date(2024, 1, 14)

    def test_build_schedule_cycles_days_weekly(self):
        schedule = build_schedule(["Monday", "Wednesday"], 5, "10:30", today=MONDAY)

        assert schedule == [
            datetime(2024, 1, 1, 10, 30),
            datetime(2024, 1, 3, 10, 30),
            datetime(2024, 1, 8, 10, 30),
            datetime(2024, 1, 10, 10, 30),
            datetime(2024, 1, 15, 10, 30),
        ]

    def test_build_schedule_single_session(self):
        assert build_schedule(["Thursday"], 1, "18:00", today=MONDAY) == [datetime(2024, 1, 4, 18, 0)]


@pytest.fixture
def accepted_exchange(db):
    ada = make_user(db, "ada@example.com", first_name="Ada", last_name="Lovelace")
    bob = make_user(db, "bob@example.com", first_name="Bob", last_name="Marley")
    exchange_request = make_exchange_request(db, ada, bob, status="accepted")
    return ada, bob, exchange_request


class TestCreateBookings:
    """Draft pair created when an exchange request is accepted"""

    def test_one_draft_per_direction(self, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange

        bookings = SessionBookingService(db).create_bookings_for_exchange_request(exchange_request.id)

        assert [(b.proposer_id, b.recipient_id, b.skill) for b in bookings] == [
            (ada.id, bob.id, "Python"),
            (bob.id, ada.id, "Guitar"),
        ]
        assert all(b.status == "draft" for b in bookings)

    def test_exchange_request_must_be_accepted(self, db):
        ada = make_user(db, "ada@example.com")
        bob = make_user(db, "bob@example.com")
        exchange_request = make_exchange_request(db, ada, bob, status="pending")

        with pytest.raises(HTTPException) as exc:
            SessionBookingService(db).create_bookings_for_exchange_request(exchange_request.id)

        assert exc.value.status_code == 400
        assert exc.value.detail == "Session bookings can only be created for accepted exchange requests"
        assert db.query(SessionBooking).count() == 0

    def test_only_created_once(self, db, accepted_exchange):
        _, _, exchange_request = accepted_exchange
        service = SessionBookingService(db)
        service.create_bookings_for_exchange_request(exchange_request.id)

        with pytest.raises(HTTPException) as exc:
            service.create_bookings_for_exchange_request(exchange_request.id)

        assert exc.value.status_code == 400
        assert exc.value.detail == "Session bookings already exist for this exchange request"
        assert db.query(SessionBooking).count() == 2

    def test_unknown_exchange_request(self, db):
        with pytest.raises(HTTPException) as exc:
            SessionBookingService(db).create_bookings_for_exchange_request(999)

        assert exc.value.status_code == 404
        assert exc.value.detail == "Exchange request not found"


class TestListAndView:
    """GET /session-bookings and /session-bookings/{id}"""

    def test_buckets_and_draft_visibility(self, client, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange
        draft = make_booking(db, exchange_request, ada, bob, status="draft")
        pending = make_booking(db, exchange_request, bob, ada, status="pending", skill="Guitar")

        ada_view = client.get(API, headers=auth_headers(ada)).json()["data"]
        bob_view = client.get(API, headers=auth_headers(bob)).json()["data"]

        assert [b["id"] for b in ada_view["draftBookings"]] == [draft.id]
        assert [b["id"] for b in ada_view["pendingBookings"]] == [pending.id]
        assert ada_view["pendingBookings"][0]["userRole"] == "recipient"
        assert ada_view["pagination"]["total"] == 2

        # Bob can't see Ada's draft yet
        assert bob_view["draftBookings"] == []
        assert [b["id"] for b in bob_view["pendingBookings"]] == [pending.id]
        assert bob_view["pendingBookings"][0]["userRole"] == "proposer"
        assert bob_view["pagination"]["total"] == 1
        for bucket in ("changesRequestedBookings", "changesMadeBookings", "acceptedBookings"):
            assert bob_view[bucket] == []

    def test_view_booking(self, client, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="pending")

        response = client.get(f"{API}/{booking.id}", headers=auth_headers(bob))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["exchangeRequest"]["id"] == exchange_request.id
        assert data["proposer"]["name"] == "Ada Lovelace"
        assert data["daysOfWeek"] == ["Monday"]
        assert data["version"] == 1

    def test_recipient_cannot_see_draft(self, client, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="draft")

        response = client.get(f"{API}/{booking.id}", headers=auth_headers(bob))

        assert response.status_code == 404

    def test_outsider_forbidden(self, client, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="pending")
        eve = make_user(db, "eve@example.com")

        response = client.get(f"{API}/{booking.id}", headers=auth_headers(eve))

        assert response.status_code == 403


class TestNegotiation:
    """PATCH /session-bookings/{id}"""

    def test_proposer_proposes_draft(self, client, db, accepted_exchange, notifications):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="draft")

        response = client.patch(
            f"{API}/{booking.id}",
            json={"daysPerWeek": 2, "daysOfWeek": ["Tuesday", "Thursday"], "startTime": "18:30",
                  "duration": 90, "totalSessions": 6},
            headers=auth_headers(ada),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["version"] == 2
        assert data["daysOfWeek"] == ["Tuesday", "Thursday"]
        assert data["startTime"] == "18:30"
        assert data["totalSessions"] == 6

        payload = notifications.await_args.args[0]
        assert payload.user_id == bob.id
        assert payload.title == "Session Schedule Proposed"

    def test_message_only_draft_edit_stays_draft(self, client, db, accepted_exchange, notifications):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="draft")

        response = client.patch(f"{API}/{booking.id}", json={"message": "Evenings?"}, headers=auth_headers(ada))

        data = response.json()["data"]
        assert data["status"] == "draft"
        assert data["version"] == 1
        assert data["message"] == "Evenings?"
        notifications.assert_not_awaited()

    def test_recipient_requests_changes(self, client, db, accepted_exchange, notifications):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="pending")

        response = client.patch(
            f"{API}/{booking.id}", json={"message": "Can we do Fridays?"}, headers=auth_headers(bob)
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "changes_requested"
        payload = notifications.await_args.args[0]
        assert payload.user_id == ada.id
        assert payload.title == "Changes Requested"

    def test_recipient_cannot_change_schedule(self, client, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="pending")

        response = client.patch(
            f"{API}/{booking.id}", json={"duration": 30, "message": "Shorter"}, headers=auth_headers(bob)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Recipients can only update the message field"

    def test_proposer_answers_change_request(self, client, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="changes_requested", version=2)

        response = client.patch(
            f"{API}/{booking.id}", json={"daysOfWeek": ["Friday"]}, headers=auth_headers(ada)
        )

        data = response.json()["data"]
        assert data["status"] == "changes_made"
        assert data["version"] == 3

    def test_accepted_booking_is_frozen(self, client, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="accepted")

        response = client.patch(f"{API}/{booking.id}", json={"duration": 30}, headers=auth_headers(ada))

        assert response.status_code == 400
        assert response.json()["detail"] == "Accepted session bookings cannot be modified"

    @pytest.mark.parametrize(
        "body",
        [
            {"daysOfWeek": []},
            {"daysOfWeek": ["Monday", "Monday"]},
            {"daysOfWeek": ["Funday"]},
            {"startTime": "25:00"},
            {"duration": 10},
            {"totalSessions": 0},
            {"daysPerWeek": 8},
        ],
    )
    def test_invalid_schedule(self, client, db, accepted_exchange, body):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="draft")

        response = client.patch(f"{API}/{booking.id}", json=body, headers=auth_headers(ada))

        assert response.status_code == 422


class TestAcceptBooking:
    """PATCH /session-bookings/{id}/accept"""

    def test_creates_sessions_with_meet_links(self, client, db, accepted_exchange, meet, notifications):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(
            db, exchange_request, ada, bob, status="pending",
            days_of_week=["Monday"], start_time="09:00", duration=45, total_sessions=3,
        )

        response = client.patch(f"{API}/{booking.id}/accept", headers=auth_headers(bob))

        assert response.status_code == 200
        assert response.json()["data"] == {"sessionsCreated": 3}

        sessions = db.query(ScheduledSession).order_by(ScheduledSession.scheduled_date).all()
        assert len(sessions) == 3
        for session in sessions:
            assert session.instructor_id == ada.id
            assert session.learner_id == bob.id
            assert session.skill == "Python"
            assert session.duration == 45
            assert session.location == "online"
            assert session.meeting_link == "https://meet.google.com/abc-defg-hij"
            assert session.scheduled_date.strftime("%A %H:%M") == "Monday 09:00"
        assert sessions[1].scheduled_date - sessions[0].scheduled_date == timedelta(days=7)
        assert meet.await_count == 3

        db.expire_all()
        assert db.get(SessionBooking, booking.id).status == "accepted"

        instructor_note, learner_note = [call.args[0] for call in notifications.await_args_list[-2:]]
        assert instructor_note.user_id == ada.id
        assert instructor_note.template.email_subject == "Your Teaching Session is Scheduled - Skill Barter"
        assert learner_note.user_id == bob.id
        assert learner_note.template.push_title == "Learning Session Scheduled! 🎓"

    def test_meet_failure_leaves_link_empty(self, client, db, accepted_exchange, meet):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="changes_made", total_sessions=2)
        meet.side_effect = Exception("quota exceeded")

        response = client.patch(f"{API}/{booking.id}/accept", headers=auth_headers(bob))

        assert response.status_code == 200
        sessions = db.query(ScheduledSession).all()
        assert len(sessions) == 2
        assert all(session.meeting_link is None for session in sessions)

    def test_only_recipient_can_accept(self, client, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="pending")

        response = client.patch(f"{API}/{booking.id}/accept", headers=auth_headers(ada))

        assert response.status_code == 403

    @pytest.mark.parametrize("status", ["draft", "changes_requested", "accepted"])
    def test_wrong_status(self, client, db, accepted_exchange, status):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status=status)

        response = client.patch(f"{API}/{booking.id}/accept", headers=auth_headers(bob))

        assert response.status_code == 400
        assert db.query(ScheduledSession).count() == 0

    def test_schedule_failure_keeps_booking_pending(self, db, accepted_exchange):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="pending", total_sessions=2)

        with patch("app.domain.session_bookings.service.build_schedule", side_effect=RuntimeError("bad days")):
            with pytest.raises(RuntimeError):
                asyncio.run(SessionBookingService(db).accept_session_booking(booking.id, bob))

        db.expire_all()
        assert db.get(SessionBooking, booking.id).status == "pending"
        assert db.query(ScheduledSession).count() == 0

    def test_failed_session_insert_rolls_back_status(self, db, accepted_exchange, meet, notifications):
        ada, bob, exchange_request = accepted_exchange
        booking = make_booking(db, exchange_request, ada, bob, status="changes_made", total_sessions=2)
        failure = OperationalError("INSERT INTO scheduled_sessions", {}, Exception("disk I/O error"))

        with patch.object(SessionBookingRepository, "add_sessions", side_effect=failure):
            with pytest.raises(OperationalError):
                asyncio.run(SessionBookingService(db).accept_session_booking(booking.id, bob))

        db.expire_all()
        assert db.get(SessionBooking, booking.id).status == "changes_made"
        assert db.query(ScheduledSession).count() == 0

        # the booking can still be accepted afterwards
        sessions = asyncio.run(SessionBookingService(db).accept_session_booking(booking.id, bob))
        assert len(sessions) == 2
