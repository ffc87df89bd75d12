"""Session booking service - Negotiation state machine and session generation"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...email_templates import session_scheduled_template
from ...models import ScheduledSession, SessionBooking, User
from ...schemas import PaginationParams
from ...services.google_meet_service import google_meet_service
from ...services.notification_service import (
    NotificationPayload,
    NotificationTemplate,
    enqueue_notification,
)
from ...shared.responses import pagination_block, user_summary
from .repository import SessionBookingRepository
from .scheduling import build_schedule
from .schemas import SessionBookingUpdate

logger = logging.getLogger(__name__)

STATUS_BUCKETS = {
    "draft": "draftBookings",
    "pending": "pendingBookings",
    "changes_requested": "changesRequestedBookings",
    "changes_made": "changesMadeBookings",
    "accepted": "acceptedBookings",
}


def format_session_date(value: datetime) -> str:
    return value.strftime("%A, %B %d, %Y at %I:%M %p")


def serialize_booking(booking: SessionBooking, user_id: int) -> dict:
    exchange_request = booking.exchange_request
    return {
        "id": booking.id,
        "userRole": "proposer" if booking.proposer_id == user_id else "recipient",
        "exchangeRequest": {
            "id": exchange_request.id,
            "teachingSkill": exchange_request.teaching_skill,
            "learningSkill": exchange_request.learning_skill,
            "status": exchange_request.status,
        }
        if exchange_request
        else None,
        "proposer": user_summary(booking.proposer),
        "recipient": user_summary(booking.recipient),
        "skill": booking.skill,
        "status": booking.status,
        "daysPerWeek": booking.days_per_week,
        "daysOfWeek": booking.days_of_week,
        "startTime": booking.start_time,
        "duration": booking.duration,
        "totalSessions": booking.total_sessions,
        "message": booking.message or None,
        "version": booking.version,
        "createdAt": booking.created_at.isoformat() if booking.created_at else None,
        "updatedAt": booking.updated_at.isoformat() if booking.updated_at else None,
    }


class SessionBookingService:
    """Service layer for session booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SessionBookingRepository()

    # ========================================================================
    # CREATION (from an accepted exchange request)
    # ========================================================================

    def create_bookings_for_exchange_request(self, exchange_request_id: int) -> list[SessionBooking]:
        """One draft per direction: each party proposes the schedule for the skill they teach"""
        exchange_request = self.repo.get_exchange_request(self.db, exchange_request_id)
        if not exchange_request:
            raise HTTPException(status_code=404, detail="Exchange request not found")
        if exchange_request.status != "accepted":
            raise HTTPException(
                status_code=400,
                detail="Session bookings can only be created for accepted exchange requests",
            )
        if self.repo.bookings_exist(self.db, exchange_request.id):
            raise HTTPException(
                status_code=400, detail="Session bookings already exist for this exchange request"
            )

        defaults = {
            "exchange_request_id": exchange_request.id,
            "status": "draft",
            "days_per_week": 1,
            "days_of_week": ["Monday"],
            "start_time": "09:00",
            "duration": 60,
            "total_sessions": 1,
            "version": 1,
        }
        bookings = self.repo.create_bookings(
            self.db,
            [
                SessionBooking(
                    proposer_id=exchange_request.requester_id,
                    recipient_id=exchange_request.receiver_id,
                    skill=exchange_request.teaching_skill,
                    **defaults,
                ),
                SessionBooking(
                    proposer_id=exchange_request.receiver_id,
                    recipient_id=exchange_request.requester_id,
                    skill=exchange_request.learning_skill,
                    **defaults,
                ),
            ],
        )
        logger.info(f"📋 Created draft bookings {[b.id for b in bookings]} for exchange request {exchange_request.id}")
        return bookings

    # ========================================================================
    # READ
    # ========================================================================

    def get_session_bookings(self, user: User, pagination: PaginationParams) -> dict:
        items, total = self.repo.list_for_user(self.db, user.id, pagination.offset, pagination.limit)
        result = {bucket: [] for bucket in STATUS_BUCKETS.values()}
        for booking in items:
            result[STATUS_BUCKETS[booking.status]].append(serialize_booking(booking, user.id))
        result["pagination"] = pagination_block(pagination.page, pagination.limit, total)
        return result

    def _get_visible_booking(self, booking_id: int, user: User, action: str) -> SessionBooking:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Session booking not found")
        if user.id not in (booking.proposer_id, booking.recipient_id):
            raise HTTPException(
                status_code=403, detail=f"You are not authorized to {action} this session booking"
            )
        # Drafts are private to the proposer until first proposed
        if booking.status == "draft" and booking.recipient_id == user.id:
            raise HTTPException(status_code=404, detail="Session booking not found")
        return booking

    def get_session_booking(self, booking_id: int, user: User) -> SessionBooking:
        return self._get_visible_booking(booking_id, user, "view")

    # ========================================================================
    # NEGOTIATION
    # ========================================================================

    async def update_session_booking(
        self, booking_id: int, user: User, data: SessionBookingUpdate
    ) -> SessionBooking:
        booking = self._get_visible_booking(booking_id, user, "update")
        if booking.status == "accepted":
            raise HTTPException(status_code=400, detail="Accepted session bookings cannot be modified")

        schedule_changes = data.schedule_changes()
        has_message = "message" in data.model_fields_set and data.message is not None

        if booking.proposer_id == user.id:
            column_map = {
                "daysPerWeek": "days_per_week",
                "daysOfWeek": "days_of_week",
                "startTime": "start_time",
                "duration": "duration",
                "totalSessions": "total_sessions",
            }
            for field, value in schedule_changes.items():
                setattr(booking, column_map[field], value)
            if has_message:
                booking.message = data.message

            if schedule_changes:
                if booking.status == "draft":
                    booking.status = "pending"
                elif booking.status == "changes_requested":
                    booking.status = "changes_made"
                booking.version += 1
            counterpart_id = booking.recipient_id
        else:
            if schedule_changes or not has_message:
                raise HTTPException(
                    status_code=400, detail="Recipients can only update the message field"
                )
            booking.message = data.message
            booking.status = "changes_requested"
            counterpart_id = booking.proposer_id

        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"📝 Session booking {booking.id} updated by {user.id}: status={booking.status} v{booking.version}")

        if booking.status != "draft":
            await self._notify_booking_update(booking, user, counterpart_id)
        return booking

    async def _notify_booking_update(self, booking: SessionBooking, actor: User, counterpart_id: int) -> None:
        if booking.status == "changes_requested":
            title = "Changes Requested"
            message = f"{actor.name} requested changes to the {booking.skill} session schedule"
        else:
            title = "Session Schedule Proposed"
            message = f"{actor.name} proposed a schedule for {booking.skill} sessions"

        await enqueue_notification(
            NotificationPayload(
                user_id=counterpart_id,
                type="session_reminder",
                title=title,
                message=message,
                data={"sessionBookingId": booking.id},
                template=NotificationTemplate(
                    push_data={"type": "session_booking_updated", "sessionBookingId": booking.id}
                ),
            )
        )

    async def accept_session_booking(self, booking_id: int, user: User) -> list[ScheduledSession]:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Session booking not found")
        if booking.recipient_id != user.id:
            raise HTTPException(status_code=403, detail="Only the recipient can accept a session booking")
        if booking.status not in ("pending", "changes_made"):
            raise HTTPException(
                status_code=400, detail="Only pending or changes_made session bookings can be accepted"
            )

        # the status change and its sessions land in one commit
        try:
            generated = await self._generate_sessions(booking)
            booking.status = "accepted"
            sessions = self.repo.add_sessions(self.db, generated)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to accept session booking {booking.id}: {str(e)}")
            raise
        self.db.refresh(booking)
        logger.info(f"✅ Session booking {booking.id} accepted, {len(sessions)} sessions created")

        if sessions:
            await self._notify_sessions_scheduled(booking, sessions)
        return sessions

    # ========================================================================
    # SESSION GENERATION
    # ========================================================================

    async def _generate_sessions(self, booking: SessionBooking) -> list[ScheduledSession]:
        """Instructor is the proposer; each session gets its own Meet link"""
        instructor = booking.proposer
        learner = booking.recipient
        now = datetime.utcnow()

        sessions = []
        schedule = build_schedule(booking.days_of_week, booking.total_sessions, booking.start_time)
        for i, scheduled_date in enumerate(schedule):
            meeting_link: Optional[str] = None
            try:
                meeting_link = await google_meet_service.create_scheduled_meeting(
                    scheduled_date,
                    booking.duration,
                    f"Skill Session: {booking.skill}",
                    f"Teaching session for {booking.skill}",
                    instructor.email,
                    learner.email,
                )
            except Exception as e:
                logger.error(f"❌ Failed to create Google Meet for session {i + 1}: {e}")

            session = ScheduledSession(
                session_booking_id=booking.id,
                exchange_request_id=booking.exchange_request_id,
                instructor_id=instructor.id,
                learner_id=learner.id,
                skill=booking.skill,
                type="teaching",
                status="scheduled",
                scheduled_date=scheduled_date,
                duration=booking.duration,
                location="online",
                meeting_link=meeting_link,
            )
            session.refresh_status(now)
            sessions.append(session)
        return sessions

    async def _notify_sessions_scheduled(self, booking: SessionBooking, sessions: list[ScheduledSession]) -> None:
        """Tell both parties about the first session"""
        first_session = sessions[0]
        formatted_date = format_session_date(first_session.scheduled_date)
        session_url = f"{FRONTEND_URL}/@me/sessions/{first_session.id}"
        instructor, learner = booking.proposer, booking.recipient

        for role, recipient, counterpart in (
            ("instructor", instructor, learner),
            ("learner", learner, instructor),
        ):
            is_instructor = role == "instructor"
            try:
                await enqueue_notification(
                    NotificationPayload(
                        user_id=recipient.id,
                        type="session_reminder",
                        title="Session Scheduled",
                        message=f"Your session for {booking.skill} is scheduled for {formatted_date}",
                        data={"sessionId": first_session.id},
                        template=NotificationTemplate(
                            email_subject=(
                                "Your Teaching Session is Scheduled - Skill Barter"
                                if is_instructor
                                else "Your Learning Session is Scheduled - Skill Barter"
                            ),
                            email_mjml=session_scheduled_template(
                                recipient.first_name,
                                role,
                                counterpart.name,
                                booking.skill,
                                formatted_date,
                                len(sessions),
                                session_url,
                            ),
                            push_title=(
                                "Teaching Session Scheduled! 📅"
                                if is_instructor
                                else "Learning Session Scheduled! 🎓"
                            ),
                            push_body=f"Your {booking.skill} session with {counterpart.name} starts {formatted_date}",
                            push_data={
                                "type": "session_scheduled",
                                "sessionId": first_session.id,
                                "role": role,
                            },
                        ),
                    )
                )
            except Exception as e:
                logger.error(f"❌ Failed to send session notification to {role}: {e}")
