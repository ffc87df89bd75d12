"""Session service - Listing, completion, learning progress and status upkeep"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...email_templates import session_reminder_template
from ...models import ScheduledSession, User
from ...schemas import PaginationParams
from ...services.notification_service import NotificationPayload, NotificationTemplate
from ...shared.responses import pagination_block, user_summary
from ..session_bookings.service import format_session_date
from .repository import SessionRepository

logger = logging.getLogger(__name__)

REMINDER_WINDOW = timedelta(hours=1)


def serialize_session(session: ScheduledSession, user_id: int) -> dict:
    return {
        "id": session.id,
        "userRole": "instructor" if session.instructor_id == user_id else "learner",
        "instructor": user_summary(session.instructor),
        "learner": user_summary(session.learner),
        "skill": session.skill,
        "type": session.type,
        "status": session.status,
        "scheduledDate": session.scheduled_date.isoformat(),
        "duration": session.duration,
        "description": session.description or None,
        "location": session.location,
        "meetingLink": session.meeting_link or None,
        "address": session.address or None,
        "completedAt": session.completed_at.isoformat() if session.completed_at else None,
        "createdAt": session.created_at.isoformat() if session.created_at else None,
        "updatedAt": session.updated_at.isoformat() if session.updated_at else None,
    }


def _percent(done: int, total: int) -> int:
    return round(done / total * 100) if total else 0


# ============================================================================
# STATUS UPKEEP (request path and background worker)
# ============================================================================


def refresh_session_statuses(
    db: Session, user_id: Optional[int] = None, complete_ended: bool = False, now: Optional[datetime] = None
) -> int:
    """
    Re-derive scheduled/active from the clock for open sessions.
    With complete_ended, sessions past their end are marked completed.
    Returns the number of sessions whose status changed.
    """
    now = now or datetime.utcnow()
    changed = 0
    for session in SessionRepository.get_open_sessions(db, user_id):
        previous = session.status
        if complete_ended and now >= session.ends_at:
            session.status = "completed"
            session.completed_at = now
        else:
            session.refresh_status(now)
        if session.status != previous:
            changed += 1
    if changed:
        db.commit()
    return changed


def build_session_reminders(db: Session, now: Optional[datetime] = None) -> list[NotificationPayload]:
    """
    Reminder payloads for sessions starting within the next hour that
    haven't been reminded yet. Marks them as reminded.
    """
    now = now or datetime.utcnow()
    due = (
        db.query(ScheduledSession)
        .filter(
            ScheduledSession.status == "scheduled",
            ScheduledSession.reminder_sent_at.is_(None),
            ScheduledSession.scheduled_date > now,
            ScheduledSession.scheduled_date <= now + REMINDER_WINDOW,
        )
        .all()
    )

    payloads = []
    for session in due:
        starts_at = format_session_date(session.scheduled_date)
        session_url = f"{FRONTEND_URL}/@me/sessions/{session.id}"
        for participant in (session.instructor, session.learner):
            message = f"Your {session.skill} session starts at {starts_at}"
            payloads.append(
                NotificationPayload(
                    user_id=participant.id,
                    type="session_reminder",
                    title="Session Starting Soon",
                    message=message,
                    data={"sessionId": session.id},
                    template=NotificationTemplate(
                        email_subject="Your Session Starts Soon - Skill Barter",
                        email_mjml=session_reminder_template(
                            participant.first_name,
                            session.skill,
                            starts_at,
                            session.meeting_link,
                            session_url,
                        ),
                        push_title="Session Starting Soon ⏰",
                        push_body=message,
                        push_data={"type": "session_reminder", "sessionId": session.id},
                    ),
                )
            )
        session.reminder_sent_at = now

    if due:
        db.commit()
    return payloads


class SessionService:
    """Service layer for session business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SessionRepository()

    def get_sessions(self, user: User, pagination: PaginationParams, status: Optional[str] = None) -> dict:
        refresh_session_statuses(self.db, user.id)

        items, total = self.repo.list_for_user(
            self.db, user.id, pagination.offset, pagination.limit, status
        )
        counts = self.repo.count_by_status(self.db, user.id)
        return {
            "sessions": [serialize_session(session, user.id) for session in items],
            "dashboard": {
                "total": sum(counts.values()),
                "active": counts.get("active", 0),
                "scheduled": counts.get("scheduled", 0),
                "completed": counts.get("completed", 0),
            },
            "pagination": pagination_block(pagination.page, pagination.limit, total),
        }

    def complete_session(self, session_id: int, user: User) -> ScheduledSession:
        session = self.repo.get_by_id(self.db, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        if user.id not in (session.instructor_id, session.learner_id):
            raise HTTPException(status_code=403, detail="You are not authorized to complete this session")
        if session.status == "completed":
            raise HTTPException(status_code=400, detail="Session is already completed")

        now = datetime.utcnow()
        if now < session.scheduled_date:
            raise HTTPException(status_code=400, detail="Session cannot be completed before it starts")

        session.status = "completed"
        session.completed_at = now
        self.db.commit()
        self.db.refresh(session)
        logger.info(f"✅ Session {session.id} completed by user {user.id}")
        return session

    def get_learning_progress(self, user: User) -> dict:
        """Per-skill progress for sessions where the caller is the learner"""
        now = datetime.utcnow()
        by_skill: dict[str, list[ScheduledSession]] = {}
        for session in self.repo.get_learner_sessions(self.db, user.id):
            by_skill.setdefault(session.skill, []).append(session)

        skills = []
        total_sessions = completed_sessions = 0
        for skill, sessions in by_skill.items():
            completed = sum(1 for s in sessions if s.status == "completed")
            upcoming = [s for s in sessions if s.status != "completed" and s.ends_at > now]
            skills.append(
                {
                    "skill": skill,
                    "instructor": user_summary(sessions[0].instructor),
                    "totalSessions": len(sessions),
                    "completedSessions": completed,
                    "progress": _percent(completed, len(sessions)),
                    "nextSession": upcoming[0].scheduled_date.isoformat() if upcoming else None,
                }
            )
            total_sessions += len(sessions)
            completed_sessions += completed

        return {
            "skills": skills,
            "summary": {
                "totalSkills": len(skills),
                "totalSessions": total_sessions,
                "completedSessions": completed_sessions,
                "overallProgress": _percent(completed_sessions, total_sessions),
            },
        }
