"""
Unified Notification Service
Fans one event out to in-app (Firestore), email and push (FCM) channels,
honouring each user's per-channel notification settings.
Every channel is best-effort: a failing channel is logged and never breaks the caller.
"""

import json
import logging
import re
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException
from fastapi.concurrency import run_in_threadpool
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..config import FRONTEND_URL
from ..email_service import send_email
from ..email_templates import security_alert_template
from ..models import NotificationSettings, User
from .firebase import get_firestore_client, send_push_message

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = (
    "exchange_request",
    "session_reminder",
    "message",
    "review_and_rating",
    "achievement",
    "security_alert",
)

ACTION_URL_PATTERNS = {
    "exchange_request": "/@me/exchange-requests/:exchangeRequestId",
    "session_reminder": "/@me/sessions/:sessionId",
    "message": "/@me/chats/:conversationId",
    "review_and_rating": "/@me/reviews",
    "achievement": "/profile/achievements",
    "security_alert": "/me/settings/security",
}

SETTING_KEYS = {
    "exchange_request": "exchangeRequests",
    "session_reminder": "sessionReminders",
    "message": "messages",
    "review_and_rating": "reviewsAndRatings",
    "achievement": "achievements",
    "security_alert": "securityAlerts",
}

PARAM_PATTERN = re.compile(r":(\w+)")


class NotificationTemplate(BaseModel):
    """Channel-specific rendering. Email needs both subject and MJML body."""

    email_subject: Optional[str] = None
    email_mjml: Optional[str] = None
    push_title: Optional[str] = None
    push_body: Optional[str] = None
    push_data: Optional[dict[str, Any]] = None


class NotificationPayload(BaseModel):
    """One notification event; also the job payload for the background queue"""

    user_id: int
    type: str
    title: str
    message: str
    action_url: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)
    template: Optional[NotificationTemplate] = None


def generate_action_url(notification_type: str, data: Optional[dict] = None) -> Optional[str]:
    """Fill the type's URL pattern from data; None if any parameter is missing"""
    pattern = ACTION_URL_PATTERNS.get(notification_type)
    if not pattern:
        return None

    data = data or {}

    def replace(match: re.Match) -> str:
        value = data.get(match.group(1))
        return str(value) if value is not None else match.group(0)

    url = PARAM_PATTERN.sub(replace, pattern)
    if ":" in url:
        return None
    return url


def is_channel_enabled(
    settings: Optional[NotificationSettings], notification_type: str, channel: str
) -> bool:
    """Enabled unless the user explicitly switched it off. No settings row means enabled."""
    if settings is None:
        return True
    channel_settings = {
        "email": settings.email,
        "push": settings.push,
        "inApp": settings.in_app,
    }[channel] or {}
    return channel_settings.get(SETTING_KEYS[notification_type]) is not False


def _stringify_data(data: Optional[dict]) -> dict[str, str]:
    """FCM data payloads only accept string values"""
    if not data:
        return {}
    return {
        key: value if isinstance(value, str) else json.dumps(value)
        for key, value in data.items()
    }


async def create_in_app_notification(payload: NotificationPayload, action_url: Optional[str]) -> bool:
    """Write the notification to the Firestore 'notifications' collection"""
    try:
        now = datetime.utcnow()
        document = {
            "userId": str(payload.user_id),
            "type": payload.type,
            "title": payload.title,
            "message": payload.message,
            "actionUrl": action_url,
            "data": payload.data or {},
            "status": "unread",
            "readAt": None,
            "createdAt": now,
            "updatedAt": now,
        }
        client = get_firestore_client()
        await run_in_threadpool(client.collection("notifications").add, document)
        logger.info(f"✅ In-app notification created in Firestore for user {payload.user_id}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to create in-app notification in Firestore: {e}")
        return False


async def send_email_notification(email: str, subject: str, mjml_content: str) -> bool:
    try:
        await send_email(to=email, subject=subject, mjml_content=mjml_content)
        logger.info(f"📧 Email notification sent to {email}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to send email notification to {email}: {e}")
        return False


async def send_push_notification(
    db: Session, user: User, title: str, body: str, data: Optional[dict] = None
) -> bool:
    """Send an FCM push. Invalid or unregistered tokens are cleared from the user."""
    if not user.fcm_token:
        logger.info(f"No FCM token found for user {user.id}, skipping push notification")
        return False

    message = messaging.Message(
        token=user.fcm_token,
        notification=messaging.Notification(title=title, body=body),
        data=_stringify_data(data),
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(
                sound="default", click_action="FLUTTER_NOTIFICATION_CLICK"
            ),
        ),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(aps=messaging.Aps(sound="default", badge=1))
        ),
    )

    try:
        response = await run_in_threadpool(send_push_message, message)
        logger.info(f"📱 Push notification sent successfully to user {user.id}: {response}")
        return True
    except (messaging.UnregisteredError, firebase_exceptions.InvalidArgumentError) as e:
        logger.warning(f"⚠️ Invalid FCM token for user {user.id}, clearing it: {e}")
        user.fcm_token = None
        db.commit()
        return False
    except Exception as e:
        logger.error(f"❌ Failed to send push notification to user {user.id}: {e}")
        return False


async def send_notification(db: Session, payload: NotificationPayload) -> dict[str, bool]:
    """
    Deliver one notification across all enabled channels.

    Raises:
        HTTPException(404) if the user does not exist
    """
    if payload.type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {payload.type}")

    user = db.query(User).filter(User.id == payload.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    action_url = payload.action_url or generate_action_url(payload.type, payload.data)
    settings = (
        db.query(NotificationSettings).filter(NotificationSettings.user_id == user.id).first()
    )
    template = payload.template or NotificationTemplate()
    result = {"inApp": False, "email": False, "push": False}

    if is_channel_enabled(settings, payload.type, "inApp"):
        result["inApp"] = await create_in_app_notification(payload, action_url)

    if (
        is_channel_enabled(settings, payload.type, "email")
        and template.email_subject
        and template.email_mjml
    ):
        result["email"] = await send_email_notification(
            user.email, template.email_subject, template.email_mjml
        )

    if is_channel_enabled(settings, payload.type, "push") and user.fcm_token:
        result["push"] = await send_push_notification(
            db,
            user,
            template.push_title or payload.title,
            template.push_body or payload.message,
            template.push_data or payload.data,
        )

    logger.info(f"✅ Notification '{payload.type}' processed for user {user.id}: {result}")
    return result


async def enqueue_notification(payload: NotificationPayload) -> Optional[str]:
    """
    Queue a notification for the background worker.
    Falls back to sending inline when the queue is unreachable.
    Returns the job id when queued.
    """
    from arq import create_pool

    from ..database import SessionLocal
    from ..worker import get_redis_settings

    try:
        pool = await create_pool(get_redis_settings())
        try:
            job = await pool.enqueue_job("send_notification_task", payload.model_dump())
        finally:
            await pool.close()
        logger.info(f"📋 Notification job queued: {job.job_id if job else None}")
        return job.job_id if job else None
    except Exception as e:
        logger.warning(f"⚠️ Failed to queue notification, sending inline: {e}")

    db = SessionLocal()
    try:
        await send_notification(db, payload)
    except Exception as e:
        logger.error(f"❌ Inline notification for user {payload.user_id} failed: {e}")
    finally:
        db.close()
    return None


def build_security_alert(user: User, event: str) -> NotificationPayload:
    """Security alert for account changes (password reset or change)"""
    action_url = f"{FRONTEND_URL}{ACTION_URL_PATTERNS['security_alert']}"
    return NotificationPayload(
        user_id=user.id,
        type="security_alert",
        title="Security Alert",
        message=event,
        template=NotificationTemplate(
            email_subject="Security Alert - Skill Barter",
            email_mjml=security_alert_template(user.first_name, event, action_url),
            push_title="Security Alert 🔒",
            push_body=event,
            push_data={"type": "security_alert"},
        ),
    )
