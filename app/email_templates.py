"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from datetime import datetime
from typing import Optional

from .config import FRONTEND_URL

# Skill Barter theme - Emerald/Indigo color scheme
THEME = {
    "primary": "#10b981",
    "primary_dark": "#059669",
    "primary_light": "#d1fae5",
    "learner": "#6366f1",
    "learner_light": "#e0e7ff",
    "background": "#f4f7fa",
    "card_bg": "#ffffff",
    "text_primary": "#111827",
    "text_secondary": "#374151",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    accent: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""
    accent = accent or THEME["primary"]

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="#ffffff" padding="0 40px 32px 40px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{accent}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="8px 0"
              inner-padding="14px 32px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="'Segoe UI', Tahoma, Geneva, Verdana, sans-serif" />
          <mj-text font-size="15px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{accent}" padding="32px 40px" border-radius="16px 16px 0 0">
          <mj-column>
            <mj-text align="center" font-size="24px" font-weight="700" color="#ffffff" padding="0">
              {title}
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="32px 40px 16px 40px">
          <mj-column>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section background-color="#f9fafb" padding="24px 40px" border-radius="0 0 16px 16px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#9ca3af" padding="0">
              This is an automated message from Skill Barter.
            </mj-text>
            <mj-text align="center" font-size="12px" color="#9ca3af" padding="8px 0 0 0">
              © {datetime.utcnow().year} Skill Barter. All rights reserved.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _otp_block(otp: str) -> str:
    return f"""
    <mj-text align="center" font-size="32px" font-weight="700" letter-spacing="8px"
      color="{THEME['primary_dark']}" container-background-color="{THEME['primary_light']}"
      padding="20px 0">
      {otp}
    </mj-text>
    """


def _detail_row(label: str, value: str, color: Optional[str] = None) -> str:
    return f"""
    <mj-text padding="6px 0" font-size="13px" color="{THEME['text_muted']}">
      {label}<br/>
      <span style="font-size: 16px; font-weight: 600; color: {color or THEME['text_secondary']};">{value}</span>
    </mj-text>
    """


def email_verification_template(otp: str, expires_minutes: int) -> str:
    """Email verification OTP"""
    content = f"""
    <mj-text>Welcome to Skill Barter! Use the code below to verify your email address.</mj-text>
    {_otp_block(otp)}
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      This code expires in {expires_minutes} minutes. If you didn't request it, you can ignore this email.
    </mj-text>
    """
    return get_base_template(
        title="Verify Your Email",
        preview_text=f"Your verification code is {otp}",
        content_sections=content,
    )


def password_reset_template(otp: str, expires_minutes: int) -> str:
    """Password reset OTP"""
    content = f"""
    <mj-text>We received a request to reset your Skill Barter password. Enter this code to continue:</mj-text>
    {_otp_block(otp)}
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      This code expires in {expires_minutes} minutes. If you didn't ask for a reset, your password is unchanged.
    </mj-text>
    """
    return get_base_template(
        title="Reset Your Password",
        preview_text="Your password reset code",
        content_sections=content,
    )


def welcome_email_template(first_name: str) -> str:
    content = f"""
    <mj-text>Hi <strong>{first_name}</strong>,</mj-text>
    <mj-text>
      Your account is ready. Add the skills you can teach and the ones you want to learn,
      and we'll match you with people who complement you.
    </mj-text>
    """
    return get_base_template(
        title="Welcome to Skill Barter!",
        preview_text="Your account has been created",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/@me/connections",
        cta_label="Find Skill Matches",
    )


def exchange_request_received_template(
    receiver_first_name: str,
    requester_name: str,
    teaching_skill: str,
    learning_skill: str,
    message: Optional[str],
    action_url: str,
) -> str:
    message_block = ""
    if message:
        message_block = f"""
        <mj-text font-style="italic" color="{THEME['text_muted']}">"{message}"</mj-text>
        """
    content = f"""
    <mj-text>Hi <strong>{receiver_first_name}</strong>,</mj-text>
    <mj-text>
      <strong>{requester_name}</strong> wants to swap skills with you.
    </mj-text>
    {_detail_row("They will teach", teaching_skill, THEME['primary_dark'])}
    {_detail_row("They want to learn", learning_skill, THEME['learner'])}
    {message_block}
    """
    return get_base_template(
        title="New Exchange Request",
        preview_text=f"{requester_name} sent you an exchange request",
        content_sections=content,
        cta_url=action_url,
        cta_label="Review Request",
    )


def session_scheduled_template(
    recipient_first_name: Optional[str],
    role: str,
    counterpart_name: str,
    skill: str,
    first_session: str,
    total_sessions: int,
    session_url: str,
) -> str:
    """Sessions materialized from an accepted booking, one variant per role"""
    is_instructor = role == "instructor"
    accent = THEME["primary"] if is_instructor else THEME["learner"]
    if is_instructor:
        intro = (
            f"Great news! Your teaching sessions have been scheduled. "
            f"<strong>{counterpart_name}</strong> is excited to learn <strong>{skill}</strong> from you."
        )
        outro = "Make sure to prepare your materials and be ready to share your knowledge. Happy teaching!"
        counterpart_label = "Student"
    else:
        intro = (
            f"Exciting news! Your learning sessions have been scheduled. "
            f"Get ready to learn <strong>{skill}</strong> from <strong>{counterpart_name}</strong>."
        )
        outro = "Come prepared with questions and an open mind. Happy learning!"
        counterpart_label = "Instructor"

    plural = "s" if total_sessions > 1 else ""
    content = f"""
    <mj-text>Hi <strong>{recipient_first_name or "there"}</strong>,</mj-text>
    <mj-text>{intro}</mj-text>
    {_detail_row("Skill", skill, accent)}
    {_detail_row("Your Role", "Instructor" if is_instructor else "Learner")}
    {_detail_row(counterpart_label, counterpart_name)}
    {_detail_row("First Session", first_session)}
    {_detail_row("Total Sessions", f"{total_sessions} session{plural}")}
    <mj-text color="{THEME['text_muted']}" font-size="14px">{outro}</mj-text>
    """
    return get_base_template(
        title="Sessions Scheduled!",
        preview_text=f"Your {skill} sessions are scheduled",
        content_sections=content,
        cta_url=session_url,
        cta_label="View Session Details",
        accent=accent,
    )


def session_reminder_template(
    first_name: str, skill: str, starts_at: str, meeting_link: Optional[str], session_url: str
) -> str:
    link_row = _detail_row("Meeting Link", meeting_link) if meeting_link else ""
    content = f"""
    <mj-text>Hi <strong>{first_name}</strong>,</mj-text>
    <mj-text>Your <strong>{skill}</strong> session starts soon.</mj-text>
    {_detail_row("Starts", starts_at)}
    {link_row}
    """
    return get_base_template(
        title="Session Starting Soon",
        preview_text=f"Your {skill} session starts at {starts_at}",
        content_sections=content,
        cta_url=meeting_link or session_url,
        cta_label="Join Session" if meeting_link else "View Session",
    )


def review_received_template(
    first_name: str, reviewer_name: str, skill: str, rating: int, action_url: str
) -> str:
    stars = "★" * rating + "☆" * (5 - rating)
    content = f"""
    <mj-text>Hi <strong>{first_name}</strong>,</mj-text>
    <mj-text><strong>{reviewer_name}</strong> left you a review for <strong>{skill}</strong>.</mj-text>
    <mj-text align="center" font-size="28px" color="#f59e0b">{stars}</mj-text>
    """
    return get_base_template(
        title="You Received a Review",
        preview_text=f"{reviewer_name} rated you {rating}/5",
        content_sections=content,
        cta_url=action_url,
        cta_label="See Your Reviews",
    )


def security_alert_template(first_name: str, event: str, action_url: str) -> str:
    content = f"""
    <mj-text>Hi <strong>{first_name}</strong>,</mj-text>
    <mj-text>{event}</mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If this wasn't you, reset your password immediately and review your security settings.
    </mj-text>
    """
    return get_base_template(
        title="Security Alert",
        preview_text=event,
        content_sections=content,
        cta_url=action_url,
        cta_label="Review Security Settings",
        accent=THEME["danger"],
    )
