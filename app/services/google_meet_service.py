"""
Google Meet Service
Creates meeting spaces through the Meet REST API (v2)
Supports service-account credentials and OAuth clients with a refresh token
"""
import json
import logging
import time
from datetime import datetime
from typing import Optional

import httpx
from jose import jwt

from ..config import GOOGLE_MEET_CREDENTIALS, GOOGLE_MEET_REFRESH_TOKEN

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_MEET_API = "https://meet.googleapis.com/v2"
SCOPES = ["https://www.googleapis.com/auth/meetings.space.created"]

# Refresh cached tokens this many seconds before they expire
TOKEN_EXPIRY_MARGIN = 60


class GoogleMeetError(Exception):
    """Raised when a meeting space cannot be created"""


class GoogleMeetService:
    def __init__(self, credentials_json: Optional[str] = None, refresh_token: Optional[str] = None):
        self.credentials_json = credentials_json if credentials_json is not None else GOOGLE_MEET_CREDENTIALS
        self.refresh_token = refresh_token if refresh_token is not None else GOOGLE_MEET_REFRESH_TOKEN
        self._access_token: Optional[str] = None
        self._expires_at: float = 0

    def _load_credentials(self) -> dict:
        if not self.credentials_json:
            raise GoogleMeetError("GOOGLE_MEET_CREDENTIALS environment variable is not set")
        try:
            return json.loads(self.credentials_json)
        except ValueError as e:
            raise GoogleMeetError(f"Failed to parse GOOGLE_MEET_CREDENTIALS: {e}") from e

    def _service_account_request(self, credentials: dict) -> dict:
        """Token request for a service account: a signed RS256 JWT assertion"""
        now = int(time.time())
        claims = {
            "iss": credentials["client_email"],
            "scope": " ".join(SCOPES),
            "aud": credentials.get("token_uri", GOOGLE_TOKEN_URL),
            "iat": now,
            "exp": now + 3600,
        }
        headers = {"kid": credentials["private_key_id"]} if credentials.get("private_key_id") else None
        assertion = jwt.encode(claims, credentials["private_key"], algorithm="RS256", headers=headers)
        return {
            "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
            "assertion": assertion,
        }

    def _refresh_token_request(self, credentials: dict) -> dict:
        """Token request for an OAuth client (installed, web or flat JSON)"""
        client = credentials.get("installed") or credentials.get("web") or credentials
        refresh_token = client.get("refresh_token") or self.refresh_token
        if not refresh_token:
            raise GoogleMeetError(
                "Refresh token is required. Please set GOOGLE_MEET_REFRESH_TOKEN "
                "or include refresh_token in credentials"
            )
        return {
            "client_id": client.get("client_id"),
            "client_secret": client.get("client_secret"),
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }

    async def get_access_token(self) -> str:
        """Return a cached access token, or fetch a new one from Google"""
        if self._access_token and time.time() < self._expires_at - TOKEN_EXPIRY_MARGIN:
            return self._access_token

        credentials = self._load_credentials()
        if credentials.get("type") == "service_account":
            data = self._service_account_request(credentials)
        else:
            data = self._refresh_token_request(credentials)

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(GOOGLE_TOKEN_URL, data=data)
        except httpx.HTTPError as e:
            raise GoogleMeetError(f"Failed to authenticate with Google Meet: {e}") from e

        if response.status_code != 200:
            logger.error(f"❌ Google token request failed: {response.text}")
            raise GoogleMeetError(f"Failed to authenticate with Google Meet: {response.text}")

        tokens = response.json()
        access_token = tokens.get("access_token")
        if not access_token:
            raise GoogleMeetError("Failed to authenticate with Google Meet: no access token returned")

        self._access_token = access_token
        self._expires_at = time.time() + int(tokens.get("expires_in", 3600))
        logger.info("✅ Google Meet access token refreshed")
        return access_token

    async def create_meeting_space(self) -> str:
        """Create an OPEN meeting space (anyone with the link can join) and return its URI"""
        access_token = await self.get_access_token()
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    f"{GOOGLE_MEET_API}/spaces",
                    headers={"Authorization": f"Bearer {access_token}"},
                    json={"config": {"accessType": "OPEN"}},
                )
        except httpx.HTTPError as e:
            raise GoogleMeetError(f"Failed to create Google Meet space: {e}") from e

        if response.status_code not in (200, 201):
            logger.error(f"❌ Meet space creation failed: {response.status_code} {response.text}")
            raise GoogleMeetError(f"Failed to create Google Meet space: {response.text}")

        meeting_uri = response.json().get("meetingUri")
        if not meeting_uri:
            raise GoogleMeetError("Failed to create Google Meet space")
        return meeting_uri

    async def create_scheduled_meeting(
        self,
        scheduled_date: datetime,
        duration: int,
        summary: str,
        description: str,
        instructor_email: Optional[str] = None,
        learner_email: Optional[str] = None,
    ) -> str:
        """
        Create the meeting link for one scheduled session.
        Meet spaces are not bound to a time; the schedule is only logged.
        """
        meeting_uri = await self.create_meeting_space()
        logger.info(
            f"✅ Created Google Meet for '{summary}' at {scheduled_date.isoformat()} "
            f"({duration} min): {meeting_uri}"
        )
        return meeting_uri


google_meet_service = GoogleMeetService()
