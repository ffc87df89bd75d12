"""
Tests for the Google Meet client, with Google's endpoints served by
httpx.MockTransport.
"""

import asyncio
import json
from datetime import datetime
from unittest.mock import patch
from urllib.parse import parse_qs

import httpx
import pytest

from app.services.google_meet_service import GoogleMeetError, GoogleMeetService

OAUTH_CREDENTIALS = json.dumps({"installed": {"client_id": "client-1", "client_secret": "shh"}})
MEET_URI = "https://meet.google.com/abc-defg-hij"


class FakeGoogle:
    """Records requests and answers the token and spaces endpoints"""

    def __init__(self, token_status=200, space_body=None):
        self.requests = []
        self.token_status = token_status
        self.space_body = space_body if space_body is not None else {"meetingUri": MEET_URI}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "oauth2.googleapis.com":
            if self.token_status != 200:
                return httpx.Response(self.token_status, text="invalid_grant")
            return httpx.Response(200, json={"access_token": "ya29.token", "expires_in": 3599})
        return httpx.Response(200, json=self.space_body)

    def patch(self):
        real_client = httpx.AsyncClient
        transport = httpx.MockTransport(self)
        return patch(
            "app.services.google_meet_service.httpx.AsyncClient",
            lambda **kwargs: real_client(transport=transport, **kwargs),
        )


def create_meeting(service):
    return asyncio.run(
        service.create_scheduled_meeting(
            datetime(2024, 1, 1, 9, 0), 60, "Skill Session: Python", "Teaching session for Python"
        )
    )


class TestGoogleMeetService:
    def test_creates_open_space(self):
        google = FakeGoogle()
        service = GoogleMeetService(OAUTH_CREDENTIALS, "refresh-1")

        with google.patch():
            assert create_meeting(service) == MEET_URI

        token_request, space_request = google.requests
        form = parse_qs(token_request.content.decode())
        assert form["grant_type"] == ["refresh_token"]
        assert form["refresh_token"] == ["refresh-1"]
        assert form["client_id"] == ["client-1"]
        assert space_request.url.path == "/v2/spaces"
        assert space_request.headers["Authorization"] == "Bearer ya29.token"
        assert json.loads(space_request.content) == {"config": {"accessType": "OPEN"}}

    def test_access_token_is_cached(self):
        google = FakeGoogle()
        service = GoogleMeetService(OAUTH_CREDENTIALS, "refresh-1")

        with google.patch():
            create_meeting(service)
            create_meeting(service)

        hosts = [request.url.host for request in google.requests]
        assert hosts.count("oauth2.googleapis.com") == 1
        assert hosts.count("meet.googleapis.com") == 2

    def test_refresh_token_from_credentials(self):
        google = FakeGoogle()
        credentials = json.dumps({"client_id": "flat", "client_secret": "s", "refresh_token": "inline"})
        service = GoogleMeetService(credentials, "")

        with google.patch():
            create_meeting(service)

        assert parse_qs(google.requests[0].content.decode())["refresh_token"] == ["inline"]

    def test_missing_credentials(self):
        with pytest.raises(GoogleMeetError, match="GOOGLE_MEET_CREDENTIALS environment variable is not set"):
            create_meeting(GoogleMeetService("", ""))

    def test_invalid_credentials_json(self):
        with pytest.raises(GoogleMeetError, match="Failed to parse GOOGLE_MEET_CREDENTIALS"):
            create_meeting(GoogleMeetService("{not json", ""))

    def test_missing_refresh_token(self):
        with pytest.raises(GoogleMeetError, match="Refresh token is required"):
            create_meeting(GoogleMeetService(OAUTH_CREDENTIALS, ""))

    def test_token_rejected(self):
        google = FakeGoogle(token_status=400)

        with google.patch(), pytest.raises(GoogleMeetError, match="Failed to authenticate with Google Meet"):
            create_meeting(GoogleMeetService(OAUTH_CREDENTIALS, "refresh-1"))

    def test_space_without_uri(self):
        google = FakeGoogle(space_body={"name": "spaces/abc"})

        with google.patch(), pytest.raises(GoogleMeetError, match="Failed to create Google Meet space"):
            create_meeting(GoogleMeetService(OAUTH_CREDENTIALS, "refresh-1"))
