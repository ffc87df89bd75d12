"""
Tests for GET/PATCH /notification-settings.
"""

from conftest import auth_headers, make_user

from app.models import NotificationSettings

API = "/api/v1/notification-settings"


class TestNotificationSettings:
    """Per-channel toggles with partial updates"""

    def test_defaults(self, client, db):
        user = make_user(db, "ada@example.com")

        response = client.get(API, headers=auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Notification settings retrieved successfully"
        assert body["data"]["email"] == {
            "exchangeRequests": False,
            "sessionReminders": True,
            "messages": False,
            "reviewsAndRatings": True,
            "achievements": True,
            "securityAlerts": True,
        }
        assert all(body["data"]["push"].values())
        assert all(body["data"]["inApp"].values())
        assert "securityAlerts" not in body["data"]["push"]

    def test_partial_update_merges(self, client, db):
        user = make_user(db, "ada@example.com")

        response = client.patch(
            API,
            json={"email": {"exchangeRequests": True}, "push": {"messages": False}},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["email"]["exchangeRequests"] is True
        assert data["email"]["sessionReminders"] is True
        assert data["push"]["messages"] is False
        assert data["push"]["achievements"] is True
        assert all(data["inApp"].values())

        db.expire_all()
        stored = db.query(NotificationSettings).filter(NotificationSettings.user_id == user.id).one()
        assert stored.push["messages"] is False

    def test_unknown_keys_rejected(self, client, db):
        user = make_user(db, "ada@example.com")
        headers = auth_headers(user)

        assert client.patch(API, json={"sms": {"messages": True}}, headers=headers).status_code == 422
        assert client.patch(API, json={"push": {"securityAlerts": False}}, headers=headers).status_code == 422
        assert client.patch(API, json={"email": {"messages": "often"}}, headers=headers).status_code == 422

    def test_missing_settings_row(self, client, db):
        user = make_user(db, "ada@example.com")
        db.delete(user.notification_settings)
        db.commit()

        response = client.get(API, headers=auth_headers(user))

        assert response.status_code == 404
        assert response.json()["detail"] == "Notification settings not found"
