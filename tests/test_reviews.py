"""
Tests for POST /users/{id}/reviews.
"""

from datetime import datetime

from conftest import auth_headers, make_user

from app.models import Review

API = "/api/v1/users"


class TestCreateReview:
    """One review per reviewer, reviewed user and skill"""

    def test_creates_review(self, client, db, notifications):
        ada = make_user(db, "ada@example.com", first_name="Ada", last_name="Lovelace")
        bob = make_user(db, "bob@example.com")

        response = client.post(
            f"{API}/{bob.id}/reviews",
            json={"skill": " Python ", "rating": 4, "comment": "<b>Very</b> patient"},
            headers=auth_headers(ada),
        )

        assert response.status_code == 201
        assert response.json() == {
            "status": "success",
            "message": "Thank you for sharing your feedback!",
            "data": None,
        }
        review = db.query(Review).one()
        assert review.skill == "Python"
        assert review.comment == "Very patient"
        assert review.reviewer_id == ada.id

        payload = notifications.await_args.args[0]
        assert payload.type == "review_and_rating"
        assert payload.user_id == bob.id
        assert payload.message == "Ada Lovelace rated you 4/5 for Python"
        assert payload.template.email_subject

    def test_cannot_review_self(self, client, db):
        ada = make_user(db, "ada@example.com")

        response = client.post(
            f"{API}/{ada.id}/reviews", json={"skill": "Python", "rating": 5}, headers=auth_headers(ada)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "You cannot review yourself"

    def test_duplicate_for_same_skill(self, client, db):
        ada = make_user(db, "ada@example.com")
        bob = make_user(db, "bob@example.com")
        headers = auth_headers(ada)
        client.post(f"{API}/{bob.id}/reviews", json={"skill": "Python", "rating": 5}, headers=headers)

        duplicate = client.post(
            f"{API}/{bob.id}/reviews", json={"skill": "Python", "rating": 3}, headers=headers
        )
        other_skill = client.post(
            f"{API}/{bob.id}/reviews", json={"skill": "SQL", "rating": 3}, headers=headers
        )

        assert duplicate.status_code == 400
        assert duplicate.json()["detail"] == 'You have already reviewed this user for the skill "Python"'
        assert other_skill.status_code == 201

    def test_unknown_or_deleted_user(self, client, db):
        ada = make_user(db, "ada@example.com")
        gone = make_user(db, "gone@example.com", deleted_at=datetime.utcnow())
        headers = auth_headers(ada)

        for user_id in (gone.id, 9999):
            response = client.post(
                f"{API}/{user_id}/reviews", json={"skill": "Python", "rating": 5}, headers=headers
            )
            assert response.status_code == 404
            assert response.json()["detail"] == "User to review not found"

    def test_rating_bounds(self, client, db):
        ada = make_user(db, "ada@example.com")
        bob = make_user(db, "bob@example.com")

        for rating in (0, 6):
            response = client.post(
                f"{API}/{bob.id}/reviews",
                json={"skill": "Python", "rating": rating},
                headers=auth_headers(ada),
            )
            assert response.status_code == 422

    def test_requires_auth(self, client, db):
        bob = make_user(db, "bob@example.com")

        response = client.post(f"{API}/{bob.id}/reviews", json={"skill": "Python", "rating": 5})

        assert response.status_code == 401
