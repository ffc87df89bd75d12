"""
Tests for the Firestore conversation document created when two users match.
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from firebase_admin import firestore

from app.services.contact_service import conversation_id, create_conversation


def fake_firestore(exists: bool):
    client = MagicMock()
    doc_ref = client.collection.return_value.document.return_value
    doc_ref.get.return_value.exists = exists
    return client, doc_ref


class TestConversations:
    def test_id_is_order_independent(self):
        assert conversation_id(12, 3) == "12_3"
        assert conversation_id(3, 12) == "12_3"
        assert conversation_id("a", "b") == "a_b"

    def test_creates_document(self):
        client, doc_ref = fake_firestore(exists=False)

        with patch("app.services.contact_service.get_firestore_client", return_value=client):
            result = asyncio.run(create_conversation(4, 9, 17))

        assert result == {"conversationId": "4_9", "created": True}
        client.collection.assert_called_once_with("conversations")
        client.collection.return_value.document.assert_called_once_with("4_9")
        document = doc_ref.set.call_args.args[0]
        assert document["participants"] == ["4", "9"]
        assert document["exchangeRequestId"] == "17"
        assert document["createdAt"] is firestore.SERVER_TIMESTAMP
        assert document["lastMessage"] is None
        assert document["unreadCount"] == {"4": 0, "9": 0}

    def test_existing_conversation_is_kept(self):
        client, doc_ref = fake_firestore(exists=True)

        with patch("app.services.contact_service.get_firestore_client", return_value=client):
            result = asyncio.run(create_conversation(9, 4, 17))

        assert result == {"conversationId": "4_9", "created": False}
        doc_ref.set.assert_not_called()

    def test_firestore_errors_propagate(self):
        client, doc_ref = fake_firestore(exists=False)
        doc_ref.set.side_effect = RuntimeError("permission denied")

        with patch("app.services.contact_service.get_firestore_client", return_value=client):
            with pytest.raises(RuntimeError):
                asyncio.run(create_conversation(4, 9, 17))
