"""
Chat conversations between matched users (Firestore 'conversations' collection)
Only the conversation document is created here; messages are written by clients.
"""
import logging

from fastapi.concurrency import run_in_threadpool
from firebase_admin import firestore

from .firebase import get_firestore_client

logger = logging.getLogger(__name__)

CONVERSATIONS_COLLECTION = "conversations"


def conversation_id(user_id_1, user_id_2) -> str:
    """Stable id for a pair of users, independent of argument order"""
    first, second = sorted([str(user_id_1), str(user_id_2)])
    return f"{first}_{second}"


async def create_conversation(user_id_1, user_id_2, exchange_request_id) -> dict:
    """
    Create the conversation document if it doesn't exist yet.
    Returns {"conversationId", "created"}; Firestore errors propagate.
    """
    conv_id = conversation_id(user_id_1, user_id_2)
    doc_ref = get_firestore_client().collection(CONVERSATIONS_COLLECTION).document(conv_id)

    try:
        existing = await run_in_threadpool(doc_ref.get)
        if existing.exists:
            logger.info(f"Conversation {conv_id} already exists, skipping creation")
            return {"conversationId": conv_id, "created": False}

        await run_in_threadpool(
            doc_ref.set,
            {
                "participants": [str(user_id_1), str(user_id_2)],
                "exchangeRequestId": str(exchange_request_id),
                "createdAt": firestore.SERVER_TIMESTAMP,
                "lastMessage": None,
                "unreadCount": {str(user_id_1): 0, str(user_id_2): 0},
            },
        )
        logger.info(f"✅ Created conversation {conv_id} in Firestore")
        return {"conversationId": conv_id, "created": True}
    except Exception as e:
        logger.error(f"❌ Failed to create conversation in Firestore: {e}")
        raise
