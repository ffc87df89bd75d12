"""
Firebase Admin SDK bootstrap
Provides Firestore (in-app notifications, conversations) and Cloud Messaging (push)
"""

import logging

import firebase_admin
from firebase_admin import credentials, firestore, messaging

from ..config import FIREBASE_CREDENTIALS, FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)


def get_firebase_app() -> firebase_admin.App:
    """Initialize Firebase Admin SDK (only once)"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {"projectId": FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None
    if FIREBASE_CREDENTIALS:
        cred = credentials.Certificate(FIREBASE_CREDENTIALS)
        logger.info("Firebase Admin initialized with service account file")
    else:
        # Application Default Credentials (GOOGLE_APPLICATION_CREDENTIALS, GCE metadata, ...)
        cred = credentials.ApplicationDefault()
        logger.info("Firebase Admin initialized with default credentials")
    return firebase_admin.initialize_app(cred, options)


def get_firestore_client():
    return firestore.client(app=get_firebase_app())


def send_push_message(message: messaging.Message) -> str:
    """Send one FCM message, returning the message id"""
    return messaging.send(message, app=get_firebase_app())
