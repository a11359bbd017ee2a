import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from config import FIREBASE_CREDENTIALS_PATH

logger = logging.getLogger("together.fcm")

# Initialize Firebase Admin (only once)
_initialized = False


def initialize_firebase_admin() -> bool:
    """Initialize the Firebase Admin SDK; returns whether it is usable."""
    global _initialized
    if _initialized:
        return True
    try:
        firebase_admin.get_app()
        _initialized = True
        return True
    except ValueError:
        pass
    try:
        if os.path.exists(FIREBASE_CREDENTIALS_PATH):
            cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
            firebase_admin.initialize_app(cred)
            _initialized = True
            logger.info("Firebase Admin initialized with %s", FIREBASE_CREDENTIALS_PATH)
        elif os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
            # Production: application default credentials
            firebase_admin.initialize_app()
            _initialized = True
            logger.info("Firebase Admin initialized from GOOGLE_APPLICATION_CREDENTIALS")
        else:
            logger.warning("Firebase credentials not found at %s; push and token verification are disabled",
                           FIREBASE_CREDENTIALS_PATH)
    except (ValueError, OSError) as e:
        logger.error("Error initializing Firebase Admin: %s", e)
        _initialized = False
    return _initialized


def send_notification(
    fcm_token: str,
    title: str,
    body: str,
    data: Optional[dict] = None
) -> bool:
    """Send a push notification to one device."""
    if not fcm_token or not initialize_firebase_admin():
        return False

    try:
        message = messaging.Message(
            notification=messaging.Notification(
                title=title,
                body=body,
            ),
            data=data or {},
            token=fcm_token,
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(
                        badge=1,
                        sound="default",
                    ),
                ),
            ),
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    sound="default",
                    channel_id="high_importance_channel",
                ),
            ),
        )

        response = messaging.send(message)
        logger.info("Push sent: %s", response)
        return True
    except (exceptions.FirebaseError, ValueError) as e:
        # A push is best effort; the notification row is already committed
        logger.error("Error sending push notification: %s", e)
        return False
