import os
import json
import logging

import firebase_admin
from firebase_admin import credentials, messaging

logger = logging.getLogger(__name__)

# Initialize Firebase
fcm_key_json = os.environ.get('FCM_SERVICE_ACCOUNT_KEY')
if fcm_key_json and not firebase_admin._apps:
    try:
        cred_dict = json.loads(fcm_key_json)
        cred = credentials.Certificate(cred_dict)
        firebase_admin.initialize_app(cred)
        logger.info("Firebase initialized successfully")
    except Exception as e:
        logger.error(f"Error initializing Firebase: {e}", exc_info=True)
elif not fcm_key_json:
    logger.info("FCM_SERVICE_ACCOUNT_KEY not set. Firebase not initialized.")


def send_fcm_notification(tokens, title, body, data=None):
    """
    Send one notification to a list of device registration tokens.
    :return: True if at least one device accepted the message.
    """
    if not firebase_admin._apps:
        logger.warning("Firebase not initialized. Message not sent.")
        return False
    if not tokens:
        logger.info("No device tokens supplied. Message not sent.")
        return False

    # FCM data payload values must be strings
    string_data = {str(k): str(v) for k, v in (data or {}).items()}

    message = messaging.MulticastMessage(
        notification=messaging.Notification(title=title, body=body),
        data=string_data,
        tokens=list(tokens),
    )
    try:
        response = messaging.send_each_for_multicast(message)
    except Exception as e:
        logger.error(f"Error sending FCM message: {e}", exc_info=True)
        return False

    if response.failure_count:
        logger.warning(f"FCM multicast: {response.success_count} sent, {response.failure_count} failed.")
    else:
        logger.info(f"FCM multicast sent to {response.success_count} device(s).")
    return response.success_count > 0


def send_fcm_to_user(user, title, body, data=None):
    """Send a notification to every active device registered by `user`."""
    from .models import UserDevice

    tokens = list(
        UserDevice.objects.filter(user=user, is_active=True).values_list('device_token', flat=True)
    )
    if not tokens:
        logger.info(f"User {user.id} has no active devices. Message not sent.")
        return False
    return send_fcm_notification(tokens, title, body, data)
