"""
Notification relay - best-effort push delivery to a user's device.

Delivery never raises: state transitions that trigger a push must not
fail because the push did.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from django.contrib.auth import get_user_model

from .fcm import FCMClient
from .messages import PushNotification

logger = logging.getLogger(__name__)

CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"


def stringify_data(data: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Coerce payload values to strings (``None`` becomes ``""``)."""
    result = {}
    for key, value in (data or {}).items():
        result[str(key)] = "" if value is None else str(value)
    result["click_action"] = CLICK_ACTION
    return result


class PushRelay:
    """Looks up device tokens and forwards messages to FCM."""

    def __init__(self, client: Optional[FCMClient] = None):
        self.client = client or FCMClient()

    def send(self, user_id: Optional[int], title: str, body: str, data: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Send a push to one user.

        Args:
            user_id: Recipient
            title: Notification title
            body: Notification body
            data: Custom payload; values are sent as strings

        Returns:
            True when the message was handed to FCM
        """
        if user_id is None:
            return False

        try:
            token = self._device_token(user_id)
            if not token:
                logger.warning("User %s has no FCM token, skipping notification '%s'", user_id, title)
                return False
            self.client.send(token, title, body, stringify_data(data))
        except Exception:
            logger.exception("Error sending FCM message to user %s", user_id)
            return False

        logger.info("Sent notification '%s' to user %s", title, user_id)
        return True

    @staticmethod
    def _device_token(user_id: int) -> Optional[str]:
        row = get_user_model().objects.filter(id=user_id).values("fcm_token").first()
        if row is None:
            logger.warning("User %s not found", user_id)
            return None
        return row["fcm_token"]

    def notify(self, user_id: Optional[int], notification: PushNotification) -> bool:
        """Send a typed notification; its data always carries the ``type`` tag."""
        return self.send(user_id, notification.title, notification.body, notification.data())


_default_relay: Optional[PushRelay] = None


def get_relay() -> PushRelay:
    """Process-wide relay used when callers do not inject one."""
    global _default_relay
    if _default_relay is None:
        _default_relay = PushRelay()
    return _default_relay
