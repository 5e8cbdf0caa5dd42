"""Minimal Firebase Cloud Messaging client over the HTTP v1 API."""

import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"


class FCMClient:
    """
    Sends notification messages to a single device token.

    Requests are signed with an OAuth token from the Firebase service
    account; the authorized session is built on first use.

    Args:
        project_id: Firebase project id
        credentials_file: Path to the service account JSON key
        timeout: Request timeout in seconds
        session: Pre-authorized ``requests.Session``
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_file: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.project_id = project_id if project_id is not None else getattr(settings, "FCM_PROJECT_ID", "")
        self.credentials_file = (
            credentials_file if credentials_file is not None
            else getattr(settings, "FCM_CREDENTIALS_FILE", "")
        )
        self.timeout = timeout or getattr(settings, "FCM_TIMEOUT_SECONDS", 5)
        self._session = session

    @property
    def enabled(self) -> bool:
        return bool(self.project_id) and bool(self._session is not None or self.credentials_file)

    @property
    def endpoint(self) -> str:
        return FCM_SEND_URL.format(project_id=self.project_id)

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            credentials = service_account.Credentials.from_service_account_file(
                self.credentials_file, scopes=[FCM_SCOPE]
            )
            self._session = AuthorizedSession(credentials)
        return self._session

    def build_message(self, token: str, title: str, body: str, data: Dict[str, str]) -> Dict[str, Any]:
        return {
            "message": {
                "token": token,
                "notification": {"title": title, "body": body},
                "data": data,
                "android": {
                    "priority": "high",
                    "notification": {
                        "sound": "default",
                        "click_action": data.get("click_action", ""),
                    },
                },
                "apns": {
                    "payload": {"aps": {"sound": "default"}},
                },
            }
        }

    def send(self, token: str, title: str, body: str, data: Dict[str, str]) -> Dict[str, Any]:
        """
        Deliver one message.

        Returns:
            FCM's response, ``{"name": "projects/.../messages/..."}``

        Raises:
            requests.RequestException: on transport or HTTP errors
        """
        if not self.enabled:
            logger.debug("FCM disabled (no project or credentials); dropping message '%s'", title)
            return {}

        response = self.session.post(
            self.endpoint,
            json=self.build_message(token, title, body, data),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json() if response.content else {}
