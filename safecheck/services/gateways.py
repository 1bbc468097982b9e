"""Outbound delivery: FCM push notifications and Twilio SMS.

Both gateways send exactly one message per call and raise instead of
retrying. ConfigurationError means the gateway cannot be used at all;
GatewayDeliveryError means this one message failed.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Protocol

import firebase_admin
import httpx
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from safecheck.core.errors import ConfigurationError, GatewayDeliveryError

logger = logging.getLogger(__name__)


class NotificationGateway(Protocol):
    def send(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, str] | None = None,
        urgent: bool = False,
    ) -> None: ...


class AlertGateway(Protocol):
    def send(self, phone_number: str, message: str) -> None: ...


class FcmNotificationGateway:
    """Push via the Firebase Admin SDK. The Firebase app is initialized on first send."""

    APP_NAME = "safecheck"

    def __init__(self, service_account_json: str = "", service_account_file: str = "") -> None:
        self._service_account_json = service_account_json
        self._service_account_file = service_account_file
        self._app: firebase_admin.App | None = None
        self._lock = threading.Lock()

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app
        with self._lock:
            if self._app is None:
                self._app = self._initialize()
        return self._app

    def _initialize(self) -> firebase_admin.App:
        try:
            return firebase_admin.get_app(self.APP_NAME)
        except ValueError:
            pass

        try:
            if self._service_account_json:
                cred = credentials.Certificate(json.loads(self._service_account_json))
            elif self._service_account_file:
                cred = credentials.Certificate(self._service_account_file)
            else:
                raise ConfigurationError("fcm", "FCM_SERVICE_ACCOUNT_JSON or FCM_SERVICE_ACCOUNT_FILE must be set")
        except (ValueError, OSError) as exc:
            raise ConfigurationError("fcm", f"invalid service account: {exc}") from exc

        app = firebase_admin.initialize_app(cred, name=self.APP_NAME)
        logger.info("Firebase app initialized for project %s", app.project_id)
        return app

    def send(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, str] | None = None,
        urgent: bool = False,
    ) -> None:
        app = self._get_app()
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=dict(data or {}),
            token=token,
            android=messaging.AndroidConfig(
                priority="high" if urgent else "normal",
                notification=messaging.AndroidNotification(sound="default"),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(sound="default", badge=1 if urgent else None),
                ),
            ),
        )
        try:
            message_id = messaging.send(message, app=app)
        except (FirebaseError, ValueError) as exc:
            raise GatewayDeliveryError(f"FCM send failed: {exc}") from exc
        logger.debug("FCM message sent: %s", message_id)


class TwilioSmsGateway:
    """SMS through the Twilio Messages REST endpoint."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_base: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._client = client or httpx.Client()

    def send(self, phone_number: str, message: str) -> None:
        if not (self._account_sid and self._auth_token and self._from_number):
            raise ConfigurationError(
                "twilio", "TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER must be set"
            )

        url = f"{self._api_base}/Accounts/{self._account_sid}/Messages.json"
        try:
            response = self._client.post(
                url,
                data={"To": phone_number, "From": self._from_number, "Body": message},
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise GatewayDeliveryError(f"Twilio request failed: {exc}") from exc

        if response.is_error:
            raise GatewayDeliveryError(f"Twilio send failed ({response.status_code}): {response.text[:200]}")
        logger.debug("Twilio message accepted: %s", response.json().get("sid"))
