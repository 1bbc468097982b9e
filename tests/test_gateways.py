"""FCM and Twilio gateway tests. No network: httpx.MockTransport and a patched messaging.send."""

from urllib.parse import parse_qs

import firebase_admin
import httpx
import pytest
from firebase_admin import exceptions, messaging

from safecheck.core.errors import ConfigurationError, GatewayDeliveryError
from safecheck.services.gateways import FcmNotificationGateway, TwilioSmsGateway

API = "https://api.twilio.test/2010-04-01"


def twilio(handler, **kwargs):
    params = {
        "account_sid": "AC123",
        "auth_token": "secret",
        "from_number": "+15005550006",
        "api_base": API,
    }
    params.update(kwargs)
    return TwilioSmsGateway(client=httpx.Client(transport=httpx.MockTransport(handler)), **params)


def test_twilio_posts_message():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

    twilio(handler).send("+821011112222", "Kim Minji has not checked in for 26 hours.")

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == f"{API}/Accounts/AC123/Messages.json"
    assert request.headers["Authorization"].startswith("Basic ")
    form = parse_qs(request.content.decode())
    assert form == {
        "To": ["+821011112222"],
        "From": ["+15005550006"],
        "Body": ["Kim Minji has not checked in for 26 hours."],
    }


def test_twilio_error_response():
    def handler(request):
        return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"})

    with pytest.raises(GatewayDeliveryError) as exc_info:
        twilio(handler).send("+1", "hello")
    assert "400" in str(exc_info.value)


def test_twilio_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayDeliveryError):
        twilio(handler).send("+821011112222", "hello")


def test_twilio_not_configured():
    calls = []

    with pytest.raises(ConfigurationError) as exc_info:
        twilio(lambda r: calls.append(r), account_sid="").send("+821011112222", "hello")

    assert exc_info.value.gateway == "twilio"
    assert calls == []


def test_fcm_not_configured():
    gateway = FcmNotificationGateway()
    with pytest.raises(ConfigurationError) as exc_info:
        gateway.send("token", "title", "body")
    assert exc_info.value.gateway == "fcm"


def test_fcm_invalid_service_account():
    gateway = FcmNotificationGateway(service_account_json="{not json")
    with pytest.raises(ConfigurationError):
        gateway.send("token", "title", "body")


@pytest.fixture
def fcm_app(monkeypatch):
    app = object()
    monkeypatch.setattr(firebase_admin, "get_app", lambda name=None: app)
    return app


def test_fcm_send_builds_message(fcm_app, monkeypatch):
    sent = []

    def fake_send(message, dry_run=False, app=None):
        sent.append((message, app))
        return "projects/p/messages/1"

    monkeypatch.setattr(messaging, "send", fake_send)

    FcmNotificationGateway().send("device-token", "Title", "Body", data={"action": "check_in"}, urgent=True)

    message, app = sent[0]
    assert app is fcm_app
    assert message.token == "device-token"
    assert message.notification.title == "Title"
    assert message.data == {"action": "check_in"}
    assert message.android.priority == "high"
    assert message.apns.payload.aps.badge == 1


def test_fcm_normal_priority(fcm_app, monkeypatch):
    sent = []
    monkeypatch.setattr(messaging, "send", lambda message, dry_run=False, app=None: sent.append(message))

    FcmNotificationGateway().send("device-token", "Title", "Body")

    assert sent[0].android.priority == "normal"
    assert sent[0].apns.payload.aps.badge is None


def test_fcm_send_failure(fcm_app, monkeypatch):
    def fail(message, dry_run=False, app=None):
        raise exceptions.UnavailableError("FCM backend unavailable")

    monkeypatch.setattr(messaging, "send", fail)

    with pytest.raises(GatewayDeliveryError):
        FcmNotificationGateway().send("device-token", "Title", "Body")
