"""
Shared fixtures for the order service tests.

No network is touched: the payment gateway and the notification providers
are replaced with fake sessions that record every call.
"""

import asyncio
import threading

import pytest
import requests
from fastapi.testclient import TestClient

from order_service.config import Settings
from order_service.main import create_app
from order_service.notifications import NotificationDispatcher
from order_service.payment import PaymentVerifier
from order_service.realtime import Broadcaster
from order_service.store import OrderStore

GATEWAY_URL = "https://gateway.test"
PUSH_URL = "https://push.test/notifications"
SMS_URL = "https://sms.test/send"


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body

    @property
    def ok(self):
        return self.status_code < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self.body is None:
            raise ValueError("No JSON object could be decoded")
        return self.body


class FakeSession:
    """Answers by URL prefix; a registered exception is raised instead of returned."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, url_prefix, result):
        self.routes[url_prefix] = result

    def _answer(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        for prefix, result in self.routes.items():
            if url.startswith(prefix):
                if isinstance(result, Exception):
                    raise result
                return result
        return FakeResponse(200, {})

    def get(self, url, **kwargs):
        return self._answer("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._answer("POST", url, kwargs)

    def calls_to(self, url_prefix):
        return [c for c in self.calls if c[1].startswith(url_prefix)]


def paystack_body(status="success", amount=500000, reference="PSK123"):
    return {
        "status": True,
        "message": "Verification successful",
        "data": {"status": status, "amount": amount, "reference": reference},
    }


class FakeDashboard:
    """Stands in for a websocket: records what it is sent."""

    def __init__(self, fail=False, stall=False):
        self.fail = fail
        self.stall = stall
        self.send_threads = []
        self.accepted = False
        self.messages = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        self.send_threads.append(threading.get_ident())
        if self.stall:
            await asyncio.sleep(3600)
        if self.fail:
            raise RuntimeError("socket closed")
        self.messages.append(message)


@pytest.fixture
def settings():
    return Settings(
        paystack_secret_key="sk_test_secret",
        paystack_base_url=GATEWAY_URL,
        onesignal_app_id="app-123",
        onesignal_rest_key="rest-key",
        onesignal_api_url=PUSH_URL,
        sms_api_key="sms-key",
        sms_sender_id="TastyBite",
        sms_api_url=SMS_URL,
        http_timeout=10.0,
    )


@pytest.fixture
def gateway():
    session = FakeSession()
    session.on(GATEWAY_URL, FakeResponse(200, paystack_body()))
    return session


@pytest.fixture
def notifier_session():
    return FakeSession()


@pytest.fixture
def store():
    return OrderStore()


@pytest.fixture
def broadcaster():
    return Broadcaster()


@pytest.fixture
def verifier(settings, gateway):
    return PaymentVerifier(settings.paystack_secret_key, settings.paystack_base_url, session=gateway)


@pytest.fixture
def dispatcher(settings, notifier_session):
    return NotificationDispatcher(settings, session=notifier_session)


@pytest.fixture
def app(settings, store, verifier, dispatcher, broadcaster):
    return create_app(settings, store=store, verifier=verifier, dispatcher=dispatcher, broadcaster=broadcaster)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def order_payload():
    return {
        "reference": "PSK123",
        "orderData": {
            "name": "Ada",
            "email": "ada@example.com",
            "phone": "+2348012345678",
            "address": "12 Marina Road",
            "junction": "CMS",
            "items": [{"name": "Jollof Rice", "qty": 2, "price": 2500}],
            "totalAmount": 5000,
        },
    }
