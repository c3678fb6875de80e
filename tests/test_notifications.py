"""Tests for the push + SMS notification fan-out."""

import asyncio
import dataclasses

import requests

from order_service.notifications import NotificationDispatcher, format_amount, push_message
from tests.conftest import PUSH_URL, SMS_URL, FakeResponse

SUMMARY = {
    "customer": "Ada",
    "phone": "+2348012345678",
    "totalAmount": 5000.0,
    "reference": "PSK123",
    "time": "2026-10-18T12:00:00+00:00",
    "status": "paid",
}


class TestMessages:

    def test_format_amount(self):
        assert format_amount(5000.0) == "5,000"
        assert format_amount(1234.5) == "1,234.50"
        assert format_amount(None) == "0"

    def test_push_message_mentions_reference_and_total(self):
        text = push_message(SUMMARY)
        assert "PSK123" in text
        assert "5,000" in text


class TestDispatch:

    def test_sends_push_and_sms(self, dispatcher, notifier_session):
        outcome = asyncio.run(dispatcher.dispatch(SUMMARY))
        assert outcome == {"push": True, "sms": True}

        _, _, push = notifier_session.calls_to(PUSH_URL)[0]
        assert push["headers"]["Authorization"] == "Basic rest-key"
        assert push["json"]["app_id"] == "app-123"
        assert push["json"]["included_segments"] == ["All"]
        assert "PSK123" in push["json"]["contents"]["en"]
        assert push["timeout"] == 10.0

        _, _, sms = notifier_session.calls_to(SMS_URL)[0]
        assert sms["json"]["to"] == "+2348012345678"
        assert sms["json"]["from"] == "TastyBite"
        assert sms["json"]["api_key"] == "sms-key"
        assert "PSK123" in sms["json"]["sms"]

    def test_push_timeout_does_not_block_sms(self, dispatcher, notifier_session):
        notifier_session.on(PUSH_URL, requests.Timeout("timed out"))
        outcome = asyncio.run(dispatcher.dispatch(SUMMARY))
        assert outcome == {"push": False, "sms": True}
        assert len(notifier_session.calls_to(SMS_URL)) == 1

    def test_sms_http_error_is_swallowed(self, dispatcher, notifier_session):
        notifier_session.on(SMS_URL, FakeResponse(500, {"message": "gateway down"}))
        outcome = asyncio.run(dispatcher.dispatch(SUMMARY))
        assert outcome == {"push": True, "sms": False}

    def test_sms_without_phone(self, dispatcher, notifier_session):
        outcome = asyncio.run(dispatcher.dispatch(dict(SUMMARY, phone=None)))
        assert outcome["sms"] is False
        assert notifier_session.calls_to(SMS_URL) == []

    def test_unconfigured_channels_are_skipped(self, settings, notifier_session):
        bare = dataclasses.replace(settings, onesignal_app_id="", sms_api_key="")
        outcome = asyncio.run(NotificationDispatcher(bare, session=notifier_session).dispatch(SUMMARY))
        assert outcome == {}
        assert notifier_session.calls == []

    def test_push_only_variant(self, settings, notifier_session):
        push_only = dataclasses.replace(settings, sms_api_key="")
        outcome = asyncio.run(NotificationDispatcher(push_only, session=notifier_session).dispatch(SUMMARY))
        assert outcome == {"push": True}
