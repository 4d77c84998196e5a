"""
Tests for tamper alert delivery.
"""

import logging
import urllib.error
import urllib.parse
from datetime import datetime, timezone

import pytest

from auditchain.alerts import (
    CompositeTamperSignal,
    EmailTamperSignal,
    LoggingTamperSignal,
    TamperReport,
    TamperSignal,
    TelegramTamperSignal,
    build_tamper_signal,
    format_alert,
)
from auditchain.config import Settings
from auditchain.log.records import AuditRecord


@pytest.fixture
def report():
    record = AuditRecord(
        id=7,
        event_type="delete_user",
        ciphertext="xyz",
        event_hash="e" * 64,
        previous_hash="0" * 64,
        created_at=datetime(2025, 5, 15, tzinfo=timezone.utc),
    )
    return TamperReport(
        record=record,
        expected_hash="a" * 64,
        actual_hash="e" * 64,
        reason="event_hash mismatch",
        checked=6,
    )


def test_alert_text_names_hash_and_record(report):
    text = format_alert(report)

    assert "e" * 64 in text
    assert "#7" in text
    assert "event_hash mismatch" in text


def test_logging_signal_logs_error(report, caplog):
    with caplog.at_level(logging.ERROR):
        LoggingTamperSignal().on_tamper_detected(report)

    assert len(caplog.records) == 1
    assert caplog.records[0].record_id == 7
    assert caplog.records[0].expected_hash == "a" * 64


def test_composite_continues_after_failure(report, caplog):
    delivered = []

    class Failing(TamperSignal):
        def on_tamper_detected(self, r):
            raise OSError("connection refused")

    class Recording(TamperSignal):
        def on_tamper_detected(self, r):
            delivered.append(r)

    with caplog.at_level(logging.WARNING):
        CompositeTamperSignal([Failing(), Recording()]).on_tamper_detected(report)

    assert delivered == [report]
    assert "connection refused" in caplog.text


def test_email_signal_sends_message(report, monkeypatch):
    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout):
            sent.append(("connect", host, port, timeout))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def send_message(self, msg):
            sent.append(("send", msg))

    monkeypatch.setattr("auditchain.alerts.notifiers.smtplib.SMTP", FakeSMTP)

    EmailTamperSignal(
        recipient="admin@example.com", smtp_host="mail.local", smtp_port=2525, timeout=3
    ).on_tamper_detected(report)

    assert sent[0] == ("connect", "mail.local", 2525, 3)
    msg = sent[1][1]
    assert msg["To"] == "admin@example.com"
    assert msg["Subject"] == "AUDIT INTEGRITY ALERT"
    assert "e" * 64 in msg.get_content()


def test_telegram_url_is_encoded(report):
    url = TelegramTamperSignal("123:ABC", "-100200").build_url(report)

    parsed = urllib.parse.urlparse(url)
    assert parsed.netloc == "api.telegram.org"
    assert parsed.path == "/bot123:ABC/sendMessage"
    query = urllib.parse.parse_qs(parsed.query)
    assert query["chat_id"] == ["-100200"]
    assert query["text"] == [format_alert(report)]


def test_telegram_signal_uses_timeout(report, monkeypatch):
    calls = []

    class FakeResponse:
        status = 200
        headers = {}

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    def fake_urlopen(req, timeout):
        calls.append((req.full_url, timeout))
        return FakeResponse()

    monkeypatch.setattr("auditchain.alerts.notifiers.urllib.request.urlopen", fake_urlopen)

    TelegramTamperSignal("tok", "42", timeout=2).on_tamper_detected(report)

    assert calls[0][1] == 2
    assert "/bottok/sendMessage" in calls[0][0]


def test_telegram_failure_is_swallowed_by_composite(report, monkeypatch):
    def fake_urlopen(req, timeout):
        raise urllib.error.URLError("unreachable")

    monkeypatch.setattr("auditchain.alerts.notifiers.urllib.request.urlopen", fake_urlopen)

    CompositeTamperSignal([TelegramTamperSignal("tok", "42")]).on_tamper_detected(report)


def test_build_tamper_signal_from_settings():
    plain = build_tamper_signal(Settings())
    assert [type(s) for s in plain.signals] == [LoggingTamperSignal]

    full = build_tamper_signal(
        Settings(alert_email_to="admin@example.com", telegram_token="t", telegram_chat_id="1")
    )
    assert [type(s) for s in full.signals] == [
        LoggingTamperSignal,
        EmailTamperSignal,
        TelegramTamperSignal,
    ]


def test_telegram_needs_token_and_chat_id():
    signal = build_tamper_signal(Settings(telegram_token="t"))

    assert not any(isinstance(s, TelegramTamperSignal) for s in signal.signals)
