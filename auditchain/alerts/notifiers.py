"""
Alert transports: email and Telegram.
"""

import logging
import smtplib
import urllib.error
import urllib.parse
import urllib.request
from email.message import EmailMessage

from .signal import TamperReport, TamperSignal, format_alert

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


class EmailTamperSignal(TamperSignal):
    """Sends the alert as a plaintext email over SMTP."""

    subject = "AUDIT INTEGRITY ALERT"

    def __init__(
        self,
        recipient: str,
        sender: str = "auditchain@localhost",
        smtp_host: str = "localhost",
        smtp_port: int = 25,
        timeout: float = 5.0,
    ):
        self.recipient = recipient
        self.sender = sender
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.timeout = timeout

    def build_message(self, report: TamperReport) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = self.subject
        msg["From"] = self.sender
        msg["To"] = self.recipient
        msg.set_content(format_alert(report))
        return msg

    def on_tamper_detected(self, report: TamperReport) -> None:
        msg = self.build_message(report)
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as smtp:
            smtp.send_message(msg)
        logger.info("Tamper alert emailed to %s", self.recipient)


class TelegramTamperSignal(TamperSignal):
    """Posts the alert to a Telegram chat through the Bot API."""

    def __init__(self, token: str, chat_id: str, timeout: float = 5.0):
        self.token = token
        self.chat_id = chat_id
        self.timeout = timeout

    def build_url(self, report: TamperReport) -> str:
        query = urllib.parse.urlencode({"chat_id": self.chat_id, "text": format_alert(report)})
        return f"{TELEGRAM_API}/bot{self.token}/sendMessage?{query}"

    def on_tamper_detected(self, report: TamperReport) -> None:
        req = urllib.request.Request(self.build_url(report), method="GET")
        with urllib.request.urlopen(req, timeout=self.timeout) as response:
            if response.status != 200:
                raise urllib.error.HTTPError(
                    f"{TELEGRAM_API}/bot<token>/sendMessage",
                    response.status,
                    "Telegram rejected alert",
                    response.headers,
                    None,
                )
        logger.info("Tamper alert sent to Telegram chat %s", self.chat_id)
