"""
Tamper detection signalling.
"""

from .signal import (
    TamperReport,
    TamperSignal,
    LoggingTamperSignal,
    CompositeTamperSignal,
    format_alert,
)
from .notifiers import EmailTamperSignal, TelegramTamperSignal


def build_tamper_signal(settings) -> TamperSignal:
    """
    Compose the configured transports.

    Logging is always on; email and Telegram join when configured.
    """
    signals = [LoggingTamperSignal()]
    if settings.alert_email_to:
        signals.append(
            EmailTamperSignal(
                recipient=settings.alert_email_to,
                sender=settings.alert_email_from,
                smtp_host=settings.smtp_host,
                smtp_port=settings.smtp_port,
                timeout=settings.alert_timeout,
            )
        )
    if settings.telegram_token and settings.telegram_chat_id:
        signals.append(
            TelegramTamperSignal(
                token=settings.telegram_token,
                chat_id=settings.telegram_chat_id,
                timeout=settings.alert_timeout,
            )
        )
    return CompositeTamperSignal(signals)


__all__ = [
    "TamperReport",
    "TamperSignal",
    "LoggingTamperSignal",
    "CompositeTamperSignal",
    "EmailTamperSignal",
    "TelegramTamperSignal",
    "format_alert",
    "build_tamper_signal",
]
