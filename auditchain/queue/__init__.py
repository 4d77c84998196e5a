"""
Message-queue delivery of audit events.
"""

from .publisher import EventPublisher, AmqpEventPublisher, build_message, DEFAULT_QUEUE

__all__ = ["EventPublisher", "AmqpEventPublisher", "build_message", "DEFAULT_QUEUE"]
