"""Notification hook called after request transitions.

Delivery (email, templates) lives outside this service; the default notifier
only records what would be sent. A failing notifier never fails the transition.
"""
from typing import Optional, Protocol
import logging

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def approval_required(self, reference: str, approver) -> None: ...

    def request_approved(self, reference: str, requestor, approver, next_approver=None) -> None: ...

    def request_declined(self, reference: str, requestor, approver, reason: str) -> None: ...

    def request_returned(self, reference: str, requestor, approver, reason: str) -> None: ...


class LoggingNotifier:

    def approval_required(self, reference, approver):
        logger.info(f"Approval required for {reference}: notify {approver.email}")

    def request_approved(self, reference, requestor, approver, next_approver=None):
        logger.info(
            f"{reference} approved by {approver.email}; notify {_email(requestor)}"
            + (f", next approver {next_approver.email}" if next_approver else "")
        )

    def request_declined(self, reference, requestor, approver, reason):
        logger.info(f"{reference} declined by {approver.email}; notify {_email(requestor)}")

    def request_returned(self, reference, requestor, approver, reason):
        logger.info(f"{reference} returned by {approver.email}; notify {_email(requestor)}")


def _email(user) -> Optional[str]:
    return user.email if user is not None else None


notifier: Notifier = LoggingNotifier()


def set_notifier(new_notifier: Notifier) -> None:
    global notifier
    notifier = new_notifier


def send(event: str, *args, **kwargs) -> None:
    """Dispatch ``event`` to the configured notifier, logging instead of raising on failure."""
    try:
        getattr(notifier, event)(*args, **kwargs)
    except Exception as e:
        logger.error(f"Failed to send {event} notification: {e}")
