"""
Idea Box
Side-effect intents and their dispatcher.

The workflow describes what should happen after a suggestion changes
(notify the submitter, e-mail a rejection) as plain intent objects. The
dispatcher runs them after the primary write has been committed. Every
failure is logged and swallowed: a broken SMTP relay or notification table
must never undo or fail the admin's save.

Usage:
    from ideabox.services.side_effects import dispatcher

    results = dispatcher.dispatch(plan.effects)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ideabox.models import db

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotifySubmitter:
    """In-app notification for the suggestion's author."""

    user_id: int
    suggestion_id: int
    notification_type: str
    title: str
    message: str
    action_url: str | None = None
    channel: str = "IN_APP"

    kind = "notification"


@dataclass(frozen=True)
class SendRejectionEmail:
    """Rejection e-mail with analyst, idea number, status label and reason."""

    suggestion_id: int
    to_email: str
    to_name: str | None
    idea_number: int
    analyst_name: str
    status_label: str
    reason: str

    kind = "email"


def _default_notification_sink(effect: NotifySubmitter):
    from ideabox.services.notification import NotificationService

    return NotificationService.create(
        title=effect.title,
        message=effect.message,
        type=effect.notification_type,
        channel=effect.channel,
        user_id=effect.user_id,
        entity_type="suggestion",
        entity_id=effect.suggestion_id,
        action_url=effect.action_url,
    )


def _default_email_sender(effect: SendRejectionEmail):
    from ideabox.services.email_service import EmailService

    return EmailService.send_rejection(
        to_email=effect.to_email,
        to_name=effect.to_name,
        suggestion_id=effect.suggestion_id,
        idea_number=effect.idea_number,
        analyst_name=effect.analyst_name,
        status_label=effect.status_label,
        reason=effect.reason,
    )


def _delivered(outcome) -> bool:
    return outcome is not None and getattr(outcome, "status", None) != "failed"


class SideEffectDispatcher:
    """Executes intents one by one; log-and-continue on failure."""

    def __init__(
        self,
        notification_sink: Callable[[NotifySubmitter], object] | None = None,
        email_sender: Callable[[SendRejectionEmail], object] | None = None,
    ) -> None:
        self.notification_sink = notification_sink or _default_notification_sink
        self.email_sender = email_sender or _default_email_sender

    def _handler_for(self, effect):
        if isinstance(effect, NotifySubmitter):
            return self.notification_sink
        if isinstance(effect, SendRejectionEmail):
            return self.email_sender
        raise TypeError(f"Unknown side effect: {effect!r}")

    def dispatch(self, effects) -> list[dict]:
        """Run every intent and report {"kind", "ok"} per intent.

        A handler that returns None, or a record whose status is "failed"
        (EmailService records SMTP errors instead of raising), counts as a
        failure. Its record is still committed for the audit trail.
        """
        results = []
        for effect in effects:
            try:
                outcome = self._handler_for(effect)(effect)
                db.session.commit()
                ok = _delivered(outcome)
                if not ok:
                    logger.warning(
                        "Side effect not delivered kind=%s suggestion=%s",
                        effect.kind, effect.suggestion_id,
                    )
                results.append({"kind": effect.kind, "ok": ok})
            except Exception:
                db.session.rollback()
                logger.exception(
                    "Side effect failed kind=%s suggestion=%s",
                    getattr(effect, "kind", "?"), getattr(effect, "suggestion_id", None),
                )
                results.append({"kind": getattr(effect, "kind", "unknown"), "ok": False})
        return results


dispatcher = SideEffectDispatcher()
