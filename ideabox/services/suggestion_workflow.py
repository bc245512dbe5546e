"""
Idea Box
Suggestion Lifecycle — transition planning.

Pure functions: given a snapshot of the suggestion and the requested change,
validate it and return the side-effect intents it implies. Nothing here
touches the database; suggestion_service persists the change and then hands
``plan.effects`` to the dispatcher.

    NEW → IN_REVIEW → APPROVED → IN_PROGRESS → DONE
      └──────────┴──────────┴───────────┴──→ NOT_IMPLEMENTED

DONE and NOT_IMPLEMENTED are terminal. Entering NOT_IMPLEMENTED needs a
non-empty rejection reason and e-mails the submitter.

Both triggers (status control and kanban drop) resolve to a status key via
``resolve_status`` and end up in ``plan_transition``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ideabox.core.exceptions import TransitionError, ValidationError
from ideabox.models.suggestion import (
    STATUS_LABELS,
    SUGGESTION_STATUSES,
    status_from_label,
    validate_status_transition,
)
from ideabox.services.side_effects import NotifySubmitter, SendRejectionEmail

NOTIFICATION_TYPE_BY_STATUS = {
    "APPROVED": "SUGGESTION_APPROVED",
    "NOT_IMPLEMENTED": "SUGGESTION_REJECTED",
}
DEFAULT_STATUS_NOTIFICATION = "SUGGESTION_STATUS_UPDATED"
CLASSIFIED_NOTIFICATION = "SUGGESTION_CLASSIFIED"


@dataclass(frozen=True)
class SuggestionContext:
    """What the planner needs to know about a suggestion and its people."""

    suggestion_id: int
    idea_number: int
    status: str
    rejection_reason: str | None = None
    submitter_id: int | None = None
    submitter_email: str | None = None
    submitter_name: str | None = None
    analyst_name: str | None = None
    action_url: str | None = None


@dataclass
class TransitionPlan:
    previous_status: str
    new_status: str
    rejection_reason: str | None
    effects: list = field(default_factory=list)

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.new_status


def resolve_status(value: str | None) -> str | None:
    """Accept a status key ("APPROVED") or a column label ("Aprovado")."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("status must be a string", details={"status": value})
    if value in SUGGESTION_STATUSES:
        return value
    key = status_from_label(value)
    if key is None:
        raise ValidationError(
            f"Unknown status: {value}",
            details={"status": value, "allowed": list(SUGGESTION_STATUSES)},
        )
    return key


def clean_reason(reason) -> str | None:
    if reason is None:
        return None
    if not isinstance(reason, str):
        raise ValidationError("rejection_reason must be a string")
    return reason.strip() or None


# ── Notification wording ─────────────────────────────────────────────────────


def _status_message(ctx: SuggestionContext, new_status: str, reason: str | None) -> tuple[str, str]:
    n = ctx.idea_number
    if new_status == "APPROVED":
        return (
            f"Sugestão #{n} aprovada",
            f"Sua sugestão #{n} foi aprovada. Obrigado pela contribuição!",
        )
    if new_status == "NOT_IMPLEMENTED":
        return (
            f"Sugestão #{n} não será implantada",
            f"Sua sugestão #{n} foi avaliada e não será implantada. Motivo: {reason}",
        )
    return (
        f"Sugestão #{n} atualizada",
        f'O status da sua sugestão #{n} foi alterado para "{STATUS_LABELS[new_status]}".',
    )


def _notify(ctx: SuggestionContext, notification_type: str, title: str, message: str) -> list:
    if ctx.submitter_id is None:
        return []
    return [NotifySubmitter(
        user_id=ctx.submitter_id,
        suggestion_id=ctx.suggestion_id,
        notification_type=notification_type,
        title=title,
        message=message,
        action_url=ctx.action_url,
    )]


def _rejection_email(ctx: SuggestionContext, reason: str) -> SendRejectionEmail | None:
    if not ctx.submitter_email:
        return None
    return SendRejectionEmail(
        suggestion_id=ctx.suggestion_id,
        to_email=ctx.submitter_email,
        to_name=ctx.submitter_name,
        idea_number=ctx.idea_number,
        analyst_name=ctx.analyst_name or "Equipe de avaliação",
        status_label=STATUS_LABELS["NOT_IMPLEMENTED"],
        reason=reason,
    )


# ── Planning ─────────────────────────────────────────────────────────────────


def plan_transition(
    ctx: SuggestionContext,
    target_status: str | None,
    *,
    rejection_reason: str | None = None,
    reason_provided: bool = False,
    classification_changed: bool = False,
) -> TransitionPlan:
    """
    Validate a requested admin edit and list its side effects.

    Args:
        ctx: Current state of the suggestion.
        target_status: Requested status key, or None to keep the current one.
        rejection_reason: Reason submitted with the edit.
        reason_provided: True when the edit carries a rejection_reason field
            (so an explicit empty string clears the stored one).
        classification_changed: Axes or KPIs changed in this edit.

    Raises:
        TransitionError: the state machine forbids the move.
        ValidationError: NOT_IMPLEMENTED without a non-empty reason.
    """
    previous = ctx.status
    new_status = target_status or previous

    if new_status != previous and not validate_status_transition(previous, new_status):
        reason = "status is terminal" if previous in ("DONE", "NOT_IMPLEMENTED") else None
        raise TransitionError(ctx.idea_number, previous, new_status, reason)

    reason = clean_reason(rejection_reason) if reason_provided else clean_reason(ctx.rejection_reason)
    if new_status == "NOT_IMPLEMENTED" and not reason:
        raise ValidationError(
            "rejection_reason is required to mark a suggestion as NOT_IMPLEMENTED",
            details={"rejection_reason": "required"},
        )

    plan = TransitionPlan(previous_status=previous, new_status=new_status, rejection_reason=reason)

    if plan.status_changed:
        title, message = _status_message(ctx, new_status, reason)
        notification_type = NOTIFICATION_TYPE_BY_STATUS.get(new_status, DEFAULT_STATUS_NOTIFICATION)
        plan.effects.extend(_notify(ctx, notification_type, title, message))
        if new_status == "NOT_IMPLEMENTED":
            email = _rejection_email(ctx, reason)
            if email is not None:
                plan.effects.append(email)
    elif classification_changed:
        plan.effects.extend(_notify(
            ctx,
            CLASSIFIED_NOTIFICATION,
            f"Sugestão #{ctx.idea_number} classificada",
            f"A avaliação da sua sugestão #{ctx.idea_number} foi atualizada.",
        ))

    return plan


def plan_rejection_resend(ctx: SuggestionContext, reason) -> SendRejectionEmail:
    """The explicit "resend notification" action; repeats the rejection e-mail.

    Raises:
        ValidationError: status is not NOT_IMPLEMENTED, reason is empty or the
            submitter has no e-mail address.
    """
    if ctx.status != "NOT_IMPLEMENTED":
        raise ValidationError(
            f"Suggestion #{ctx.idea_number} is not NOT_IMPLEMENTED (status={ctx.status})",
            details={"status": ctx.status},
        )
    cleaned = clean_reason(reason)
    if not cleaned:
        raise ValidationError("reason is required", details={"reason": "required"})
    email = _rejection_email(ctx, cleaned)
    if email is None:
        raise ValidationError(f"Suggestion #{ctx.idea_number} has no submitter e-mail address")
    return email
