"""
Idea Box
Suggestion Store service layer.

Rules:
  - db.session.commit() happens only in this file for suggestion writes.
  - final_score / final_classification are recomputed by the scoring engine
    on every admin save; client-sent values are ignored.
  - Status changes go through suggestion_workflow.plan_transition; its
    side-effect intents are dispatched after the commit and can never fail
    the save.
  - Every mutating operation returns the refreshed entity.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from ideabox.core.exceptions import ConflictError, NotFoundError, ValidationError
from ideabox.models import db
from ideabox.models.classification import AXIS_FIELDS
from ideabox.models.suggestion import (
    CONTRIBUTION_TYPES,
    FIRST_IDEA_NUMBER,
    PAYMENT_STATUSES,
    Suggestion,
)
from ideabox.models.user import User
from ideabox.services import classification_service, kpi_service, presentation, scoring
from ideabox.services.side_effects import dispatcher
from ideabox.services.suggestion_workflow import (
    SuggestionContext,
    plan_rejection_resend,
    plan_transition,
    resolve_status,
)
from ideabox.utils.helpers import parse_date_input

logger = logging.getLogger(__name__)

IDEA_NUMBER_ATTEMPTS = 5
DEFAULT_TAKE = 50
MAX_TAKE = 100


def _require(suggestion_id: int) -> Suggestion:
    suggestion = db.session.get(Suggestion, suggestion_id)
    if suggestion is None:
        raise NotFoundError(resource="Suggestion", resource_id=suggestion_id)
    return suggestion


def _action_url() -> str:
    base = (current_app.config.get("APP_BASE_URL") or "").rstrip("/")
    return f"{base}/my-suggestions"


def _context(suggestion: Suggestion, analyst_name: str | None = None) -> SuggestionContext:
    submitter = suggestion.user
    return SuggestionContext(
        suggestion_id=suggestion.id,
        idea_number=suggestion.idea_number,
        status=suggestion.status,
        rejection_reason=suggestion.rejection_reason,
        submitter_id=suggestion.user_id,
        submitter_email=submitter.email if submitter else None,
        submitter_name=submitter.display_name if submitter else suggestion.submitted_name,
        analyst_name=analyst_name,
        action_url=_action_url(),
    )


# ── Submission validation ─────────────────────────────────────────────────────


def _optional_text(data: dict, field: str) -> str | None:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={field: value})
    return value.strip() or None


def _validate_contribution(value) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(
            "contribution must be an object {type, other}",
            details={"contribution": value},
        )
    ctype = value.get("type")
    if ctype not in CONTRIBUTION_TYPES:
        raise ValidationError(
            f"contribution.type must be one of: {', '.join(CONTRIBUTION_TYPES)}",
            details={"type": ctype},
        )
    other = value.get("other")
    if other is not None and not isinstance(other, str):
        raise ValidationError("contribution.other must be a string")
    if ctype == "OUTRO" and not (other or "").strip():
        raise ValidationError("contribution.other is required when type is OUTRO")
    return {"type": ctype, "other": (other or "").strip() or None}


def _next_idea_number() -> int:
    current = db.session.execute(select(func.max(Suggestion.idea_number))).scalar()
    return (current if current is not None else FIRST_IDEA_NUMBER - 1) + 1


# ── Create / read ─────────────────────────────────────────────────────────────


def create(data: dict, user_id: int | None) -> dict:
    """Register a new suggestion with the next idea number and status NEW.

    The unique index on idea_number turns a lost race into an
    IntegrityError; the number is then re-read and the insert retried.
    """
    description = _optional_text(data, "description")
    if not description:
        raise ValidationError("description is required", details={"description": "required"})
    contribution = _validate_contribution(data.get("contribution"))
    is_name_visible = data.get("is_name_visible", True)
    if not isinstance(is_name_visible, bool):
        raise ValidationError("is_name_visible must be a boolean")
    ref = parse_date_input(data.get("date_ref"), field="date_ref")
    date_ref = datetime(ref.year, ref.month, ref.day) if ref else datetime.now(timezone.utc)

    fields = {
        "user_id": user_id,
        "submitted_name": _optional_text(data, "submitted_name"),
        "is_name_visible": is_name_visible,
        "description": description,
        "problem": _optional_text(data, "problem"),
        "contribution": contribution,
        "date_ref": date_ref,
        "kpis": [],
        "status": "NEW",
    }

    for attempt in range(1, IDEA_NUMBER_ATTEMPTS + 1):
        number = _next_idea_number()
        suggestion = Suggestion(idea_number=number, **fields)
        db.session.add(suggestion)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning("idea_number %s taken, retrying (attempt %d)", number, attempt)
            continue
        logger.info("Suggestion created id=%s idea_number=%s user=%s", suggestion.id, number, user_id)
        return suggestion.to_dict()

    raise ConflictError("Suggestion", "idea_number", str(number))


def get(suggestion_id: int) -> dict:
    return _require(suggestion_id).to_dict()


def list_suggestions(statuses=None, search: str | None = None,
                     take: int = DEFAULT_TAKE, skip: int = 0) -> dict:
    """Admin listing, newest first.

    Args:
        statuses: Status keys or labels to include (None → all).
        search: Case-insensitive match on description, problem, name,
            or an exact idea number when numeric.
    """
    stmt = select(Suggestion)
    if statuses:
        keys = [resolve_status(s) for s in statuses]
        stmt = stmt.where(Suggestion.status.in_(keys))
    term = (search or "").strip()
    if term:
        like = f"%{term.lower()}%"
        conditions = [
            func.lower(Suggestion.description).like(like),
            func.lower(Suggestion.problem).like(like),
            func.lower(Suggestion.submitted_name).like(like),
        ]
        if term.lstrip("#").isdigit():
            conditions.append(Suggestion.idea_number == int(term.lstrip("#")))
        stmt = stmt.where(or_(*conditions))

    total = db.session.execute(select(func.count()).select_from(stmt.subquery())).scalar()
    rows = db.session.execute(
        stmt.order_by(Suggestion.created_at.desc(), Suggestion.id.desc()).offset(skip).limit(take)
    ).scalars().all()
    return {"items": [s.to_dict() for s in rows], "total": total, "take": take, "skip": skip}


def list_kanban() -> list[dict]:
    rows = db.session.execute(
        select(Suggestion).order_by(Suggestion.created_at.desc(), Suggestion.id.desc())
    ).scalars().all()
    return [s.to_kanban_dict() for s in rows]


def list_mine(user_id: int) -> list[dict]:
    rows = db.session.execute(
        select(Suggestion)
        .where(Suggestion.user_id == user_id)
        .order_by(Suggestion.created_at.desc(), Suggestion.id.desc())
    ).scalars().all()
    return [s.to_dict() for s in rows]


def board(filter_value: str | None = "all") -> dict:
    """Admin board: filtered kanban columns, sorted list and 3-column grid."""
    rows = db.session.execute(select(Suggestion)).scalars().all()
    return presentation.build_board([s.to_dict() for s in rows], filter_value or "all")


# ── Admin evaluation ──────────────────────────────────────────────────────────


def _resolve_axis(axis_type: str, value) -> dict | None:
    """Snapshot for one axis from {classification_id}, {label, score} or None."""
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError(
            f"{AXIS_FIELDS[axis_type]} must be an object or null",
            details={AXIS_FIELDS[axis_type]: value},
        )
    if value.get("classification_id") is not None:
        classification_id = value["classification_id"]
        if isinstance(classification_id, bool) or not isinstance(classification_id, int):
            raise ValidationError("classification_id must be an integer")
        return classification_service.snapshot(axis_type, classification_id)
    label = value.get("label")
    if not isinstance(label, str) or not label.strip():
        raise ValidationError(f"{AXIS_FIELDS[axis_type]}.label is required")
    return {"label": label.strip(), "score": classification_service.validate_score(value.get("score"))}


def _validate_payment(value) -> dict | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError("payment must be an object {status, amount, description}")
    status = value.get("status")
    if status not in PAYMENT_STATUSES:
        raise ValidationError(
            f"payment.status must be one of: {', '.join(sorted(PAYMENT_STATUSES))}",
            details={"status": status},
        )
    amount = value.get("amount")
    if amount is not None:
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount < 0:
            raise ValidationError("payment.amount must be a non-negative number")
    description = value.get("description")
    if description is not None and not isinstance(description, str):
        raise ValidationError("payment.description must be a string")
    return {"status": status, "amount": amount, "description": description}


def _resolve_analyst(data: dict, actor) -> User | None:
    if data.get("analyst_id") is not None:
        analyst = db.session.get(User, data["analyst_id"])
        if analyst is None:
            raise NotFoundError(resource="User", resource_id=data["analyst_id"])
        return analyst
    if actor is not None and actor.user_id is not None:
        return db.session.get(User, actor.user_id)
    return None


def update_admin(suggestion_id: int, data: dict, actor=None) -> dict:
    """
    Apply an admin evaluation edit in one commit.

    Accepted fields: status (key or label), rejection_reason, impact,
    capacity, effort ({classification_id} | {label, score} | null),
    kpi_ids (or kpis), analyst_id, payment, payment_date.

    Everything is validated before the entity is touched, so a rejected
    edit leaves the suggestion unchanged.

    Raises:
        NotFoundError: suggestion, classification, KPI or analyst missing.
        ValidationError: bad field, or NOT_IMPLEMENTED without a reason.
        TransitionError: the status move is not allowed.
    """
    suggestion = _require(suggestion_id)

    target = resolve_status(data["status"]) if data.get("status") is not None else None

    axes = {}
    for axis_type, field in AXIS_FIELDS.items():
        if field in data:
            axes[field] = _resolve_axis(axis_type, data[field])

    kpi_ids = None
    if "kpi_ids" in data:
        kpi_ids = kpi_service.validate_kpi_ids(data["kpi_ids"])
    elif "kpis" in data:
        kpi_ids = kpi_service.validate_kpi_ids(data["kpis"])

    payment_given = "payment" in data
    payment = _validate_payment(data.get("payment"))
    payment_date_given = "payment_date" in data
    payment_date = parse_date_input(data.get("payment_date"), field="payment_date")

    analyst = _resolve_analyst(data, actor)

    classification_changed = any(getattr(suggestion, f) != v for f, v in axes.items())
    if kpi_ids is not None and sorted(kpi_ids) != sorted(suggestion.kpis or []):
        classification_changed = True

    analyst_name = analyst.display_name if analyst else (actor.name if actor else None)
    plan = plan_transition(
        _context(suggestion, analyst_name=analyst_name),
        target,
        rejection_reason=data.get("rejection_reason"),
        reason_provided="rejection_reason" in data,
        classification_changed=classification_changed,
    )

    # Validation done; mutate.
    for field, snapshot in axes.items():
        setattr(suggestion, field, snapshot)
    suggestion.final_score, suggestion.final_classification = scoring.evaluate(*suggestion.axis_scores())

    if kpi_ids is not None:
        kpi_service.apply_associations(suggestion, kpi_ids)

    suggestion.status = plan.new_status
    suggestion.rejection_reason = plan.rejection_reason
    if analyst is not None:
        suggestion.analyst_id = analyst.id
    if payment_given:
        suggestion.payment = payment
    if payment_date_given:
        suggestion.payment_date = payment_date

    db.session.commit()
    logger.info(
        "Suggestion #%s evaluated by=%s status=%s→%s score=%s",
        suggestion.idea_number, analyst.id if analyst else None,
        plan.previous_status, plan.new_status, suggestion.final_score,
    )

    if plan.effects:
        dispatcher.dispatch(plan.effects)

    db.session.refresh(suggestion)
    return suggestion.to_dict()


def move_to_column(suggestion_id: int, column: str, actor=None,
                   rejection_reason: str | None = None) -> dict:
    """Kanban drop: the column label resolves to a status and follows the
    same path as the status control."""
    if not isinstance(column, str) or not column.strip():
        raise ValidationError("column is required", details={"column": "required"})
    data = {"status": resolve_status(column.strip())}
    if rejection_reason is not None:
        data["rejection_reason"] = rejection_reason
    return update_admin(suggestion_id, data, actor)


def send_rejection_notification(suggestion_id: int, reason, actor=None) -> dict:
    """Re-send the rejection e-mail. Every call sends again.

    A non-empty reason that differs from the stored one is persisted first.
    """
    suggestion = _require(suggestion_id)
    if suggestion.analyst is not None:
        analyst_name = suggestion.analyst.display_name
    else:
        analyst_name = actor.name if actor else None

    email = plan_rejection_resend(_context(suggestion, analyst_name=analyst_name), reason)

    if email.reason != suggestion.rejection_reason:
        suggestion.rejection_reason = email.reason
        db.session.commit()

    results = dispatcher.dispatch([email])
    sent = bool(results and results[0]["ok"])
    logger.info("Rejection notification for #%s resent ok=%s", suggestion.idea_number, sent)
    db.session.refresh(suggestion)
    return {"success": True, "sent": sent, "suggestion": suggestion.to_dict()}
