"""
Idea Box
Classification Registry service layer.

Rules:
  - db.session.commit() happens only in this file for registry writes.
  - Entries are never hard-deleted; delete() flips is_active.
  - Active pools are served from one cached query per axis type; every
    write invalidates the pool of the touched type.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ideabox.core.exceptions import ConflictError, NotFoundError, ValidationError
from ideabox.models import db
from ideabox.models.classification import (
    CLASSIFICATION_TYPES,
    DEFAULT_CLASSIFICATIONS,
    MAX_LABEL_LENGTH,
    MAX_SCORE,
    MIN_SCORE,
    ClassificationEntry,
)
from ideabox.services import cache_service

logger = logging.getLogger(__name__)


# ── Validation helpers ────────────────────────────────────────────────────────


def validate_type(axis_type: str | None) -> str:
    value = str(axis_type or "").strip().upper()
    if value not in CLASSIFICATION_TYPES:
        raise ValidationError(
            f"type must be one of: {', '.join(CLASSIFICATION_TYPES)}",
            details={"type": axis_type},
        )
    return value


def validate_score(score) -> int:
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValidationError("score must be an integer", details={"score": score})
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationError(
            f"score must be between {MIN_SCORE} and {MAX_SCORE}",
            details={"score": score},
        )
    return score


def _validate_label(label) -> str:
    value = (label or "").strip() if isinstance(label, str) else ""
    if not value:
        raise ValidationError("label is required", details={"label": label})
    if len(value) > MAX_LABEL_LENGTH:
        raise ValidationError(f"label must be ≤ {MAX_LABEL_LENGTH} characters")
    return value


def _validate_order(order) -> int:
    if isinstance(order, bool) or not isinstance(order, int):
        raise ValidationError("order must be an integer", details={"order": order})
    return order


def _require_entry(classification_id: int) -> ClassificationEntry:
    entry = db.session.get(ClassificationEntry, classification_id)
    if entry is None:
        raise NotFoundError(resource="Classification", resource_id=classification_id)
    return entry


def _invalidate(axis_type: str) -> None:
    cache_service.delete_cached(cache_service.classification_pool_key(axis_type))


def _commit_or_conflict(label: str, axis_type: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Classification", "label", f"{axis_type}/{label}")


# ── Queries ───────────────────────────────────────────────────────────────────


def _load_active(axis_type: str) -> list[dict]:
    rows = db.session.execute(
        select(ClassificationEntry)
        .where(ClassificationEntry.type == axis_type, ClassificationEntry.is_active.is_(True))
        .order_by(ClassificationEntry.order.asc(), ClassificationEntry.score.desc())
    ).scalars().all()
    return [r.to_dict() for r in rows]


def list_by_type(axis_type: str) -> list[dict]:
    """Active entries of one axis, ordered (order asc, score desc)."""
    axis_type = validate_type(axis_type)
    return cache_service.get_cached(
        cache_service.classification_pool_key(axis_type),
        ttl=cache_service.CLASSIFICATION_TTL,
        loader=lambda: _load_active(axis_type),
    )


def list_all(axis_type: str | None = None) -> list[dict]:
    """Admin view including inactive entries."""
    stmt = select(ClassificationEntry)
    if axis_type:
        stmt = stmt.where(ClassificationEntry.type == validate_type(axis_type))
    stmt = stmt.order_by(
        ClassificationEntry.type.asc(),
        ClassificationEntry.order.asc(),
        ClassificationEntry.score.desc(),
    )
    return [r.to_dict() for r in db.session.execute(stmt).scalars().all()]


def snapshot(axis_type: str, classification_id: int) -> dict:
    """Detached {label, score} copy of an active entry of the given type.

    Raises:
        NotFoundError: unknown id.
        ValidationError: entry inactive or of another axis type.
    """
    entry = _require_entry(classification_id)
    if entry.type != axis_type:
        raise ValidationError(
            f"Classification {classification_id} is of type {entry.type}, expected {axis_type}",
        )
    if not entry.is_active:
        raise ValidationError(f"Classification {classification_id} is inactive")
    return entry.snapshot()


# ── Writes ────────────────────────────────────────────────────────────────────


def create(label: str, score: int, axis_type: str, order: int | None = None) -> dict:
    """Create an entry; without an explicit order it is appended after the
    current max order of that type.

    The max() read is not locked: two concurrent creates may receive the
    same order value, which only affects display order.
    """
    axis_type = validate_type(axis_type)
    label = _validate_label(label)
    score = validate_score(score)

    if order is None:
        current_max = db.session.execute(
            select(func.max(ClassificationEntry.order)).where(ClassificationEntry.type == axis_type)
        ).scalar()
        order = (current_max or 0) + 1
    else:
        order = _validate_order(order)

    entry = ClassificationEntry(label=label, score=score, type=axis_type, order=order)
    db.session.add(entry)
    _commit_or_conflict(label, axis_type)
    _invalidate(axis_type)
    logger.info("Classification created id=%s type=%s label=%s score=%s", entry.id, axis_type, label, score)
    return entry.to_dict()


def update(classification_id: int, data: dict) -> dict:
    """Partial update of label/score/order/is_active."""
    entry = _require_entry(classification_id)

    changes = {}
    if "label" in data:
        changes["label"] = _validate_label(data["label"])
    if "score" in data:
        changes["score"] = validate_score(data["score"])
    if "order" in data:
        changes["order"] = _validate_order(data["order"])
    if "is_active" in data:
        changes["is_active"] = bool(data["is_active"])

    for field, value in changes.items():
        setattr(entry, field, value)

    changed = sorted(changes)
    _commit_or_conflict(entry.label, entry.type)
    _invalidate(entry.type)
    logger.info("Classification updated id=%s fields=%s", entry.id, changed)
    return entry.to_dict()


def delete(classification_id: int) -> dict:
    """Soft delete: hide from pools, keep the row (and every snapshot)."""
    entry = _require_entry(classification_id)
    entry.is_active = False
    db.session.commit()
    _invalidate(entry.type)
    logger.info("Classification soft-deleted id=%s type=%s", entry.id, entry.type)
    return entry.to_dict()


def reorder(axis_type: str, items: list[dict]) -> dict:
    """Apply new order values to many entries of one type in one transaction.

    Any unknown id or an id belonging to another type rolls back the batch.
    """
    axis_type = validate_type(axis_type)
    if not isinstance(items, list):
        raise ValidationError("items must be a list of {id, order}")

    try:
        for item in items:
            if not isinstance(item, dict) or "id" not in item or "order" not in item:
                raise ValidationError("each item needs id and order", details={"item": item})
            entry = _require_entry(item["id"])
            if entry.type != axis_type:
                raise ValidationError(
                    f"Classification {entry.id} is of type {entry.type}, expected {axis_type}",
                )
            entry.order = _validate_order(item["order"])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    _invalidate(axis_type)
    logger.info("Classifications reordered type=%s count=%d", axis_type, len(items))
    return {"success": True, "updated": len(items)}


def seed_defaults() -> dict:
    """Upsert the default pools by (label, type). Safe to run repeatedly."""
    created = 0
    updated = 0
    for item in DEFAULT_CLASSIFICATIONS:
        entry = db.session.execute(
            select(ClassificationEntry).where(
                ClassificationEntry.label == item["label"],
                ClassificationEntry.type == item["type"],
            )
        ).scalar_one_or_none()
        if entry is None:
            db.session.add(ClassificationEntry(**item))
            created += 1
        else:
            entry.score = item["score"]
            entry.order = item["order"]
            entry.is_active = True
            updated += 1
    db.session.commit()
    for axis_type in CLASSIFICATION_TYPES:
        _invalidate(axis_type)
    logger.info("Default classifications seeded created=%d updated=%d", created, updated)
    return {"success": True, "created": created, "updated": updated}
