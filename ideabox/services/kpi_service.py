"""
Idea Box
KPI registry and suggestion ↔ KPI association service.

Associations are replaced wholesale: callers submit the full desired set of
KPI ids and the service reconciles adds/removes, so saving the same list
twice changes nothing. Suggestion.kpis mirrors the resulting id list.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select

from ideabox.core.exceptions import ConflictError, NotFoundError, ValidationError
from ideabox.models import db
from ideabox.models.kpi import MAX_KPI_DESCRIPTION_LENGTH, MAX_KPI_NAME_LENGTH, Kpi, SuggestionKpi
from ideabox.models.suggestion import Suggestion

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10


def _require_kpi(kpi_id: int) -> Kpi:
    kpi = db.session.get(Kpi, kpi_id)
    if kpi is None:
        raise NotFoundError(resource="Kpi", resource_id=kpi_id)
    return kpi


def _require_suggestion(suggestion_id: int) -> Suggestion:
    suggestion = db.session.get(Suggestion, suggestion_id)
    if suggestion is None:
        raise NotFoundError(resource="Suggestion", resource_id=suggestion_id)
    return suggestion


def _validate_name(name) -> str:
    value = name.strip() if isinstance(name, str) else ""
    if not value:
        raise ValidationError("name is required")
    if len(value) > MAX_KPI_NAME_LENGTH:
        raise ValidationError(f"name must be ≤ {MAX_KPI_NAME_LENGTH} characters")
    return value


def _validate_description(description) -> str | None:
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("description must be a string")
    if len(description) > MAX_KPI_DESCRIPTION_LENGTH:
        raise ValidationError(f"description must be ≤ {MAX_KPI_DESCRIPTION_LENGTH} characters")
    return description


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    stmt = select(Kpi.id).where(Kpi.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Kpi.id != exclude_id)
    return db.session.execute(stmt).first() is not None


def normalize_kpi_ids(kpi_ids) -> list[int]:
    """Validate an id list and collapse duplicates, keeping first-seen order."""
    if not isinstance(kpi_ids, list):
        raise ValidationError("kpi_ids must be a list of KPI ids")
    seen: list[int] = []
    for kpi_id in kpi_ids:
        if isinstance(kpi_id, bool) or not isinstance(kpi_id, int):
            raise ValidationError("kpi_ids must contain integers", details={"kpi_id": kpi_id})
        if kpi_id not in seen:
            seen.append(kpi_id)
    return seen


# ── KPI registry ──────────────────────────────────────────────────────────────


def list_active() -> list[dict]:
    """Active KPIs ordered by `order`, each with its suggestion count."""
    rows = db.session.execute(
        select(Kpi).where(Kpi.is_active.is_(True)).order_by(Kpi.order.asc(), Kpi.name.asc())
    ).scalars().all()
    return [k.to_dict(include_count=True) for k in rows]


def search(query: str) -> list[dict]:
    """Case-insensitive name search over active KPIs."""
    term = (query or "").strip()
    if not term:
        raise ValidationError("query is required")
    rows = db.session.execute(
        select(Kpi)
        .where(Kpi.is_active.is_(True), func.lower(Kpi.name).contains(term.lower()))
        .order_by(Kpi.order.asc())
        .limit(SEARCH_LIMIT)
    ).scalars().all()
    return [k.to_dict(include_count=True) for k in rows]


def create(name: str, description: str | None = None, order: int = 0) -> dict:
    name = _validate_name(name)
    description = _validate_description(description)
    if isinstance(order, bool) or not isinstance(order, int):
        raise ValidationError("order must be an integer")
    if _name_taken(name):
        raise ConflictError("Kpi", "name", name)

    kpi = Kpi(name=name, description=description, order=order)
    db.session.add(kpi)
    db.session.commit()
    logger.info("KPI created id=%s name=%s", kpi.id, name)
    return kpi.to_dict()


def update(kpi_id: int, data: dict) -> dict:
    kpi = _require_kpi(kpi_id)

    changes = {}
    if "name" in data:
        changes["name"] = _validate_name(data["name"])
        if _name_taken(changes["name"], exclude_id=kpi.id):
            raise ConflictError("Kpi", "name", changes["name"])
    if "description" in data:
        changes["description"] = _validate_description(data["description"])
    if "order" in data:
        if isinstance(data["order"], bool) or not isinstance(data["order"], int):
            raise ValidationError("order must be an integer")
        changes["order"] = data["order"]
    if "is_active" in data:
        changes["is_active"] = bool(data["is_active"])

    for field, value in changes.items():
        setattr(kpi, field, value)
    db.session.commit()
    logger.info("KPI updated id=%s fields=%s", kpi.id, sorted(changes))
    return kpi.to_dict()


def delete(kpi_id: int) -> dict:
    """Soft delete; existing associations are kept."""
    kpi = _require_kpi(kpi_id)
    kpi.is_active = False
    db.session.commit()
    logger.info("KPI soft-deleted id=%s", kpi.id)
    return kpi.to_dict()


# ── Associations ──────────────────────────────────────────────────────────────


def get_by_suggestion_id(suggestion_id: int) -> list[dict]:
    """KPIs linked to a suggestion. Callers must not rely on the order."""
    _require_suggestion(suggestion_id)
    rows = db.session.execute(
        select(Kpi)
        .join(SuggestionKpi, SuggestionKpi.kpi_id == Kpi.id)
        .where(SuggestionKpi.suggestion_id == suggestion_id)
        .order_by(Kpi.order.asc())
    ).scalars().all()
    return [k.to_dict() for k in rows]


def validate_kpi_ids(kpi_ids) -> list[int]:
    """Normalized id list; every id must name an existing KPI."""
    desired = normalize_kpi_ids(kpi_ids)
    for kpi_id in desired:
        _require_kpi(kpi_id)
    return desired


def apply_associations(suggestion: Suggestion, kpi_ids) -> dict:
    """Reconcile links to exactly *kpi_ids* without committing.

    Used inside suggestion_service.update_admin so the KPI save and the rest
    of the admin edit land in one commit.

    Returns:
        {"added": [...], "removed": [...], "kpi_ids": [...]}
    """
    desired = validate_kpi_ids(kpi_ids)

    existing = {
        link.kpi_id: link
        for link in db.session.execute(
            select(SuggestionKpi).where(SuggestionKpi.suggestion_id == suggestion.id)
        ).scalars().all()
    }

    removed = [kpi_id for kpi_id in existing if kpi_id not in desired]
    added = [kpi_id for kpi_id in desired if kpi_id not in existing]

    for kpi_id in removed:
        db.session.delete(existing[kpi_id])
    for kpi_id in added:
        db.session.add(SuggestionKpi(suggestion_id=suggestion.id, kpi_id=kpi_id))

    suggestion.kpis = desired
    return {"added": added, "removed": removed, "kpi_ids": desired}


def replace_associations(suggestion_id: int, kpi_ids) -> dict:
    """Idempotent full-set replace of a suggestion's KPI links."""
    suggestion = _require_suggestion(suggestion_id)
    result = apply_associations(suggestion, kpi_ids)
    db.session.commit()
    logger.info(
        "KPI links replaced suggestion=%s added=%s removed=%s",
        suggestion_id, result["added"], result["removed"],
    )
    return {"success": True, **result}


def unlink(suggestion_id: int, kpi_ids) -> dict:
    """Remove the given KPI links; ids that are not linked are ignored."""
    suggestion = _require_suggestion(suggestion_id)
    to_remove = normalize_kpi_ids(kpi_ids)
    links = db.session.execute(
        select(SuggestionKpi).where(SuggestionKpi.suggestion_id == suggestion_id)
    ).scalars().all()

    removed = []
    for link in links:
        if link.kpi_id in to_remove:
            removed.append(link.kpi_id)
            db.session.delete(link)
    desired = [kpi_id for kpi_id in (suggestion.kpis or []) if kpi_id not in removed]
    suggestion.kpis = desired
    db.session.commit()
    logger.info("KPI links removed suggestion=%s kpis=%s", suggestion_id, removed)
    return {"success": True, "removed": removed, "kpi_ids": desired}

