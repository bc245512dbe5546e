"""
Idea Box
KPI registry and the suggestion ↔ KPI link table.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ideabox.models import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


MAX_KPI_NAME_LENGTH = 100
MAX_KPI_DESCRIPTION_LENGTH = 500


class Kpi(db.Model):
    __tablename__ = "kpis"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(MAX_KPI_NAME_LENGTH), nullable=False, unique=True)
    description = db.Column(db.String(MAX_KPI_DESCRIPTION_LENGTH), nullable=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    suggestion_links = db.relationship(
        "SuggestionKpi",
        back_populates="kpi",
        lazy="select",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_count: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "order": self.order,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_count:
            data["suggestion_count"] = len(self.suggestion_links)
        return data

    def __repr__(self):
        return f"<Kpi {self.id}: {self.name}>"


class SuggestionKpi(db.Model):
    """Association row; at most one per (suggestion, kpi) pair."""

    __tablename__ = "suggestion_kpis"
    __table_args__ = (
        db.UniqueConstraint("suggestion_id", "kpi_id", name="uq_suggestion_kpi"),
    )

    id = db.Column(db.Integer, primary_key=True)
    suggestion_id = db.Column(
        db.Integer, db.ForeignKey("suggestions.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    kpi_id = db.Column(
        db.Integer, db.ForeignKey("kpis.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    kpi = db.relationship("Kpi", back_populates="suggestion_links")

    def __repr__(self):
        return f"<SuggestionKpi s={self.suggestion_id} k={self.kpi_id}>"
