"""
Idea Box
Classification registry model.

Admin-managed score tables for the three scoring axes. A suggestion never
references a row here: assigning an axis copies {label, score} into the
suggestion, so editing or deactivating an entry does not rewrite history.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ideabox.models import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Constants ────────────────────────────────────────────────────────────────

CLASSIFICATION_TYPES = ("IMPACT", "CAPACITY", "EFFORT")

# Suggestion attribute that holds the snapshot for each axis type
AXIS_FIELDS = {
    "IMPACT": "impact",
    "CAPACITY": "capacity",
    "EFFORT": "effort",
}

MIN_SCORE = 0
MAX_SCORE = 10
MAX_LABEL_LENGTH = 100

DEFAULT_CLASSIFICATIONS = [
    {"label": "Alto impacto", "score": 5, "type": "IMPACT", "order": 1},
    {"label": "Médio impacto", "score": 3, "type": "IMPACT", "order": 2},
    {"label": "Baixo impacto", "score": 1, "type": "IMPACT", "order": 3},
    {"label": "Alta capacidade", "score": 5, "type": "CAPACITY", "order": 1},
    {"label": "Média capacidade", "score": 3, "type": "CAPACITY", "order": 2},
    {"label": "Baixa capacidade", "score": 1, "type": "CAPACITY", "order": 3},
    {"label": "Baixo esforço", "score": 1, "type": "EFFORT", "order": 1},
    {"label": "Médio esforço", "score": 3, "type": "EFFORT", "order": 2},
    {"label": "Alto esforço", "score": 5, "type": "EFFORT", "order": 3},
]


class ClassificationEntry(db.Model):
    """One selectable (label, score) option for an axis."""

    __tablename__ = "classifications"
    __table_args__ = (
        db.UniqueConstraint("label", "type", name="uq_classification_label_type"),
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(20), nullable=False, index=True, comment="IMPACT | CAPACITY | EFFORT")
    label = db.Column(db.String(MAX_LABEL_LENGTH), nullable=False)
    score = db.Column(db.Integer, nullable=False)
    order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, comment="Soft-delete flag")
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def snapshot(self) -> dict:
        """Detached {label, score} copy stored on suggestions."""
        return {"label": self.label, "score": self.score}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "label": self.label,
            "score": self.score,
            "order": self.order,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<ClassificationEntry {self.id}: {self.type}/{self.label}={self.score}>"
