"""
Idea Box
Suggestion domain model.

Models:
    - Suggestion: an employee's improvement idea plus the admin evaluation
      (axis snapshots, derived score/classification, lifecycle status)

The status vocabulary, its Portuguese display labels and the legal
transitions live here next to the model, the same way every other
lifecycle table in the platform is declared beside its entity.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ideabox.models import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Status vocabulary ────────────────────────────────────────────────────────

SUGGESTION_STATUSES = ("NEW", "IN_REVIEW", "APPROVED", "IN_PROGRESS", "DONE", "NOT_IMPLEMENTED")

TERMINAL_STATUSES = frozenset({"DONE", "NOT_IMPLEMENTED"})

# Key → label; the reverse table is derived so the two can never drift.
STATUS_LABELS = {
    "NEW": "Novo",
    "IN_REVIEW": "Em avaliação",
    "APPROVED": "Aprovado",
    "IN_PROGRESS": "Em execução",
    "DONE": "Concluído",
    "NOT_IMPLEMENTED": "Não implantado",
}
LABEL_TO_STATUS = {label: key for key, label in STATUS_LABELS.items()}

# Terminal states have no exits; every other state may move anywhere else.
SUGGESTION_TRANSITIONS = {
    status: (
        []
        if status in TERMINAL_STATUSES
        else [target for target in SUGGESTION_STATUSES if target != status]
    )
    for status in SUGGESTION_STATUSES
}


def status_label(status: str) -> str:
    """Human-readable label for a status key; unknown keys pass through."""
    return STATUS_LABELS.get(status, status)


def status_from_label(label: str) -> str | None:
    """Status key for a column label, or None when the label is not a state."""
    return LABEL_TO_STATUS.get(label)


def validate_status_transition(old_status: str, new_status: str) -> bool:
    """Return True if a Suggestion status transition is valid."""
    return new_status in SUGGESTION_TRANSITIONS.get(old_status, [])


# ── Submission vocabulary ────────────────────────────────────────────────────

CONTRIBUTION_TYPES = {
    "IDEIA_INOVADORA": "Ideia inovadora",
    "SUGESTAO_MELHORIA": "Sugestão de melhoria",
    "SOLUCAO_PROBLEMA": "Solução de problema",
    "OUTRO": "Outro",
}

PAYMENT_STATUSES = frozenset({"PENDING", "PAID", "NOT_APPLICABLE"})

FIRST_IDEA_NUMBER = 100


class Suggestion(db.Model):
    """
    Improvement idea submitted by an employee.

    final_score / final_classification are written only by the scoring
    engine through suggestion_service; never assign them directly.
    """

    __tablename__ = "suggestions"

    id = db.Column(db.Integer, primary_key=True)
    idea_number = db.Column(db.Integer, nullable=False, unique=True, index=True)

    # Submission
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    submitted_name = db.Column(db.String(200), nullable=True)
    is_name_visible = db.Column(db.Boolean, nullable=False, default=True)
    description = db.Column(db.Text, nullable=False, comment="Proposed solution")
    problem = db.Column(db.Text, nullable=True)
    contribution = db.Column(db.JSON, nullable=False, default=dict, comment="{type, other}")
    date_ref = db.Column(db.DateTime, nullable=True)

    # Evaluation: axis snapshots are {label, score} copies
    impact = db.Column(db.JSON, nullable=True)
    capacity = db.Column(db.JSON, nullable=True)
    effort = db.Column(db.JSON, nullable=True)
    kpis = db.Column(db.JSON, nullable=False, default=list, comment="Mirror of suggestion_kpis ids")
    final_score = db.Column(db.Integer, nullable=True)
    final_classification = db.Column(db.JSON, nullable=True, comment="{label, range}")

    # Lifecycle
    status = db.Column(db.String(30), nullable=False, default="NEW", index=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    analyst_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Reward payment
    payment = db.Column(db.JSON, nullable=True, comment="{status, amount, description}")
    payment_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    user = db.relationship("User", foreign_keys=[user_id], lazy="joined")
    analyst = db.relationship("User", foreign_keys=[analyst_id], lazy="joined")
    kpi_links = db.relationship(
        "SuggestionKpi",
        lazy="select",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def status_label(self) -> str:
        return status_label(self.status)

    def axis_scores(self) -> tuple[int | None, int | None, int | None]:
        """(impact, capacity, effort) scores, None where the axis is unset."""
        return tuple(
            (snapshot or {}).get("score") for snapshot in (self.impact, self.capacity, self.effort)
        )

    def to_kanban_dict(self) -> dict:
        """Minimal projection for board rendering."""
        return {
            "id": self.id,
            "idea_number": self.idea_number,
            "description": self.description,
            "submitted_name": self.submitted_name,
            "is_name_visible": self.is_name_visible,
            "status": self.status,
            "status_label": self.status_label,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "idea_number": self.idea_number,
            "user_id": self.user_id,
            "submitted_name": self.submitted_name,
            "is_name_visible": self.is_name_visible,
            "description": self.description,
            "problem": self.problem,
            "contribution": self.contribution or {},
            "date_ref": self.date_ref.isoformat() if self.date_ref else None,
            "impact": self.impact,
            "capacity": self.capacity,
            "effort": self.effort,
            "kpis": list(self.kpis or []),
            "final_score": self.final_score,
            "final_classification": self.final_classification,
            "status": self.status,
            "status_label": self.status_label,
            "rejection_reason": self.rejection_reason,
            "analyst_id": self.analyst_id,
            "payment": self.payment,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
            "user": {
                "first_name": self.user.first_name,
                "last_name": self.user.last_name,
                "email": self.user.email,
                "sector": self.user.sector,
            } if self.user else None,
            "analyst": {
                "first_name": self.analyst.first_name,
                "last_name": self.analyst.last_name,
                "email": self.analyst.email,
            } if self.analyst else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Suggestion #{self.idea_number} [{self.status}]>"
