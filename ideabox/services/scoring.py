"""
Idea Box
Scoring engine.

Pure functions; no database access. Both the persisted
``final_classification`` and the live "recommendation" badge shown on the
admin board go through ``classify_score`` so the thresholds exist once.

    finalScore = impact + capacity - effort

Buckets (inclusive bounds):

    < 0      review    Revisar classificação               "<0"
    0 .. 9   discard   Descartar com justificativa clara   "0-9"
    10 .. 14 adjust    Ajustar e incubar                   "10-14"
    15 .. 20 approve   Aprovar para Gestores               "15-20"
    > 20     priority  Prioritário - aprovação imediata    "21+"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

BucketKind = Literal["review", "discard", "adjust", "approve", "priority"]


@dataclass(frozen=True)
class ScoreBucket:
    kind: BucketKind
    label: str
    range: str

    def as_classification(self) -> dict:
        """Shape persisted in Suggestion.final_classification."""
        return {"label": self.label, "range": self.range}

    def to_dict(self) -> dict:
        return {"kind": self.kind, "label": self.label, "range": self.range}


REVIEW = ScoreBucket("review", "Revisar classificação", "<0")
DISCARD = ScoreBucket("discard", "Descartar com justificativa clara", "0-9")
ADJUST = ScoreBucket("adjust", "Ajustar e incubar", "10-14")
APPROVE = ScoreBucket("approve", "Aprovar para Gestores", "15-20")
PRIORITY = ScoreBucket("priority", "Prioritário - aprovação imediata", "21+")

BUCKETS: dict[str, ScoreBucket] = {b.kind: b for b in (REVIEW, DISCARD, ADJUST, APPROVE, PRIORITY)}

# Kinds selected by the board's "score" meta-filter
SCORE_FILTER_KINDS = frozenset({"discard", "adjust", "approve"})


def _is_score(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def compute_final_score(impact: int | None, capacity: int | None, effort: int | None) -> int | None:
    """impact + capacity - effort, or None unless all three are present."""
    if not all(_is_score(v) for v in (impact, capacity, effort)):
        return None
    return impact + capacity - effort


def classify_score(score: int) -> ScoreBucket:
    """Map a score onto its bucket. Never raises for an integer input."""
    if score < 0:
        return REVIEW
    if score <= 9:
        return DISCARD
    if score <= 14:
        return ADJUST
    if score <= 20:
        return APPROVE
    return PRIORITY


def final_classification(score: int | None) -> dict | None:
    if score is None:
        return None
    return classify_score(score).as_classification()


def evaluate(impact: int | None, capacity: int | None, effort: int | None) -> tuple[int | None, dict | None]:
    """(final_score, final_classification) for the three axis scores."""
    score = compute_final_score(impact, capacity, effort)
    return score, final_classification(score)


def live_score(impact: int | None, capacity: int | None, effort: int | None) -> int:
    """Board score: unset axes count as zero."""
    return (impact or 0) + (capacity or 0) - (effort or 0)


def recommendation_bucket(impact: int | None, capacity: int | None, effort: int | None) -> ScoreBucket:
    """Display-only bucket recomputed from whatever axes are set."""
    return classify_score(live_score(impact, capacity, effort))


def needs_justification(bucket: ScoreBucket) -> bool:
    """True when the board should prompt for a rejection reason."""
    return bucket.kind in ("review", "discard")
