"""
Idea Box
Presentation / sorting helpers for the admin board.

Pure functions over serialized suggestion dicts (``Suggestion.to_dict()``
shape). Nothing here reads the database or mutates its input items.

- filter_suggestions   status label | "all" | "score" | recommendation kind
- group_kanban         ordered kanban columns, unknown statuses appended
- sort_for_list        status priority, then newest first
- distribute_columns   round-robin into N display columns
"""

from __future__ import annotations

from ideabox.core.exceptions import ValidationError
from ideabox.models.suggestion import LABEL_TO_STATUS, STATUS_LABELS, SUGGESTION_STATUSES
from ideabox.services import scoring

HIDDEN_NAME = "Nome oculto"
MISSING_NAME = "Não informado"

# NEW..DONE first, NOT_IMPLEMENTED after them, unknown statuses last
STATUS_PRIORITY = {status: index for index, status in enumerate(SUGGESTION_STATUSES)}

# Board columns, left to right
KANBAN_COLUMNS = [STATUS_LABELS[status] for status in SUGGESTION_STATUSES]


def display_name(item: dict) -> str:
    if item.get("is_name_visible") is False:
        return HIDDEN_NAME
    name = (item.get("submitted_name") or "").strip()
    return name or MISSING_NAME


def _axis_score(item: dict, field: str):
    return (item.get(field) or {}).get("score")


def recommendation(item: dict) -> scoring.ScoreBucket:
    """Live bucket from whatever axes are set; display only, never persisted."""
    return scoring.recommendation_bucket(
        _axis_score(item, "impact"),
        _axis_score(item, "capacity"),
        _axis_score(item, "effort"),
    )


def annotate(item: dict) -> dict:
    """Copy of *item* with the board-only fields added."""
    bucket = recommendation(item)
    return {
        **item,
        "display_name": display_name(item),
        "live_score": scoring.live_score(
            _axis_score(item, "impact"),
            _axis_score(item, "capacity"),
            _axis_score(item, "effort"),
        ),
        "recommendation": bucket.to_dict(),
        "needs_justification": scoring.needs_justification(bucket),
    }


def _label_of(item: dict) -> str:
    return item.get("status_label") or STATUS_LABELS.get(item.get("status"), item.get("status") or "")


def validate_filter(filter_value: str) -> str:
    value = (filter_value or "all").strip()
    if value in ("all", "score") or value in scoring.BUCKETS or value in LABEL_TO_STATUS:
        return value
    if value in STATUS_LABELS:
        return STATUS_LABELS[value]
    raise ValidationError(
        f"Unknown filter: {value}",
        details={"allowed": ["all", "score", *scoring.BUCKETS, *KANBAN_COLUMNS]},
    )


def filter_suggestions(items: list[dict], filter_value: str) -> list[dict]:
    """
    Filter board items.

    "all" keeps everything; "score" keeps items whose recommendation is
    discard, adjust or approve; a bucket kind keeps that bucket; a status
    label (or key) keeps that status.
    """
    value = validate_filter(filter_value)
    if value == "all":
        return list(items)
    if value == "score":
        return [i for i in items if recommendation(i).kind in scoring.SCORE_FILTER_KINDS]
    if value in scoring.BUCKETS:
        return [i for i in items if recommendation(i).kind == value]
    return [i for i in items if _label_of(i) == value]


def group_kanban(items: list[dict]) -> list[dict]:
    """
    Kanban columns in fixed label order, each {label, status, items}.

    Every known column is present even when empty. Items with a status
    outside the vocabulary get extra columns, in first-seen order.
    """
    columns = {
        label: {"label": label, "status": LABEL_TO_STATUS[label], "items": []}
        for label in KANBAN_COLUMNS
    }
    for item in items:
        label = _label_of(item)
        if label not in columns:
            columns[label] = {"label": label, "status": item.get("status"), "items": []}
        columns[label]["items"].append(item)
    return list(columns.values())


def sort_for_list(items: list[dict]) -> list[dict]:
    """Status priority first, then created_at descending."""
    # Two stable passes: secondary key first.
    by_date = sorted(items, key=lambda i: i.get("created_at") or "", reverse=True)
    return sorted(by_date, key=lambda i: STATUS_PRIORITY.get(i.get("status"), len(STATUS_PRIORITY)))


def distribute_columns(items: list[dict], n: int = 3) -> list[list[dict]]:
    """Item i goes to column i % n."""
    if n < 1:
        raise ValidationError("n must be at least 1")
    columns: list[list[dict]] = [[] for _ in range(n)]
    for index, item in enumerate(items):
        columns[index % n].append(item)
    return columns


def build_board(items: list[dict], filter_value: str = "all") -> dict:
    annotated = [annotate(i) for i in items]
    selected = filter_suggestions(annotated, filter_value)
    ordered = sort_for_list(selected)
    return {
        "filter": validate_filter(filter_value),
        "total": len(selected),
        "kanban": group_kanban(ordered),
        "items": ordered,
        "columns": distribute_columns(ordered, 3),
    }
