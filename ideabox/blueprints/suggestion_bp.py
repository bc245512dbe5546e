"""
Idea Box
Suggestion blueprint.

Endpoint groups:
  Submission          POST /api/v1/suggestions
                      GET  /api/v1/suggestions/mine
  Admin listing       GET  /api/v1/suggestions?status=&search=&take=&skip=
                      GET  /api/v1/suggestions/kanban
                      GET  /api/v1/suggestions/board?filter=
                      GET  /api/v1/suggestions/<id>
  Evaluation          PATCH /api/v1/suggestions/<id>
                      POST  /api/v1/suggestions/<id>/move
                      POST  /api/v1/suggestions/<id>/rejection-notification

Service layer owns all business logic and commits.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

import ideabox.services.suggestion_service as ss
from ideabox.auth import current_actor, require_admin, require_user
from ideabox.blueprints import json_body
from ideabox.utils.errors import E, api_error, register_domain_error_handlers
from ideabox.utils.helpers import bounded_int

logger = logging.getLogger(__name__)

suggestion_bp = Blueprint("suggestion_bp", __name__, url_prefix="/api/v1")

register_domain_error_handlers(suggestion_bp)


# ═════════════════════════════════════════════════════════════════════════
# Submission
# ═════════════════════════════════════════════════════════════════════════


@suggestion_bp.route("/suggestions", methods=["POST"])
@require_user
def create_suggestion():
    """Submit a new idea.

    Body: {
        description, contribution: {type, other?},
        problem?, submitted_name?, is_name_visible?, date_ref?
    }
    Returns: created suggestion (201) with its idea_number.
    """
    suggestion = ss.create(json_body(), current_actor().user_id)
    return jsonify(suggestion), 201


@suggestion_bp.route("/suggestions/mine", methods=["GET"])
@require_user
def list_my_suggestions():
    actor = current_actor()
    if actor.user_id is None:
        return api_error(E.VALIDATION_REQUIRED, "X-User-Id header is required for this endpoint")
    return jsonify({"items": ss.list_mine(actor.user_id)}), 200


# ═════════════════════════════════════════════════════════════════════════
# Listing
# ═════════════════════════════════════════════════════════════════════════


@suggestion_bp.route("/suggestions", methods=["GET"])
@require_admin
def list_suggestions():
    """Admin list.

    Query params:
        status  repeatable or comma-separated; keys or labels
        search  free text or idea number
        take    1..100 (default 50)
        skip    ≥ 0
    """
    statuses = []
    for raw in request.args.getlist("status"):
        statuses.extend(s.strip() for s in raw.split(",") if s.strip())
    result = ss.list_suggestions(
        statuses=statuses or None,
        search=request.args.get("search"),
        take=bounded_int(request.args.get("take"), default=ss.DEFAULT_TAKE, minimum=1, maximum=ss.MAX_TAKE),
        skip=bounded_int(request.args.get("skip"), default=0, minimum=0, maximum=10**9),
    )
    return jsonify(result), 200


@suggestion_bp.route("/suggestions/kanban", methods=["GET"])
@require_user
def list_kanban():
    return jsonify({"items": ss.list_kanban()}), 200


@suggestion_bp.route("/suggestions/board", methods=["GET"])
@require_admin
def board():
    """Filtered kanban + list + 3-column grid. filter: all | score | bucket kind | status label."""
    return jsonify(ss.board(request.args.get("filter", "all"))), 200


@suggestion_bp.route("/suggestions/<int:suggestion_id>", methods=["GET"])
@require_admin
def get_suggestion(suggestion_id: int):
    return jsonify(ss.get(suggestion_id)), 200


# ═════════════════════════════════════════════════════════════════════════
# Evaluation
# ═════════════════════════════════════════════════════════════════════════


@suggestion_bp.route("/suggestions/<int:suggestion_id>", methods=["PATCH"])
@require_admin
def update_suggestion(suggestion_id: int):
    """Admin evaluation edit (status, axes, KPIs, analyst, payment).

    final_score and final_classification in the body are ignored; they are
    always recomputed from the axes.
    """
    return jsonify(ss.update_admin(suggestion_id, json_body(), current_actor())), 200


@suggestion_bp.route("/suggestions/<int:suggestion_id>/move", methods=["POST"])
@require_admin
def move_suggestion(suggestion_id: int):
    """Kanban drop. Body: {column, rejection_reason?}"""
    data = json_body()
    result = ss.move_to_column(
        suggestion_id,
        data.get("column"),
        current_actor(),
        rejection_reason=data.get("rejection_reason"),
    )
    return jsonify(result), 200


@suggestion_bp.route("/suggestions/<int:suggestion_id>/rejection-notification", methods=["POST"])
@require_admin
def send_rejection_notification(suggestion_id: int):
    """Re-send the rejection e-mail. Body: {reason}"""
    data = json_body()
    result = ss.send_rejection_notification(suggestion_id, data.get("reason"), current_actor())
    return jsonify(result), 200
