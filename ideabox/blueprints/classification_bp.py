"""
Idea Box
Classification Registry blueprint.

Endpoints:
  GET    /api/v1/classifications?type=        active pool of one axis
  GET    /api/v1/classifications/all?type=    admin view incl. inactive
  POST   /api/v1/classifications              create
  PATCH  /api/v1/classifications/<id>         partial update
  DELETE /api/v1/classifications/<id>         soft delete
  POST   /api/v1/classifications/reorder      transactional batch reorder
  POST   /api/v1/classifications/seed         upsert default pools
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

import ideabox.services.classification_service as cs
from ideabox.auth import require_admin, require_user
from ideabox.blueprints import json_body
from ideabox.utils.errors import register_domain_error_handlers

logger = logging.getLogger(__name__)

classification_bp = Blueprint("classification_bp", __name__, url_prefix="/api/v1")

register_domain_error_handlers(classification_bp)


@classification_bp.route("/classifications", methods=["GET"])
@require_user
def list_by_type():
    """Active entries of one axis, ordered by (order asc, score desc).

    Query params: type (IMPACT | CAPACITY | EFFORT, required)
    """
    return jsonify({"items": cs.list_by_type(request.args.get("type"))}), 200


@classification_bp.route("/classifications/all", methods=["GET"])
@require_admin
def list_all():
    return jsonify({"items": cs.list_all(request.args.get("type") or None)}), 200


@classification_bp.route("/classifications", methods=["POST"])
@require_admin
def create_classification():
    """Body: {label, score, type, order?}"""
    data = json_body()
    entry = cs.create(data.get("label"), data.get("score"), data.get("type"), data.get("order"))
    return jsonify(entry), 201


@classification_bp.route("/classifications/<int:classification_id>", methods=["PATCH"])
@require_admin
def update_classification(classification_id: int):
    return jsonify(cs.update(classification_id, json_body())), 200


@classification_bp.route("/classifications/<int:classification_id>", methods=["DELETE"])
@require_admin
def delete_classification(classification_id: int):
    return jsonify(cs.delete(classification_id)), 200


@classification_bp.route("/classifications/reorder", methods=["POST"])
@require_admin
def reorder_classifications():
    """Body: {type, items: [{id, order}, ...]}"""
    data = json_body()
    return jsonify(cs.reorder(data.get("type"), data.get("items"))), 200


@classification_bp.route("/classifications/seed", methods=["POST"])
@require_admin
def seed_classifications():
    return jsonify(cs.seed_defaults()), 200
