"""
Idea Box
KPI registry and suggestion ↔ KPI association blueprint.

Endpoints:
  GET    /api/v1/kpis                              active KPIs with counts
  GET    /api/v1/kpis/search?q=                    name search (max 10)
  POST   /api/v1/kpis                              create
  PATCH  /api/v1/kpis/<id>                         update
  DELETE /api/v1/kpis/<id>                         soft delete
  GET    /api/v1/suggestions/<id>/kpis             linked KPIs
  PUT    /api/v1/suggestions/<id>/kpis             replace full set
  POST   /api/v1/suggestions/<id>/kpis/unlink      remove some links
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

import ideabox.services.kpi_service as ks
from ideabox.auth import require_admin
from ideabox.blueprints import json_body
from ideabox.utils.errors import register_domain_error_handlers

logger = logging.getLogger(__name__)

kpi_bp = Blueprint("kpi_bp", __name__, url_prefix="/api/v1")

register_domain_error_handlers(kpi_bp)


# ── Registry ──────────────────────────────────────────────────────────────────


@kpi_bp.route("/kpis", methods=["GET"])
@require_admin
def list_kpis():
    return jsonify({"items": ks.list_active()}), 200


@kpi_bp.route("/kpis/search", methods=["GET"])
@require_admin
def search_kpis():
    return jsonify({"items": ks.search(request.args.get("q", ""))}), 200


@kpi_bp.route("/kpis", methods=["POST"])
@require_admin
def create_kpi():
    """Body: {name, description?, order?}"""
    data = json_body()
    kpi = ks.create(data.get("name"), data.get("description"), data.get("order", 0))
    return jsonify(kpi), 201


@kpi_bp.route("/kpis/<int:kpi_id>", methods=["PATCH"])
@require_admin
def update_kpi(kpi_id: int):
    return jsonify(ks.update(kpi_id, json_body())), 200


@kpi_bp.route("/kpis/<int:kpi_id>", methods=["DELETE"])
@require_admin
def delete_kpi(kpi_id: int):
    return jsonify(ks.delete(kpi_id)), 200


# ── Associations ──────────────────────────────────────────────────────────────


@kpi_bp.route("/suggestions/<int:suggestion_id>/kpis", methods=["GET"])
@require_admin
def get_suggestion_kpis(suggestion_id: int):
    return jsonify({"items": ks.get_by_suggestion_id(suggestion_id)}), 200


@kpi_bp.route("/suggestions/<int:suggestion_id>/kpis", methods=["PUT"])
@require_admin
def replace_suggestion_kpis(suggestion_id: int):
    """Body: {kpi_ids: [...]}; the full desired set."""
    return jsonify(ks.replace_associations(suggestion_id, json_body().get("kpi_ids"))), 200


@kpi_bp.route("/suggestions/<int:suggestion_id>/kpis/unlink", methods=["POST"])
@require_admin
def unlink_suggestion_kpis(suggestion_id: int):
    """Body: {kpi_ids: [...]}"""
    return jsonify(ks.unlink(suggestion_id, json_body().get("kpi_ids"))), 200
