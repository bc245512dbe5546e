"""
Idea Box
Notification inbox blueprint.

Provides the submitter-facing side of the notification sink:
    GET  /api/v1/notifications               own notifications, newest first
    GET  /api/v1/notifications/unread-count
    POST /api/v1/notifications/<id>/read
    POST /api/v1/notifications/read-all
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from ideabox.auth import current_actor, require_user
from ideabox.services.notification import NotificationService
from ideabox.utils.errors import E, api_error, register_domain_error_handlers
from ideabox.utils.helpers import bounded_int

logger = logging.getLogger(__name__)

notification_bp = Blueprint("notification_bp", __name__, url_prefix="/api/v1")

register_domain_error_handlers(notification_bp)


def _user_id():
    actor = current_actor()
    return actor.user_id if actor else None


@notification_bp.route("/notifications", methods=["GET"])
@require_user
def list_notifications():
    """Query params: unread_only, type, limit (1..200, default 50), offset."""
    user_id = _user_id()
    if user_id is None:
        return api_error(E.VALIDATION_REQUIRED, "X-User-Id header is required for this endpoint")

    items, total = NotificationService.list_for_user(
        user_id,
        unread_only=request.args.get("unread_only", "false").lower() in ("1", "true", "yes"),
        type=request.args.get("type") or None,
        limit=bounded_int(request.args.get("limit"), default=50, minimum=1, maximum=200),
        offset=bounded_int(request.args.get("offset"), default=0, minimum=0, maximum=10**9),
    )
    return jsonify({
        "items": [n.to_dict() for n in items],
        "total": total,
        "unread_count": NotificationService.unread_count(user_id),
    }), 200


@notification_bp.route("/notifications/unread-count", methods=["GET"])
@require_user
def unread_count():
    user_id = _user_id()
    if user_id is None:
        return api_error(E.VALIDATION_REQUIRED, "X-User-Id header is required for this endpoint")
    return jsonify({"unread_count": NotificationService.unread_count(user_id)}), 200


@notification_bp.route("/notifications/<int:notification_id>/read", methods=["POST"])
@require_user
def mark_read(notification_id: int):
    notif = NotificationService.mark_read(notification_id, _user_id())
    if notif is None:
        return api_error(E.NOT_FOUND, f"Notification id={notification_id} not found")
    return jsonify(notif.to_dict()), 200


@notification_bp.route("/notifications/read-all", methods=["POST"])
@require_user
def mark_all_read():
    user_id = _user_id()
    if user_id is None:
        return api_error(E.VALIDATION_REQUIRED, "X-User-Id header is required for this endpoint")
    count = NotificationService.mark_all_read(user_id)
    return jsonify({"marked": count}), 200
