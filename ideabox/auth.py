"""
Idea Box
Authentication & Authorization Middleware.

Provides:
    - API key authentication via X-API-Key header or ?api_key= query param
    - Actor resolution from the X-User-Id header (users table)
    - Admin / authenticated-user decorators for blueprints

Security model:
    - All /api/v1/* endpoints need an actor (except /api/v1/health*)
    - Admin-only endpoints (evaluation, registries, board) need an actor
      whose users.role is ADMIN, or an API key mapped to the 'admin' role
    - API keys and roles are configured via environment variables

Configuration (env vars):
    API_KEYS          — comma-separated list of valid API keys
                        e.g. "key1:admin,key2:user"
                        Format: "<key>:<role>" where role is admin|user
    API_AUTH_ENABLED  — set to "false" to skip the API key check
                        (development/testing; X-User-Id is still honoured)
"""

import functools
import logging
import os
from dataclasses import dataclass
from typing import Optional

from flask import current_app, g, jsonify, request

from ideabox.core.exceptions import ForbiddenError
from ideabox.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# ── Roles ────────────────────────────────────────────────────────────────────

ROLES = {"admin", "user"}


@dataclass(frozen=True)
class Actor:
    """The caller of the current request."""

    user_id: Optional[int]
    role: str
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _parse_api_keys() -> dict[str, str]:
    """
    Parse API_KEYS env var into {key: role} mapping.

    Format: "key1:admin,key2:user"
    Keys without a role default to 'user'.
    """
    raw = os.getenv("API_KEYS", "")
    if not raw.strip():
        return {}

    keys = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if ":" in entry:
            key, role = entry.rsplit(":", 1)
            role = role.strip().lower()
            if role not in ROLES:
                logger.warning("Unknown role '%s' for API key, defaulting to 'user'", role)
                role = "user"
            keys[key.strip()] = role
        else:
            keys[entry] = "user"
    return keys


def _is_auth_enabled() -> bool:
    """Check whether API key authentication is enabled (env var or app config)."""
    env_val = os.getenv("API_AUTH_ENABLED", "")
    if env_val:
        return env_val.lower() not in ("false", "0", "no", "off")
    try:
        return str(current_app.config.get("API_AUTH_ENABLED", "true")).lower() not in ("false", "0", "no", "off")
    except RuntimeError:
        # Outside app context
        return True


def _get_api_key_from_request() -> Optional[str]:
    """Extract API key from request header or query parameter."""
    key = request.headers.get("X-API-Key", "").strip()
    if key:
        return key
    return request.args.get("api_key", "").strip() or None


def _load_user(raw_user_id: str):
    """User row for an X-User-Id header value, or None."""
    from ideabox.models import db
    from ideabox.models.user import User

    try:
        user_id = int(raw_user_id)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def _resolve_actor(key_role: Optional[str]) -> Optional[Actor]:
    """Combine the X-User-Id user (if any) with the API key role (if any)."""
    raw_user_id = request.headers.get("X-User-Id", "").strip()
    if raw_user_id:
        user = _load_user(raw_user_id)
        if user is None:
            return None
        role = "admin" if (user.is_admin or key_role == "admin") else "user"
        return Actor(user_id=user.id, role=role, name=user.display_name, email=user.email)
    if key_role:
        return Actor(user_id=None, role=key_role, name=f"api-key:{key_role}")
    return None


def current_actor() -> Optional[Actor]:
    """The actor resolved for this request, or None."""
    return getattr(g, "actor", None)


# ── Authorization decorators ─────────────────────────────────────────────────

def require_user(f):
    """
    Decorator: require an identified actor (any role).

    Responds 401 when the request carries no resolvable identity.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if current_actor() is None:
            return api_error(E.UNAUTHENTICATED, "Authentication required. Provide X-User-Id header.")
        return f(*args, **kwargs)

    return decorated


def require_admin(f):
    """
    Decorator: require an ADMIN actor.

    Usage:
        @bp.route("/suggestions/<int:sid>", methods=["PATCH"])
        @require_admin
        def update_suggestion(sid): ...

    401 without an actor; ForbiddenError (403) for a non-admin actor.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        actor = current_actor()
        if actor is None:
            return api_error(E.UNAUTHENTICATED, "Authentication required. Provide X-User-Id header.")
        if not actor.is_admin:
            logger.warning(
                "Access denied: user=%s role '%s' tried to access admin endpoint %s",
                actor.user_id, actor.role, request.path,
            )
            raise ForbiddenError()
        return f(*args, **kwargs)

    return decorated


# ── CSRF protection for API ──────────────────────────────────────────────────

def _check_content_type():
    """
    For state-changing requests (POST/PUT/PATCH/DELETE), require
    Content-Type: application/json. HTML forms cannot send that content
    type, which makes this a lightweight CSRF mitigation.
    """
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        ct = request.content_type or ""
        if "application/json" not in ct and request.content_length and request.content_length > 0:
            return jsonify({
                "error": "Content-Type must be application/json for state-changing requests"
            }), 415
    return None


# ── App-level before_request hook installer ──────────────────────────────────

def init_auth(app):
    """
    Install authentication middleware on the Flask app.

    - Attaches a before_request hook for API routes
    - Skips health checks and pre-flight requests
    - Stores the resolved Actor (or None) in g.actor
    """
    @app.before_request
    def _before_request_auth():
        g.actor = None
        if not request.path.startswith("/api/v1/"):
            return None
        if request.path == "/api/v1/health" or request.path.startswith("/api/v1/health/"):
            return None
        if request.method == "OPTIONS":
            return None

        csrf_error = _check_content_type()
        if csrf_error:
            return csrf_error

        key_role = None
        if _is_auth_enabled():
            api_key = _get_api_key_from_request()
            if not api_key:
                return api_error(E.UNAUTHENTICATED, "Authentication required. Provide X-API-Key header.")

            api_keys = _parse_api_keys()
            if not api_keys:
                logger.error("API_KEYS env var is not configured but API_AUTH_ENABLED=true")
                return jsonify({"error": "Server authentication not configured"}), 500

            key_role = api_keys.get(api_key)
            if key_role is None:
                logger.warning("Invalid API key attempt: %s...", api_key[:8])
                return api_error(E.UNAUTHENTICATED, "Invalid API key")

        g.actor = _resolve_actor(key_role)
        return None

    logger.info(
        "Auth middleware installed (api_keys_enabled=%s)", _is_auth_enabled()
    )
