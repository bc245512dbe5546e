"""
Idea Box
Flask Application Factory.

Usage:
    from ideabox import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from ideabox.config import basedir, config
from ideabox.models import db
from ideabox.auth import init_auth
from ideabox.middleware.logging_config import configure_logging
from ideabox.middleware.rate_limiter import init_rate_limits
from ideabox.middleware.timing import init_request_timing
from ideabox.utils.errors import E, api_error, register_domain_error_handlers

logger = logging.getLogger(__name__)

migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit, apply per-blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # Instantiate so ProductionConfig can validate its required env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    if (app.config.get("SQLALCHEMY_DATABASE_URI") or "").startswith(f"sqlite:///{basedir}"):
        os.makedirs(os.path.join(basedir, "instance"), exist_ok=True)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Authentication middleware ─────────────────────────────────────────
    init_auth(app)

    # ── Request guards (input length) ────────────────────────────────────
    app.config.setdefault("MAX_CONTENT_LENGTH", 1024 * 1024)  # 1 MB

    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")

    # ── Import all models so Alembic can detect them ─────────────────────
    from ideabox.models import user as _user_models                    # noqa: F401
    from ideabox.models import classification as _classification_models  # noqa: F401
    from ideabox.models import kpi as _kpi_models                      # noqa: F401
    from ideabox.models import suggestion as _suggestion_models        # noqa: F401
    from ideabox.models import notification as _notification_models    # noqa: F401
    from ideabox.models import email_log as _email_log_models          # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    from ideabox.blueprints.health_bp import health_bp
    from ideabox.blueprints.suggestion_bp import suggestion_bp
    from ideabox.blueprints.classification_bp import classification_bp
    from ideabox.blueprints.kpi_bp import kpi_bp
    from ideabox.blueprints.notification_bp import notification_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(suggestion_bp)
    app.register_blueprint(classification_bp)
    app.register_blueprint(kpi_bp)
    app.register_blueprint(notification_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-classifications")
    def seed_classifications_cmd():
        """Upsert the default Impact / Capacity / Effort pools."""
        from ideabox.services.classification_service import seed_defaults
        result = seed_defaults()
        logger.info("Seeded classifications: created=%s updated=%s", result["created"], result["updated"])

    # ── Error handlers ───────────────────────────────────────────────────
    register_domain_error_handlers(app)

    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return {"error": "Request body too large"}, 413

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
