"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in ideabox/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from ideabox.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

BLUEPRINT_LIMITS = {
    "suggestion_bp": "60/minute",
    "classification_bp": "120/minute",
    "kpi_bp": "120/minute",
    "notification_bp": "200/minute",
}


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Suggestions:          60/minute  (submissions and evaluations)
        - Registries:           120/minute
        - Notification inbox:   200/minute (polled by the SPA)
        - Health check:         exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name, limit in BLUEPRINT_LIMITS.items():
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(limit)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — suggestions: 60/min, registries: 120/min, inbox: 200/min"
    )
