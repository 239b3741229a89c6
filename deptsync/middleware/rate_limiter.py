"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in deptsync/__init__.py with no default
limits; this module applies limits per route category.

Usage:
    from deptsync.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Dependency endpoints:  RECONCILE_RATE_LIMIT (default 60/minute)
        - Health check:          exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    reconcile_limit = app.config.get("RECONCILE_RATE_LIMIT", "60/minute")
    bp = app.blueprints.get("dependencies")
    if bp:
        limiter.limit(reconcile_limit)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: dependencies=%s", reconcile_limit)
