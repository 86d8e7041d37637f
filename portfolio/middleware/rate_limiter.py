"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance
is created in portfolio/__init__.py with no default limits; this module
applies limits per route category.

Usage:
    from portfolio.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Each call is a round-trip to the spreadsheet script
WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Auth endpoints:   AUTH_RATE_LIMIT (default 10/minute, brute-force guard)
        - Write endpoints:  60/minute
        - Read endpoints:   200/minute
        - Health check:     exempt

    Rate limiting is disabled when RATELIMIT_ENABLED is off (tests).
    """
    if not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled (RATELIMIT_ENABLED=False)")
        return

    auth_limit = app.config.get("AUTH_RATE_LIMIT", "10 per minute")
    bp = app.blueprints.get("auth")
    if bp:
        limiter.limit(auth_limit)(bp)

    for bp_name in ("services", "ranking", "automation"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    for bp_name in ("dashboard", "catalog", "export"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: auth=%s, write=%s, read=%s", auth_limit, WRITE_LIMIT, READ_LIMIT,
    )
