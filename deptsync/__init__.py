"""
Department Dependency Engine
Flask Application Factory.

Usage:
    from deptsync import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import SQLAlchemyError

from deptsync.config import config
from deptsync.models import db
from deptsync.middleware.logging_config import configure_logging
from deptsync.middleware.permission_required import init_identity
from deptsync.middleware.rate_limiter import init_rate_limits
from deptsync.middleware.timing import init_request_timing

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit — apply per-blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),
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
    app.config.from_object(config[config_name])

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request identity (X-User-Id / X-Project-Role) ────────────────────
    init_identity(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    app.config.setdefault("MAX_CONTENT_LENGTH", 1024 * 1024)  # 1 MB

    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so Alembic can detect them ─────────────────────
    from deptsync.models import production as _production_models  # noqa: F401
    from deptsync.models import alerts as _alert_models           # noqa: F401
    from deptsync.models import art as _art_models                # noqa: F401
    from deptsync.models import grip_electric as _ge_models       # noqa: F401
    from deptsync.models import post as _post_models              # noqa: F401
    from deptsync.models import budget as _budget_models          # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    if app.config.get("AUTO_CREATE_TABLES", True):
        with app.app_context():
            try:
                db.create_all()
                app.logger.info("db.create_all() completed successfully")
            except SQLAlchemyError as e:
                app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from deptsync.blueprints import register_blueprints
    register_blueprints(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("reconcile-day")
    @click.option("--project-id", type=int, required=True)
    @click.option("--day-id", type=int, required=True)
    @click.option(
        "--department",
        type=click.Choice(["ART", "GRIP_ELECTRIC", "POST"], case_sensitive=False),
        multiple=True,
        help="Repeatable; defaults to every department.",
    )
    def reconcile_day_cmd(project_id, day_id, department):
        """Reconcile alerts, readiness and call-sheet notes for one shooting day."""
        from deptsync.middleware.permission_required import system_user_id
        from deptsync.services.engine import DayScope, DependencyEngine

        departments = [d.upper() for d in department] or ["ART", "GRIP_ELECTRIC", "POST"]
        engine = DependencyEngine.from_app(db.session, system_user_id)
        results = engine.reconcile_and_project(
            [DayScope(project_id, day_id, dept) for dept in departments]
        )
        for result in results:
            click.echo(
                f"{result['department']}: {result['readiness']} "
                f"({result['open_alert_count']} open alert(s))"
            )

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return {"error": "Request body too large"}, 413

    @app.errorhandler(415)
    def unsupported_media(e):
        return {"error": "Content-Type must be application/json"}, 415

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error"}, 500

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
