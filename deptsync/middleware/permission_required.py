"""
Request identity and the department-manager permission gate.

The surrounding platform authenticates the caller and forwards two headers:

    X-User-Id       acting user id, copied to ``g.current_user_id``
    X-Project-Role  caller's role on the project in the URL

Usage:
    @bp.route("/projects/<int:project_id>/days/<int:day_id>/...", methods=["POST"])
    @require_department_manager
    def reconcile(project_id, day_id, department):
        ...

The gate only checks the forwarded role. Everything past it assumes the
caller is permitted.
"""

import functools
import logging

from flask import Flask, current_app, g, has_request_context, request

from deptsync.core.exceptions import UnauthenticatedError, UnauthorizedError

logger = logging.getLogger(__name__)

DEPARTMENT_MANAGER_ROLES = frozenset({"ADMIN", "COORDINATOR", "DEPARTMENT_HEAD"})


def init_identity(app: Flask):
    """Register a before_request hook that resolves the acting user."""

    @app.before_request
    def _load_identity():
        user_id = (request.headers.get("X-User-Id") or "").strip()
        g.current_user_id = user_id or None
        g.project_role = (request.headers.get("X-Project-Role") or "").strip().upper() or None


def request_user_id():
    """Identity provider for HTTP requests: the forwarded user id, or None."""
    if not has_request_context():
        return None
    return getattr(g, "current_user_id", None)


def system_user_id():
    """Identity provider for CLI and background callers."""
    return current_app.config.get("SYSTEM_USER_ID") or None


def require_department_manager(f):
    """
    Decorator: require an authenticated caller holding a department-manager role.

    Raises UnauthenticatedError (401) when no user id was forwarded and
    UnauthorizedError (403) when the role is not one of
    ADMIN / COORDINATOR / DEPARTMENT_HEAD.
    """

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        user_id = getattr(g, "current_user_id", None)
        if not user_id:
            raise UnauthenticatedError()

        role = getattr(g, "project_role", None)
        if role not in DEPARTMENT_MANAGER_ROLES:
            logger.warning(
                "User %s denied: role %r cannot manage departments on %s",
                user_id, role, f.__name__,
                extra={"user_id": user_id, "project_id": kwargs.get("project_id")},
            )
            raise UnauthorizedError(role=role)

        return f(*args, **kwargs)

    return decorated
