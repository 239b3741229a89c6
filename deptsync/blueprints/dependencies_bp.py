"""
Department dependency blueprint — thin HTTP wrapper over the engine.

Endpoints:
    POST /api/v1/projects/<pid>/days/<day_id>/departments/<dept>/reconcile
    GET  /api/v1/projects/<pid>/days/<day_id>/departments/<dept>/alerts
    POST /api/v1/projects/<pid>/scenes/<scene_id>/departments/<dept>/readiness

The department segment is case-insensitive (``art``, ``grip_electric``,
``post``). Mutating routes sit behind the department-manager gate.
"""

import logging

from flask import Blueprint, jsonify

from deptsync.core.exceptions import DeptSyncError
from deptsync.middleware.permission_required import request_user_id, require_department_manager
from deptsync.models import db
from deptsync.services.engine import DependencyEngine

logger = logging.getLogger(__name__)

dependencies_bp = Blueprint("dependencies", __name__, url_prefix="/api/v1")


def _engine():
    return DependencyEngine.from_app(db.session, request_user_id)


def _department(value):
    return (value or "").strip().upper()


# ── Error mapping ────────────────────────────────────────────────────────────

@dependencies_bp.errorhandler(DeptSyncError)
def handle_deptsync_error(e):
    status = getattr(e, "status_code", 500)
    if status >= 500:
        logger.error("%s: %s", type(e).__name__, e)
    body = {"error": str(e)}
    details = getattr(e, "details", None)
    if details:
        body["details"] = details
    if getattr(e, "retryable", False):
        body["retryable"] = True
    return jsonify(body), status


# ═══════════════════════════════════════════════════════════════════════════
#  DAY SCOPE
# ═══════════════════════════════════════════════════════════════════════════

@dependencies_bp.route(
    "/projects/<int:project_id>/days/<int:day_id>/departments/<department>/reconcile",
    methods=["POST"],
)
@require_department_manager
def reconcile_day(project_id, day_id, department):
    result = _engine().reconcile_scope(project_id, day_id, _department(department))
    return jsonify(result), 200


@dependencies_bp.route(
    "/projects/<int:project_id>/days/<int:day_id>/departments/<department>/alerts",
    methods=["GET"],
)
def list_open_alerts(project_id, day_id, department):
    alerts = _engine().get_open_alerts(project_id, day_id, _department(department))
    return jsonify({"items": [a.to_dict() for a in alerts], "total": len(alerts)})


# ═══════════════════════════════════════════════════════════════════════════
#  SCENE SCOPE
# ═══════════════════════════════════════════════════════════════════════════

@dependencies_bp.route(
    "/projects/<int:project_id>/scenes/<int:scene_id>/departments/<department>/readiness",
    methods=["POST"],
)
@require_department_manager
def refresh_scene_readiness(project_id, scene_id, department):
    readiness = _engine().refresh_scene_readiness(project_id, scene_id, _department(department))
    return jsonify(readiness.to_dict()), 200
