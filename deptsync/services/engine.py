"""
Dependency engine facade.

Runs, for one (project, day, department):

    AlertSynthesizer -> Reconciler -> day readiness -> CallSheetProjector

and, for one (project, scene, department), the scene readiness refresh.
Every step is idempotent; a failed call can simply be repeated.

Error policy:
    UnauthenticatedError, ValidationError, NotFoundError,
    SynthesisFailedError, PersistenceFailedError   -> raised to the caller
    ProjectionFailedError                          -> logged, call succeeds

Usage:
    engine = DependencyEngine.from_app(db.session, identity_provider=request_user_id)
    engine.reconcile_scope(project_id, day_id, "ART")
    engine.reconcile_and_project([DayScope(1, 4, "ART"), SceneScope(1, 9, "ART")])
"""

import logging
from typing import NamedTuple

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from deptsync.core.exceptions import (
    PersistenceFailedError,
    ProjectionFailedError,
    SynthesisFailedError,
    UnauthenticatedError,
)
from deptsync.models.production import Scene, ShootingDay, ShootingDayScene
from deptsync.services.alert_store import AlertStore
from deptsync.services.budget_bridge import BudgetBridge
from deptsync.services.budget_service import SqlBudgetSubsystem
from deptsync.services.call_sheet_projector import CallSheetProjector, SqlCallSheetContainer
from deptsync.services.helpers.scoped_queries import get_scoped
from deptsync.services.readiness import ReadinessCalculator
from deptsync.services.readiness_store import ReadinessStore
from deptsync.services.reconciler import Reconciler
from deptsync.services.synthesizers import get_synthesizer

logger = logging.getLogger(__name__)


class DayScope(NamedTuple):
    project_id: int
    shooting_day_id: int
    department: str


class SceneScope(NamedTuple):
    project_id: int
    scene_id: int
    department: str


def scopes_for(project_id, department, day_ids=(), scene_ids=()):
    """Day scopes then scene scopes for the given ids, skipping None and repeats."""
    scopes = []
    for day_id in dict.fromkeys(d for d in day_ids if d is not None):
        scopes.append(DayScope(project_id, day_id, department))
    for scene_id in dict.fromkeys(s for s in scene_ids if s is not None):
        scopes.append(SceneScope(project_id, scene_id, department))
    return scopes


def scheduled_day_ids(session, scene_ids):
    """Shooting days on which any of ``scene_ids`` is scheduled."""
    if not scene_ids:
        return []
    return list(
        session.execute(
            select(ShootingDayScene.shooting_day_id)
            .where(ShootingDayScene.scene_id.in_(list(scene_ids)))
            .distinct()
            .order_by(ShootingDayScene.shooting_day_id)
        ).scalars()
    )


class DependencyEngine:
    def __init__(
        self,
        session,
        identity_provider,
        call_sheets=None,
        budget_subsystem=None,
        budget_sync_enabled=True,
        default_call_time="07:00",
    ):
        self.session = session
        self.identity_provider = identity_provider
        self.alerts = AlertStore(session)
        self.reconciler = Reconciler(session, self.alerts)
        self.readiness = ReadinessCalculator(ReadinessStore(session))
        self.projector = CallSheetProjector(
            session,
            container=call_sheets or SqlCallSheetContainer(session, default_call_time),
            store=self.alerts,
        )
        self.budget = BudgetBridge(
            budget_subsystem or SqlBudgetSubsystem(session, identity_provider),
            enabled=budget_sync_enabled,
        )

    @classmethod
    def from_app(cls, session, identity_provider, app=None):
        """Build an engine configured from the Flask app config."""
        app = app or current_app
        return cls(
            session,
            identity_provider,
            budget_sync_enabled=app.config.get("BUDGET_SYNC_ENABLED", True),
            default_call_time=app.config.get("DEFAULT_CALL_TIME", "07:00"),
        )

    def require_user(self):
        """Acting user id; raises UnauthenticatedError before anything is written."""
        user_id = self.identity_provider()
        if not user_id:
            raise UnauthenticatedError()
        return user_id

    # ── Day scope ────────────────────────────────────────────────────────

    def reconcile_scope(self, project_id, shooting_day_id, department):
        acting_user_id = self.require_user()
        synthesizer = get_synthesizer(department, self.session)
        scope = {"project_id": project_id, "shooting_day_id": shooting_day_id,
                 "department": department}

        try:
            desired = synthesizer.synthesize(project_id, shooting_day_id)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Alert synthesis failed", extra=scope)
            raise SynthesisFailedError(department, exc) from exc

        result = self.reconciler.reconcile(
            project_id, shooting_day_id, department, desired, acting_user_id,
        )

        try:
            readiness = self.readiness.refresh_day(
                project_id, shooting_day_id, department, result.open_alerts, acting_user_id,
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceFailedError("Day readiness", exc) from exc

        call_sheet = None
        try:
            call_sheet = self.projector.project(project_id, shooting_day_id, department)
        except ProjectionFailedError as exc:
            logger.warning("%s", exc, extra=scope)

        return {
            "project_id": project_id,
            "shooting_day_id": shooting_day_id,
            "department": department,
            "open_alert_count": result.open_alert_count,
            "readiness": readiness.status,
            "readiness_notes": readiness.notes,
            "reconcile": result.to_dict(),
            "alerts": [alert.to_dict() for alert in result.open_alerts],
            "call_sheet_synced": call_sheet is not None,
        }

    def get_open_alerts(self, project_id, shooting_day_id, department):
        get_synthesizer(department, self.session)
        get_scoped(self.session, ShootingDay, shooting_day_id, project_id=project_id)
        return self.alerts.list_open(project_id, shooting_day_id, department)

    # ── Scene scope ──────────────────────────────────────────────────────

    def refresh_scene_readiness(self, project_id, scene_id, department):
        acting_user_id = self.require_user()
        synthesizer = get_synthesizer(department, self.session)
        get_scoped(self.session, Scene, scene_id, project_id=project_id)

        try:
            total, blockers = synthesizer.scene_counts(project_id, scene_id)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Scene count read failed", extra={
                "project_id": project_id, "scene_id": scene_id, "department": department,
            })
            raise SynthesisFailedError(department, exc) from exc

        try:
            readiness = self.readiness.refresh_scene(
                project_id, scene_id, department, total, blockers, acting_user_id,
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceFailedError("Scene readiness", exc) from exc

        logger.debug(
            "Scene %s %s readiness=%s (%d/%d)",
            scene_id, department, readiness.status,
            readiness.blocker_count, readiness.total_tracked,
            extra={"project_id": project_id, "scene_id": scene_id, "department": department},
        )
        return readiness

    # ── Fan-out ──────────────────────────────────────────────────────────

    def reconcile_and_project(self, scopes):
        """
        Run every affected scope once, in the order given.

        Day scopes produce the ``reconcile_scope`` result dict, scene
        scopes the refreshed readiness as a dict.
        """
        results = []
        seen = set()
        for scope in scopes:
            # DayScope and SceneScope with equal fields compare equal as tuples
            key = (type(scope).__name__, tuple(scope))
            if key in seen:
                continue
            seen.add(key)
            if isinstance(scope, SceneScope):
                readiness = self.refresh_scene_readiness(*scope)
                results.append(readiness.to_dict())
            else:
                results.append(self.reconcile_scope(*scope))
        return results
