"""
Persistence for derived readiness records (scene scope and day scope).

Both tables are upserted by scope; status is never written from anywhere
else.
"""

from datetime import datetime, timezone

from sqlalchemy import select

from deptsync.models.alerts import DepartmentDayReadiness, DepartmentSceneReadiness
from deptsync.services.helpers.upsert import upsert_row

_SCENE_KEY = ("project_id", "scene_id", "department")
_DAY_KEY = ("project_id", "shooting_day_id", "department")


def _utcnow():
    return datetime.now(timezone.utc)


class ReadinessStore:
    def __init__(self, session):
        self.session = session

    def upsert_scene(
        self, project_id, scene_id, department, *,
        status, notes, total_tracked, blocker_count, acting_user_id,
    ) -> DepartmentSceneReadiness:
        now = _utcnow()
        upsert_row(
            self.session,
            DepartmentSceneReadiness.__table__,
            {
                "project_id": project_id,
                "scene_id": scene_id,
                "department": department,
                "status": status,
                "notes": notes,
                "total_tracked": total_tracked,
                "blocker_count": blocker_count,
                "updated_by": acting_user_id,
                "created_at": now,
                "updated_at": now,
            },
            key_columns=_SCENE_KEY,
            insert_only=("created_at",),
        )
        return self.get_scene(project_id, scene_id, department)

    def upsert_day(
        self, project_id, shooting_day_id, department, *,
        status, notes, open_alert_count, critical_count, acting_user_id,
    ) -> DepartmentDayReadiness:
        now = _utcnow()
        upsert_row(
            self.session,
            DepartmentDayReadiness.__table__,
            {
                "project_id": project_id,
                "shooting_day_id": shooting_day_id,
                "department": department,
                "status": status,
                "notes": notes,
                "open_alert_count": open_alert_count,
                "critical_count": critical_count,
                "updated_by": acting_user_id,
                "created_at": now,
                "updated_at": now,
            },
            key_columns=_DAY_KEY,
            insert_only=("created_at",),
        )
        return self.get_day(project_id, shooting_day_id, department)

    def get_scene(self, project_id, scene_id, department):
        stmt = (
            select(DepartmentSceneReadiness)
            .where(
                DepartmentSceneReadiness.project_id == project_id,
                DepartmentSceneReadiness.scene_id == scene_id,
                DepartmentSceneReadiness.department == department,
            )
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_day(self, project_id, shooting_day_id, department):
        stmt = (
            select(DepartmentDayReadiness)
            .where(
                DepartmentDayReadiness.project_id == project_id,
                DepartmentDayReadiness.shooting_day_id == shooting_day_id,
                DepartmentDayReadiness.department == department,
            )
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()
