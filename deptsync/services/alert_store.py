"""
Persistence for dependency alerts.

All writes to ``department_day_dependencies`` go through ``upsert`` (by the
five-part key) or ``resolve`` (by id). Rows are never deleted.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update

from deptsync.models.alerts import ALERT_KEY_COLUMNS, DepartmentDayDependency, severity_rank
from deptsync.services.helpers.upsert import upsert_row

logger = logging.getLogger(__name__)


def _utcnow():
    return datetime.now(timezone.utc)


class AlertStore:
    """Alert reads and writes against one SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    def _scope_query(self, project_id, shooting_day_id, department):
        return select(DepartmentDayDependency).where(
            DepartmentDayDependency.project_id == project_id,
            DepartmentDayDependency.shooting_day_id == shooting_day_id,
            DepartmentDayDependency.department == department,
        )

    def list_scope(self, project_id, shooting_day_id, department, *, refresh=False):
        """Every alert row (OPEN and RESOLVED) in the scope."""
        stmt = self._scope_query(project_id, shooting_day_id, department)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return list(self.session.execute(stmt).scalars())

    def list_open(self, project_id, shooting_day_id, department=None, *, refresh=False):
        """
        OPEN alerts for a day, most severe first.

        With ``department=None`` every department's open alerts are returned,
        ordered by severity, then department, then source key.
        """
        stmt = select(DepartmentDayDependency).where(
            DepartmentDayDependency.project_id == project_id,
            DepartmentDayDependency.shooting_day_id == shooting_day_id,
            DepartmentDayDependency.status == "OPEN",
        )
        if department is not None:
            stmt = stmt.where(DepartmentDayDependency.department == department)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        alerts = list(self.session.execute(stmt).scalars())
        alerts.sort(key=lambda a: (
            -severity_rank(a.severity), a.department, a.source_type, a.source_id,
        ))
        return alerts

    def upsert(self, project_id, shooting_day_id, department, desired, acting_user_id):
        """
        Write one desired alert as OPEN.

        A new row is stamped with ``created_by``/``created_at``; an existing
        row (OPEN or RESOLVED) keeps them and has its resolution cleared.
        """
        now = _utcnow()
        values = {
            "project_id": project_id,
            "shooting_day_id": shooting_day_id,
            "department": department,
            "source_type": desired.source_type,
            "source_id": str(desired.source_id),
            "status": "OPEN",
            "severity": desired.severity,
            "message": desired.message,
            "metadata": desired.metadata,
            "resolved_by": None,
            "resolved_at": None,
            "created_by": acting_user_id,
            "created_at": now,
            "updated_at": now,
        }
        upsert_row(
            self.session,
            DepartmentDayDependency.__table__,
            values,
            key_columns=ALERT_KEY_COLUMNS,
            insert_only=("created_by", "created_at"),
        )

    def resolve(self, alert_ids, acting_user_id):
        """Mark the given OPEN alerts RESOLVED. Returns the number of rows changed."""
        if not alert_ids:
            return 0
        now = _utcnow()
        result = self.session.execute(
            update(DepartmentDayDependency)
            .where(
                DepartmentDayDependency.id.in_(list(alert_ids)),
                DepartmentDayDependency.status == "OPEN",
            )
            .values(
                status="RESOLVED",
                resolved_by=acting_user_id,
                resolved_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
