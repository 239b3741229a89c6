"""
Call-sheet projection of open dependency alerts.

After a reconcile commits, the open alerts of a (project, day, department)
are rendered into two machine-owned sections:

    - the department's row on the call sheet (department marker pair)
    - the call sheet's advance notes, across all departments
      ([AUTO_DEPARTMENT_ALERTS] marker pair)

Manual text around the sections is preserved. A field left with no
manual text and no alerts is cleared to NULL.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from deptsync.core.exceptions import ProjectionFailedError
from deptsync.models.alerts import DEPARTMENT_LABELS
from deptsync.models.production import CallSheet, CallSheetDepartment, ShootingDay
from deptsync.services.alert_store import AlertStore
from deptsync.services.text_sections import merge_auto_section

logger = logging.getLogger(__name__)

# department -> (call-sheet row label, start marker, end marker)
DEPARTMENT_SECTIONS = {
    "ART": ("Art Department", "[ART_AUTO_BLOCKERS]", "[/ART_AUTO_BLOCKERS]"),
    "GRIP_ELECTRIC": ("Grip & Electric", "[GE_AUTO_BLOCKERS]", "[/GE_AUTO_BLOCKERS]"),
    "POST": ("Post Production", "[POST_AUTO_BLOCKERS]", "[/POST_AUTO_BLOCKERS]"),
}

ADVANCE_NOTES_START = "[AUTO_DEPARTMENT_ALERTS]"
ADVANCE_NOTES_END = "[/AUTO_DEPARTMENT_ALERTS]"


def render_department_section(department, alerts):
    """Body of a department-note section, or None when nothing is open."""
    if not alerts:
        return None
    label = DEPARTMENT_LABELS.get(department, department)
    lines = [f"Open {label} blockers:"]
    lines.extend(f"- [{alert.severity}] {alert.message}" for alert in alerts)
    return "\n".join(lines)


def render_day_section(alerts):
    if not alerts:
        return None
    lines = ["Department readiness alerts:"]
    lines.extend(
        f"- [{alert.department}] ({alert.severity}) {alert.message}" for alert in alerts
    )
    return "\n".join(lines)


class SqlCallSheetContainer:
    """Call-sheet collaborator backed by the ``call_sheets`` tables."""

    def __init__(self, session, default_call_time="07:00"):
        self.session = session
        self.default_call_time = default_call_time

    def get_or_create(self, shooting_day_id):
        sheet = self.session.execute(
            select(CallSheet).where(CallSheet.shooting_day_id == shooting_day_id)
        ).scalar_one_or_none()
        if sheet is None:
            sheet = CallSheet(shooting_day_id=shooting_day_id)
            self.session.add(sheet)
            self.session.flush()
        return sheet

    def get_or_create_department(self, sheet, label):
        row = self.session.execute(
            select(CallSheetDepartment).where(
                CallSheetDepartment.call_sheet_id == sheet.id,
                CallSheetDepartment.department == label,
            )
        ).scalar_one_or_none()
        if row is None:
            day = self.session.get(ShootingDay, sheet.shooting_day_id)
            row = CallSheetDepartment(
                call_sheet_id=sheet.id,
                department=label,
                call_time=(day.general_call if day else None) or self.default_call_time,
            )
            self.session.add(row)
            self.session.flush()
        return row

    def update(self, sheet, advance_notes):
        sheet.advance_notes = advance_notes

    def update_department(self, row, notes):
        row.notes = notes


class CallSheetProjector:
    def __init__(self, session, container=None, store=None):
        self.session = session
        self.container = container or SqlCallSheetContainer(session)
        self.store = store or AlertStore(session)

    def project(self, project_id, shooting_day_id, department):
        """
        Merge the current open alerts into the day's call sheet and commit.

        Raises ProjectionFailedError on any write failure; alerts that are
        already committed are not affected.
        """
        label, start, end = DEPARTMENT_SECTIONS[department]
        try:
            alerts = self.store.list_open(project_id, shooting_day_id, department)
            day_alerts = self.store.list_open(project_id, shooting_day_id)

            sheet = self.container.get_or_create(shooting_day_id)
            row = self.container.get_or_create_department(sheet, label)

            notes = merge_auto_section(
                row.notes, render_department_section(department, alerts), start, end,
            )
            if notes != row.notes:
                self.container.update_department(row, notes)

            advance_notes = merge_auto_section(
                sheet.advance_notes, render_day_section(day_alerts),
                ADVANCE_NOTES_START, ADVANCE_NOTES_END,
            )
            if advance_notes != sheet.advance_notes:
                self.container.update(sheet, advance_notes)

            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise ProjectionFailedError(shooting_day_id, department, exc) from exc

        logger.debug(
            "Projected %d %s alert(s) onto call sheet %s",
            len(alerts), department, sheet.id,
            extra={"project_id": project_id, "shooting_day_id": shooting_day_id,
                   "department": department},
        )
        return {
            "call_sheet_id": sheet.id,
            "department_notes": notes,
            "advance_notes": advance_notes,
            "blocker_count": len(alerts),
        }
