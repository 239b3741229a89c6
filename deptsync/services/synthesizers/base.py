"""
Shared machinery for department alert synthesizers.

A synthesizer reads a department's source records for one shooting day and
returns the alerts that *should* be open right now. It never writes.

Subclasses implement:
    collect(day)                      -> list[DesiredAlert]
    scene_counts(project_id, scene_id) -> (total_tracked, blocker_count)
"""

import logging
from typing import NamedTuple

from sqlalchemy import select

from deptsync.models.alert_metadata import build_metadata
from deptsync.models.alerts import severity_rank
from deptsync.models.production import Scene, ShootingDay, ShootingDayScene
from deptsync.services.helpers.scoped_queries import get_scoped

logger = logging.getLogger(__name__)


class DesiredAlert(NamedTuple):
    source_type: str
    source_id: str
    severity: str
    message: str
    metadata: dict

    @property
    def key(self):
        return (self.source_type, self.source_id)


def sort_by_severity(alerts):
    """Most severe first; alerts of equal severity keep their collection order."""
    return sorted(alerts, key=lambda alert: -severity_rank(alert.severity))


def format_upper_snake(value):
    """``TO_SOURCE`` -> ``To Source``."""
    if not value:
        return ""
    return " ".join(segment[:1] + segment[1:].lower() for segment in value.split("_"))


class AlertSynthesizer:
    department = None

    def __init__(self, session):
        self.session = session

    def synthesize(self, project_id, shooting_day_id):
        """
        Desired alerts for one (project, day), most severe first.

        Raises NotFoundError when the day is not part of the project.
        """
        day = get_scoped(self.session, ShootingDay, shooting_day_id, project_id=project_id)
        alerts = self.collect(day)
        logger.debug(
            "Synthesized %d %s alert(s) for day=%s",
            len(alerts), self.department, day.id,
            extra={"project_id": project_id, "shooting_day_id": day.id,
                   "department": self.department},
        )
        return sort_by_severity(alerts)

    def collect(self, day):
        raise NotImplementedError

    def scene_counts(self, project_id, scene_id):
        raise NotImplementedError

    # ── Helpers ──────────────────────────────────────────────────────────

    def alert(self, source_type, source_id, severity, message, **metadata):
        return DesiredAlert(
            source_type=source_type,
            source_id=str(source_id),
            severity=severity,
            message=message,
            metadata=build_metadata(source_type, **metadata),
        )

    def scheduled_scene_ids(self, day):
        """Scene ids scheduled on ``day``, in id order."""
        rows = self.session.execute(
            select(ShootingDayScene.scene_id)
            .where(ShootingDayScene.shooting_day_id == day.id)
            .order_by(ShootingDayScene.scene_id)
        ).scalars()
        return list(rows)

    def scene_numbers(self, scene_ids):
        """Map scene id -> scene number; unknown ids map to their own id."""
        scene_ids = set(scene_ids)
        if not scene_ids:
            return {}
        rows = self.session.execute(
            select(Scene.id, Scene.scene_number).where(Scene.id.in_(list(scene_ids)))
        ).all()
        numbers = {row.id: row.scene_number for row in rows}
        return {scene_id: numbers.get(scene_id, str(scene_id)) for scene_id in scene_ids}

    def day_numbers(self, day_ids):
        day_ids = {day_id for day_id in day_ids if day_id is not None}
        if not day_ids:
            return {}
        rows = self.session.execute(
            select(ShootingDay.id, ShootingDay.day_number).where(ShootingDay.id.in_(list(day_ids)))
        ).all()
        return {row.id: row.day_number for row in rows}
