"""
Readiness derivation for scenes and shooting days.

Status is a pure function of counts (scene scope) or of the open-alert set
(day scope):

    Scene:  total <= 0 -> NOT_READY
            blockers <= 0 -> READY
            blockers < total -> IN_PROGRESS
            otherwise -> NOT_READY

    Day:    no open alerts -> READY
            any CRITICAL -> NOT_READY
            otherwise -> IN_PROGRESS
"""

from deptsync.models.alerts import DEPARTMENT_LABELS


def compute_scene_readiness(total_tracked: int, blocker_count: int) -> str:
    if total_tracked <= 0:
        return "NOT_READY"
    if blocker_count <= 0:
        return "READY"
    if blocker_count < total_tracked:
        return "IN_PROGRESS"
    return "NOT_READY"


def compute_day_readiness(open_alerts) -> str:
    severities = [alert.severity for alert in open_alerts]
    if not severities:
        return "READY"
    if "CRITICAL" in severities:
        return "NOT_READY"
    return "IN_PROGRESS"


def summarize_scene(department: str, total_tracked: int, blocker_count: int) -> str:
    label = DEPARTMENT_LABELS.get(department, department)
    if total_tracked <= 0:
        return f"No {label} prep records yet."
    if blocker_count <= 0:
        return f"All {label} items are resolved."
    return f"{blocker_count} unresolved {label} item(s) of {total_tracked}."


def summarize_day(department: str, open_alerts) -> str:
    label = DEPARTMENT_LABELS.get(department, department)
    open_alerts = list(open_alerts)
    critical = sum(1 for alert in open_alerts if alert.severity == "CRITICAL")
    if not open_alerts:
        return f"No open {label} blockers."
    if critical:
        return f"{critical} critical {label} blocker(s) open."
    return f"{len(open_alerts)} {label} blocker(s) pending."


class ReadinessCalculator:
    """Recomputes readiness and writes it through a ReadinessStore."""

    def __init__(self, store):
        self.store = store

    def refresh_scene(self, project_id, scene_id, department, total, blockers, acting_user_id):
        return self.store.upsert_scene(
            project_id, scene_id, department,
            status=compute_scene_readiness(total, blockers),
            notes=summarize_scene(department, total, blockers),
            total_tracked=total,
            blocker_count=blockers,
            acting_user_id=acting_user_id,
        )

    def refresh_day(self, project_id, shooting_day_id, department, open_alerts, acting_user_id):
        open_alerts = list(open_alerts)
        return self.store.upsert_day(
            project_id, shooting_day_id, department,
            status=compute_day_readiness(open_alerts),
            notes=summarize_day(department, open_alerts),
            open_alert_count=len(open_alerts),
            critical_count=sum(1 for alert in open_alerts if alert.severity == "CRITICAL"),
            acting_user_id=acting_user_id,
        )
