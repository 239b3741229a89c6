"""
Grip & Electric alert rules.

    LIGHTING_PLAN   unresolved lighting needs on the day's plans (one per day)
    RIGGING_TASK    unfinished rigging for a scene scheduled that day
    POWER_SAFETY    missing power plan, overload, or open safety checks (one per day)
"""

from sqlalchemy import func, select

from deptsync.models.grip_electric import (
    UNRESOLVED_NEED_STATUSES,
    LightingNeed,
    LightingPlan,
    PowerCircuit,
    PowerPlan,
    RiggingTask,
    RiggingTaskScene,
    SafetyChecklistItem,
)
from deptsync.services.synthesizers.base import AlertSynthesizer


class GripElectricSynthesizer(AlertSynthesizer):
    department = "GRIP_ELECTRIC"

    def collect(self, day):
        alerts = [self._lighting_alert(day)]
        alerts.extend(self._rigging_alerts(day))
        alerts.append(self._power_safety_alert(day))
        return [alert for alert in alerts if alert is not None]

    def _lighting_alert(self, day):
        plan_ids = list(self.session.execute(
            select(LightingPlan.id)
            .where(LightingPlan.project_id == day.project_id, LightingPlan.shooting_day_id == day.id)
            .order_by(LightingPlan.id)
        ).scalars())
        if not plan_ids:
            return None

        statuses = list(self.session.execute(
            select(LightingNeed.status).where(
                LightingNeed.plan_id.in_(plan_ids),
                LightingNeed.status.in_(sorted(UNRESOLVED_NEED_STATUSES)),
            )
        ).scalars())
        if not statuses:
            return None

        unavailable = statuses.count("UNAVAILABLE")
        message = f"{len(statuses)} lighting need(s) are unresolved for this day."
        if unavailable:
            message = (
                f"{len(statuses)} lighting need(s) are unresolved for this day "
                f"({unavailable} unavailable)."
            )
        return self.alert(
            "LIGHTING_PLAN", day.id, "CRITICAL" if unavailable else "WARNING", message,
            plan_ids=plan_ids,
            unresolved_count=len(statuses),
            unavailable_count=unavailable,
        )

    def _rigging_alerts(self, day):
        scene_ids = self.scheduled_scene_ids(day)
        if not scene_ids:
            return []

        rows = self.session.execute(
            select(RiggingTask, RiggingTaskScene.scene_id)
            .join(RiggingTaskScene, RiggingTaskScene.task_id == RiggingTask.id)
            .where(
                RiggingTask.project_id == day.project_id,
                RiggingTask.status != "COMPLETE",
                RiggingTaskScene.scene_id.in_(scene_ids),
            )
            .order_by(RiggingTask.id, RiggingTaskScene.scene_id)
        ).all()

        tasks = {}
        for task, scene_id in rows:
            _task, linked = tasks.setdefault(task.id, (task, []))
            if scene_id not in linked:
                linked.append(scene_id)

        alerts = []
        for task, linked in tasks.values():
            if task.status == "BLOCKED":
                severity = "CRITICAL"
                message = "Rigging task is blocked for scenes on this day."
            else:
                severity = "WARNING"
                message = "Rigging dependency is incomplete for scenes on this day."
            alerts.append(self.alert(
                "RIGGING_TASK", f"{task.id}:{day.id}", severity, message,
                task_id=task.id, task_status=task.status, scene_ids=linked,
            ))
        return alerts

    def _power_safety_alert(self, day):
        plan = self.session.execute(
            select(PowerPlan).where(
                PowerPlan.project_id == day.project_id,
                PowerPlan.shooting_day_id == day.id,
            )
        ).scalar_one_or_none()
        if plan is None:
            return self.alert(
                "POWER_SAFETY", day.id, "WARNING",
                "No power plan exists for this shooting day.",
                has_plan=False,
            )

        total_load = float(self.session.execute(
            select(func.coalesce(func.sum(PowerCircuit.load_amps), 0))
            .where(PowerCircuit.power_plan_id == plan.id)
        ).scalar() or 0)
        capacity = float(plan.capacity_amps or 0)

        checks = list(self.session.execute(
            select(SafetyChecklistItem.status).where(
                SafetyChecklistItem.project_id == day.project_id,
                SafetyChecklistItem.shooting_day_id == day.id,
                SafetyChecklistItem.department == self.department,
            )
        ).scalars())
        failed = checks.count("FAILED")
        incomplete = sum(1 for status in checks if status != "COMPLETE")

        overloaded = total_load > capacity
        if not (overloaded or incomplete):
            return None

        reasons = []
        if overloaded:
            reasons.append(f"power load {total_load:.1f}A exceeds capacity {capacity:.1f}A")
        if failed:
            reasons.append("one or more safety checks failed")
        elif incomplete:
            reasons.append("safety checklist is incomplete")

        return self.alert(
            "POWER_SAFETY", day.id, "CRITICAL" if overloaded or failed else "WARNING",
            f"Power/safety warning: {', '.join(reasons)}.",
            has_plan=True,
            total_load=total_load,
            capacity=capacity,
            failed_checks=failed,
            incomplete_checks=incomplete,
        )

    def scene_counts(self, project_id, scene_id):
        plans = list(self.session.execute(
            select(LightingPlan.id, LightingPlan.status).where(
                LightingPlan.project_id == project_id, LightingPlan.scene_id == scene_id,
            )
        ).all())
        plan_ids = [row.id for row in plans]
        unpublished = sum(1 for row in plans if row.status != "PUBLISHED")

        need_statuses = []
        if plan_ids:
            need_statuses = list(self.session.execute(
                select(LightingNeed.status).where(LightingNeed.plan_id.in_(plan_ids))
            ).scalars())
        unresolved = sum(1 for status in need_statuses if status in UNRESOLVED_NEED_STATUSES)

        return len(plans) + len(need_statuses), unpublished + unresolved
