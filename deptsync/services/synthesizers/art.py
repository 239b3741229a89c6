"""
Art department alert rules.

    ART_PULL_ITEM          blocking pull item due that day and not yet on set
    ART_CONTINUITY_ENTRY   unresolved continuity risk due that day
    ART_WORK_ORDER         unfinished work order whose day range covers the day
    ART_LOCATION_CONFLICT  two or more such work orders at one location
"""

from sqlalchemy import func, select

from deptsync.models.art import (
    RESOLVED_PULL_STATUSES,
    ArtContinuityEntry,
    ArtPullItem,
    ArtPullList,
    ArtWorkOrder,
)
from deptsync.models.production import Location, Scene
from deptsync.services.synthesizers.base import AlertSynthesizer, format_upper_snake

# Work-order labels listed in a location-conflict message before "+N more"
MAX_CONFLICT_LABELS = 3


def work_order_label(order):
    return (order.summary or "").strip() or format_upper_snake(order.type)


def normalized_day_range(start_number, end_number, current_number):
    """
    Inclusive (low, high) day-number range of a work order.

    A missing start falls back to the current day and a missing end to the
    start, so an open-ended order always covers the day it is evaluated on.
    """
    start = current_number if start_number is None else start_number
    end = start if end_number is None else end_number
    return min(start, end), max(start, end)


class ArtSynthesizer(AlertSynthesizer):
    department = "ART"

    def collect(self, day):
        alerts = []
        alerts.extend(self._pull_item_alerts(day))
        alerts.extend(self._continuity_alerts(day))
        alerts.extend(self._work_order_alerts(day))
        return alerts

    # ── Pull items ───────────────────────────────────────────────────────

    def _pull_item_alerts(self, day):
        rows = self.session.execute(
            select(ArtPullItem, ArtPullList.scene_id, Scene.scene_number)
            .join(ArtPullList, ArtPullItem.list_id == ArtPullList.id)
            .outerjoin(Scene, ArtPullList.scene_id == Scene.id)
            .where(
                ArtPullList.project_id == day.project_id,
                ArtPullItem.due_day_id == day.id,
                ArtPullItem.is_blocking.is_(True),
                ArtPullItem.status.not_in(sorted(RESOLVED_PULL_STATUSES)),
            )
            .order_by(ArtPullItem.id)
        ).all()

        alerts = []
        for item, scene_id, scene_number in rows:
            severity = "CRITICAL" if item.status == "TO_SOURCE" else "WARNING"
            alerts.append(self.alert(
                "ART_PULL_ITEM", item.id, severity,
                f"Scene {scene_number or scene_id}: {item.name} x{item.qty} "
                f"is {format_upper_snake(item.status)}.",
                list_id=item.list_id, scene_id=scene_id, status=item.status,
            ))
        return alerts

    # ── Continuity ───────────────────────────────────────────────────────

    def _continuity_alerts(self, day):
        rows = self.session.execute(
            select(ArtContinuityEntry, Scene.scene_number)
            .outerjoin(Scene, ArtContinuityEntry.scene_id == Scene.id)
            .where(
                ArtContinuityEntry.project_id == day.project_id,
                ArtContinuityEntry.due_day_id == day.id,
                ArtContinuityEntry.is_resolved.is_(False),
            )
            .order_by(ArtContinuityEntry.id)
        ).all()

        alerts = []
        for entry, scene_number in rows:
            severity = "CRITICAL" if entry.risk_level == "HIGH" else "WARNING"
            alerts.append(self.alert(
                "ART_CONTINUITY_ENTRY", entry.id, severity,
                f"Scene {scene_number or entry.scene_id}: continuity risk unresolved "
                f"for \"{entry.subject_name}\".",
                scene_id=entry.scene_id, risk_level=entry.risk_level,
            ))
        return alerts

    # ── Work orders and location conflicts ───────────────────────────────

    def _work_order_alerts(self, day):
        orders = list(self.session.execute(
            select(ArtWorkOrder)
            .where(ArtWorkOrder.project_id == day.project_id, ArtWorkOrder.status != "DONE")
            .order_by(ArtWorkOrder.id)
        ).scalars())

        day_numbers = self.day_numbers(
            [o.start_day_id for o in orders] + [o.end_day_id for o in orders]
        )

        alerts = []
        by_location = {}
        for order in orders:
            low, high = normalized_day_range(
                day_numbers.get(order.start_day_id),
                day_numbers.get(order.end_day_id),
                day.day_number,
            )
            if not low <= day.day_number <= high:
                continue

            severity = "CRITICAL" if order.status == "BLOCKED" else "WARNING"
            alerts.append(self.alert(
                "ART_WORK_ORDER", order.id, severity,
                f"{format_upper_snake(order.type)} work order is "
                f"{format_upper_snake(order.status)} for this shooting window.",
                work_order_type=order.type,
                work_order_status=order.status,
                location_id=order.location_id,
            ))
            if order.location_id is not None:
                by_location.setdefault(order.location_id, []).append(order)

        alerts.extend(self._location_conflicts(by_location))
        return alerts

    def _location_conflicts(self, by_location):
        conflicted = {loc: orders for loc, orders in by_location.items() if len(orders) > 1}
        if not conflicted:
            return []

        names = dict(self.session.execute(
            select(Location.id, Location.name).where(Location.id.in_(list(conflicted)))
        ).all())

        alerts = []
        for location_id in sorted(conflicted):
            orders = conflicted[location_id]
            labels = [work_order_label(o) for o in orders[:MAX_CONFLICT_LABELS]]
            extra = len(orders) - len(labels)
            summary = ", ".join(labels)
            if extra > 0:
                summary += f", +{extra} more"
            location_label = names.get(location_id) or str(location_id)
            alerts.append(self.alert(
                "ART_LOCATION_CONFLICT", location_id, "CRITICAL",
                f"Location conflict: {location_label} has {len(orders)} overlapping "
                f"Art work orders ({summary}).",
                location_id=location_id,
                work_order_ids=[o.id for o in orders],
            ))
        return alerts

    # ── Scene readiness ──────────────────────────────────────────────────

    def scene_counts(self, project_id, scene_id):
        list_ids = select(ArtPullList.id).where(
            ArtPullList.project_id == project_id, ArtPullList.scene_id == scene_id,
        )
        pull_total = self.session.execute(
            select(func.count(ArtPullItem.id)).where(ArtPullItem.list_id.in_(list_ids))
        ).scalar() or 0
        pull_blockers = self.session.execute(
            select(func.count(ArtPullItem.id)).where(
                ArtPullItem.list_id.in_(list_ids),
                ArtPullItem.is_blocking.is_(True),
                ArtPullItem.status.not_in(sorted(RESOLVED_PULL_STATUSES)),
            )
        ).scalar() or 0

        continuity_total = self.session.execute(
            select(func.count(ArtContinuityEntry.id)).where(
                ArtContinuityEntry.project_id == project_id,
                ArtContinuityEntry.scene_id == scene_id,
            )
        ).scalar() or 0
        continuity_open = self.session.execute(
            select(func.count(ArtContinuityEntry.id)).where(
                ArtContinuityEntry.project_id == project_id,
                ArtContinuityEntry.scene_id == scene_id,
                ArtContinuityEntry.is_resolved.is_(False),
            )
        ).scalar() or 0

        return pull_total + continuity_total, pull_blockers + continuity_open
