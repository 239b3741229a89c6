"""
Tests for the Art department rules (deptsync/services/synthesizers/art.py).

Covers:
    - pull item severity / message and its resolution on ON_SET
    - continuity risk alerts
    - work-order day ranges (reversed, open-ended, DONE excluded)
    - location conflicts with the "+N more" label overflow
    - scene readiness counts
"""

import pytest
from sqlalchemy import select

from deptsync.models.art import ArtContinuityEntry, ArtPullItem, ArtPullList, ArtWorkOrder
from deptsync.models.production import CallSheet, CallSheetDepartment, Location
from deptsync.services.synthesizers.art import ArtSynthesizer, normalized_day_range


# ── ORM helpers ───────────────────────────────────────────────────────────────


def _pull_item(session, project, scene, day, **kw):
    pull_list = ArtPullList(project_id=project.id, scene_id=scene.id, status="ACTIVE")
    session.add(pull_list)
    session.flush()
    item = ArtPullItem(
        list_id=pull_list.id,
        name=kw.pop("name", "Red umbrella"),
        qty=kw.pop("qty", 1),
        due_day_id=day.id if day else None,
        status=kw.pop("status", "TO_SOURCE"),
        is_blocking=kw.pop("is_blocking", True),
        **kw,
    )
    session.add(item)
    session.commit()
    return item


def _art_row_notes(session, day):
    return session.execute(
        select(CallSheetDepartment.notes)
        .join(CallSheet, CallSheet.id == CallSheetDepartment.call_sheet_id)
        .where(CallSheet.shooting_day_id == day.id, CallSheetDepartment.department == "Art Department")
    ).scalar_one()


def _work_order(session, project, start=None, end=None, **kw):
    order = ArtWorkOrder(
        project_id=project.id,
        start_day_id=start.id if start else None,
        end_day_id=end.id if end else None,
        type=kw.pop("type", "BUILD"),
        status=kw.pop("status", "PLANNED"),
        **kw,
    )
    session.add(order)
    session.commit()
    return order


def _synthesize(session, project, day):
    return ArtSynthesizer(session).synthesize(project.id, day.id)


# ═════════════════════════════════════════════════════════════════════════════
# Pull items
# ═════════════════════════════════════════════════════════════════════════════


class TestPullItems:
    def test_to_source_item_is_critical(self, session, project, days, scenes):
        item = _pull_item(session, project, scenes[0], days[0], qty=2)

        alerts = _synthesize(session, project, days[0])

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.key == ("ART_PULL_ITEM", str(item.id))
        assert alert.severity == "CRITICAL"
        assert alert.message == "Scene 12: Red umbrella x2 is To Source."
        assert alert.metadata["schema"] == "ART_PULL_ITEM/v1"
        assert alert.metadata["status"] == "TO_SOURCE"

    @pytest.mark.parametrize("status, label", [("PULLED", "Pulled"), ("ON_TRUCK", "On Truck")])
    def test_in_transit_item_is_warning(self, session, project, days, scenes, status, label):
        _pull_item(session, project, scenes[0], days[0], status=status)

        alert = _synthesize(session, project, days[0])[0]

        assert alert.severity == "WARNING"
        assert alert.message == f"Scene 12: Red umbrella x1 is {label}."

    @pytest.mark.parametrize("status", ["ON_SET", "WRAPPED"])
    def test_resolved_statuses_raise_nothing(self, session, project, days, scenes, status):
        _pull_item(session, project, scenes[0], days[0], status=status)
        assert _synthesize(session, project, days[0]) == []

    def test_non_blocking_item_raises_nothing(self, session, project, days, scenes):
        _pull_item(session, project, scenes[0], days[0], is_blocking=False)
        assert _synthesize(session, project, days[0]) == []

    def test_item_due_another_day_raises_nothing(self, session, project, days, scenes):
        _pull_item(session, project, scenes[0], days[1])
        assert _synthesize(session, project, days[0]) == []

    def test_reconcile_then_resolve_on_set(self, session, engine, project, days, scenes):
        item = _pull_item(session, project, scenes[0], days[0])

        first = engine.reconcile_scope(project.id, days[0].id, "ART")
        assert first["open_alert_count"] == 1
        assert first["readiness"] == "NOT_READY"
        assert first["readiness_notes"] == "1 critical Art blocker(s) open."
        assert first["reconcile"]["inserted"] == 1
        assert first["call_sheet_synced"] is True
        assert "[ART_AUTO_BLOCKERS]" in _art_row_notes(session, days[0])

        item.status = "ON_SET"
        session.commit()
        second = engine.reconcile_scope(project.id, days[0].id, "ART")

        assert second["open_alert_count"] == 0
        assert second["readiness"] == "READY"
        assert second["reconcile"]["resolved"] == 1
        assert second["alerts"] == []
        assert second["call_sheet_synced"] is True
        assert _art_row_notes(session, days[0]) is None


# ═════════════════════════════════════════════════════════════════════════════
# Continuity
# ═════════════════════════════════════════════════════════════════════════════


class TestContinuity:
    def _entry(self, session, project, scene, day, **kw):
        entry = ArtContinuityEntry(
            project_id=project.id, scene_id=scene.id, due_day_id=day.id,
            subject_name=kw.pop("subject_name", "Blood on shirt"), **kw,
        )
        session.add(entry)
        session.commit()
        return entry

    def test_high_risk_is_critical(self, session, project, days, scenes):
        self._entry(session, project, scenes[1], days[0], risk_level="HIGH")

        alert = _synthesize(session, project, days[0])[0]

        assert alert.source_type == "ART_CONTINUITY_ENTRY"
        assert alert.severity == "CRITICAL"
        assert alert.message == 'Scene 14: continuity risk unresolved for "Blood on shirt".'

    def test_medium_risk_is_warning(self, session, project, days, scenes):
        self._entry(session, project, scenes[1], days[0], risk_level="MEDIUM")
        assert _synthesize(session, project, days[0])[0].severity == "WARNING"

    def test_resolved_entry_raises_nothing(self, session, project, days, scenes):
        self._entry(session, project, scenes[1], days[0], is_resolved=True)
        assert _synthesize(session, project, days[0]) == []


# ═════════════════════════════════════════════════════════════════════════════
# Work orders
# ═════════════════════════════════════════════════════════════════════════════


class TestWorkOrders:
    def test_normalized_day_range(self):
        assert normalized_day_range(3, 1, 9) == (1, 3)
        assert normalized_day_range(2, None, 9) == (2, 2)
        assert normalized_day_range(None, None, 9) == (9, 9)
        assert normalized_day_range(None, 4, 2) == (2, 4)

    def test_reversed_range_covers_days_between(self, session, project, days):
        order = _work_order(
            session, project, start=days[2], end=days[0], type="SET_DRESS", status="IN_PROGRESS",
        )

        alerts = _synthesize(session, project, days[1])

        assert [a.key for a in alerts] == [("ART_WORK_ORDER", str(order.id))]
        assert alerts[0].severity == "WARNING"
        assert alerts[0].message == (
            "Set Dress work order is In Progress for this shooting window."
        )
        assert _synthesize(session, project, days[3]) == []

    def test_blocked_order_is_critical(self, session, project, days):
        _work_order(session, project, start=days[0], status="BLOCKED")
        alert = _synthesize(session, project, days[0])[0]
        assert alert.severity == "CRITICAL"
        assert alert.message == "Build work order is Blocked for this shooting window."

    def test_open_ended_order_covers_every_day(self, session, project, days):
        _work_order(session, project)
        for day in days:
            assert len(_synthesize(session, project, day)) == 1

    def test_done_order_raises_nothing(self, session, project, days):
        _work_order(session, project, start=days[0], end=days[3], status="DONE")
        assert _synthesize(session, project, days[1]) == []


class TestLocationConflicts:
    def test_two_orders_at_one_location_conflict(self, session, project, days, location):
        _work_order(session, project, start=days[0], end=days[1], location_id=location.id,
                    summary="Build stage")
        _work_order(session, project, start=days[1], end=days[2], location_id=location.id,
                    type="PAINT")

        alerts = _synthesize(session, project, days[1])

        conflict = [a for a in alerts if a.source_type == "ART_LOCATION_CONFLICT"]
        assert len(conflict) == 1
        assert conflict[0].source_id == str(location.id)
        assert conflict[0].severity == "CRITICAL"
        assert conflict[0].message == (
            "Location conflict: Pier 9 Warehouse has 2 overlapping Art work orders "
            "(Build stage, Paint)."
        )
        # Critical conflict sorts ahead of the two work-order warnings
        assert alerts[0].source_type == "ART_LOCATION_CONFLICT"

    def test_no_conflict_when_ranges_do_not_overlap_the_day(self, session, project, days, location):
        _work_order(session, project, start=days[0], end=days[0], location_id=location.id)
        _work_order(session, project, start=days[2], end=days[3], location_id=location.id)

        alerts = _synthesize(session, project, days[0])

        assert [a.source_type for a in alerts] == ["ART_WORK_ORDER"]

    def test_different_locations_do_not_conflict(self, session, project, days, location):
        other = Location(project_id=project.id, name="Stage B")
        session.add(other)
        session.commit()
        _work_order(session, project, start=days[0], location_id=location.id)
        _work_order(session, project, start=days[0], location_id=other.id)

        alerts = _synthesize(session, project, days[0])

        assert all(a.source_type == "ART_WORK_ORDER" for a in alerts)

    def test_label_overflow(self, session, project, days, location):
        for summary in ("A", "B", "C", "D", "E"):
            _work_order(session, project, start=days[0], location_id=location.id, summary=summary)

        conflict = [
            a for a in _synthesize(session, project, days[0])
            if a.source_type == "ART_LOCATION_CONFLICT"
        ][0]

        assert conflict.message == (
            "Location conflict: Pier 9 Warehouse has 5 overlapping Art work orders "
            "(A, B, C, +2 more)."
        )
        assert len(conflict.metadata["work_order_ids"]) == 5


# ═════════════════════════════════════════════════════════════════════════════
# Scene readiness
# ═════════════════════════════════════════════════════════════════════════════


class TestSceneReadiness:
    def test_no_records_is_not_ready(self, engine, project, scenes):
        readiness = engine.refresh_scene_readiness(project.id, scenes[0].id, "ART")
        assert readiness.status == "NOT_READY"
        assert readiness.notes == "No Art prep records yet."

    def test_partial_blockers_in_progress(self, session, engine, project, days, scenes):
        _pull_item(session, project, scenes[0], days[0])
        _pull_item(session, project, scenes[0], days[0], status="ON_SET")
        _pull_item(session, project, scenes[0], days[0], is_blocking=False)

        readiness = engine.refresh_scene_readiness(project.id, scenes[0].id, "ART")

        assert (readiness.total_tracked, readiness.blocker_count) == (3, 1)
        assert readiness.status == "IN_PROGRESS"
        assert readiness.updated_by == "coordinator-1"

    def test_continuity_counts_toward_scene(self, session, engine, project, days, scenes):
        session.add(ArtContinuityEntry(
            project_id=project.id, scene_id=scenes[0].id, subject_name="Torn sleeve",
        ))
        session.commit()

        readiness = engine.refresh_scene_readiness(project.id, scenes[0].id, "ART")

        assert (readiness.total_tracked, readiness.blocker_count) == (1, 1)
        assert readiness.status == "NOT_READY"
