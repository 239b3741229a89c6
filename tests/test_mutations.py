"""
Tests — department mutation services (art / grip & electric / post).

Each mutation commits its record, mirrors cost into the budget where the
source costs money, and re-runs the engine for every affected day and
scene scope. These tests drive the services end to end against SQLite.

Covers:
    - pull lists / items incl. list status, due-day moves and budget sync
    - continuity entries and work orders (day fan-out, location conflicts)
    - lighting plans / needs, rigging tasks, power plans, safety checklist
    - ingest batches, roll recording, expected-roll reconcile, VFX shots
    - validation, project scoping and the acting-user requirement
"""

import pytest
from sqlalchemy import select

import deptsync.services.art_service as art
import deptsync.services.grip_electric_service as ge
import deptsync.services.post_service as post
from deptsync.core.exceptions import NotFoundError, UnauthenticatedError, ValidationError
from deptsync.models.art import ArtPullItem
from deptsync.models.budget import Budget, BudgetCategory, BudgetLineItem, DepartmentBudgetLink
from deptsync.models.production import Location, Project
from deptsync.services.engine import DependencyEngine


def _day_result(results, day):
    return next(r for r in results if r.get("shooting_day_id") == day.id and "readiness" in r)


def _source_types(result):
    return [alert["source_type"] for alert in result["alerts"]]


def _line_item(session, source_type, source_id):
    link = session.execute(
        select(DepartmentBudgetLink).where(
            DepartmentBudgetLink.source_type == source_type,
            DepartmentBudgetLink.source_id == str(source_id),
        )
    ).scalar_one_or_none()
    if link is None:
        return None
    line_item = session.get(BudgetLineItem, link.line_item_id)
    session.refresh(line_item)
    return line_item


@pytest.fixture()
def budget(session, project):
    b = Budget(project_id=project.id, status="ACTIVE")
    session.add(b)
    session.flush()
    session.add_all([
        BudgetCategory(budget_id=b.id, name="Props"),
        BudgetCategory(budget_id=b.id, name="Lighting"),
    ])
    session.commit()
    return b


# ═════════════════════════════════════════════════════════════════════════════
# Art
# ═════════════════════════════════════════════════════════════════════════════


class TestPullItems:
    def _list(self, engine, project, scene):
        return art.create_pull_list(engine, project.id, {"scene_id": scene.id})["pull_list"]

    def test_create_pull_list_starts_as_draft(self, engine, project, scenes):
        result = art.create_pull_list(engine, project.id, {"scene_id": scenes[0].id})

        assert result["pull_list"]["status"] == "DRAFT"
        assert [r["scene_id"] for r in result["results"]] == [scenes[0].id]
        assert result["results"][0]["status"] == "NOT_READY"

    def test_create_item_reconciles_day_and_scene(self, session, engine, project, days, scenes, budget):
        pull_list = self._list(engine, project, scenes[0])

        result = art.create_pull_item(engine, project.id, pull_list["id"], {
            "name": "Chandelier", "qty": 3, "source": "rental", "due_day_id": days[0].id,
            "is_blocking": True, "planned_unit_cost": "40.00",
        })

        item = result["item"]
        assert item["status"] == "TO_SOURCE"
        assert item["planned_amount"] == 120.0
        day_result, scene_result = result["results"]
        assert day_result["readiness"] == "NOT_READY"
        assert _source_types(day_result) == ["ART_PULL_ITEM"]
        assert scene_result["blocker_count"] == 1

        line_item = _line_item(session, "ART_PULL_ITEM", item["id"])
        assert line_item.description == "Art pull (rental): Chandelier x3"
        assert float(line_item.planned_amount) == 120.0

    def test_stock_item_is_not_synced_to_budget(self, session, engine, project, days, scenes, budget):
        pull_list = self._list(engine, project, scenes[0])
        result = art.create_pull_item(engine, project.id, pull_list["id"], {
            "name": "Umbrella", "planned_unit_cost": 10,
        })
        assert _line_item(session, "ART_PULL_ITEM", result["item"]["id"]) is None

    def test_missing_budget_does_not_fail_mutation(self, session, engine, project, scenes):
        pull_list = self._list(engine, project, scenes[0])
        result = art.create_pull_item(engine, project.id, pull_list["id"], {
            "name": "Chandelier", "source": "PURCHASE", "planned_unit_cost": 99,
        })
        assert result["item"]["id"] is not None
        assert session.execute(select(DepartmentBudgetLink)).first() is None

    def test_list_status_follows_items(self, session, engine, project, days, scenes):
        pull_list = self._list(engine, project, scenes[0])
        item = art.create_pull_item(engine, project.id, pull_list["id"], {
            "name": "Vase", "due_day_id": days[0].id, "is_blocking": True,
        })["item"]

        result = art.update_pull_item(engine, project.id, item["id"], {"status": "wrapped"})

        assert result["item"]["status"] == "WRAPPED"
        assert session.get(ArtPullItem, item["id"]).pull_list.status == "WRAPPED"
        assert _day_result(result["results"], days[0])["readiness"] == "READY"

    def test_moving_due_day_reconciles_both_days(self, engine, project, days, scenes):
        pull_list = self._list(engine, project, scenes[0])
        item = art.create_pull_item(engine, project.id, pull_list["id"], {
            "name": "Vase", "due_day_id": days[0].id, "is_blocking": True,
        })["item"]

        result = art.update_pull_item(engine, project.id, item["id"], {"due_day_id": days[1].id})

        old_day = _day_result(result["results"], days[0])
        new_day = _day_result(result["results"], days[1])
        assert old_day["reconcile"]["resolved"] == 1
        assert old_day["readiness"] == "READY"
        assert new_day["reconcile"]["inserted"] == 1
        assert new_day["readiness"] == "NOT_READY"

    @pytest.mark.parametrize("payload", [
        {"name": ""},
        {"name": "Vase", "qty": 0},
        {"name": "Vase", "qty": "many"},
        {"name": "Vase", "source": "STOLEN"},
        {"name": "Vase", "planned_unit_cost": -1},
    ])
    def test_invalid_item_is_rejected(self, engine, project, scenes, payload):
        pull_list = self._list(engine, project, scenes[0])
        with pytest.raises(ValidationError):
            art.create_pull_item(engine, project.id, pull_list["id"], payload)

    def test_item_of_other_project_is_not_found(self, session, engine, project, scenes):
        pull_list = self._list(engine, project, scenes[0])
        item = art.create_pull_item(engine, project.id, pull_list["id"], {"name": "Vase"})["item"]
        other = Project(name="Other Show")
        session.add(other)
        session.commit()

        with pytest.raises(NotFoundError):
            art.update_pull_item(engine, other.id, item["id"], {"status": "PULLED"})

    def test_requires_acting_user(self, session, project, scenes):
        anonymous = DependencyEngine.from_app(session, lambda: None)
        with pytest.raises(UnauthenticatedError):
            art.create_pull_list(anonymous, project.id, {"scene_id": scenes[0].id})


class TestContinuityAndWorkOrders:
    def test_continuity_lifecycle(self, engine, project, days, scenes):
        entry = art.create_continuity_entry(engine, project.id, {
            "scene_id": scenes[1].id, "due_day_id": days[0].id,
            "subject_name": "Blood on shirt", "risk_level": "high",
        })

        day_result = _day_result(entry["results"], days[0])
        assert day_result["alerts"][0]["severity"] == "CRITICAL"

        resolved = art.set_continuity_resolved(engine, project.id, entry["entry"]["id"])

        assert resolved["entry"]["is_resolved"] is True
        assert resolved["entry"]["resolved_by"] == "coordinator-1"
        assert _day_result(resolved["results"], days[0])["readiness"] == "READY"

    def test_work_order_fans_out_over_its_range(self, engine, project, days):
        result = art.create_work_order(engine, project.id, {
            "start_day_id": days[2].id, "end_day_id": days[1].id, "type": "paint",
        })

        assert [r["shooting_day_id"] for r in result["results"]] == [days[1].id, days[2].id]
        assert all(r["open_alert_count"] == 1 for r in result["results"])

    def test_open_ended_work_order_touches_every_day(self, engine, project, days):
        result = art.create_work_order(engine, project.id, {"type": "STRIKE"})
        assert len(result["results"]) == len(days)

    def test_location_conflict_and_resolution(self, engine, project, days, location):
        art.create_work_order(engine, project.id, {
            "location_id": location.id, "start_day_id": days[0].id, "summary": "Build stage",
        })
        second = art.create_work_order(engine, project.id, {
            "location_id": location.id, "start_day_id": days[0].id, "type": "PAINT",
        })

        day_result = second["results"][0]
        assert day_result["alerts"][0]["source_type"] == "ART_LOCATION_CONFLICT"
        assert day_result["readiness"] == "NOT_READY"

        done = art.update_work_order(engine, project.id, second["work_order"]["id"], {"status": "DONE"})

        day_result = done["results"][0]
        assert _source_types(day_result) == ["ART_WORK_ORDER"]
        assert day_result["reconcile"]["resolved"] == 2

    def test_location_of_other_project_is_not_found(self, session, engine, project, days):
        other = Project(name="Other Show")
        session.add(other)
        session.flush()
        foreign = Location(project_id=other.id, name="Backlot")
        session.add(foreign)
        session.commit()
        with pytest.raises(NotFoundError):
            art.create_work_order(engine, project.id, {"location_id": foreign.id})


# ═════════════════════════════════════════════════════════════════════════════
# Grip & Electric
# ═════════════════════════════════════════════════════════════════════════════


class TestLightingAndRigging:
    def test_lighting_need_lifecycle(self, session, engine, project, days, scenes, budget):
        plan = ge.create_lighting_plan(engine, project.id, {
            "scene_id": scenes[0].id, "shooting_day_id": days[0].id,
        })["plan"]

        added = ge.add_lighting_need(engine, project.id, plan["id"], {
            "fixture_type": "SkyPanel S60", "qty": 2, "source": "RENTAL",
            "status": "UNAVAILABLE", "estimated_rate": 75,
        })

        day_result = _day_result(added["results"], days[0])
        lighting = [a for a in day_result["alerts"] if a["source_type"] == "LIGHTING_PLAN"][0]
        assert lighting["severity"] == "CRITICAL"
        line_item = _line_item(session, "GE_LIGHTING_NEED", added["need"]["id"])
        assert line_item.description == "Lighting (rental): SkyPanel S60 x2"
        assert float(line_item.planned_amount) == 150.0

        updated = ge.update_lighting_need(engine, project.id, added["need"]["id"], {"status": "READY"})

        day_result = _day_result(updated["results"], days[0])
        assert "LIGHTING_PLAN" not in _source_types(day_result)

    def test_publishing_plan_updates_scene_readiness(self, engine, project, scenes):
        plan = ge.create_lighting_plan(engine, project.id, {"scene_id": scenes[0].id})

        assert plan["results"][0]["status"] == "NOT_READY"

        published = ge.update_lighting_plan_status(engine, project.id, plan["plan"]["id"], "published")

        assert published["plan"]["status"] == "PUBLISHED"
        assert published["results"][0]["status"] == "READY"

    def test_rigging_task_requires_scenes(self, engine, project):
        with pytest.raises(ValidationError):
            ge.create_rigging_task(engine, project.id, {"scene_ids": []})

    def test_rigging_task_reconciles_scheduled_days(self, engine, project, days, scenes, schedule):
        schedule(days[0], scenes[0])
        schedule(days[2], scenes[0])

        created = ge.create_rigging_task(engine, project.id, {
            "scene_ids": [scenes[0].id, scenes[0].id], "status": "BLOCKED",
        })

        assert created["task"]["scene_ids"] == [scenes[0].id]
        for day in (days[0], days[2]):
            assert "RIGGING_TASK" in _source_types(_day_result(created["results"], day))

        done = ge.update_rigging_task_status(engine, project.id, created["task"]["id"], "COMPLETE")

        for day in (days[0], days[2]):
            assert "RIGGING_TASK" not in _source_types(_day_result(done["results"], day))


class TestPowerAndSafety:
    def test_power_plan_overload_then_fix(self, session, engine, project, days, budget):
        saved = ge.upsert_power_plan(engine, project.id, days[0].id, {
            "generator": "1400A tow plant", "capacity_amps": 100,
        })
        plan_id = saved["power_plan"]["id"]
        assert saved["results"][0]["readiness"] == "READY"
        assert float(_line_item(session, "GE_POWER_PLAN", plan_id).planned_amount) == 1000.0

        ge.add_power_circuit(engine, project.id, plan_id, {"run_label": "Run A", "load_amps": 60})
        overloaded = ge.add_power_circuit(
            engine, project.id, plan_id, {"run_label": "Run B", "load_amps": 50},
        )

        alert = overloaded["results"][0]["alerts"][0]
        assert alert["severity"] == "CRITICAL"
        assert "110.0A exceeds capacity 100.0A" in alert["message"]

        fixed = ge.upsert_power_plan(engine, project.id, days[0].id, {"capacity_amps": 200})

        assert fixed["power_plan"]["id"] == plan_id
        assert len(fixed["power_plan"]["circuits"]) == 2
        assert fixed["results"][0]["readiness"] == "READY"
        assert float(_line_item(session, "GE_POWER_PLAN", plan_id).planned_amount) == 2000.0

    def test_circuit_requires_label(self, engine, project, days):
        plan = ge.upsert_power_plan(engine, project.id, days[0].id, {})["power_plan"]
        with pytest.raises(ValidationError):
            ge.add_power_circuit(engine, project.id, plan["id"], {"load_amps": 10})

    def test_safety_checklist(self, engine, project, days):
        ge.upsert_power_plan(engine, project.id, days[0].id, {"capacity_amps": 100})

        added = ge.add_safety_item(engine, project.id, days[0].id, {"item": "Tie-in inspected"})

        assert added["item"]["status"] == "REQUIRED"
        assert added["results"][0]["readiness"] == "IN_PROGRESS"

        done = ge.update_safety_item_status(engine, project.id, added["item"]["id"], "complete")

        assert done["item"]["completed_by"] == "coordinator-1"
        assert done["results"][0]["readiness"] == "READY"

    def test_failed_check_blocks_day(self, engine, project, days):
        ge.upsert_power_plan(engine, project.id, days[0].id, {"capacity_amps": 100})
        result = ge.add_safety_item(engine, project.id, days[0].id, {
            "item": "GFCI test", "status": "FAILED",
        })
        assert result["results"][0]["readiness"] == "NOT_READY"


# ═════════════════════════════════════════════════════════════════════════════
# Post
# ═════════════════════════════════════════════════════════════════════════════


class TestIngest:
    def test_batch_lifecycle(self, engine, project, days):
        created = post.ensure_ingest_batch(engine, project.id, days[0].id, expected_roll_count=3)
        batch = created["batch"]

        assert batch["status"] == "QUEUED"
        assert _source_types(created["results"][0]) == ["INGEST_PENDING"]

        recorded = post.record_ingest_roll(engine, project.id, batch["id"], {
            "roll": " a001 ", "qc_status": "passed",
        })
        assert recorded["item"]["roll"] == "A001"
        assert recorded["summary"]["received_roll_count"] == 1
        assert recorded["summary"]["status"] == "IN_PROGRESS"

        failed = post.record_ingest_roll(engine, project.id, batch["id"], {
            "roll": "A001", "qc_status": "FAILED", "issue": "Corrupt clip",
        })
        assert failed["item"]["id"] == recorded["item"]["id"]
        assert failed["summary"]["status"] == "BLOCKED"
        assert _source_types(failed["results"][0]) == ["INGEST_QC"]

    def test_ensure_is_idempotent(self, engine, project, days):
        first = post.ensure_ingest_batch(engine, project.id, days[0].id, expected_roll_count=2)
        second = post.ensure_ingest_batch(engine, project.id, days[0].id)

        assert second["batch"]["id"] == first["batch"]["id"]
        assert second["batch"]["expected_roll_count"] == 2

    def test_reconcile_adds_missing_placeholders(self, engine, project, days):
        batch = post.ensure_ingest_batch(engine, project.id, days[0].id)["batch"]
        post.record_ingest_roll(engine, project.id, batch["id"], {"roll": "A001", "qc_status": "PASSED"})

        result = post.reconcile_ingest_batch(
            engine, project.id, batch["id"], ["a001", "A002", "a003", "A002"],
        )

        assert result["missing_rolls"] == ["A002", "A003"]
        summary = result["summary"]
        assert summary["expected_roll_count"] == 3
        assert summary["received_roll_count"] == 3
        assert summary["missing_roll_count"] == 2
        assert summary["status"] == "BLOCKED"
        alert = result["results"][0]["alerts"][0]
        assert alert["message"] == "Post ingest blocked: 2 missing rolls, 0 failed QC rolls."

    def test_reconcile_requires_expected_rolls(self, engine, project, days):
        batch = post.ensure_ingest_batch(engine, project.id, days[0].id)["batch"]
        with pytest.raises(ValidationError):
            post.reconcile_ingest_batch(engine, project.id, batch["id"], [" ", ""])

    def test_roll_label_is_required(self, engine, project, days):
        batch = post.ensure_ingest_batch(engine, project.id, days[0].id)["batch"]
        with pytest.raises(ValidationError):
            post.record_ingest_roll(engine, project.id, batch["id"], {"roll": "  "})


class TestVfxShots:
    def test_shot_lifecycle(self, engine, project, days, scenes, schedule):
        schedule(days[0], scenes[0])
        schedule(days[2], scenes[0])

        created = post.create_vfx_shot(engine, project.id, {
            "scene_id": scenes[0].id, "shot_code": "NH_012_010",
        })

        assert len(created["results"]) == 3
        for day in (days[0], days[2]):
            assert _source_types(_day_result(created["results"], day)) == ["VFX_SHOT"]
        assert created["results"][-1]["status"] == "NOT_READY"

        final = post.update_vfx_shot_status(engine, project.id, created["shot"]["id"], "final")

        assert _day_result(final["results"], days[0])["readiness"] == "READY"
        assert final["results"][-1]["status"] == "READY"

    def test_shot_without_scene_has_no_scopes(self, engine, project):
        created = post.create_vfx_shot(engine, project.id, {"shot_code": "NH_000_001"})
        assert created["results"] == []
