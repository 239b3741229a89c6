"""
Grip & Electric — mutation services.

Lighting plans and needs, rigging tasks, power plans with their circuits
and the G&E safety checklist. Each mutation commits, mirrors rental or
purchase cost into the budget where there is one, and re-runs the engine
for the affected day and scene scopes.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from deptsync.core.exceptions import NotFoundError, ValidationError
from deptsync.models.grip_electric import (
    CIRCUIT_STATUSES,
    COST_BEARING_NEED_SOURCES,
    LIGHTING_PLAN_STATUSES,
    NEED_SOURCES,
    NEED_STATUSES,
    POWER_COST_PER_AMP,
    POWER_PLAN_STATUSES,
    RIGGING_STATUSES,
    SAFETY_STATUSES,
    LightingNeed,
    LightingPlan,
    PowerCircuit,
    PowerPlan,
    RiggingTask,
    RiggingTaskScene,
    SafetyChecklistItem,
)
from deptsync.models.production import Location, Scene, ShootingDay
from deptsync.services.engine import scheduled_day_ids, scopes_for
from deptsync.services.helpers.scoped_queries import get_scoped
from deptsync.services.helpers.validation import (
    non_negative_amount,
    positive_int,
    require_choice,
    require_text,
)

logger = logging.getLogger(__name__)

DEPARTMENT = "GRIP_ELECTRIC"


def _non_negative_float(value, field):
    return float(non_negative_amount(value, field))


def _day_id(session, project_id, value):
    if value is None:
        return None
    return get_scoped(session, ShootingDay, value, project_id=project_id).id


def _location_id(session, project_id, value):
    if value is None:
        return None
    return get_scoped(session, Location, value, project_id=project_id).id


def _get_need(session, project_id, need_id):
    need = session.get(LightingNeed, need_id)
    if need is None or need.plan.project_id != project_id:
        raise NotFoundError(resource="LightingNeed", resource_id=need_id, project_id=project_id)
    return need


def _sync_need_cost(engine, project_id, need):
    if need.source not in COST_BEARING_NEED_SOURCES:
        return None
    return engine.budget.maybe_sync_to_budget(
        project_id, DEPARTMENT, "GE_LIGHTING_NEED", need.id, need.planned_amount,
        f"Lighting ({need.source.lower()}): {need.fixture_type} x{need.qty}",
    )


def _plan_scopes(project_id, plan):
    return scopes_for(project_id, DEPARTMENT, [plan.shooting_day_id], [plan.scene_id])


# ═════════════════════════════════════════════════════════════════════════════
# Lighting
# ═════════════════════════════════════════════════════════════════════════════


def create_lighting_plan(engine, project_id, data):
    engine.require_user()
    session = engine.session
    scene = get_scoped(session, Scene, data.get("scene_id"), project_id=project_id)

    plan = LightingPlan(
        project_id=project_id,
        scene_id=scene.id,
        shooting_day_id=_day_id(session, project_id, data.get("shooting_day_id")),
        status=require_choice(data.get("status", "DRAFT"), LIGHTING_PLAN_STATUSES, "status"),
        notes=data.get("notes"),
    )
    if plan.status == "PUBLISHED":
        plan.published_at = datetime.now(timezone.utc)
    session.add(plan)
    session.commit()
    logger.info("LightingPlan created id=%s scene_id=%s", plan.id, scene.id)

    results = engine.reconcile_and_project(_plan_scopes(project_id, plan))
    return {"plan": plan.to_dict(), "results": results}


def update_lighting_plan_status(engine, project_id, plan_id, status):
    engine.require_user()
    session = engine.session
    plan = get_scoped(session, LightingPlan, plan_id, project_id=project_id)

    plan.status = require_choice(status, LIGHTING_PLAN_STATUSES, "status")
    plan.published_at = datetime.now(timezone.utc) if plan.status == "PUBLISHED" else None
    session.commit()
    logger.info("LightingPlan id=%s status=%s", plan.id, plan.status)

    results = engine.reconcile_and_project(_plan_scopes(project_id, plan))
    return {"plan": plan.to_dict(), "results": results}


def add_lighting_need(engine, project_id, plan_id, data):
    engine.require_user()
    session = engine.session
    plan = get_scoped(session, LightingPlan, plan_id, project_id=project_id)

    need = LightingNeed(
        plan_id=plan.id,
        fixture_type=require_text(data, "fixture_type", max_length=100),
        qty=positive_int(data.get("qty"), "qty"),
        power_draw=_non_negative_float(data.get("power_draw"), "power_draw"),
        source=require_choice(data.get("source", "OWNED"), NEED_SOURCES, "source"),
        status=require_choice(data.get("status", "PENDING"), NEED_STATUSES, "status"),
        estimated_rate=non_negative_amount(data.get("estimated_rate"), "estimated_rate"),
        notes=data.get("notes"),
    )
    session.add(need)
    session.commit()
    logger.info("LightingNeed created id=%s plan_id=%s", need.id, plan.id)

    _sync_need_cost(engine, project_id, need)
    results = engine.reconcile_and_project(_plan_scopes(project_id, plan))
    return {"need": need.to_dict(), "results": results}


def update_lighting_need(engine, project_id, need_id, data):
    engine.require_user()
    session = engine.session
    need = _get_need(session, project_id, need_id)

    if "fixture_type" in data:
        need.fixture_type = require_text(data, "fixture_type", max_length=100)
    if "qty" in data:
        need.qty = positive_int(data["qty"], "qty")
    if "power_draw" in data:
        need.power_draw = _non_negative_float(data["power_draw"], "power_draw")
    if "source" in data:
        need.source = require_choice(data["source"], NEED_SOURCES, "source")
    if "status" in data:
        need.status = require_choice(data["status"], NEED_STATUSES, "status")
    if "estimated_rate" in data:
        need.estimated_rate = non_negative_amount(data["estimated_rate"], "estimated_rate")
    if "notes" in data:
        need.notes = data["notes"]
    session.commit()
    logger.info("LightingNeed updated id=%s status=%s", need.id, need.status)

    _sync_need_cost(engine, project_id, need)
    results = engine.reconcile_and_project(_plan_scopes(project_id, need.plan))
    return {"need": need.to_dict(), "results": results}


# ═════════════════════════════════════════════════════════════════════════════
# Rigging
# ═════════════════════════════════════════════════════════════════════════════


def create_rigging_task(engine, project_id, data):
    engine.require_user()
    session = engine.session

    scene_ids = []
    for scene_id in data.get("scene_ids") or []:
        scene = get_scoped(session, Scene, scene_id, project_id=project_id)
        if scene.id not in scene_ids:
            scene_ids.append(scene.id)
    if not scene_ids:
        raise ValidationError(
            "A rigging task needs at least one scene", details={"scene_ids": "required"},
        )

    task = RiggingTask(
        project_id=project_id,
        location_id=_location_id(session, project_id, data.get("location_id")),
        status=require_choice(data.get("status", "PLANNED"), RIGGING_STATUSES, "status"),
        notes=data.get("notes"),
    )
    session.add(task)
    session.flush()
    for scene_id in scene_ids:
        session.add(RiggingTaskScene(task_id=task.id, scene_id=scene_id))
    session.commit()
    logger.info("RiggingTask created id=%s scenes=%s", task.id, scene_ids)

    day_ids = scheduled_day_ids(session, scene_ids)
    results = engine.reconcile_and_project(scopes_for(project_id, DEPARTMENT, day_ids, scene_ids))
    return {"task": task.to_dict(), "results": results}


def update_rigging_task_status(engine, project_id, task_id, status):
    engine.require_user()
    session = engine.session
    task = get_scoped(session, RiggingTask, task_id, project_id=project_id)

    task.status = require_choice(status, RIGGING_STATUSES, "status")
    session.commit()
    logger.info("RiggingTask id=%s status=%s", task.id, task.status)

    scene_ids = [link.scene_id for link in task.scene_links]
    day_ids = scheduled_day_ids(session, scene_ids)
    results = engine.reconcile_and_project(scopes_for(project_id, DEPARTMENT, day_ids, scene_ids))
    return {"task": task.to_dict(), "results": results}


# ═════════════════════════════════════════════════════════════════════════════
# Power & safety
# ═════════════════════════════════════════════════════════════════════════════


def upsert_power_plan(engine, project_id, shooting_day_id, data):
    """Create or update the day's single power plan."""
    acting_user_id = engine.require_user()
    session = engine.session
    day = get_scoped(session, ShootingDay, shooting_day_id, project_id=project_id)

    plan = session.execute(
        select(PowerPlan).where(
            PowerPlan.project_id == project_id, PowerPlan.shooting_day_id == day.id,
        )
    ).scalar_one_or_none()
    if plan is None:
        plan = PowerPlan(project_id=project_id, shooting_day_id=day.id, created_by=acting_user_id)
        session.add(plan)

    if "location_id" in data:
        plan.location_id = _location_id(session, project_id, data["location_id"])
    if "generator" in data:
        plan.generator = (data["generator"] or "").strip() or None
    if "capacity_amps" in data:
        plan.capacity_amps = _non_negative_float(data["capacity_amps"], "capacity_amps")
    if "distro_notes" in data:
        plan.distro_notes = data["distro_notes"]
    if "status" in data:
        plan.status = require_choice(data["status"], POWER_PLAN_STATUSES, "status")
    session.commit()
    logger.info("PowerPlan saved id=%s day_id=%s", plan.id, day.id)

    if plan.generator:
        engine.budget.maybe_sync_to_budget(
            project_id, DEPARTMENT, "GE_POWER_PLAN", plan.id,
            (plan.capacity_amps or 0) * POWER_COST_PER_AMP,
            f"Generator: {plan.generator} ({plan.capacity_amps:g}A)",
        )
    results = engine.reconcile_and_project(scopes_for(project_id, DEPARTMENT, [day.id]))
    return {"power_plan": plan.to_dict(include_children=True), "results": results}


def add_power_circuit(engine, project_id, power_plan_id, data):
    engine.require_user()
    session = engine.session
    plan = get_scoped(session, PowerPlan, power_plan_id, project_id=project_id)

    circuit = PowerCircuit(
        power_plan_id=plan.id,
        run_label=require_text(data, "run_label", max_length=100),
        load_amps=_non_negative_float(data.get("load_amps"), "load_amps"),
        breaker=data.get("breaker"),
        status=require_choice(data.get("status", "PLANNED"), CIRCUIT_STATUSES, "status"),
    )
    session.add(circuit)
    session.commit()
    logger.info("PowerCircuit created id=%s plan_id=%s", circuit.id, plan.id)

    results = engine.reconcile_and_project(
        scopes_for(project_id, DEPARTMENT, [plan.shooting_day_id])
    )
    return {"circuit": circuit.to_dict(), "results": results}


def add_safety_item(engine, project_id, shooting_day_id, data):
    engine.require_user()
    session = engine.session
    day = get_scoped(session, ShootingDay, shooting_day_id, project_id=project_id)

    item = SafetyChecklistItem(
        project_id=project_id,
        shooting_day_id=day.id,
        department=DEPARTMENT,
        item=require_text(data, "item"),
        status=require_choice(data.get("status", "REQUIRED"), SAFETY_STATUSES, "status"),
        notes=data.get("notes"),
    )
    session.add(item)
    session.commit()
    logger.info("SafetyChecklistItem created id=%s day_id=%s", item.id, day.id)

    results = engine.reconcile_and_project(scopes_for(project_id, DEPARTMENT, [day.id]))
    return {"item": item.to_dict(), "results": results}


def update_safety_item_status(engine, project_id, item_id, status):
    acting_user_id = engine.require_user()
    session = engine.session
    item = get_scoped(session, SafetyChecklistItem, item_id, project_id=project_id)

    item.status = require_choice(status, SAFETY_STATUSES, "status")
    completed = item.status == "COMPLETE"
    item.completed_by = acting_user_id if completed else None
    item.completed_at = datetime.now(timezone.utc) if completed else None
    session.commit()
    logger.info("SafetyChecklistItem id=%s status=%s", item.id, item.status)

    results = engine.reconcile_and_project(
        scopes_for(project_id, DEPARTMENT, [item.shooting_day_id])
    )
    return {"item": item.to_dict(), "results": results}
