"""
Art department — mutation services.

Every mutation writes and commits its own change, mirrors cost-bearing pull
items into the budget, then re-runs the engine for each (day, scene) scope
the change can affect. Callers get back the record plus the per-scope
results.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from deptsync.core.exceptions import NotFoundError
from deptsync.models.art import (
    COST_BEARING_PULL_SOURCES,
    PULL_ITEM_STATUSES,
    PULL_SOURCES,
    RISK_LEVELS,
    WORK_ORDER_STATUSES,
    WORK_ORDER_TYPES,
    ArtContinuityEntry,
    ArtPullItem,
    ArtPullList,
    ArtWorkOrder,
)
from deptsync.models.production import Location, Scene, ShootingDay
from deptsync.services.engine import scopes_for
from deptsync.services.helpers.scoped_queries import get_scoped
from deptsync.services.helpers.validation import (
    non_negative_amount,
    positive_int,
    require_choice,
    require_text,
)
from deptsync.services.synthesizers.art import normalized_day_range

logger = logging.getLogger(__name__)

DEPARTMENT = "ART"


def _day_id(session, project_id, value):
    if value is None:
        return None
    return get_scoped(session, ShootingDay, value, project_id=project_id).id


def _get_pull_item(session, project_id, item_id):
    item = session.get(ArtPullItem, item_id)
    if item is None or item.pull_list.project_id != project_id:
        raise NotFoundError(resource="ArtPullItem", resource_id=item_id, project_id=project_id)
    return item


def refresh_pull_list_status(pull_list):
    """DRAFT with no items, WRAPPED when every item is wrapped, else ACTIVE."""
    statuses = [item.status for item in pull_list.items]
    if not statuses:
        pull_list.status = "DRAFT"
    elif all(status == "WRAPPED" for status in statuses):
        pull_list.status = "WRAPPED"
    else:
        pull_list.status = "ACTIVE"
    return pull_list.status


def _sync_pull_item_cost(engine, project_id, item):
    if item.source not in COST_BEARING_PULL_SOURCES:
        return None
    return engine.budget.maybe_sync_to_budget(
        project_id, DEPARTMENT, "ART_PULL_ITEM", item.id, item.planned_amount,
        f"Art pull ({item.source.lower()}): {item.name} x{item.qty}",
    )


def work_order_day_ids(session, project_id, start_day_id, end_day_id):
    """
    Ids of the project's shooting days a work order covers.

    An order without a start day covers whichever day it is evaluated on,
    so every day of the project is affected.
    """
    numbers = {}
    for day_id in (start_day_id, end_day_id):
        if day_id is not None:
            day = session.get(ShootingDay, day_id)
            if day is not None:
                numbers[day_id] = day.day_number

    stmt = select(ShootingDay.id).where(ShootingDay.project_id == project_id)
    start = numbers.get(start_day_id)
    if start is not None:
        low, high = normalized_day_range(start, numbers.get(end_day_id), start)
        stmt = stmt.where(ShootingDay.day_number.between(low, high))
    return list(session.execute(stmt.order_by(ShootingDay.day_number)).scalars())


# ═════════════════════════════════════════════════════════════════════════════
# Pull lists & items
# ═════════════════════════════════════════════════════════════════════════════


def create_pull_list(engine, project_id, data):
    engine.require_user()
    session = engine.session
    scene = get_scoped(session, Scene, data.get("scene_id"), project_id=project_id)

    pull_list = ArtPullList(project_id=project_id, scene_id=scene.id, notes=data.get("notes"))
    session.add(pull_list)
    session.commit()
    logger.info("ArtPullList created id=%s scene_id=%s", pull_list.id, scene.id)

    results = engine.reconcile_and_project(scopes_for(project_id, DEPARTMENT, scene_ids=[scene.id]))
    return {"pull_list": pull_list.to_dict(), "results": results}


def create_pull_item(engine, project_id, list_id, data):
    engine.require_user()
    session = engine.session
    pull_list = get_scoped(session, ArtPullList, list_id, project_id=project_id)

    item = ArtPullItem(
        list_id=pull_list.id,
        name=require_text(data, "name"),
        qty=positive_int(data.get("qty"), "qty"),
        source=require_choice(data.get("source", "STOCK"), PULL_SOURCES, "source"),
        status=require_choice(data.get("status", "TO_SOURCE"), PULL_ITEM_STATUSES, "status"),
        due_day_id=_day_id(session, project_id, data.get("due_day_id")),
        is_blocking=bool(data.get("is_blocking", False)),
        planned_unit_cost=non_negative_amount(data.get("planned_unit_cost"), "planned_unit_cost"),
        vendor=data.get("vendor"),
        notes=data.get("notes"),
    )
    session.add(item)
    session.flush()
    refresh_pull_list_status(pull_list)
    session.commit()
    logger.info("ArtPullItem created id=%s list_id=%s", item.id, pull_list.id)

    _sync_pull_item_cost(engine, project_id, item)
    results = engine.reconcile_and_project(
        scopes_for(project_id, DEPARTMENT, [item.due_day_id], [pull_list.scene_id])
    )
    return {"item": item.to_dict(), "results": results}


def update_pull_item(engine, project_id, item_id, data):
    engine.require_user()
    session = engine.session
    item = _get_pull_item(session, project_id, item_id)
    previous_day_id = item.due_day_id

    if "name" in data:
        item.name = require_text(data, "name")
    if "qty" in data:
        item.qty = positive_int(data["qty"], "qty")
    if "source" in data:
        item.source = require_choice(data["source"], PULL_SOURCES, "source")
    if "status" in data:
        item.status = require_choice(data["status"], PULL_ITEM_STATUSES, "status")
    if "due_day_id" in data:
        item.due_day_id = _day_id(session, project_id, data["due_day_id"])
    if "is_blocking" in data:
        item.is_blocking = bool(data["is_blocking"])
    if "planned_unit_cost" in data:
        item.planned_unit_cost = non_negative_amount(data["planned_unit_cost"], "planned_unit_cost")
    for field in ("vendor", "notes"):
        if field in data:
            setattr(item, field, data[field])

    refresh_pull_list_status(item.pull_list)
    session.commit()
    logger.info("ArtPullItem updated id=%s status=%s", item.id, item.status)

    _sync_pull_item_cost(engine, project_id, item)
    results = engine.reconcile_and_project(
        scopes_for(
            project_id, DEPARTMENT,
            [previous_day_id, item.due_day_id], [item.pull_list.scene_id],
        )
    )
    return {"item": item.to_dict(), "results": results}


# ═════════════════════════════════════════════════════════════════════════════
# Continuity
# ═════════════════════════════════════════════════════════════════════════════


def create_continuity_entry(engine, project_id, data):
    engine.require_user()
    session = engine.session
    scene = get_scoped(session, Scene, data.get("scene_id"), project_id=project_id)

    entry = ArtContinuityEntry(
        project_id=project_id,
        scene_id=scene.id,
        due_day_id=_day_id(session, project_id, data.get("due_day_id")),
        subject_name=require_text(data, "subject_name"),
        risk_level=require_choice(data.get("risk_level", "MEDIUM"), RISK_LEVELS, "risk_level"),
    )
    session.add(entry)
    session.commit()
    logger.info("ArtContinuityEntry created id=%s scene_id=%s", entry.id, scene.id)

    results = engine.reconcile_and_project(
        scopes_for(project_id, DEPARTMENT, [entry.due_day_id], [entry.scene_id])
    )
    return {"entry": entry.to_dict(), "results": results}


def set_continuity_resolved(engine, project_id, entry_id, resolved=True):
    acting_user_id = engine.require_user()
    session = engine.session
    entry = get_scoped(session, ArtContinuityEntry, entry_id, project_id=project_id)

    entry.is_resolved = bool(resolved)
    entry.resolved_by = acting_user_id if resolved else None
    entry.resolved_at = datetime.now(timezone.utc) if resolved else None
    session.commit()
    logger.info("ArtContinuityEntry id=%s resolved=%s", entry.id, entry.is_resolved)

    results = engine.reconcile_and_project(
        scopes_for(project_id, DEPARTMENT, [entry.due_day_id], [entry.scene_id])
    )
    return {"entry": entry.to_dict(), "results": results}


# ═════════════════════════════════════════════════════════════════════════════
# Work orders
# ═════════════════════════════════════════════════════════════════════════════


def create_work_order(engine, project_id, data):
    engine.require_user()
    session = engine.session
    location_id = data.get("location_id")
    if location_id is not None:
        location_id = get_scoped(session, Location, location_id, project_id=project_id).id

    order = ArtWorkOrder(
        project_id=project_id,
        location_id=location_id,
        type=require_choice(data.get("type", "BUILD"), WORK_ORDER_TYPES, "type"),
        status=require_choice(data.get("status", "PLANNED"), WORK_ORDER_STATUSES, "status"),
        start_day_id=_day_id(session, project_id, data.get("start_day_id")),
        end_day_id=_day_id(session, project_id, data.get("end_day_id")),
        summary=data.get("summary"),
    )
    session.add(order)
    session.commit()
    logger.info("ArtWorkOrder created id=%s location_id=%s", order.id, order.location_id)

    day_ids = work_order_day_ids(session, project_id, order.start_day_id, order.end_day_id)
    results = engine.reconcile_and_project(scopes_for(project_id, DEPARTMENT, day_ids))
    return {"work_order": order.to_dict(), "results": results}


def update_work_order(engine, project_id, order_id, data):
    engine.require_user()
    session = engine.session
    order = get_scoped(session, ArtWorkOrder, order_id, project_id=project_id)
    previous_days = work_order_day_ids(session, project_id, order.start_day_id, order.end_day_id)

    if "location_id" in data:
        location_id = data["location_id"]
        if location_id is not None:
            location_id = get_scoped(session, Location, location_id, project_id=project_id).id
        order.location_id = location_id
    if "type" in data:
        order.type = require_choice(data["type"], WORK_ORDER_TYPES, "type")
    if "status" in data:
        order.status = require_choice(data["status"], WORK_ORDER_STATUSES, "status")
    if "start_day_id" in data:
        order.start_day_id = _day_id(session, project_id, data["start_day_id"])
    if "end_day_id" in data:
        order.end_day_id = _day_id(session, project_id, data["end_day_id"])
    if "summary" in data:
        order.summary = data["summary"]

    session.commit()
    logger.info("ArtWorkOrder updated id=%s status=%s", order.id, order.status)

    day_ids = previous_days + work_order_day_ids(
        session, project_id, order.start_day_id, order.end_day_id,
    )
    results = engine.reconcile_and_project(scopes_for(project_id, DEPARTMENT, day_ids))
    return {"work_order": order.to_dict(), "results": results}
