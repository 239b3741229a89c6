"""
Post — mutation services.

An ingest batch tracks the camera rolls offloaded for one shooting day.
Recording rolls or reconciling the batch against the expected roll list
recomputes the batch counters and status, then re-runs the Post engine for
that day. VFX shot changes re-run the scene and every day the scene is
scheduled on.
"""

import logging

from sqlalchemy import select

from deptsync.core.exceptions import ValidationError
from deptsync.models.post import (
    QC_STATUSES,
    VFX_SHOT_STATUSES,
    PostIngestBatch,
    PostIngestItem,
    VfxShot,
    count_ingest_items,
    derive_ingest_batch_status,
    normalize_rolls,
)
from deptsync.models.production import Scene, ShootingDay
from deptsync.services.engine import scheduled_day_ids, scopes_for
from deptsync.services.helpers.scoped_queries import get_scoped
from deptsync.services.helpers.validation import require_choice, require_text

logger = logging.getLogger(__name__)

DEPARTMENT = "POST"

MISSING_ROLL_ISSUE = "Expected roll is missing from ingest."


def _non_negative_int(value, field):
    if value is None or value == "":
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", details={field: "integer"})
    return max(0, number)


def recalculate_ingest_batch(batch):
    """Refresh the batch counters and status from its items. Does not commit."""
    counters = count_ingest_items(batch, [item.qc_status for item in batch.items])
    for field, value in counters._asdict().items():
        setattr(batch, field, value)
    batch.status = derive_ingest_batch_status(counters)
    return counters


def _day_results(engine, batch):
    return engine.reconcile_and_project(
        scopes_for(batch.project_id, DEPARTMENT, [batch.shooting_day_id])
    )


# ═════════════════════════════════════════════════════════════════════════════
# Ingest
# ═════════════════════════════════════════════════════════════════════════════


def ensure_ingest_batch(engine, project_id, shooting_day_id, expected_roll_count=None):
    """Return the day's ingest batch, creating it on first use."""
    engine.require_user()
    session = engine.session
    day = get_scoped(session, ShootingDay, shooting_day_id, project_id=project_id)

    batch = session.execute(
        select(PostIngestBatch).where(
            PostIngestBatch.project_id == project_id,
            PostIngestBatch.shooting_day_id == day.id,
        )
    ).scalar_one_or_none()
    if batch is None:
        batch = PostIngestBatch(project_id=project_id, shooting_day_id=day.id)
        session.add(batch)
    if expected_roll_count is not None or batch.expected_roll_count is None:
        batch.expected_roll_count = _non_negative_int(expected_roll_count, "expected_roll_count")
    session.flush()
    recalculate_ingest_batch(batch)
    session.commit()
    logger.info("PostIngestBatch id=%s day_id=%s expected=%s",
                batch.id, day.id, batch.expected_roll_count)

    return {"batch": batch.to_dict(), "results": _day_results(engine, batch)}


def record_ingest_roll(engine, project_id, batch_id, data):
    """Create or update one roll of a batch, keyed by its normalized label."""
    engine.require_user()
    session = engine.session
    batch = get_scoped(session, PostIngestBatch, batch_id, project_id=project_id)

    rolls = normalize_rolls([data.get("roll")])
    if not rolls:
        raise ValidationError("Roll is required", details={"roll": "required"})
    roll = rolls[0]

    item = session.execute(
        select(PostIngestItem).where(PostIngestItem.batch_id == batch.id, PostIngestItem.roll == roll)
    ).scalar_one_or_none()
    if item is None:
        item = PostIngestItem(batch_id=batch.id, roll=roll)
        session.add(item)
    item.qc_status = require_choice(data.get("qc_status", "PENDING"), QC_STATUSES, "qc_status")
    item.issue = (data.get("issue") or "").strip() or None
    session.flush()

    counters = recalculate_ingest_batch(batch)
    session.commit()
    logger.info("PostIngestItem roll=%s batch_id=%s qc=%s status=%s",
                roll, batch.id, item.qc_status, batch.status)

    return {
        "item": item.to_dict(),
        "summary": dict(counters._asdict(), status=batch.status),
        "results": _day_results(engine, batch),
    }


def reconcile_ingest_batch(engine, project_id, batch_id, expected_rolls):
    """
    Compare a batch against the rolls that should have been offloaded.

    Every expected roll with no item gets a MISSING placeholder; the
    expected count becomes the length of the normalized list. An empty
    list is rejected since there is nothing to reconcile against.
    """
    engine.require_user()
    session = engine.session
    batch = get_scoped(session, PostIngestBatch, batch_id, project_id=project_id)

    expected = normalize_rolls(expected_rolls)
    if not expected:
        raise ValidationError(
            "Add expected rolls to reconcile this batch",
            details={"expected_rolls": "required"},
        )

    existing = {(item.roll or "").strip().upper() for item in batch.items}
    missing = [roll for roll in expected if roll not in existing]

    batch.expected_roll_count = len(expected)
    for roll in missing:
        session.add(PostIngestItem(
            batch_id=batch.id, roll=roll, qc_status="MISSING", issue=MISSING_ROLL_ISSUE,
        ))
    session.flush()

    counters = recalculate_ingest_batch(batch)
    session.commit()
    logger.info("PostIngestBatch id=%s reconciled, %d missing roll(s)", batch.id, len(missing))

    return {
        "summary": dict(counters._asdict(), status=batch.status),
        "missing_rolls": missing,
        "results": _day_results(engine, batch),
    }


# ═════════════════════════════════════════════════════════════════════════════
# VFX
# ═════════════════════════════════════════════════════════════════════════════


def _vfx_scopes(session, project_id, scene_id):
    if scene_id is None:
        return []
    return scopes_for(project_id, DEPARTMENT, scheduled_day_ids(session, [scene_id]), [scene_id])


def create_vfx_shot(engine, project_id, data):
    engine.require_user()
    session = engine.session
    scene_id = data.get("scene_id")
    if scene_id is not None:
        scene_id = get_scoped(session, Scene, scene_id, project_id=project_id).id

    shot = VfxShot(
        project_id=project_id,
        scene_id=scene_id,
        shot_code=require_text(data, "shot_code", max_length=50),
        vendor=data.get("vendor"),
        status=require_choice(data.get("status", "NOT_SENT"), VFX_SHOT_STATUSES, "status"),
    )
    session.add(shot)
    session.commit()
    logger.info("VfxShot created id=%s code=%s", shot.id, shot.shot_code)

    results = engine.reconcile_and_project(_vfx_scopes(session, project_id, shot.scene_id))
    return {"shot": shot.to_dict(), "results": results}


def update_vfx_shot_status(engine, project_id, shot_id, status):
    engine.require_user()
    session = engine.session
    shot = get_scoped(session, VfxShot, shot_id, project_id=project_id)

    shot.status = require_choice(status, VFX_SHOT_STATUSES, "status")
    session.commit()
    logger.info("VfxShot id=%s status=%s", shot.id, shot.status)

    results = engine.reconcile_and_project(_vfx_scopes(session, project_id, shot.scene_id))
    return {"shot": shot.to_dict(), "results": results}
