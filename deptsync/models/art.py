"""
Department Dependency Sync
Art department source models.

Models:
    - ArtPullList:         scene-scoped list of props / dressing to pull
    - ArtPullItem:         individual pulled item, optionally blocking
    - ArtContinuityEntry:  continuity risk to resolve before a due day
    - ArtWorkOrder:        build / paint / dress / strike job spanning a day range

Lifecycle states:
    ArtPullItem:   TO_SOURCE → PULLED → ON_TRUCK → ON_SET → WRAPPED
    ArtWorkOrder:  PLANNED → IN_PROGRESS → DONE  |  BLOCKED
"""

from datetime import datetime, timezone

from deptsync.models import db


# ── Constants ────────────────────────────────────────────────────────────────

PULL_ITEM_STATUSES = {"TO_SOURCE", "PULLED", "ON_TRUCK", "ON_SET", "WRAPPED"}

# A pull item in one of these statuses no longer blocks the day.
RESOLVED_PULL_STATUSES = {"ON_SET", "WRAPPED"}

PULL_SOURCES = {"STOCK", "RENTAL", "PURCHASE", "BORROW", "BUILD"}

# Sources that cost money and are mirrored into the budget.
COST_BEARING_PULL_SOURCES = {"RENTAL", "PURCHASE"}

PULL_LIST_STATUSES = {"DRAFT", "ACTIVE", "WRAPPED"}

WORK_ORDER_TYPES = {"BUILD", "PAINT", "SET_DRESS", "STRIKE"}

WORK_ORDER_STATUSES = {"PLANNED", "IN_PROGRESS", "DONE", "BLOCKED"}

RISK_LEVELS = {"LOW", "MEDIUM", "HIGH"}


def is_pull_item_resolved(status):
    """Return True if a pull item in ``status`` no longer blocks."""
    return status in RESOLVED_PULL_STATUSES


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class ArtPullList(db.Model):
    __tablename__ = "art_pull_lists"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    scene_id = db.Column(
        db.Integer, db.ForeignKey("scenes.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    status = db.Column(db.String(20), nullable=False, default="DRAFT")
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    items = db.relationship(
        "ArtPullItem", backref="pull_list", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "scene_id": self.scene_id,
            "status": self.status,
            "notes": self.notes,
        }


class ArtPullItem(db.Model):
    __tablename__ = "art_pull_items"

    id = db.Column(db.Integer, primary_key=True)
    list_id = db.Column(
        db.Integer, db.ForeignKey("art_pull_lists.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    qty = db.Column(db.Integer, nullable=False, default=1)
    source = db.Column(db.String(20), nullable=False, default="STOCK")
    due_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    status = db.Column(db.String(20), nullable=False, default="TO_SOURCE")
    vendor = db.Column(db.String(200), nullable=True)
    planned_unit_cost = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    is_blocking = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @property
    def planned_amount(self):
        return round(float(self.planned_unit_cost or 0) * (self.qty or 0), 2)

    def to_dict(self):
        return {
            "id": self.id,
            "list_id": self.list_id,
            "name": self.name,
            "qty": self.qty,
            "source": self.source,
            "due_day_id": self.due_day_id,
            "status": self.status,
            "vendor": self.vendor,
            "planned_unit_cost": float(self.planned_unit_cost or 0),
            "planned_amount": self.planned_amount,
            "is_blocking": self.is_blocking,
            "notes": self.notes,
            "updated_at": _iso(self.updated_at),
        }


class ArtContinuityEntry(db.Model):
    __tablename__ = "art_continuity_entries"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    scene_id = db.Column(
        db.Integer, db.ForeignKey("scenes.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    due_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    subject_name = db.Column(db.String(200), nullable=False)
    risk_level = db.Column(db.String(10), nullable=False, default="MEDIUM")
    is_resolved = db.Column(db.Boolean, nullable=False, default=False)
    resolved_by = db.Column(db.String(100), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "scene_id": self.scene_id,
            "due_day_id": self.due_day_id,
            "subject_name": self.subject_name,
            "risk_level": self.risk_level,
            "is_resolved": self.is_resolved,
            "resolved_by": self.resolved_by,
            "resolved_at": _iso(self.resolved_at),
        }


class ArtWorkOrder(db.Model):
    """
    Art work order occupying a location over a day range.

    ``start_day_id`` / ``end_day_id`` may be entered in either order; the
    synthesizer normalises them by ``day_number``.
    """

    __tablename__ = "art_work_orders"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    location_id = db.Column(
        db.Integer, db.ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
    )
    type = db.Column(db.String(20), nullable=False, default="BUILD")
    status = db.Column(db.String(20), nullable=False, default="PLANNED")
    start_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="SET NULL"), nullable=True,
    )
    end_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="SET NULL"), nullable=True,
    )
    summary = db.Column(db.String(300), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "location_id": self.location_id,
            "type": self.type,
            "status": self.status,
            "start_day_id": self.start_day_id,
            "end_day_id": self.end_day_id,
            "summary": self.summary,
        }
