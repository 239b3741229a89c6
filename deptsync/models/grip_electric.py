"""
Department Dependency Sync
Grip & Electric source models.

Models:
    - LightingPlan:         gaffer's plan for a scene, optionally pinned to a day
    - LightingNeed:         fixture requirement on a plan
    - RiggingTask:          pre-rig / de-rig job linked to scenes
    - RiggingTaskScene:     RiggingTask ──N:M──▶ Scene
    - PowerPlan:            generator + distro plan, one per shooting day
    - PowerCircuit:         individual run drawing load from a power plan
    - SafetyChecklistItem:  day-level safety check owned by the department

Architecture:
    LightingPlan ──1:N──▶ LightingNeed
    PowerPlan ──1:N──▶ PowerCircuit
"""

from datetime import datetime, timezone

from deptsync.models import db


# ── Constants ────────────────────────────────────────────────────────────────

LIGHTING_PLAN_STATUSES = {"DRAFT", "IN_PROGRESS", "PUBLISHED"}

NEED_STATUSES = {"PENDING", "SOURCED", "UNAVAILABLE", "READY"}

UNRESOLVED_NEED_STATUSES = {"PENDING", "UNAVAILABLE"}

NEED_SOURCES = {"OWNED", "RENTAL", "PURCHASE", "BORROW"}

COST_BEARING_NEED_SOURCES = {"RENTAL", "PURCHASE", "BORROW"}

RIGGING_STATUSES = {"PLANNED", "IN_PROGRESS", "COMPLETE", "BLOCKED"}

POWER_PLAN_STATUSES = {"DRAFT", "IN_PROGRESS", "PASSED", "FAILED"}

CIRCUIT_STATUSES = {"PLANNED", "ACTIVE", "FAILED"}

SAFETY_STATUSES = {"REQUIRED", "IN_PROGRESS", "COMPLETE", "FAILED"}

# Flat planning rate used to estimate generator / distro cost from capacity.
POWER_COST_PER_AMP = 10


def _utcnow():
    return datetime.now(timezone.utc)


class LightingPlan(db.Model):
    __tablename__ = "lighting_plans"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    scene_id = db.Column(
        db.Integer, db.ForeignKey("scenes.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    shooting_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    status = db.Column(db.String(20), nullable=False, default="DRAFT")
    notes = db.Column(db.Text, nullable=True)
    published_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    needs = db.relationship(
        "LightingNeed", backref="plan", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_children=False):
        result = {
            "id": self.id,
            "project_id": self.project_id,
            "scene_id": self.scene_id,
            "shooting_day_id": self.shooting_day_id,
            "status": self.status,
            "notes": self.notes,
        }
        if include_children:
            result["needs"] = [n.to_dict() for n in self.needs]
        return result


class LightingNeed(db.Model):
    __tablename__ = "lighting_needs"

    id = db.Column(db.Integer, primary_key=True)
    plan_id = db.Column(
        db.Integer, db.ForeignKey("lighting_plans.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    fixture_type = db.Column(db.String(100), nullable=False)
    qty = db.Column(db.Integer, nullable=False, default=1)
    power_draw = db.Column(db.Float, nullable=False, default=0)
    source = db.Column(db.String(20), nullable=False, default="OWNED")
    status = db.Column(db.String(20), nullable=False, default="PENDING")
    estimated_rate = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @property
    def planned_amount(self):
        return round(float(self.estimated_rate or 0) * (self.qty or 1), 2)

    def to_dict(self):
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "fixture_type": self.fixture_type,
            "qty": self.qty,
            "power_draw": self.power_draw,
            "source": self.source,
            "status": self.status,
            "estimated_rate": float(self.estimated_rate or 0),
        }


class RiggingTask(db.Model):
    __tablename__ = "rigging_tasks"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    location_id = db.Column(
        db.Integer, db.ForeignKey("locations.id", ondelete="SET NULL"), nullable=True,
    )
    status = db.Column(db.String(20), nullable=False, default="PLANNED")
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    scene_links = db.relationship(
        "RiggingTaskScene", backref="task", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "location_id": self.location_id,
            "status": self.status,
            "scene_ids": [link.scene_id for link in self.scene_links],
        }


class RiggingTaskScene(db.Model):
    __tablename__ = "rigging_task_scenes"

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(
        db.Integer, db.ForeignKey("rigging_tasks.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    scene_id = db.Column(
        db.Integer, db.ForeignKey("scenes.id", ondelete="CASCADE"), nullable=False,
    )


class PowerPlan(db.Model):
    __tablename__ = "power_plans"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    shooting_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="CASCADE"),
        nullable=False,
    )
    location_id = db.Column(
        db.Integer, db.ForeignKey("locations.id", ondelete="SET NULL"), nullable=True,
    )
    generator = db.Column(db.String(100), nullable=True)
    capacity_amps = db.Column(db.Float, nullable=False, default=0)
    distro_notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="DRAFT")
    created_by = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    circuits = db.relationship(
        "PowerCircuit", backref="power_plan", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("project_id", "shooting_day_id", name="uq_power_plan_day"),
    )

    def to_dict(self, include_children=False):
        result = {
            "id": self.id,
            "project_id": self.project_id,
            "shooting_day_id": self.shooting_day_id,
            "generator": self.generator,
            "capacity_amps": self.capacity_amps,
            "status": self.status,
        }
        if include_children:
            result["circuits"] = [c.to_dict() for c in self.circuits]
        return result


class PowerCircuit(db.Model):
    __tablename__ = "power_circuits"

    id = db.Column(db.Integer, primary_key=True)
    power_plan_id = db.Column(
        db.Integer, db.ForeignKey("power_plans.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    run_label = db.Column(db.String(100), nullable=False)
    load_amps = db.Column(db.Float, nullable=False, default=0)
    breaker = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="PLANNED")

    def to_dict(self):
        return {
            "id": self.id,
            "run_label": self.run_label,
            "load_amps": self.load_amps,
            "breaker": self.breaker,
            "status": self.status,
        }


class SafetyChecklistItem(db.Model):
    __tablename__ = "safety_checklist_items"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    shooting_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    department = db.Column(db.String(30), nullable=False, default="GRIP_ELECTRIC")
    item = db.Column(db.String(200), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="REQUIRED")
    completed_by = db.Column(db.String(100), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "shooting_day_id": self.shooting_day_id,
            "department": self.department,
            "item": self.item,
            "status": self.status,
            "completed_by": self.completed_by,
        }
