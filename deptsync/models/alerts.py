"""
Department Dependency Sync
Dependency alert and readiness models.

Models:
    - DepartmentDayDependency:   one blocking/warning condition for a department on a day
    - DepartmentSceneReadiness:  derived readiness per (project, scene, department)
    - DepartmentDayReadiness:    derived readiness per (project, shooting day, department)

Identity:
    DepartmentDayDependency is unique on
    (project_id, shooting_day_id, department, source_type, source_id).
    Rows are never deleted; status toggles OPEN <-> RESOLVED.

Lifecycle states:
    DepartmentDayDependency:  OPEN -> RESOLVED -> OPEN (same row re-opened)
    Readiness:                NOT_READY | IN_PROGRESS | READY (always recomputed)
"""

from datetime import datetime, timezone

from deptsync.models import db


# ── Constants ────────────────────────────────────────────────────────────────

DEPARTMENTS = {"ART", "GRIP_ELECTRIC", "POST"}

DEPARTMENT_LABELS = {
    "ART": "Art",
    "GRIP_ELECTRIC": "Grip & Electric",
    "POST": "Post",
}

ALERT_STATUSES = {"OPEN", "RESOLVED"}

ALERT_SEVERITIES = {"INFO", "WARNING", "CRITICAL"}

SEVERITY_RANK = {"CRITICAL": 3, "WARNING": 2, "INFO": 1}

READINESS_STATUSES = {"NOT_READY", "IN_PROGRESS", "READY"}

# Composite reconciliation key, in index order.
ALERT_KEY_COLUMNS = ("project_id", "shooting_day_id", "department", "source_type", "source_id")


def severity_rank(severity):
    """Return the ordinal rank of a severity; unknown values rank as INFO."""
    return SEVERITY_RANK.get(severity, 1)


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ═════════════════════════════════════════════════════════════════════════════
# 1. DepartmentDayDependency
# ═════════════════════════════════════════════════════════════════════════════


class DepartmentDayDependency(db.Model):
    """
    A currently-believed (OPEN) or historical (RESOLVED) dependency alert.

    ``source_id`` is a non-owning back-reference to the record that caused
    the alert, or a synthetic key for aggregate conditions (day id,
    location id, ``<task>:<day>``).
    """

    __tablename__ = "department_day_dependencies"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    shooting_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="CASCADE"),
        nullable=False,
    )
    department = db.Column(db.String(30), nullable=False)
    source_type = db.Column(
        db.String(50), nullable=False,
        comment="Synthesizer rule tag, e.g. ART_PULL_ITEM, POWER_SAFETY",
    )
    source_id = db.Column(db.String(100), nullable=False)

    status = db.Column(db.String(10), nullable=False, default="OPEN")
    severity = db.Column(db.String(10), nullable=False, default="WARNING")
    message = db.Column(db.Text, nullable=False)
    meta = db.Column("metadata", db.JSON, nullable=True)

    created_by = db.Column(db.String(100), nullable=True)
    resolved_by = db.Column(db.String(100), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        db.UniqueConstraint(*ALERT_KEY_COLUMNS, name="uq_department_day_dependency_key"),
        db.Index("ix_ddd_project_day_status", "project_id", "shooting_day_id", "status"),
        db.Index("ix_ddd_department_severity", "department", "severity"),
        db.CheckConstraint("status IN ('OPEN','RESOLVED')", name="ck_ddd_status"),
        db.CheckConstraint(
            "severity IN ('INFO','WARNING','CRITICAL')", name="ck_ddd_severity",
        ),
    )

    @property
    def key(self):
        """Reconciliation key within a (project, day, department) scope."""
        return (self.source_type, self.source_id)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "shooting_day_id": self.shooting_day_id,
            "department": self.department,
            "source_type": self.source_type,
            "source_id": self.source_id,
            "status": self.status,
            "severity": self.severity,
            "message": self.message,
            "metadata": self.meta,
            "created_by": self.created_by,
            "resolved_by": self.resolved_by,
            "resolved_at": _iso(self.resolved_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return (
            f"<DepartmentDayDependency {self.id}: {self.department} "
            f"{self.source_type}:{self.source_id} [{self.status}/{self.severity}]>"
        )


# ═════════════════════════════════════════════════════════════════════════════
# 2. Readiness
# ═════════════════════════════════════════════════════════════════════════════


class DepartmentSceneReadiness(db.Model):
    __tablename__ = "department_scene_readiness"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    scene_id = db.Column(
        db.Integer, db.ForeignKey("scenes.id", ondelete="CASCADE"),
        nullable=False,
    )
    department = db.Column(db.String(30), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="NOT_READY")
    notes = db.Column(db.Text, nullable=True)
    total_tracked = db.Column(db.Integer, nullable=False, default=0)
    blocker_count = db.Column(db.Integer, nullable=False, default=0)
    updated_by = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        db.UniqueConstraint(
            "project_id", "scene_id", "department", name="uq_department_scene_readiness",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "scene_id": self.scene_id,
            "department": self.department,
            "status": self.status,
            "notes": self.notes,
            "total_tracked": self.total_tracked,
            "blocker_count": self.blocker_count,
            "updated_by": self.updated_by,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class DepartmentDayReadiness(db.Model):
    __tablename__ = "department_day_readiness"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    shooting_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="CASCADE"),
        nullable=False,
    )
    department = db.Column(db.String(30), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="READY")
    notes = db.Column(db.Text, nullable=True)
    open_alert_count = db.Column(db.Integer, nullable=False, default=0)
    critical_count = db.Column(db.Integer, nullable=False, default=0)
    updated_by = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        db.UniqueConstraint(
            "project_id", "shooting_day_id", "department", name="uq_department_day_readiness",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "shooting_day_id": self.shooting_day_id,
            "department": self.department,
            "status": self.status,
            "notes": self.notes,
            "open_alert_count": self.open_alert_count,
            "critical_count": self.critical_count,
            "updated_by": self.updated_by,
            "updated_at": _iso(self.updated_at),
        }
