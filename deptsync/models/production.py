"""
Department Dependency Sync
Production catalog and call-sheet container models.

These tables are owned by the surrounding production-management system. The
engine only reads the catalog (projects, shooting days, scenes, locations) and
writes the free-text fields of the call-sheet container.

Models:
    - Project:              top-level production
    - Location:             physical location a work order or power plan targets
    - ShootingDay:          scheduled day, ordered by ``day_number``
    - Scene:                script scene
    - ShootingDayScene:     schedule link (scene shot on a day)
    - CallSheet:            one per shooting day, carries ``advance_notes``
    - CallSheetDepartment:  per-department row on a call sheet (call time + notes)

Architecture:
    Project ──1:N──▶ ShootingDay ──1:1──▶ CallSheet ──1:N──▶ CallSheetDepartment
    Project ──1:N──▶ Scene
    ShootingDay ──N:M──▶ Scene  (via ShootingDayScene)
"""

from datetime import datetime, timezone

from deptsync.models import db


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ═════════════════════════════════════════════════════════════════════════════
# 1. Catalog
# ═════════════════════════════════════════════════════════════════════════════


class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "created_at": _iso(self.created_at)}

    def __repr__(self):
        return f"<Project {self.id}: {self.name}>"


class Location(db.Model):
    __tablename__ = "locations"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)

    def to_dict(self):
        return {"id": self.id, "project_id": self.project_id, "name": self.name}


class ShootingDay(db.Model):
    """
    A scheduled day of work.

    ``day_number`` is the ordinal used for day-range overlap comparisons;
    it is not guaranteed to be contiguous.
    """

    __tablename__ = "shooting_days"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    day_number = db.Column(db.Integer, nullable=False, comment="Ordinal within the schedule")
    date = db.Column(db.Date, nullable=True)
    general_call = db.Column(db.String(10), nullable=True, comment="HH:MM crew call")

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "day_number": self.day_number,
            "date": _iso(self.date),
            "general_call": self.general_call,
        }

    def __repr__(self):
        return f"<ShootingDay {self.id}: day {self.day_number}>"


class Scene(db.Model):
    __tablename__ = "scenes"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    scene_number = db.Column(db.String(20), nullable=False)
    heading = db.Column(db.String(300), default="")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "scene_number": self.scene_number,
            "heading": self.heading,
        }


class ShootingDayScene(db.Model):
    __tablename__ = "shooting_day_scenes"

    id = db.Column(db.Integer, primary_key=True)
    shooting_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    scene_id = db.Column(
        db.Integer, db.ForeignKey("scenes.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )

    __table_args__ = (
        db.UniqueConstraint("shooting_day_id", "scene_id", name="uq_shooting_day_scene"),
    )


# ═════════════════════════════════════════════════════════════════════════════
# 2. Call-sheet container
# ═════════════════════════════════════════════════════════════════════════════


class CallSheet(db.Model):
    """Call sheet for a shooting day. ``advance_notes`` mixes manual and auto text."""

    __tablename__ = "call_sheets"

    id = db.Column(db.Integer, primary_key=True)
    shooting_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="CASCADE"),
        nullable=False, unique=True,
    )
    advance_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    departments = db.relationship(
        "CallSheetDepartment", backref="call_sheet", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_children=False):
        result = {
            "id": self.id,
            "shooting_day_id": self.shooting_day_id,
            "advance_notes": self.advance_notes,
            "updated_at": _iso(self.updated_at),
        }
        if include_children:
            result["departments"] = [d.to_dict() for d in self.departments]
        return result


class CallSheetDepartment(db.Model):
    __tablename__ = "call_sheet_departments"

    id = db.Column(db.Integer, primary_key=True)
    call_sheet_id = db.Column(
        db.Integer, db.ForeignKey("call_sheets.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    department = db.Column(db.String(100), nullable=False, comment="Display label, e.g. 'Art Department'")
    call_time = db.Column(db.String(10), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("call_sheet_id", "department", name="uq_call_sheet_department"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "call_sheet_id": self.call_sheet_id,
            "department": self.department,
            "call_time": self.call_time,
            "notes": self.notes,
        }
