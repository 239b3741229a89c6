"""
Department Dependency Sync
Post-production source models.

Models:
    - PostIngestBatch:  dailies ingest for a shooting day (one per day)
    - PostIngestItem:   one camera roll within a batch, with its QC result
    - VfxShot:          VFX shot tracked against a scene

Lifecycle states:
    PostIngestBatch:  QUEUED → IN_PROGRESS → COMPLETE  |  BLOCKED
    PostIngestItem:   PENDING → PASSED | FAILED | MISSING
    VfxShot:          NOT_SENT → IN_VENDOR → CLIENT_REVIEW → FINAL
"""

from datetime import datetime, timezone
from typing import NamedTuple

from deptsync.models import db


# ── Constants ────────────────────────────────────────────────────────────────

INGEST_BATCH_STATUSES = {"QUEUED", "IN_PROGRESS", "COMPLETE", "BLOCKED"}

QC_STATUSES = {"PENDING", "PASSED", "FAILED", "MISSING"}

VFX_SHOT_STATUSES = {"NOT_SENT", "IN_VENDOR", "CLIENT_REVIEW", "FINAL"}


class IngestCounters(NamedTuple):
    expected_roll_count: int
    received_roll_count: int
    qc_passed_count: int
    qc_failed_count: int
    missing_roll_count: int

    @property
    def blocker_count(self):
        return self.qc_failed_count + self.missing_roll_count


def normalize_rolls(rolls):
    """Trim, upper-case and de-duplicate roll labels, keeping first-seen order."""
    seen = []
    for roll in rolls or []:
        label = (roll or "").strip().upper()
        if label and label not in seen:
            seen.append(label)
    return seen


def count_ingest_items(batch, qc_statuses):
    """
    Build counters for ``batch`` from its items' QC statuses.

    Every item counts as received, including MISSING placeholders. The
    expected count never drops below the received count.
    """
    qc_statuses = list(qc_statuses)
    received = len(qc_statuses)
    return IngestCounters(
        expected_roll_count=max(batch.expected_roll_count or 0, received),
        received_roll_count=received,
        qc_passed_count=qc_statuses.count("PASSED"),
        qc_failed_count=qc_statuses.count("FAILED"),
        missing_roll_count=qc_statuses.count("MISSING"),
    )


def derive_ingest_batch_status(counters: IngestCounters) -> str:
    if counters.received_roll_count == 0:
        return "QUEUED"
    if counters.blocker_count > 0:
        return "BLOCKED"
    if counters.received_roll_count < counters.expected_roll_count:
        return "IN_PROGRESS"
    return "COMPLETE"


def _utcnow():
    return datetime.now(timezone.utc)


class PostIngestBatch(db.Model):
    __tablename__ = "post_ingest_batches"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    shooting_day_id = db.Column(
        db.Integer, db.ForeignKey("shooting_days.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = db.Column(db.String(20), nullable=False, default="QUEUED")
    expected_roll_count = db.Column(db.Integer, nullable=False, default=0)
    received_roll_count = db.Column(db.Integer, nullable=False, default=0)
    qc_passed_count = db.Column(db.Integer, nullable=False, default=0)
    qc_failed_count = db.Column(db.Integer, nullable=False, default=0)
    missing_roll_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    items = db.relationship(
        "PostIngestItem", backref="batch", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("project_id", "shooting_day_id", name="uq_post_ingest_batch_day"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "shooting_day_id": self.shooting_day_id,
            "status": self.status,
            "expected_roll_count": self.expected_roll_count,
            "received_roll_count": self.received_roll_count,
            "qc_passed_count": self.qc_passed_count,
            "qc_failed_count": self.qc_failed_count,
            "missing_roll_count": self.missing_roll_count,
        }


class PostIngestItem(db.Model):
    __tablename__ = "post_ingest_items"

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(
        db.Integer, db.ForeignKey("post_ingest_batches.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    roll = db.Column(db.String(50), nullable=False)
    qc_status = db.Column(db.String(20), nullable=False, default="PENDING")
    issue = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("batch_id", "roll", name="uq_post_ingest_item_roll"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "batch_id": self.batch_id,
            "roll": self.roll,
            "qc_status": self.qc_status,
            "issue": self.issue,
        }


class VfxShot(db.Model):
    __tablename__ = "vfx_shots"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    scene_id = db.Column(
        db.Integer, db.ForeignKey("scenes.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    shot_code = db.Column(db.String(50), nullable=False)
    vendor = db.Column(db.String(200), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="NOT_SENT")
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "scene_id": self.scene_id,
            "shot_code": self.shot_code,
            "vendor": self.vendor,
            "status": self.status,
        }
