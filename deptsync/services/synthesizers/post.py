"""
Post-production alert rules.

    INGEST_QC       failed-QC or missing rolls in the day's ingest batch (one per day)
    INGEST_PENDING  rolls still expected, no QC blockers (one per batch)
    VFX_SHOT        VFX shot not yet sent to a vendor on a scene shot that day
"""

from sqlalchemy import func, select

from deptsync.models.post import (
    PostIngestBatch,
    PostIngestItem,
    VfxShot,
    count_ingest_items,
)
from deptsync.services.synthesizers.base import AlertSynthesizer


def _plural(count, word):
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class PostSynthesizer(AlertSynthesizer):
    department = "POST"

    def collect(self, day):
        alerts = []
        ingest = self._ingest_alert(day)
        if ingest is not None:
            alerts.append(ingest)
        alerts.extend(self._vfx_alerts(day))
        return alerts

    def _ingest_alert(self, day):
        batch = self.session.execute(
            select(PostIngestBatch).where(
                PostIngestBatch.project_id == day.project_id,
                PostIngestBatch.shooting_day_id == day.id,
            )
        ).scalar_one_or_none()
        if batch is None:
            return None

        counters = count_ingest_items(batch, self.session.execute(
            select(PostIngestItem.qc_status).where(PostIngestItem.batch_id == batch.id)
        ).scalars())

        if counters.blocker_count > 0:
            return self.alert(
                "INGEST_QC", day.id, "CRITICAL",
                f"Post ingest blocked: {_plural(counters.missing_roll_count, 'missing roll')}, "
                f"{_plural(counters.qc_failed_count, 'failed QC roll')}.",
                batch_id=batch.id,
                qc_failed_count=counters.qc_failed_count,
                missing_roll_count=counters.missing_roll_count,
            )
        if counters.received_roll_count < counters.expected_roll_count:
            return self.alert(
                "INGEST_PENDING", batch.id, "WARNING",
                f"Post ingest in progress: {counters.received_roll_count} of "
                f"{counters.expected_roll_count} roll(s) received.",
                batch_id=batch.id,
                expected_roll_count=counters.expected_roll_count,
                received_roll_count=counters.received_roll_count,
            )
        return None

    def _vfx_alerts(self, day):
        scene_ids = self.scheduled_scene_ids(day)
        if not scene_ids:
            return []

        shots = list(self.session.execute(
            select(VfxShot)
            .where(
                VfxShot.project_id == day.project_id,
                VfxShot.scene_id.in_(scene_ids),
                VfxShot.status == "NOT_SENT",
            )
            .order_by(VfxShot.id)
        ).scalars())
        numbers = self.scene_numbers(shot.scene_id for shot in shots)

        return [
            self.alert(
                "VFX_SHOT", shot.id, "INFO",
                f"Scene {numbers.get(shot.scene_id, shot.scene_id)}: VFX shot {shot.shot_code} "
                f"is not sent to a vendor yet; capture on-set reference.",
                shot_code=shot.shot_code, scene_id=shot.scene_id, vendor=shot.vendor,
            )
            for shot in shots
        ]

    def scene_counts(self, project_id, scene_id):
        total = self.session.execute(
            select(func.count(VfxShot.id)).where(
                VfxShot.project_id == project_id, VfxShot.scene_id == scene_id,
            )
        ).scalar() or 0
        open_shots = self.session.execute(
            select(func.count(VfxShot.id)).where(
                VfxShot.project_id == project_id,
                VfxShot.scene_id == scene_id,
                VfxShot.status != "FINAL",
            )
        ).scalar() or 0
        return total, open_shots
