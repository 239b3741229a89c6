"""
Alert reconciliation: make the OPEN alert set of a (project, day, department)
scope equal to a synthesizer's desired set.

Protocol, inside one transaction:
    1. Upsert every desired alert by its key (re-opening RESOLVED rows).
       Rows already OPEN with identical severity/message/metadata are skipped
       so their ``updated_at`` does not move.
    2. Re-read the OPEN rows and resolve those whose key is not desired.
    3. Commit.

Running it twice with the same desired set changes nothing the second time.
Any database error rolls the transaction back and raises
PersistenceFailedError; the caller retries the whole call.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from deptsync.core.exceptions import PersistenceFailedError, UnauthenticatedError
from deptsync.services.alert_store import AlertStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    resolved: int = 0
    open_alerts: list = field(default_factory=list)

    @property
    def open_alert_count(self):
        return len(self.open_alerts)

    def to_dict(self):
        return {
            "inserted": self.inserted,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "resolved": self.resolved,
            "open_alert_count": self.open_alert_count,
        }


def _is_unchanged(row, alert):
    return (
        row.status == "OPEN"
        and row.severity == alert.severity
        and row.message == alert.message
        and (row.meta or {}) == (alert.metadata or {})
    )


class Reconciler:
    def __init__(self, session, store=None):
        self.session = session
        self.store = store or AlertStore(session)

    def reconcile(self, project_id, shooting_day_id, department, desired, acting_user_id):
        if not acting_user_id:
            raise UnauthenticatedError()

        # Later duplicates of a key replace earlier ones
        desired_by_key = {}
        for alert in desired:
            desired_by_key[alert.key] = alert

        scope = {"project_id": project_id, "shooting_day_id": shooting_day_id,
                 "department": department}
        result = ReconcileResult()
        try:
            existing = {
                row.key: row
                for row in self.store.list_scope(project_id, shooting_day_id, department)
            }
            for key, alert in desired_by_key.items():
                row = existing.get(key)
                if row is not None and _is_unchanged(row, alert):
                    result.unchanged += 1
                    continue
                self.store.upsert(project_id, shooting_day_id, department, alert, acting_user_id)
                if row is None:
                    result.inserted += 1
                else:
                    result.updated += 1

            open_rows = self.store.list_open(
                project_id, shooting_day_id, department, refresh=True,
            )
            orphan_ids = [row.id for row in open_rows if row.key not in desired_by_key]
            result.resolved = self.store.resolve(orphan_ids, acting_user_id)

            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Alert reconcile failed", extra=scope)
            raise PersistenceFailedError("Alert reconcile", exc) from exc

        try:
            result.open_alerts = self.store.list_open(
                project_id, shooting_day_id, department, refresh=True,
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Open alert read after reconcile failed", extra=scope)
            raise PersistenceFailedError("Alert reconcile", exc) from exc

        logger.info(
            "Reconciled %s alerts day=%s: +%d ~%d =%d -%d (open=%d)",
            department, shooting_day_id, result.inserted, result.updated,
            result.unchanged, result.resolved, result.open_alert_count,
            extra=scope,
        )
        return result
