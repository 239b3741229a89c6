"""
Tests for deptsync/services/reconciler.py and alert_store.py

Covers:
    - insert / unchanged / update / resolve counting
    - idempotence of a repeated reconcile
    - re-opening a RESOLVED row keeps its id and created_by
    - duplicate desired keys (last one wins)
    - scope isolation between departments and days
    - missing acting user, database failure -> rollback + PersistenceFailedError
"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from deptsync.core.exceptions import PersistenceFailedError, UnauthenticatedError
from deptsync.models.alerts import DepartmentDayDependency
from deptsync.services.reconciler import Reconciler
from deptsync.services.synthesizers.base import DesiredAlert

USER = "coordinator-1"


def _alert(source_id, severity="WARNING", message=None, source_type="ART_PULL_ITEM", **meta):
    return DesiredAlert(
        source_type=source_type,
        source_id=str(source_id),
        severity=severity,
        message=message or f"Item {source_id} is not on set.",
        metadata=meta,
    )


def _rows(session, day_id=None):
    stmt = select(DepartmentDayDependency).order_by(DepartmentDayDependency.id)
    if day_id is not None:
        stmt = stmt.where(DepartmentDayDependency.shooting_day_id == day_id)
    return list(session.execute(stmt.execution_options(populate_existing=True)).scalars())


@pytest.fixture()
def reconciler(session):
    return Reconciler(session)


@pytest.fixture()
def day(days):
    return days[0]


class TestReconcile:
    def test_inserts_new_alerts(self, session, reconciler, project, day):
        result = reconciler.reconcile(
            project.id, day.id, "ART", [_alert(1, "CRITICAL"), _alert(2)], USER,
        )

        assert result.to_dict() == {
            "inserted": 2, "updated": 0, "unchanged": 0, "resolved": 0, "open_alert_count": 2,
        }
        rows = _rows(session)
        assert {r.source_id for r in rows} == {"1", "2"}
        assert all(r.status == "OPEN" and r.created_by == USER for r in rows)

    def test_open_alerts_are_ordered_most_severe_first(self, reconciler, project, day):
        result = reconciler.reconcile(
            project.id, day.id, "ART",
            [_alert(1, "INFO"), _alert(2, "CRITICAL"), _alert(3, "WARNING")],
            USER,
        )
        assert [a.severity for a in result.open_alerts] == ["CRITICAL", "WARNING", "INFO"]

    def test_second_run_is_a_no_op(self, session, reconciler, project, day):
        desired = [_alert(1, "CRITICAL", qty=2), _alert(2)]
        reconciler.reconcile(project.id, day.id, "ART", desired, USER)
        before = {r.id: r.updated_at for r in _rows(session)}

        result = reconciler.reconcile(project.id, day.id, "ART", desired, USER)

        assert result.unchanged == 2
        assert result.inserted == result.updated == result.resolved == 0
        assert {r.id: r.updated_at for r in _rows(session)} == before

    def test_changed_message_is_updated_in_place(self, session, reconciler, project, day):
        reconciler.reconcile(project.id, day.id, "ART", [_alert(1)], USER)
        row_id = _rows(session)[0].id

        result = reconciler.reconcile(
            project.id, day.id, "ART", [_alert(1, "CRITICAL", "Now critical.")], "someone-else",
        )

        assert result.updated == 1
        row = _rows(session)[0]
        assert row.id == row_id
        assert row.severity == "CRITICAL"
        assert row.message == "Now critical."
        assert row.created_by == USER

    def test_missing_keys_are_resolved_not_deleted(self, session, reconciler, project, day):
        reconciler.reconcile(project.id, day.id, "ART", [_alert(1), _alert(2)], USER)

        result = reconciler.reconcile(project.id, day.id, "ART", [_alert(2)], "resolver")

        assert result.resolved == 1
        assert result.open_alert_count == 1
        rows = {r.source_id: r for r in _rows(session)}
        assert rows["1"].status == "RESOLVED"
        assert rows["1"].resolved_by == "resolver"
        assert rows["1"].resolved_at is not None
        assert rows["2"].status == "OPEN"

    def test_empty_desired_resolves_everything(self, reconciler, project, day):
        reconciler.reconcile(project.id, day.id, "ART", [_alert(1), _alert(2)], USER)

        result = reconciler.reconcile(project.id, day.id, "ART", [], USER)

        assert result.resolved == 2
        assert result.open_alerts == []

    def test_resolved_row_is_reopened(self, session, reconciler, project, day):
        reconciler.reconcile(project.id, day.id, "ART", [_alert(1)], USER)
        original_id = _rows(session)[0].id
        reconciler.reconcile(project.id, day.id, "ART", [], "resolver")

        result = reconciler.reconcile(project.id, day.id, "ART", [_alert(1)], "reopener")

        assert result.updated == 1
        rows = _rows(session)
        assert len(rows) == 1
        assert rows[0].id == original_id
        assert rows[0].status == "OPEN"
        assert rows[0].resolved_by is None
        assert rows[0].resolved_at is None
        assert rows[0].created_by == USER

    def test_duplicate_keys_last_one_wins(self, session, reconciler, project, day):
        result = reconciler.reconcile(
            project.id, day.id, "ART",
            [_alert(1, "WARNING", "first"), _alert(1, "CRITICAL", "second")],
            USER,
        )

        assert result.inserted == 1
        rows = _rows(session)
        assert len(rows) == 1
        assert rows[0].message == "second"
        assert rows[0].severity == "CRITICAL"

    def test_same_source_id_different_type_are_distinct(self, session, reconciler, project, day):
        reconciler.reconcile(
            project.id, day.id, "ART",
            [_alert(5), _alert(5, source_type="ART_WORK_ORDER")],
            USER,
        )
        assert len(_rows(session)) == 2

    def test_other_scopes_are_untouched(self, session, reconciler, project, days):
        reconciler.reconcile(project.id, days[0].id, "ART", [_alert(1)], USER)
        reconciler.reconcile(project.id, days[1].id, "ART", [_alert(1)], USER)
        reconciler.reconcile(
            project.id, days[0].id, "POST",
            [_alert(days[0].id, "CRITICAL", source_type="INGEST_QC")],
            USER,
        )

        reconciler.reconcile(project.id, days[0].id, "ART", [], USER)

        statuses = {(r.shooting_day_id, r.department): r.status for r in _rows(session)}
        assert statuses[(days[0].id, "ART")] == "RESOLVED"
        assert statuses[(days[1].id, "ART")] == "OPEN"
        assert statuses[(days[0].id, "POST")] == "OPEN"


class TestReconcileFailures:
    def test_requires_acting_user(self, session, reconciler, project, day):
        with pytest.raises(UnauthenticatedError):
            reconciler.reconcile(project.id, day.id, "ART", [_alert(1)], None)
        assert _rows(session) == []

    def test_database_error_rolls_back(self, session, reconciler, project, day, monkeypatch):
        reconciler.reconcile(project.id, day.id, "ART", [_alert(1)], USER)

        def _boom(*args, **kwargs):
            raise OperationalError("UPDATE department_day_dependencies", {}, Exception("db down"))

        monkeypatch.setattr(reconciler.store, "resolve", _boom)

        with pytest.raises(PersistenceFailedError) as exc_info:
            reconciler.reconcile(project.id, day.id, "ART", [_alert(2)], USER)

        assert exc_info.value.retryable is True
        rows = _rows(session)
        assert [(r.source_id, r.status) for r in rows] == [("1", "OPEN")]

    def test_read_back_failure_is_typed(self, session, reconciler, project, day, monkeypatch):
        real_list_open = reconciler.store.list_open
        calls = []

        def _fail_after_commit(*args, **kwargs):
            calls.append(args)
            if len(calls) > 1:
                raise OperationalError("SELECT department_day_dependencies", {}, Exception("db down"))
            return real_list_open(*args, **kwargs)

        monkeypatch.setattr(reconciler.store, "list_open", _fail_after_commit)

        with pytest.raises(PersistenceFailedError) as exc_info:
            reconciler.reconcile(project.id, day.id, "ART", [_alert(1)], USER)

        assert exc_info.value.retryable is True
        # The reconcile itself was committed; a retry converges on the same rows
        assert [(r.source_id, r.status) for r in _rows(session)] == [("1", "OPEN")]
