"""
Tests for deptsync/services/readiness.py

Covers:
    - scene readiness from (total, blockers) counts, including zero totals
    - day readiness from the open-alert set
    - readiness notes per department label
"""

from types import SimpleNamespace

import pytest

from deptsync.services.readiness import (
    compute_day_readiness,
    compute_scene_readiness,
    summarize_day,
    summarize_scene,
)


def _alerts(*severities):
    return [SimpleNamespace(severity=s) for s in severities]


class TestSceneReadiness:
    @pytest.mark.parametrize(
        "total, blockers, expected",
        [
            (0, 0, "NOT_READY"),
            (-1, 0, "NOT_READY"),
            (3, 0, "READY"),
            (3, -2, "READY"),
            (3, 1, "IN_PROGRESS"),
            (3, 3, "NOT_READY"),
            (3, 5, "NOT_READY"),
        ],
    )
    def test_status(self, total, blockers, expected):
        assert compute_scene_readiness(total, blockers) == expected

    def test_notes(self):
        assert summarize_scene("ART", 0, 0) == "No Art prep records yet."
        assert summarize_scene("GRIP_ELECTRIC", 4, 0) == "All Grip & Electric items are resolved."
        assert summarize_scene("POST", 4, 2) == "2 unresolved Post item(s) of 4."


class TestDayReadiness:
    def test_no_alerts_is_ready(self):
        assert compute_day_readiness([]) == "READY"

    def test_any_critical_is_not_ready(self):
        assert compute_day_readiness(_alerts("INFO", "CRITICAL", "WARNING")) == "NOT_READY"

    def test_info_only_is_in_progress(self):
        assert compute_day_readiness(_alerts("INFO")) == "IN_PROGRESS"

    def test_warnings_are_in_progress(self):
        assert compute_day_readiness(_alerts("WARNING", "WARNING")) == "IN_PROGRESS"

    def test_accepts_generators(self):
        assert compute_day_readiness(a for a in _alerts("CRITICAL")) == "NOT_READY"

    def test_notes(self):
        assert summarize_day("ART", []) == "No open Art blockers."
        assert summarize_day("POST", _alerts("CRITICAL", "CRITICAL", "INFO")) == (
            "2 critical Post blocker(s) open."
        )
        assert summarize_day("GRIP_ELECTRIC", _alerts("WARNING", "INFO")) == (
            "2 Grip & Electric blocker(s) pending."
        )
