"""
Versioned metadata schemas for dependency alerts.

Each synthesizer rule (``source_type``) owns one schema: the set of keys its
metadata bag may carry. ``build_metadata`` validates the keys and stamps the
schema tag so UI consumers can branch on ``metadata["schema"]``.

Usage:
    from deptsync.models.alert_metadata import build_metadata

    meta = build_metadata("ART_PULL_ITEM", list_id=3, scene_id=7, status="TO_SOURCE")
    # {"schema": "ART_PULL_ITEM/v1", "list_id": 3, "scene_id": 7, "status": "TO_SOURCE"}
"""

from deptsync.core.exceptions import ValidationError

METADATA_SCHEMAS = {
    # Art
    "ART_PULL_ITEM": (1, frozenset({"list_id", "scene_id", "status"})),
    "ART_CONTINUITY_ENTRY": (1, frozenset({"scene_id", "risk_level"})),
    "ART_WORK_ORDER": (1, frozenset({"work_order_type", "work_order_status", "location_id"})),
    "ART_LOCATION_CONFLICT": (1, frozenset({"location_id", "work_order_ids"})),
    # Grip & Electric
    "LIGHTING_PLAN": (1, frozenset({"plan_ids", "unresolved_count", "unavailable_count"})),
    "RIGGING_TASK": (1, frozenset({"task_id", "task_status", "scene_ids"})),
    "POWER_SAFETY": (1, frozenset({
        "has_plan", "total_load", "capacity", "failed_checks", "incomplete_checks",
    })),
    # Post
    "INGEST_QC": (1, frozenset({"batch_id", "qc_failed_count", "missing_roll_count"})),
    "INGEST_PENDING": (1, frozenset({"batch_id", "expected_roll_count", "received_roll_count"})),
    "VFX_SHOT": (1, frozenset({"shot_code", "scene_id", "vendor"})),
}


def schema_tag(source_type: str) -> str:
    version, _keys = METADATA_SCHEMAS[source_type]
    return f"{source_type}/v{version}"


def build_metadata(source_type: str, **fields) -> dict:
    """Return a metadata bag for ``source_type`` after validating its keys."""
    if source_type not in METADATA_SCHEMAS:
        raise ValidationError(
            f"No metadata schema registered for source_type={source_type!r}",
            details={"source_type": "unknown"},
        )
    _version, allowed = METADATA_SCHEMAS[source_type]
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValidationError(
            f"Unexpected metadata keys for {source_type}: {', '.join(unknown)}",
            details={key: "not in schema" for key in unknown},
        )
    return {"schema": schema_tag(source_type), **fields}
