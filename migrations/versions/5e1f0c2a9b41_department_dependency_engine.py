"""department_dependency_engine

Create the production catalog, call-sheet container, department source
tables (Art, Grip & Electric, Post), budget subsystem tables and the
engine's alert / readiness tables.

Tables already created by ``db.create_all()`` are skipped.

Revision ID: 5e1f0c2a9b41
Revises:
Create Date: 2026-03-02 09:14:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "5e1f0c2a9b41"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _project_fk():
    return sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE")


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    def create(name, *columns, indexes=()):
        if name in existing_tables:
            return
        op.create_table(name, *columns)
        for index_name, index_columns in indexes:
            op.create_index(index_name, name, index_columns)

    # ── Catalog ──────────────────────────────────────────────────────────
    create(
        "projects",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    create(
        "locations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        _project_fk(),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_locations_project_id", ["project_id"])],
    )
    create(
        "shooting_days",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False, comment="Ordinal within the schedule"),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("general_call", sa.String(length=10), nullable=True, comment="HH:MM crew call"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        _project_fk(),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_shooting_days_project_id", ["project_id"])],
    )
    create(
        "scenes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("scene_number", sa.String(length=20), nullable=False),
        sa.Column("heading", sa.String(length=300), nullable=True),
        _project_fk(),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_scenes_project_id", ["project_id"])],
    )
    create(
        "shooting_day_scenes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("shooting_day_id", sa.Integer(), nullable=False),
        sa.Column("scene_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["shooting_day_id"], ["shooting_days.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["scene_id"], ["scenes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shooting_day_id", "scene_id", name="uq_shooting_day_scene"),
        indexes=[
            ("ix_shooting_day_scenes_shooting_day_id", ["shooting_day_id"]),
            ("ix_shooting_day_scenes_scene_id", ["scene_id"]),
        ],
    )

    # ── Call sheets ──────────────────────────────────────────────────────
    create(
        "call_sheets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("shooting_day_id", sa.Integer(), nullable=False),
        sa.Column("advance_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["shooting_day_id"], ["shooting_days.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shooting_day_id"),
    )
    create(
        "call_sheet_departments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("call_sheet_id", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=False),
        sa.Column("call_time", sa.String(length=10), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["call_sheet_id"], ["call_sheets.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("call_sheet_id", "department", name="uq_call_sheet_department"),
        indexes=[("ix_call_sheet_departments_call_sheet_id", ["call_sheet_id"])],
    )

    # ── Art ──────────────────────────────────────────────────────────────
    create(
        "art_pull_lists",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("scene_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        _project_fk(),
        sa.ForeignKeyConstraint(["scene_id"], ["scenes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[
            ("ix_art_pull_lists_project_id", ["project_id"]),
            ("ix_art_pull_lists_scene_id", ["scene_id"]),
        ],
    )
    create(
        "art_pull_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("list_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("source", sa.String(length=20), nullable=False, server_default="STOCK"),
        sa.Column("due_day_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="TO_SOURCE"),
        sa.Column("vendor", sa.String(length=200), nullable=True),
        sa.Column("planned_unit_cost", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("is_blocking", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["list_id"], ["art_pull_lists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["due_day_id"], ["shooting_days.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[
            ("ix_art_pull_items_list_id", ["list_id"]),
            ("ix_art_pull_items_due_day_id", ["due_day_id"]),
        ],
    )
    create(
        "art_continuity_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("scene_id", sa.Integer(), nullable=False),
        sa.Column("due_day_id", sa.Integer(), nullable=True),
        sa.Column("subject_name", sa.String(length=200), nullable=False),
        sa.Column("risk_level", sa.String(length=10), nullable=False, server_default="MEDIUM"),
        sa.Column("is_resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("resolved_by", sa.String(length=100), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _project_fk(),
        sa.ForeignKeyConstraint(["scene_id"], ["scenes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["due_day_id"], ["shooting_days.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[
            ("ix_art_continuity_entries_project_id", ["project_id"]),
            ("ix_art_continuity_entries_scene_id", ["scene_id"]),
            ("ix_art_continuity_entries_due_day_id", ["due_day_id"]),
        ],
    )
    create(
        "art_work_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="BUILD"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PLANNED"),
        sa.Column("start_day_id", sa.Integer(), nullable=True),
        sa.Column("end_day_id", sa.Integer(), nullable=True),
        sa.Column("summary", sa.String(length=300), nullable=True),
        *_timestamps(),
        _project_fk(),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["start_day_id"], ["shooting_days.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["end_day_id"], ["shooting_days.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_art_work_orders_project_id", ["project_id"])],
    )

    # ── Grip & Electric ──────────────────────────────────────────────────
    create(
        "lighting_plans",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("scene_id", sa.Integer(), nullable=False),
        sa.Column("shooting_day_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _project_fk(),
        sa.ForeignKeyConstraint(["scene_id"], ["scenes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["shooting_day_id"], ["shooting_days.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[
            ("ix_lighting_plans_project_id", ["project_id"]),
            ("ix_lighting_plans_scene_id", ["scene_id"]),
            ("ix_lighting_plans_shooting_day_id", ["shooting_day_id"]),
        ],
    )
    create(
        "lighting_needs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("plan_id", sa.Integer(), nullable=False),
        sa.Column("fixture_type", sa.String(length=100), nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("power_draw", sa.Float(), nullable=False, server_default="0"),
        sa.Column("source", sa.String(length=20), nullable=False, server_default="OWNED"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("estimated_rate", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["plan_id"], ["lighting_plans.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_lighting_needs_plan_id", ["plan_id"])],
    )
    create(
        "rigging_tasks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PLANNED"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        _project_fk(),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_rigging_tasks_project_id", ["project_id"])],
    )
    create(
        "rigging_task_scenes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("scene_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["rigging_tasks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["scene_id"], ["scenes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_rigging_task_scenes_task_id", ["task_id"])],
    )
    create(
        "power_plans",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("shooting_day_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=True),
        sa.Column("generator", sa.String(length=100), nullable=True),
        sa.Column("capacity_amps", sa.Float(), nullable=False, server_default="0"),
        sa.Column("distro_notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        *_timestamps(),
        _project_fk(),
        sa.ForeignKeyConstraint(["shooting_day_id"], ["shooting_days.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "shooting_day_id", name="uq_power_plan_day"),
        indexes=[("ix_power_plans_project_id", ["project_id"])],
    )
    create(
        "power_circuits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("power_plan_id", sa.Integer(), nullable=False),
        sa.Column("run_label", sa.String(length=100), nullable=False),
        sa.Column("load_amps", sa.Float(), nullable=False, server_default="0"),
        sa.Column("breaker", sa.String(length=50), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PLANNED"),
        sa.ForeignKeyConstraint(["power_plan_id"], ["power_plans.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_power_circuits_power_plan_id", ["power_plan_id"])],
    )
    create(
        "safety_checklist_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("shooting_day_id", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=30), nullable=False, server_default="GRIP_ELECTRIC"),
        sa.Column("item", sa.String(length=200), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="REQUIRED"),
        sa.Column("completed_by", sa.String(length=100), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _project_fk(),
        sa.ForeignKeyConstraint(["shooting_day_id"], ["shooting_days.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[
            ("ix_safety_checklist_items_project_id", ["project_id"]),
            ("ix_safety_checklist_items_shooting_day_id", ["shooting_day_id"]),
        ],
    )

    # ── Post ─────────────────────────────────────────────────────────────
    create(
        "post_ingest_batches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("shooting_day_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="QUEUED"),
        sa.Column("expected_roll_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("received_roll_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("qc_passed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("qc_failed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("missing_roll_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        _project_fk(),
        sa.ForeignKeyConstraint(["shooting_day_id"], ["shooting_days.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "shooting_day_id", name="uq_post_ingest_batch_day"),
        indexes=[("ix_post_ingest_batches_project_id", ["project_id"])],
    )
    create(
        "post_ingest_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("batch_id", sa.Integer(), nullable=False),
        sa.Column("roll", sa.String(length=50), nullable=False),
        sa.Column("qc_status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("issue", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["batch_id"], ["post_ingest_batches.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("batch_id", "roll", name="uq_post_ingest_item_roll"),
        indexes=[("ix_post_ingest_items_batch_id", ["batch_id"])],
    )
    create(
        "vfx_shots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("scene_id", sa.Integer(), nullable=True),
        sa.Column("shot_code", sa.String(length=50), nullable=False),
        sa.Column("vendor", sa.String(length=200), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="NOT_SENT"),
        *_timestamps(),
        _project_fk(),
        sa.ForeignKeyConstraint(["scene_id"], ["scenes.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[
            ("ix_vfx_shots_project_id", ["project_id"]),
            ("ix_vfx_shots_scene_id", ["scene_id"]),
        ],
    )

    # ── Budget ───────────────────────────────────────────────────────────
    create(
        "budgets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        _project_fk(),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_budgets_project_id", ["project_id"])],
    )
    create(
        "budget_categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("budget_id", sa.Integer(), nullable=False),
        sa.Column("parent_category_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.ForeignKeyConstraint(["budget_id"], ["budgets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_category_id"], ["budget_categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_budget_categories_budget_id", ["budget_id"])],
    )
    create(
        "budget_line_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("budget_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("description", sa.String(length=300), nullable=False),
        sa.Column("planned_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["budget_id"], ["budgets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["budget_categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        indexes=[("ix_budget_line_items_budget_id", ["budget_id"])],
    )
    create(
        "department_budget_links",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=30), nullable=False),
        sa.Column("source_type", sa.String(length=50), nullable=False),
        sa.Column("source_id", sa.String(length=100), nullable=False),
        sa.Column("budget_id", sa.Integer(), nullable=True),
        sa.Column("line_item_id", sa.Integer(), nullable=True),
        sa.Column("planned_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        _project_fk(),
        sa.ForeignKeyConstraint(["budget_id"], ["budgets.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["line_item_id"], ["budget_line_items.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "project_id", "department", "source_type", "source_id",
            name="uq_department_budget_link_source",
        ),
        indexes=[("ix_department_budget_links_project_id", ["project_id"])],
    )

    # ── Engine: alerts & readiness ───────────────────────────────────────
    create(
        "department_day_dependencies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("shooting_day_id", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=30), nullable=False),
        sa.Column("source_type", sa.String(length=50), nullable=False,
                  comment="Synthesizer rule tag, e.g. ART_PULL_ITEM, POWER_SAFETY"),
        sa.Column("source_id", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="OPEN"),
        sa.Column("severity", sa.String(length=10), nullable=False, server_default="WARNING"),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        sa.Column("resolved_by", sa.String(length=100), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        _project_fk(),
        sa.ForeignKeyConstraint(["shooting_day_id"], ["shooting_days.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "project_id", "shooting_day_id", "department", "source_type", "source_id",
            name="uq_department_day_dependency_key",
        ),
        sa.CheckConstraint("status IN ('OPEN','RESOLVED')", name="ck_ddd_status"),
        sa.CheckConstraint("severity IN ('INFO','WARNING','CRITICAL')", name="ck_ddd_severity"),
        indexes=[
            ("ix_department_day_dependencies_project_id", ["project_id"]),
            ("ix_ddd_project_day_status", ["project_id", "shooting_day_id", "status"]),
            ("ix_ddd_department_severity", ["department", "severity"]),
        ],
    )
    create(
        "department_scene_readiness",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("scene_id", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=30), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="NOT_READY"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_tracked", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("blocker_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_by", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        _project_fk(),
        sa.ForeignKeyConstraint(["scene_id"], ["scenes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "project_id", "scene_id", "department", name="uq_department_scene_readiness",
        ),
        indexes=[("ix_department_scene_readiness_project_id", ["project_id"])],
    )
    create(
        "department_day_readiness",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("shooting_day_id", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=30), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="READY"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("open_alert_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("critical_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_by", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        _project_fk(),
        sa.ForeignKeyConstraint(["shooting_day_id"], ["shooting_days.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "project_id", "shooting_day_id", "department", name="uq_department_day_readiness",
        ),
        indexes=[("ix_department_day_readiness_project_id", ["project_id"])],
    )


# Reverse creation order so foreign keys are dropped before their targets
_TABLES = [
    "department_day_readiness", "department_scene_readiness", "department_day_dependencies",
    "department_budget_links", "budget_line_items", "budget_categories", "budgets",
    "vfx_shots", "post_ingest_items", "post_ingest_batches",
    "safety_checklist_items", "power_circuits", "power_plans",
    "rigging_task_scenes", "rigging_tasks", "lighting_needs", "lighting_plans",
    "art_work_orders", "art_continuity_entries", "art_pull_items", "art_pull_lists",
    "call_sheet_departments", "call_sheets",
    "shooting_day_scenes", "scenes", "shooting_days", "locations", "projects",
]


def downgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    for name in _TABLES:
        if name in existing_tables:
            op.drop_table(name)
