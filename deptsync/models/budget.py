"""
Department Dependency Sync
Budget subsystem models (external collaborator, written only through
``deptsync.services.budget_service``).

Models:
    - Budget:                project budget; LOCKED budgets are never written
    - BudgetCategory:        top-level or nested category within a budget
    - BudgetLineItem:        planned cost line
    - DepartmentBudgetLink:  maps a department source record to its line item

Identity:
    DepartmentBudgetLink is unique on (project_id, department, source_type, source_id).
"""

from datetime import datetime, timezone

from deptsync.models import db


BUDGET_STATUSES = {"DRAFT", "ACTIVE", "LOCKED"}


def _utcnow():
    return datetime.now(timezone.utc)


class Budget(db.Model):
    __tablename__ = "budgets"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False, default="Main Budget")
    status = db.Column(db.String(20), nullable=False, default="DRAFT")
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    categories = db.relationship(
        "BudgetCategory", backref="budget", lazy="dynamic",
        cascade="all, delete-orphan",
    )


class BudgetCategory(db.Model):
    __tablename__ = "budget_categories"

    id = db.Column(db.Integer, primary_key=True)
    budget_id = db.Column(
        db.Integer, db.ForeignKey("budgets.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    parent_category_id = db.Column(
        db.Integer, db.ForeignKey("budget_categories.id", ondelete="CASCADE"),
        nullable=True,
    )
    name = db.Column(db.String(200), nullable=False)


class BudgetLineItem(db.Model):
    __tablename__ = "budget_line_items"

    id = db.Column(db.Integer, primary_key=True)
    budget_id = db.Column(
        db.Integer, db.ForeignKey("budgets.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    category_id = db.Column(
        db.Integer, db.ForeignKey("budget_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    description = db.Column(db.String(300), nullable=False)
    planned_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    created_by = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "budget_id": self.budget_id,
            "category_id": self.category_id,
            "description": self.description,
            "planned_amount": float(self.planned_amount or 0),
        }


class DepartmentBudgetLink(db.Model):
    __tablename__ = "department_budget_links"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    department = db.Column(db.String(30), nullable=False)
    source_type = db.Column(db.String(50), nullable=False)
    source_id = db.Column(db.String(100), nullable=False)
    budget_id = db.Column(
        db.Integer, db.ForeignKey("budgets.id", ondelete="SET NULL"), nullable=True,
    )
    line_item_id = db.Column(
        db.Integer, db.ForeignKey("budget_line_items.id", ondelete="SET NULL"), nullable=True,
    )
    planned_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    last_synced_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_by = db.Column(db.String(100), nullable=True)

    __table_args__ = (
        db.UniqueConstraint(
            "project_id", "department", "source_type", "source_id",
            name="uq_department_budget_link_source",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "department": self.department,
            "source_type": self.source_type,
            "source_id": self.source_id,
            "budget_id": self.budget_id,
            "line_item_id": self.line_item_id,
            "planned_amount": float(self.planned_amount or 0),
            "last_synced_at": self.last_synced_at.isoformat() if self.last_synced_at else None,
        }
