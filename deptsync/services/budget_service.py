"""
Budget subsystem: mirror a department's planned cost into a budget line item.

Each source record (pull item, lighting need, power plan) owns at most one
line item, tracked through ``DepartmentBudgetLink``. Re-syncing the same
source updates that line item in place.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from deptsync.core.exceptions import NotFoundError, PersistenceFailedError
from deptsync.models.budget import Budget, BudgetCategory, BudgetLineItem, DepartmentBudgetLink

logger = logging.getLogger(__name__)

# Top-level category names tried in order, case-insensitively
CATEGORY_CANDIDATES = {
    "ART": ["Art Department", "Art", "Set Dressing", "Props"],
    "GRIP_ELECTRIC": ["Grip & Electric", "Lighting", "Electric", "Grip"],
    "POST": ["Post Production", "Post", "Editorial"],
}


def find_editable_budget(session, project_id):
    """Most recently created budget of the project that is not LOCKED."""
    return session.execute(
        select(Budget)
        .where(Budget.project_id == project_id, Budget.status != "LOCKED")
        .order_by(Budget.created_at.desc(), Budget.id.desc())
        .limit(1)
    ).scalar_one_or_none()


def find_best_category_id(session, budget_id, department):
    for candidate in CATEGORY_CANDIDATES.get(department, []):
        category_id = session.execute(
            select(BudgetCategory.id)
            .where(
                BudgetCategory.budget_id == budget_id,
                BudgetCategory.parent_category_id.is_(None),
                func.lower(BudgetCategory.name) == candidate.lower(),
            )
            .order_by(BudgetCategory.id)
            .limit(1)
        ).scalar_one_or_none()
        if category_id is not None:
            return category_id
    return None


class SqlBudgetSubsystem:
    def __init__(self, session, identity_provider=None):
        self.session = session
        self.identity_provider = identity_provider

    def sync_external_cost(
        self, project_id, department, source_type, source_id, planned_amount, reason,
    ):
        """
        Create or update the line item linked to a department source record.

        Raises NotFoundError when the project has no editable budget and
        PersistenceFailedError when the write fails.
        """
        budget = find_editable_budget(self.session, project_id)
        if budget is None:
            raise NotFoundError(resource="Budget", project_id=project_id)

        acting_user_id = self.identity_provider() if self.identity_provider else None
        source_id = str(source_id)
        amount = round(float(planned_amount), 2)

        try:
            category_id = find_best_category_id(self.session, budget.id, department)
            link = self.session.execute(
                select(DepartmentBudgetLink).where(
                    DepartmentBudgetLink.project_id == project_id,
                    DepartmentBudgetLink.department == department,
                    DepartmentBudgetLink.source_type == source_type,
                    DepartmentBudgetLink.source_id == source_id,
                )
            ).scalar_one_or_none()

            line_item = None
            if link is not None and link.line_item_id is not None:
                line_item = self.session.get(BudgetLineItem, link.line_item_id)
                if line_item is not None and line_item.budget_id != budget.id:
                    line_item = None

            if line_item is None:
                line_item = BudgetLineItem(budget_id=budget.id, created_by=acting_user_id)
                self.session.add(line_item)
            line_item.category_id = category_id
            line_item.description = reason[:300]
            line_item.planned_amount = amount
            self.session.flush()

            if link is None:
                link = DepartmentBudgetLink(
                    project_id=project_id,
                    department=department,
                    source_type=source_type,
                    source_id=source_id,
                    created_by=acting_user_id,
                )
                self.session.add(link)
            link.budget_id = budget.id
            link.line_item_id = line_item.id
            link.planned_amount = amount
            link.last_synced_at = datetime.now(timezone.utc)

            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceFailedError("Budget line sync", exc) from exc

        logger.info(
            "Budget line %s synced for %s %s:%s amount=%.2f",
            line_item.id, department, source_type, source_id, amount,
            extra={"project_id": project_id, "department": department},
        )
        return {"line_item_id": line_item.id, "budget_id": budget.id, "category_id": category_id}
