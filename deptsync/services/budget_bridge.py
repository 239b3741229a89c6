"""
Best-effort side channel from department cost records to the budget.

A failed sync is logged and swallowed: the mutation that triggered it has
already succeeded and the next change to the same record retries it.
"""

import logging

logger = logging.getLogger(__name__)


class BudgetBridge:
    def __init__(self, subsystem, enabled=True):
        self.subsystem = subsystem
        self.enabled = enabled

    def maybe_sync_to_budget(
        self, project_id, department, source_type, source_id, planned_amount, reason,
    ):
        """Return the synced line item id, or None when skipped or failed."""
        if not self.enabled:
            return None
        if planned_amount is None or planned_amount <= 0:
            logger.debug(
                "Budget sync skipped for %s:%s (amount=%s)", source_type, source_id, planned_amount,
            )
            return None

        try:
            result = self.subsystem.sync_external_cost(
                project_id, department, source_type, source_id, planned_amount, reason,
            )
        except Exception as e:
            logger.warning(
                "Budget sync failed for %s %s:%s: %s",
                department, source_type, source_id, e,
                extra={"project_id": project_id, "department": department},
            )
            return None
        return (result or {}).get("line_item_id")
