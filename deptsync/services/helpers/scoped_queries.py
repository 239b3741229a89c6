"""
Project-scoped lookup helpers.

Every catalog lookup made on behalf of a request goes through these helpers
so that a day, scene, or source record belonging to another project is
indistinguishable from a missing one.

Usage:
    day = get_scoped(session, ShootingDay, day_id, project_id=project_id)
"""

import logging

from sqlalchemy import select

from deptsync.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def get_scoped(session, model, pk: int, *, project_id: int):
    """Fetch a single entity by PK, restricted to ``project_id``.

    Raises:
        ValueError: If ``model`` has no ``project_id`` column.
        NotFoundError: If the entity does not exist OR belongs to another
                       project. The two cases are intentionally indistinguishable.
    """
    if not hasattr(model, "project_id"):
        raise ValueError(
            f"{model.__name__} has no project_id column; refusing an unscoped lookup."
        )

    stmt = select(model).where(model.id == pk, model.project_id == project_id)
    result = session.execute(stmt).scalar_one_or_none()

    if result is None:
        logger.debug(
            "get_scoped: %s id=%s not found in project %s",
            model.__name__, pk, project_id,
        )
        raise NotFoundError(resource=model.__name__, resource_id=pk, project_id=project_id)

    return result
