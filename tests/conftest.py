"""
Shared pytest fixtures for the department dependency engine test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - project / days / scenes / location: a small production catalog
    - engine: DependencyEngine acting as "coordinator-1"
"""

import pytest

from deptsync import create_app
from deptsync.models import db as _db
from deptsync.models.production import Location, Project, Scene, ShootingDay, ShootingDayScene
from deptsync.services.engine import DependencyEngine

ACTING_USER = "coordinator-1"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def engine(session):
    return DependencyEngine.from_app(session, lambda: ACTING_USER)


# ── Catalog fixtures ─────────────────────────────────────────────────────


@pytest.fixture()
def project(session):
    proj = Project(name="Night Harbor")
    session.add(proj)
    session.commit()
    return proj


@pytest.fixture()
def days(session, project):
    """Shooting days 1..4 of the project, general call 06:30."""
    result = []
    for number in range(1, 5):
        day = ShootingDay(project_id=project.id, day_number=number, general_call="06:30")
        session.add(day)
        result.append(day)
    session.commit()
    return result


@pytest.fixture()
def scenes(session, project):
    """Scenes 12, 14 and 20 of the project."""
    result = []
    for number in ("12", "14", "20"):
        scene = Scene(project_id=project.id, scene_number=number, heading=f"Scene {number}")
        session.add(scene)
        result.append(scene)
    session.commit()
    return result


@pytest.fixture()
def location(session, project):
    loc = Location(project_id=project.id, name="Pier 9 Warehouse")
    session.add(loc)
    session.commit()
    return loc


@pytest.fixture()
def schedule(session):
    """Return a helper that schedules scenes on a day."""

    def _schedule(day, *scenes):
        for scene in scenes:
            session.add(ShootingDayScene(shooting_day_id=day.id, scene_id=scene.id))
        session.commit()

    return _schedule
