"""Pytest configuration and fixtures for service layer tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import StaticPool

from sitestock.models.base import Base
from sitestock.services.access_policy import ActorContext


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import sitestock.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session


@pytest.fixture
def db_session(test_db):
    """Provide a database session for tests."""
    return test_db()


@pytest.fixture
def actor():
    """An actor with access to every project."""
    return ActorContext(user_id=1, display_name="Store Keeper", access_all=True)


@pytest.fixture
def project(db_session):
    """Project P1, committed so session_scope() rollbacks keep it."""
    from sitestock.services import project_service

    project = project_service.create_project(
        code="P1", name="Metro Depot", location="Yard A", session=db_session
    )
    db_session.commit()
    return project


@pytest.fixture
def other_project(db_session):
    from sitestock.services import project_service

    project = project_service.create_project(
        code="P2", name="Ring Road Flyover", location="Km 14", session=db_session
    )
    db_session.commit()
    return project


@pytest.fixture
def cement(db_session):
    """Material CEM-50 with empty stock."""
    from sitestock.services import material_service

    material = material_service.create_material(
        code="CEM-50",
        name="Portland Cement 50kg",
        unit="bag",
        category="Civil",
        session=db_session,
    )
    db_session.commit()
    return material


@pytest.fixture
def rebar(db_session):
    from sitestock.services import material_service

    material = material_service.create_material(
        code="TMT-12",
        name="TMT Bar 12mm",
        unit="m",
        category="Steel",
        part_no="FE500-12",
        session=db_session,
    )
    db_session.commit()
    return material


@pytest.fixture
def cement_allocated(db_session, project, cement):
    """CEM-50 allocated 100 units to P1."""
    from sitestock.services import allocation_service

    allocation_service.upsert_allocation(project.id, cement.id, 100, session=db_session)
    db_session.commit()
    return cement
