"""Project Service - project registration and lookup.

Projects are created and maintained by upstream administration tooling;
the ledger only needs to register, resolve and list them.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..models import Project
from ..utils.constants import MAX_CODE_LENGTH
from ..utils.validators import (
    sanitize_string,
    validate_required_string,
    validate_string_length,
)
from .database import session_scope
from .exceptions import DuplicateCodeError, ProjectNotFound, ValidationError


def create_project(
    code: str,
    name: str,
    location: Optional[str] = None,
    notes: Optional[str] = None,
    session: Optional[Session] = None,
) -> Project:
    """
    Register a project.

    Args:
        code: Unique project code (trimmed)
        name: Display name
        location: Optional site/location description
        notes: Optional notes
        session: Optional database session

    Returns:
        Created Project

    Raises:
        ValidationError: If code or name is blank
        DuplicateCodeError: If the code is already used
    """
    clean_code = sanitize_string(code)
    clean_name = sanitize_string(name)
    errors = []
    for value, label in ((clean_code, "Project code"), (clean_name, "Project name")):
        is_valid, error = validate_required_string(value, label)
        if not is_valid:
            errors.append(error)
    is_valid, error = validate_string_length(clean_code, MAX_CODE_LENGTH, "Project code")
    if not is_valid:
        errors.append(error)
    if errors:
        raise ValidationError(errors)

    def _impl(sess: Session) -> Project:
        if sess.query(Project).filter(Project.code == clean_code).first() is not None:
            raise DuplicateCodeError("project", clean_code)

        project = Project(
            code=clean_code,
            name=clean_name,
            location=sanitize_string(location),
            notes=notes,
        )
        sess.add(project)
        sess.flush()
        return project

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_project(project_id: int, session: Optional[Session] = None) -> Optional[Project]:
    """Get a project by ID, or None if it doesn't exist."""

    def _impl(sess: Session) -> Optional[Project]:
        return sess.get(Project, project_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def require_project(project_id: int, session: Session) -> Project:
    """
    Resolve a project inside an existing transaction.

    Raises:
        ValidationError: If project_id is missing
        ProjectNotFound: If no project has that ID
    """
    if project_id is None:
        raise ValidationError(["Project is required"])
    project = session.get(Project, project_id)
    if project is None:
        raise ProjectNotFound(project_id)
    return project


def list_projects(session: Optional[Session] = None) -> List[dict]:
    """List all projects ordered by code, as dictionaries."""

    def _impl(sess: Session) -> List[dict]:
        projects = sess.query(Project).order_by(Project.code).all()
        return [project.to_dict() for project in projects]

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
