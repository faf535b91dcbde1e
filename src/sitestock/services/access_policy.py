"""Actor context and project access checks.

Identity resolution (token validation, role lookup) happens upstream; the
ledger receives an ActorContext describing which projects the caller may
act on.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from ..models import Project
from .exceptions import ForbiddenError


@dataclass(frozen=True)
class ActorContext:
    """The user performing a ledger operation.

    Attributes:
        user_id: Upstream user identifier
        display_name: Name for audit/logging
        access_all: True for users with access to every project
        project_ids: Projects the user is assigned to
    """

    user_id: int
    display_name: str = ""
    access_all: bool = False
    project_ids: FrozenSet[int] = field(default_factory=frozenset)

    def can_access(self, project_id: int) -> bool:
        return self.access_all or project_id in self.project_ids


def assert_project_access(actor: Optional[ActorContext], project: Project) -> None:
    """Raise ForbiddenError unless the actor may act on the project.

    Raises:
        ForbiddenError: If actor is None or lacks access
    """
    if actor is None:
        raise ForbiddenError("Authentication required")
    if not actor.can_access(project.id):
        raise ForbiddenError(f"You do not have access to project {project.code}")
