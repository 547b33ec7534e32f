"""
Project store.

Owns the ordered collection of projects (creation order) and persists it as
one JSON list under the "projects" key.
"""
import logging
from datetime import date
from typing import List, Optional, Set

from .board import TaskBoard, project_keys
from .gateway import KeyValueGateway, GatewayError
from .naming import uniquify
from .schema import Project, ProjectStatus, new_project_id

logger = logging.getLogger(__name__)

PROJECTS_KEY = "projects"


class ProjectStore:
    """Collection of projects backed by a KeyValueGateway."""

    def __init__(self, gateway: KeyValueGateway, autoload: bool = True):
        self.gateway = gateway
        self._projects: List[Project] = []
        if autoload:
            self.load_all()

    # ── Queries ────────────────────────────────────────────────────────

    @property
    def projects(self) -> List[Project]:
        return list(self._projects)

    def get(self, project_id: str) -> Optional[Project]:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def names(self) -> Set[str]:
        return {p.name for p in self._projects}

    # ── Mutations ──────────────────────────────────────────────────────

    def create_project(self, name: str, due_date: Optional[date] = None) -> Project:
        """
        Create a project with a name unique among current projects.

        Args:
            name: Requested name; "Trip" becomes "Trip (1)" if taken
            due_date: Optional due date

        Returns:
            The created Project
        """
        project = Project(
            id=new_project_id(),
            name=uniquify(name, self.names()),
            due_date=due_date,
            status=ProjectStatus.ONGOING,
        )
        self._projects.append(project)
        self.save_all()
        logger.info(f"Created project {project.name!r} ({project.id})")
        return project

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and purge its lane keys. Unknown ids are a no-op."""
        project = self.get(project_id)
        if project is None:
            return False

        self._projects.remove(project)
        self.save_all()
        for key in project_keys(project_id):
            try:
                self.gateway.delete(key)
            except GatewayError as e:
                logger.error(f"Failed to purge {key}: {e}")
        logger.info(f"Deleted project {project.name!r} ({project_id})")
        return True

    def open_board(self, project_id: str) -> Optional[TaskBoard]:
        """Open the board of a project, or None if it does not exist."""
        project = self.get(project_id)
        if project is None:
            return None
        return TaskBoard.open(project, self.gateway, store=self)

    # ── Persistence ────────────────────────────────────────────────────

    def load_all(self) -> List[Project]:
        """Restore the collection. Missing or corrupt data yields an empty list."""
        self._projects = []
        try:
            payload = self.gateway.load(PROJECTS_KEY)
        except GatewayError as e:
            logger.warning(f"Error decoding projects: {e}")
            return self.projects

        if payload is None:
            return self.projects
        if not isinstance(payload, list):
            logger.warning(f"Error decoding projects: expected a list, got {type(payload).__name__}")
            return self.projects

        try:
            self._projects = [Project.from_dict(record) for record in payload]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Error decoding projects: {e}")
            self._projects = []
        return self.projects

    def save_all(self) -> bool:
        """Write the whole collection under one key. Failures are logged, not raised."""
        try:
            self.gateway.save(PROJECTS_KEY, [p.to_dict() for p in self._projects])
            return True
        except GatewayError as e:
            logger.error(f"Error encoding projects: {e}")
            return False
