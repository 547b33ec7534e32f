"""
Project schema.

A project owns three ordered lanes of task names:
  To Do → In Progress → Done

Tasks have no identity beyond their display name. A name lives on at most
one lane of a project at any time. Project status is derived from the lanes:
completed once every task has reached Done.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, List, Dict, Any
import uuid


class Lane(Enum):
    """The three lanes of a project board."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @property
    def title(self) -> str:
        return _LANE_TITLES[self]

    @classmethod
    def from_str(cls, value) -> "Lane":
        """Accept a Lane, its value, its name or the hyphenated CLI spelling."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown lane: {value!r}") from None


_LANE_TITLES = {
    Lane.TODO: "To Do",
    Lane.IN_PROGRESS: "In Progress",
    Lane.DONE: "Done",
}


class ProjectStatus(Enum):
    """Completion status, derived from lane contents."""
    ONGOING = "ongoing"
    COMPLETED = "completed"

    @classmethod
    def from_str(cls, value: str) -> "ProjectStatus":
        # Anything other than "completed" decodes as ongoing
        if isinstance(value, str) and value.strip().lower() == cls.COMPLETED.value:
            return cls.COMPLETED
        return cls.ONGOING


def new_project_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Project:
    """A project record as held by the ProjectStore.

    The lanes and status on the record are a snapshot; while a board is open
    the TaskBoard keeps them in step after every mutation.
    """

    id: str
    name: str
    due_date: Optional[date] = None
    todo: List[str] = field(default_factory=list)
    in_progress: List[str] = field(default_factory=list)
    done: List[str] = field(default_factory=list)
    status: ProjectStatus = ProjectStatus.ONGOING

    def lanes(self) -> Dict[Lane, List[str]]:
        return {
            Lane.TODO: self.todo,
            Lane.IN_PROGRESS: self.in_progress,
            Lane.DONE: self.done,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "todo": list(self.todo),
            "in_progress": list(self.in_progress),
            "done": list(self.done),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Deserialize from dict.

        A record without an id gets a fresh one. Raises KeyError, ValueError
        or TypeError on a malformed record.
        """
        due = data.get("due_date")
        return cls(
            id=data.get("id") or new_project_id(),
            name=str(data["name"]),
            due_date=date.fromisoformat(due) if due else None,
            todo=_task_list(data.get("todo", [])),
            in_progress=_task_list(data.get("in_progress", [])),
            done=_task_list(data.get("done", [])),
            status=ProjectStatus.from_str(data.get("status", "ongoing")),
        )


def _task_list(value) -> List[str]:
    if not isinstance(value, list):
        raise TypeError(f"Expected a list of task names, got {type(value).__name__}")
    return [str(v) for v in value]


def due_summary(due_date: Optional[date], today: Optional[date] = None) -> str:
    """Human-readable countdown to a project's due date."""
    if due_date is None:
        return "No due date"
    today = today or date.today()
    days_left = (due_date - today).days
    if days_left > 0:
        return f"{days_left} day{'' if days_left == 1 else 's'} left"
    if days_left < 0:
        overdue = abs(days_left)
        return f"{overdue} day{'' if overdue == 1 else 's'} overdue"
    return "Due today"
