"""
TaskBoard: the three lanes of one open project.

Usage:
    board = store.open_board(project.id)
    board.add_task("Book flights")                    # → To Do
    board.move_tasks(["Book flights"], Lane.DONE, 0)  # drop at top of Done
    board.status                                      # ProjectStatus.COMPLETED

Every mutating call flushes before returning: the lanes and status go to
their per-project keys, then the project snapshot is refreshed and the
ProjectStore persists the full project list.
"""
import logging
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from .gateway import KeyValueGateway, GatewayError
from .naming import uniquify
from .schema import Lane, Project, ProjectStatus

if TYPE_CHECKING:
    from .store import ProjectStore

logger = logging.getLogger(__name__)

# Key prefixes of the live per-project lane lists
LANE_KEY_PREFIXES: Dict[Lane, str] = {
    Lane.TODO: "toDoTasks",
    Lane.IN_PROGRESS: "inProgressTasks",
    Lane.DONE: "doneTasks",
}


def lane_key(lane: Lane, project_id: str) -> str:
    return f"{LANE_KEY_PREFIXES[lane]}_{project_id}"


def status_key(project_id: str) -> str:
    return f"status_{project_id}"


def project_keys(project_id: str) -> List[str]:
    """All live keys owned by one project."""
    return [lane_key(lane, project_id) for lane in Lane] + [status_key(project_id)]


def derive_status(todo: List[str], in_progress: List[str], done: List[str]) -> ProjectStatus:
    """Completed iff nothing is left to do or in progress and something is done."""
    if not todo and not in_progress and done:
        return ProjectStatus.COMPLETED
    return ProjectStatus.ONGOING


class TaskBoard:
    """Working copy of one project's lanes."""

    def __init__(
        self,
        project: Project,
        gateway: KeyValueGateway,
        store: Optional["ProjectStore"] = None,
    ):
        self.project = project
        self.gateway = gateway
        self.store = store
        self._lanes: Dict[Lane, List[str]] = {
            lane: list(tasks) for lane, tasks in project.lanes().items()
        }
        self._status = project.status
        # False after a flush that could not be written
        self.persisted = True

    @classmethod
    def open(
        cls,
        project: Project,
        gateway: KeyValueGateway,
        store: Optional["ProjectStore"] = None,
    ) -> "TaskBoard":
        """Build a board from the live per-project keys.

        Live keys win over the project snapshot; a lane or status key that was
        never written (or cannot be decoded) falls back to the snapshot.
        """
        board = cls(project, gateway, store)
        seen = set()
        for lane in Lane:
            tasks = board._load_live(lane_key(lane, project.id))
            if isinstance(tasks, list) and all(isinstance(t, str) for t in tasks):
                board._lanes[lane] = tasks
            kept = []
            for task in board._lanes[lane]:
                if task in seen:
                    logger.warning(f"[{project.id}] dropping duplicate {task!r} from {lane.value}")
                    continue
                seen.add(task)
                kept.append(task)
            board._lanes[lane] = kept
        status = board._load_live(status_key(project.id))
        if isinstance(status, str):
            board._status = ProjectStatus.from_str(status)
        return board

    def _load_live(self, key: str):
        try:
            return self.gateway.load(key)
        except GatewayError as e:
            logger.warning(f"Ignoring unreadable {key}: {e}")
            return None

    # ── Read accessors ─────────────────────────────────────────────────

    @property
    def status(self) -> ProjectStatus:
        return self._status

    @property
    def todo(self) -> List[str]:
        return list(self._lanes[Lane.TODO])

    @property
    def in_progress(self) -> List[str]:
        return list(self._lanes[Lane.IN_PROGRESS])

    @property
    def done(self) -> List[str]:
        return list(self._lanes[Lane.DONE])

    def lane(self, lane) -> List[str]:
        return list(self._lanes[Lane.from_str(lane)])

    def all_tasks(self) -> List[str]:
        return self.todo + self.in_progress + self.done

    def lane_of(self, name: str) -> Optional[Lane]:
        for lane, tasks in self._lanes.items():
            if name in tasks:
                return lane
        return None

    def counts(self) -> Dict[Lane, int]:
        return {lane: len(tasks) for lane, tasks in self._lanes.items()}

    # ── Mutations ──────────────────────────────────────────────────────

    def add_task(self, name: str, lane=Lane.TODO) -> str:
        """Append a task to a lane, renaming it if the name is taken.

        Returns the name actually stored.
        """
        target = Lane.from_str(lane)
        stored = uniquify(name, set(self.all_tasks()))
        self._lanes[target].append(stored)
        logger.debug(f"[{self.project.id}] added {stored!r} to {target.value}")
        self._flush()
        return stored

    def remove_task(self, name: str) -> bool:
        """Remove a task from whichever lane holds it. Absent names are a no-op."""
        removed = False
        for tasks in self._lanes.values():
            if name in tasks:
                tasks[:] = [t for t in tasks if t != name]
                removed = True
        if removed:
            logger.debug(f"[{self.project.id}] removed {name!r}")
        self._flush()
        return removed

    def move_tasks(self, names: Iterable[str], target, index: Optional[int] = None) -> bool:
        """Drop a block of tasks onto a lane at index.

        The tasks leave whatever lane holds them and land as one contiguous
        run, in the given order, at index clamped to the target lane's bounds
        (None appends). Always accepted.
        """
        target = Lane.from_str(target)
        block = list(dict.fromkeys(names))
        moving = set(block)
        for tasks in self._lanes.values():
            tasks[:] = [t for t in tasks if t not in moving]

        dest = self._lanes[target]
        if index is None:
            index = len(dest)
        index = min(max(index, 0), len(dest))
        dest[index:index] = block
        logger.debug(f"[{self.project.id}] moved {block} to {target.value}@{index}")
        self._flush()
        return True

    def derive_status(self) -> ProjectStatus:
        """Recompute status from the lanes."""
        self._status = derive_status(
            self._lanes[Lane.TODO],
            self._lanes[Lane.IN_PROGRESS],
            self._lanes[Lane.DONE],
        )
        return self._status

    # ── Persistence ────────────────────────────────────────────────────

    def _flush(self) -> bool:
        """Write lanes and status, then refresh the snapshot and save the list."""
        status = self.derive_status()
        if self.store is not None:
            # The store may have reloaded its records since the board opened
            current = self.store.get(self.project.id)
            if current is None:
                logger.warning(f"Project {self.project.id} was deleted; board changes not saved")
                self.persisted = False
                return False
            self.project = current

        ok = True
        live = {lane_key(lane, self.project.id): tasks for lane, tasks in self._lanes.items()}
        live[status_key(self.project.id)] = status.value
        try:
            self.gateway.save_many(live)
        except GatewayError as e:
            logger.error(f"Failed to save board {self.project.id}: {e}")
            ok = False

        self.project.todo = list(self._lanes[Lane.TODO])
        self.project.in_progress = list(self._lanes[Lane.IN_PROGRESS])
        self.project.done = list(self._lanes[Lane.DONE])
        self.project.status = status

        if self.store is not None:
            ok = self.store.save_all() and ok
        self.persisted = ok
        return ok

    def __str__(self) -> str:
        counts = self.counts()
        return (f'{self.project.name}: '
                f'To Do {counts[Lane.TODO]}, '
                f'In Progress {counts[Lane.IN_PROGRESS]}, '
                f'Done {counts[Lane.DONE]} ({self._status.value})')
