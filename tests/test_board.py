"""
Tests for TaskBoard: add, remove, move, status derivation and flushing.
"""
import random

import pytest

from tracker.board import TaskBoard, derive_status, lane_key, status_key
from tracker.gateway import GatewayError, KeyValueGateway
from tracker.schema import Lane, ProjectStatus
from tracker.store import ProjectStore


@pytest.fixture
def project(store):
    return store.create_project("Trip")


@pytest.fixture
def board(store, project):
    return store.open_board(project.id)


def assert_single_lane(board):
    tasks = board.all_tasks()
    assert len(tasks) == len(set(tasks))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Adding and removing
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_add_task_defaults_to_todo(board):
    assert board.add_task("Book flights") == "Book flights"
    assert board.todo == ["Book flights"]
    assert board.lane_of("Book flights") is Lane.TODO


def test_add_task_to_each_lane(board):
    board.add_task("A", Lane.TODO)
    board.add_task("B", "in-progress")
    board.add_task("C", Lane.DONE)
    assert board.todo == ["A"]
    assert board.in_progress == ["B"]
    assert board.done == ["C"]


def test_add_task_appends(board):
    board.add_task("A")
    board.add_task("B")
    assert board.todo == ["A", "B"]


def test_duplicate_task_names_are_uniquified_across_lanes(board):
    """A name taken on any lane gets a numbered suffix"""
    board.add_task("Pack", Lane.DONE)
    assert board.add_task("Pack") == "Pack (1)"
    assert board.add_task("Pack", Lane.IN_PROGRESS) == "Pack (2)"
    assert board.todo == ["Pack (1)"]
    assert board.in_progress == ["Pack (2)"]
    assert_single_lane(board)


def test_add_task_rejects_unknown_lane_without_touching_state(board):
    board.add_task("A")
    with pytest.raises(ValueError):
        board.add_task("B", "someday")
    assert board.all_tasks() == ["A"]


def test_remove_task(board):
    board.add_task("A")
    board.add_task("B", Lane.DONE)
    assert board.remove_task("B")
    assert board.done == []
    assert board.todo == ["A"]


def test_remove_missing_task_is_noop(board):
    board.add_task("A")
    assert not board.remove_task("Nope")
    assert board.todo == ["A"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Moving
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_move_block_to_front_of_lane(board):
    """Moving ["A","B"] to In Progress at 0 lands before "C" """
    board.add_task("A")
    board.add_task("B")
    board.add_task("C", Lane.IN_PROGRESS)

    assert board.move_tasks(["A", "B"], Lane.IN_PROGRESS, 0)
    assert board.in_progress == ["A", "B", "C"]
    assert board.todo == []


def test_move_preserves_given_order(board):
    for name in ["A", "B", "C"]:
        board.add_task(name)
    board.move_tasks(["C", "A"], Lane.DONE, 0)
    assert board.done == ["C", "A"]
    assert board.todo == ["B"]


def test_move_index_is_clamped(board):
    board.add_task("A")
    board.add_task("X", Lane.DONE)
    board.move_tasks(["A"], Lane.DONE, 99)
    assert board.done == ["X", "A"]

    board.add_task("B")
    board.move_tasks(["B"], Lane.DONE, -5)
    assert board.done == ["B", "X", "A"]


def test_move_without_index_appends(board):
    board.add_task("A")
    board.add_task("X", Lane.DONE)
    board.move_tasks(["A"], Lane.DONE)
    assert board.done == ["X", "A"]


def test_reorder_within_same_lane(board):
    for name in ["A", "B", "C"]:
        board.add_task(name)
    board.move_tasks(["C"], Lane.TODO, 0)
    assert board.todo == ["C", "A", "B"]


def test_move_from_several_lanes_at_once(board):
    board.add_task("A", Lane.TODO)
    board.add_task("B", Lane.DONE)
    board.add_task("C", Lane.IN_PROGRESS)
    board.move_tasks(["A", "B"], Lane.IN_PROGRESS, 1)
    assert board.in_progress == ["C", "A", "B"]
    assert board.todo == []
    assert board.done == []


def test_move_collapses_repeated_names(board):
    board.add_task("A")
    board.move_tasks(["A", "A"], Lane.DONE, 0)
    assert board.done == ["A"]
    assert_single_lane(board)


def test_move_unknown_lane_is_rejected_before_any_change(board):
    board.add_task("A")
    with pytest.raises(ValueError):
        board.move_tasks(["A"], "archive", 0)
    assert board.todo == ["A"]


def test_single_lane_invariant_under_random_operations(board):
    rng = random.Random(1234)
    names = ["A", "B", "C", "D", "E"]
    lanes = list(Lane)
    for _ in range(200):
        op = rng.choice(["add", "remove", "move"])
        if op == "add":
            board.add_task(rng.choice(names), rng.choice(lanes))
        elif op == "remove":
            board.remove_task(rng.choice(board.all_tasks() or names))
        else:
            pool = board.all_tasks() or names
            picked = rng.sample(pool, k=min(len(pool), rng.randint(1, 3)))
            board.move_tasks(picked, rng.choice(lanes), rng.randint(-1, 6))
        assert_single_lane(board)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Status
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.mark.parametrize("todo,in_progress,done,expected", [
    ([], [], ["A"], ProjectStatus.COMPLETED),
    (["B"], [], ["A"], ProjectStatus.ONGOING),
    ([], ["B"], ["A"], ProjectStatus.ONGOING),
    ([], [], [], ProjectStatus.ONGOING),
])
def test_derive_status(todo, in_progress, done, expected):
    assert derive_status(todo, in_progress, done) is expected


def test_status_follows_mutations(board, project):
    assert board.status is ProjectStatus.ONGOING
    board.add_task("A")
    assert board.status is ProjectStatus.ONGOING

    board.move_tasks(["A"], Lane.DONE, 0)
    assert board.status is ProjectStatus.COMPLETED
    assert project.status is ProjectStatus.COMPLETED

    board.add_task("B", Lane.IN_PROGRESS)
    assert board.status is ProjectStatus.ONGOING

    board.remove_task("B")
    assert board.status is ProjectStatus.COMPLETED

    board.remove_task("A")
    assert board.status is ProjectStatus.ONGOING


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Persistence
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_every_mutation_writes_live_keys(board, project, gateway):
    board.add_task("A")
    assert gateway.load(lane_key(Lane.TODO, project.id)) == ["A"]
    assert gateway.load(status_key(project.id)) == "ongoing"

    board.move_tasks(["A"], Lane.DONE, 0)
    assert gateway.load(lane_key(Lane.TODO, project.id)) == []
    assert gateway.load(lane_key(Lane.DONE, project.id)) == ["A"]
    assert gateway.load(status_key(project.id)) == "completed"


def test_live_key_names(project):
    assert lane_key(Lane.TODO, project.id) == f"toDoTasks_{project.id}"
    assert lane_key(Lane.IN_PROGRESS, project.id) == f"inProgressTasks_{project.id}"
    assert lane_key(Lane.DONE, project.id) == f"doneTasks_{project.id}"
    assert status_key(project.id) == f"status_{project.id}"


def test_every_mutation_refreshes_the_project_list(board, project, store):
    board.add_task("A", Lane.IN_PROGRESS)
    store.load_all()
    restored = store.get(project.id)
    assert restored.in_progress == ["A"]
    assert restored.status is ProjectStatus.ONGOING


def test_reopened_board_restores_lanes(board, project, store):
    board.add_task("A")
    board.add_task("B")
    board.move_tasks(["B"], Lane.IN_PROGRESS, 0)

    reopened = store.open_board(project.id)
    assert reopened.todo == ["A"]
    assert reopened.in_progress == ["B"]
    assert reopened.done == []


def test_live_keys_win_over_snapshot(store, project, gateway):
    """Live keys written after the last snapshot are what the board shows"""
    gateway.save(lane_key(Lane.DONE, project.id), ["Shipped"])
    gateway.save(status_key(project.id), "completed")

    board = TaskBoard.open(project, gateway, store)
    assert board.done == ["Shipped"]
    assert board.status is ProjectStatus.COMPLETED
    # Lanes without a live key fall back to the snapshot
    assert board.todo == []


def test_snapshot_used_when_live_keys_missing(store, project, gateway):
    project.todo = ["From snapshot"]
    board = TaskBoard.open(project, gateway, store)
    assert board.todo == ["From snapshot"]


def test_corrupt_live_key_falls_back_to_snapshot(store, project, gateway):
    project.todo = ["From snapshot"]
    gateway.save_raw(lane_key(Lane.TODO, project.id), "[broken")
    gateway.save(lane_key(Lane.DONE, project.id), {"not": "a list"})
    board = TaskBoard.open(project, gateway, store)
    assert board.todo == ["From snapshot"]
    assert board.done == []


def test_failed_flush_keeps_in_memory_state(board, gateway, monkeypatch):
    def broken_save(key, value):
        raise GatewayError("disk full")

    monkeypatch.setattr(gateway, "save", broken_save)
    monkeypatch.setattr(gateway, "save_many", lambda items: broken_save(None, items))
    assert board.add_task("A") == "A"
    assert board.todo == ["A"]
    assert board.persisted is False


def test_board_without_store_still_writes_live_keys(project, gateway):
    board = TaskBoard(project, gateway)
    board.add_task("Solo")
    assert gateway.load(lane_key(Lane.TODO, project.id)) == ["Solo"]
    assert board.persisted is True


def test_str_summary(board):
    board.add_task("A")
    assert str(board) == "Trip: To Do 1, In Progress 0, Done 0 (ongoing)"


def test_failed_lane_write_does_not_lose_tasks(board, project, store, db_path, fail_writes_to):
    """A move whose Done write fails leaves the previous lanes intact on disk"""
    board.add_task("A")
    fail_writes_to("doneTasks")

    board.move_tasks(["A"], Lane.DONE, 0)
    assert board.persisted is False

    reopened = ProjectStore(KeyValueGateway(db_path)).open_board(project.id)
    assert "A" in reopened.all_tasks()
    assert reopened.todo == ["A"]


def test_mutation_after_reload_reaches_the_project_list(board, project, store, db_path):
    store.load_all()
    board.add_task("A")

    assert store.get(project.id).todo == ["A"]
    fresh = ProjectStore(KeyValueGateway(db_path))
    assert fresh.get(project.id).todo == ["A"]


def test_mutation_after_delete_writes_nothing(board, project, store, gateway):
    store.delete_project(project.id)

    board.add_task("A")
    assert board.persisted is False
    assert gateway.keys(f"_{project.id}") == []
    assert store.load_all() == []


def test_open_drops_names_repeated_across_lanes(store, project, gateway, caplog):
    gateway.save(lane_key(Lane.TODO, project.id), ["A", "B"])
    gateway.save(lane_key(Lane.DONE, project.id), ["A", "C", "C"])

    board = TaskBoard.open(project, gateway, store)
    assert board.todo == ["A", "B"]
    assert board.done == ["C"]
    assert_single_lane(board)
    assert "dropping duplicate 'A'" in caplog.text
