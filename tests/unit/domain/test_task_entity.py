"""Unit tests for the Task entity and board ordering helpers."""

from uuid import uuid4

import pytest

from domain.entities.task import (
    Subtask,
    Task,
    TaskStatus,
    next_position,
    renormalize_column,
)


def _task(position: int = 0, status: TaskStatus = TaskStatus.PENDING) -> Task:
    return Task(
        project_id=uuid4(), created_by=uuid4(), title="t", position=position, status=status
    )


class TestNextPosition:
    def test_empty_project_starts_at_zero(self):
        assert next_position(None) == 0

    def test_one_past_max(self):
        assert next_position(7) == 8


class TestStatusTransitions:
    def test_completing_sets_completed_at(self):
        task = _task()
        task.set_status(TaskStatus.COMPLETED)

        assert task.completed_at is not None

    def test_leaving_completed_clears_completed_at(self):
        task = _task()
        task.set_status(TaskStatus.COMPLETED)
        task.set_status(TaskStatus.IN_PROGRESS)

        assert task.completed_at is None

    def test_any_transition_is_allowed(self):
        task = _task(status=TaskStatus.CANCELLED)
        task.set_status(TaskStatus.PENDING)

        assert task.status == TaskStatus.PENDING


class TestMove:
    def test_position_is_stored_verbatim(self):
        task = _task(position=2)
        task.move(TaskStatus.IN_PROGRESS, 42)

        assert task.status == TaskStatus.IN_PROGRESS
        assert task.position == 42

    def test_duplicate_positions_are_allowed(self):
        a, b = _task(position=1), _task(position=5)
        b.move(TaskStatus.PENDING, 1)

        assert a.position == b.position == 1


class TestRenormalizeColumn:
    def test_inserts_and_renumbers(self):
        column = [_task(position=p) for p in (0, 4, 9)]
        moved = _task(position=20)

        changed = renormalize_column(column, moved, 1)

        assert [t.position for t in [column[0], moved, column[1], column[2]]] == [0, 1, 2, 3]
        assert moved in changed
        assert column[0] not in changed

    def test_index_is_clamped(self):
        column = [_task(position=0)]
        moved = _task(position=0)

        renormalize_column(column, moved, 99)

        assert moved.position == 1

    def test_moved_task_already_in_column_is_not_duplicated(self):
        moved = _task(position=0)
        other = _task(position=1)

        renormalize_column([moved, other], moved, 1)

        assert other.position == 0
        assert moved.position == 1


class TestWatchers:
    def test_add_watcher_is_idempotent(self):
        task, user = _task(), uuid4()

        assert task.add_watcher(user) is True
        assert task.add_watcher(user) is False
        assert task.watchers == [user]

    def test_remove_unknown_watcher(self):
        assert _task().remove_watcher(uuid4()) is False


@pytest.mark.parametrize("done, expected", [([], (0, 0)), ([True, False, True], (2, 3))])
def test_subtask_progress(done, expected):
    task = _task()
    task.subtasks = [Subtask(title=str(i), completed=d) for i, d in enumerate(done)]

    assert task.subtask_progress == expected
