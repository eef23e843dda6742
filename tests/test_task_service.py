# tests/test_task_service.py

from __future__ import annotations

import pytest

from tasktree.tasks.task_errors import TaskNotFoundError, TaskStorageError, TaskValidationError
from tasktree.tasks.task_service import TaskService

from .fakes import FailingTaskRepo, FakeTaskRepo, make_task


def _ids(tasks) -> list[int]:
    return [t.id for t in tasks]


def test_chain_scenario_complete_leaf_then_root_then_reopen(service: TaskService, repo: FakeTaskRepo) -> None:
    assert _ids(service.get_deepest_tasks()) == [3]

    leaf = service.update_task(3, is_completed=True)
    assert leaf.is_completed
    assert repo.completed_ids() == {3}
    assert _ids(service.get_deepest_tasks()) == [2]

    service.update_task(1, is_completed=True)
    assert repo.completed_ids() == {1, 2, 3}
    assert service.get_deepest_tasks() == []

    service.update_task(3, is_completed=False)
    assert repo.completed_ids() == set()
    assert _ids(service.get_deepest_tasks()) == [3]


def test_create_task_appends_after_last_sibling(service: TaskService) -> None:
    first = service.create_task("  Second root  ")
    second = service.create_task("Third root", description="notes")

    assert first.title == "Second root"
    assert first.parent_id is None
    assert first.position == 1
    assert second.position == 2
    assert second.description == "notes"
    assert _ids(service.get_all_tasks()) == [1, first.id, second.id]


def test_create_task_explicit_position(service: TaskService) -> None:
    task = service.create_task("Pinned", position=-1)
    assert _ids(service.get_all_tasks())[0] == task.id


@pytest.mark.parametrize("title", ["", "   ", "\n\t"])
def test_create_task_rejects_blank_title_without_writing(service: TaskService, repo: FakeTaskRepo, title: str) -> None:
    with pytest.raises(TaskValidationError):
        service.create_task(title)
    assert repo.count_tasks() == 3


def test_create_task_unknown_parent_is_not_found(service: TaskService, repo: FakeTaskRepo) -> None:
    with pytest.raises(TaskNotFoundError):
        service.create_task("child", parent_id=42)
    assert repo.count_tasks() == 3


def test_create_subtask_under_completed_parent_reopens_ancestors(service: TaskService, repo: FakeTaskRepo) -> None:
    service.update_task(1, is_completed=True)
    child = service.create_subtask(3, "New leaf")

    assert child.parent_id == 3
    assert not child.is_completed
    assert repo.completed_ids() == set()
    assert _ids(service.get_deepest_tasks()) == [child.id]


def test_create_subtask_stops_at_incomplete_ancestor(service: TaskService, repo: FakeTaskRepo) -> None:
    service.update_task(2, is_completed=True)
    assert repo.completed_ids() == {2, 3}

    leaf = service.create_subtask(3, "New leaf")
    assert repo.completed_ids() == set()

    service.update_task(3, is_completed=True)
    service.create_subtask(1, "Other branch")
    # 1 was incomplete already: nothing else reopened.
    assert repo.completed_ids() == {3, leaf.id}


def test_create_sibling_inherits_parent_and_goes_last(service: TaskService) -> None:
    extra = service.create_subtask(1, "Also under 1")
    sibling = service.create_sibling(2, "Next to 2")

    assert sibling.parent_id == 1
    assert sibling.position == extra.position + 1
    tree = service.get_task_tree(1)
    assert _ids(tree.children) == [2, extra.id, sibling.id]


def test_create_sibling_of_root_is_root(service: TaskService) -> None:
    sibling = service.create_sibling(1, "Another root")
    assert sibling.parent_id is None


def test_create_sibling_unknown_anchor(service: TaskService) -> None:
    with pytest.raises(TaskNotFoundError):
        service.create_sibling(99, "nope")


def test_update_fields_and_clear_description(service: TaskService) -> None:
    task = service.update_task(2, title=" Renamed ", description="Some **markup**", position=5)
    assert task.title == "Renamed"
    assert task.description == "Some **markup**"
    assert task.position == 5

    cleared = service.update_task(2, description="")
    assert cleared.description is None
    assert cleared.title == "Renamed"


def test_update_unknown_id_has_no_effect(service: TaskService, repo: FakeTaskRepo) -> None:
    before = repo.list_tasks()
    with pytest.raises(TaskNotFoundError):
        service.update_task(99, title="x", is_completed=True)
    assert repo.list_tasks() == before


def test_update_blank_title_rejected_before_write(service: TaskService, repo: FakeTaskRepo) -> None:
    with pytest.raises(TaskValidationError):
        service.update_task(2, title="  ", is_completed=True)
    assert repo.get_task(2).title == "task 2"
    assert repo.completed_ids() == set()


def test_delete_removes_whole_subtree_children_first(service: TaskService, repo: FakeTaskRepo) -> None:
    service.create_subtask(2, "sibling of 3")
    removed = service.delete_task(2)

    assert removed[-1] == 2
    assert set(removed) == {2, 3, 4}
    assert _ids(repo.list_tasks()) == [1]
    assert repo.deletes == [removed]


def test_delete_leaves_no_descendant_behind() -> None:
    repo = FakeTaskRepo(
        [make_task(1), make_task(2, 1), make_task(3, 2), make_task(4, 1), make_task(5), make_task(6, 5)]
    )
    service = TaskService(repo)
    service.delete_task(1)

    remaining = {t.id: t for t in repo.list_tasks()}
    for t in remaining.values():
        parent = t.parent_id
        while parent is not None:
            assert parent != 1
            parent = remaining[parent].parent_id
    assert set(remaining) == {5, 6}


def test_delete_unknown_id_is_not_found(service: TaskService, repo: FakeTaskRepo) -> None:
    with pytest.raises(TaskNotFoundError):
        service.delete_task(99)
    assert repo.deletes == []


def test_queries(service: TaskService) -> None:
    assert service.get_task(2).parent_id == 1
    assert _ids(service.get_task_path(3)) == [1, 2, 3]
    assert _ids(service.get_task_tree(2).children) == [3]
    assert _ids(service.search_tasks("TASK 3")) == [3]

    with pytest.raises(TaskNotFoundError):
        service.get_task(99)
    with pytest.raises(TaskNotFoundError):
        service.get_task_tree(99)
    with pytest.raises(TaskNotFoundError):
        service.get_task_path(99)


def test_cascade_failure_surfaces_as_storage_error() -> None:
    repo = FailingTaskRepo([make_task(1), make_task(2, 1)])
    service = TaskService(repo)
    with pytest.raises(TaskStorageError):
        service.update_task(1, is_completed=True)
    assert repo.completed_ids() == set()


def test_unexpected_backend_error_is_wrapped() -> None:
    class BrokenRepo(FakeTaskRepo):
        def list_tasks(self):
            raise OSError("connection reset")

    service = TaskService(BrokenRepo())
    with pytest.raises(TaskStorageError) as exc:
        service.get_all_tasks()
    assert isinstance(exc.value.__cause__, OSError)


def test_update_with_failed_cascade_leaves_fields_untouched() -> None:
    repo = FailingTaskRepo([make_task(1), make_task(2, 1)])
    service = TaskService(repo)
    with pytest.raises(TaskStorageError):
        service.update_task(1, title="Renamed", position=9, is_completed=True)

    task = repo.get_task(1)
    assert task.title == "task 1"
    assert task.position == 0


def test_update_fields_and_completion_together(service: TaskService, repo: FakeTaskRepo) -> None:
    task = service.update_task(2, title="Both", is_completed=True)
    assert task.title == "Both"
    assert task.is_completed
    assert repo.completed_ids() == {2, 3}


def test_deep_chain_operations_run_to_completion() -> None:
    depth = 2000
    repo = FakeTaskRepo([make_task(1)] + [make_task(i, i - 1) for i in range(2, depth + 1)])
    service = TaskService(repo)

    assert _ids(service.get_deepest_tasks()) == [depth]
    assert len(service.get_task_path(depth)) == depth

    service.update_task(1, is_completed=True)
    assert len(repo.completed_ids()) == depth
    service.update_task(depth, is_completed=False)
    assert repo.completed_ids() == set()

    removed = service.delete_task(1)
    assert removed == list(range(depth, 0, -1))
    assert repo.count_tasks() == 0
