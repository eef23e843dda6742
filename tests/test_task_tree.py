# tests/test_task_tree.py

from __future__ import annotations

import logging
import random

from tasktree.tasks.task_tree import (
    build_subtree,
    build_task_tree,
    find_deepest_tasks,
    find_orphans,
    flatten_tree,
    search_tasks,
    task_path,
)

from .fakes import make_task


def _ids(tasks) -> list[int]:
    return [t.id for t in tasks]


def _random_forest(seed: int, n: int = 40):
    rng = random.Random(seed)
    tasks = []
    for tid in range(1, n + 1):
        parent = rng.choice([None] + list(range(1, tid))) if tid > 1 else None
        tasks.append(make_task(tid, parent, done=rng.random() < 0.4, position=rng.randint(0, 3)))
    rng.shuffle(tasks)
    return tasks


def test_build_tree_nests_children_and_orders_by_position() -> None:
    flat = [
        make_task(1, position=1),
        make_task(2, position=0),
        make_task(3, 1, position=2),
        make_task(4, 1, position=0),
        make_task(5, 4),
    ]
    roots = build_task_tree(flat)

    assert _ids(roots) == [2, 1]
    assert _ids(roots[1].children) == [4, 3]
    assert _ids(roots[1].children[0].children) == [5]


def test_build_tree_equal_positions_keep_input_order() -> None:
    flat = [make_task(7), make_task(3), make_task(5)]
    assert _ids(build_task_tree(flat)) == [7, 3, 5]


def test_build_tree_does_not_mutate_input() -> None:
    flat = [make_task(1), make_task(2, 1)]
    build_task_tree(flat)
    assert all(t.children == [] for t in flat)


def test_build_tree_drops_orphans_and_logs(caplog) -> None:
    flat = [make_task(1), make_task(2, 99), make_task(3, 2)]
    with caplog.at_level(logging.WARNING, logger="tasktree.tasks.task_tree"):
        roots = build_task_tree(flat)

    assert _ids(flatten_tree(roots)) == [1]
    assert _ids(find_orphans(flat)) == [2]
    assert "orphaned" in caplog.text


def test_tree_round_trip_keeps_every_id() -> None:
    for seed in range(10):
        flat = _random_forest(seed)
        roots = build_task_tree(flat)
        flattened = flatten_tree(roots)

        assert sorted(_ids(flattened)) == sorted(_ids(flat))
        for node in flattened:
            for child in node.children:
                assert child.parent_id == node.id


def test_deepest_chain_rolls_up_as_leaves_complete() -> None:
    flat = [make_task(1), make_task(2, 1), make_task(3, 2)]
    assert _ids(find_deepest_tasks(flat)) == [3]

    flat[2] = make_task(3, 2, done=True)
    assert _ids(find_deepest_tasks(flat)) == [2]


def test_deepest_prunes_completed_subtree_even_if_inconsistent() -> None:
    flat = [make_task(1, done=True), make_task(2, 1), make_task(3, 2), make_task(4)]
    assert _ids(find_deepest_tasks(flat)) == [4]


def test_deepest_pre_order_across_roots() -> None:
    flat = [
        make_task(1, position=0),
        make_task(2, 1, position=0),
        make_task(3, 1, position=1),
        make_task(4, position=1),
        make_task(5, 2, done=True),
    ]
    # 2 has only a completed child -> actionable; 3 is a leaf; 4 is a leaf root.
    assert _ids(find_deepest_tasks(flat)) == [2, 3, 4]


def test_deepest_properties_hold_on_random_forests() -> None:
    for seed in range(20):
        flat = _random_forest(seed)
        roots = build_task_tree(flat)
        nodes = {t.id: t for t in flatten_tree(roots)}
        deepest = find_deepest_tasks(flat)
        result = set(_ids(deepest))

        for t in deepest:
            assert not t.is_completed
            assert all(c.is_completed for c in nodes[t.id].children)

        def has_completed_ancestor(tid: int) -> bool:
            parent = nodes[tid].parent_id
            while parent is not None:
                if nodes[parent].is_completed:
                    return True
                parent = nodes[parent].parent_id
            return False

        for node in nodes.values():
            qualifies = not node.is_completed and all(c.is_completed for c in node.children)
            if qualifies and not has_completed_ancestor(node.id):
                assert node.id in result


def test_deepest_empty_input() -> None:
    assert find_deepest_tasks([]) == []


DEEP = 2000


def _chain(n: int = DEEP):
    return [make_task(1)] + [make_task(i, i - 1) for i in range(2, n + 1)]


def test_deep_chain_walks_do_not_recurse() -> None:
    flat = _chain()

    assert _ids(find_deepest_tasks(flat)) == [DEEP]
    assert _ids(flatten_tree(build_task_tree(flat))) == list(range(1, DEEP + 1))
    assert _ids(task_path(flat, DEEP)) == list(range(1, DEEP + 1))
    assert _ids(search_tasks(flat, f"task {DEEP}")) == [DEEP]

    sub = build_subtree(flat, 1)
    assert sub is not None
    assert len(flatten_tree([sub])) == DEEP

    wire = sub.to_dict()
    depth = 0
    while wire["children"]:
        (wire,) = wire["children"]
        depth += 1
    assert depth == DEEP - 1
    assert wire["id"] == DEEP


def test_task_path_root_to_task() -> None:
    flat = [make_task(1), make_task(2, 1), make_task(3, 2), make_task(4)]
    assert _ids(task_path(flat, 3)) == [1, 2, 3]
    assert _ids(task_path(flat, 4)) == [4]
    assert task_path(flat, 99) == []


def test_task_path_stops_at_dangling_parent() -> None:
    flat = [make_task(2, 99), make_task(3, 2)]
    assert _ids(task_path(flat, 3)) == [2, 3]


def test_build_subtree() -> None:
    flat = [make_task(1), make_task(2, 1, position=1), make_task(3, 1, position=0), make_task(4, 2)]
    sub = build_subtree(flat, 1)
    assert sub is not None
    assert _ids(sub.children) == [3, 2]
    assert _ids(sub.children[1].children) == [4]
    assert build_subtree(flat, 99) is None


def test_search_matches_title_and_description_case_insensitive() -> None:
    flat = [
        make_task(1, title="Write report"),
        make_task(2, 1, title="Collect data", description="Pull the REPORT numbers"),
        make_task(3, title="Groceries"),
    ]
    assert _ids(search_tasks(flat, "report")) == [1, 2]
    assert _ids(search_tasks(flat, "GROC")) == [3]
    assert search_tasks(flat, "   ") == []
