# src/tasktree/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.state import AppState
from ..tasks.task_errors import TaskNotFoundError, TaskStorageError, TaskValidationError
from ..tasks.task_models import Task

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, /done, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Task errors become user-facing replies; anything else propagates.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args, emit)
        except TaskValidationError as e:
            return f"Invalid: {e.message}"
        except TaskNotFoundError as e:
            return f"Task {e.task_id} not found."
        except TaskStorageError as e:
            logger.error("Command /%s failed: %s", name, e)
            return f"Storage error: {e.message}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def _mark(task: Task) -> str:
    return "[x]" if task.is_completed else "[ ]"


def format_task_line(task: Task, depth: int = 0) -> str:
    return f"{'  ' * depth}{_mark(task)} #{task.id} {task.title}"


def render_tree(roots: list[Task]) -> str:
    lines: list[str] = []
    stack = [(root, 0) for root in reversed(roots)]
    while stack:
        task, depth = stack.pop()
        lines.append(format_task_line(task, depth))
        stack.extend((child, depth + 1) for child in reversed(task.children))
    return "\n".join(lines)


# ---- argument helpers ----


class UsageError(Exception):
    pass


def _task_id(args: list[str], idx: int = 0) -> int:
    try:
        return int(args[idx].lstrip("#"))
    except (IndexError, ValueError) as e:
        raise UsageError from e


def _with_usage(usage: str, handler: CommandHandler) -> CommandHandler:
    def wrapped(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
        try:
            return handler(state, args, emit)
        except UsageError:
            return f"Usage: {usage}"

    return wrapped


# ---- commands ----


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    flat = state.task_store.list_tasks()
    done = sum(1 for t in flat if t.is_completed)
    deepest = state.service.get_deepest_tasks()
    backend = getattr(state.settings, "store_backend", "sqlite")
    location = getattr(state.task_store, "location", None)
    store_line = f"{backend} ({location})" if location is not None else backend
    return (
        "Status:\n"
        f"  Store: {store_line}\n"
        f"  Tasks: {len(flat)} total, {done} completed\n"
        f"  Actionable now: {len(deepest)}"
    )


def cmd_tree(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /tree       -> whole forest
    /tree <id>  -> subtree rooted at <id>
    """
    if args:
        roots = [state.service.get_task_tree(_task_id(args))]
    else:
        roots = state.service.get_all_tasks()
    if not roots:
        return "No tasks yet. Use /add <title>."
    return render_tree(roots)


def cmd_next(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    deepest = state.service.get_deepest_tasks()
    if not deepest:
        return "Nothing left to do."
    lines = ["Actionable tasks:"]
    lines.extend(format_task_line(t, 1) for t in deepest)
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task = state.service.create_task(" ".join(args))
    return f"Created #{task.id} {task.title}"


def cmd_sub(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    parent_id = _task_id(args)
    task = state.service.create_subtask(parent_id, " ".join(args[1:]))
    return f"Created #{task.id} {task.title} under #{parent_id}"


def cmd_sib(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    anchor_id = _task_id(args)
    task = state.service.create_sibling(anchor_id, " ".join(args[1:]))
    return f"Created #{task.id} {task.title} next to #{anchor_id}"


def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task = state.service.update_task(_task_id(args), is_completed=True)
    return f"Completed #{task.id} {task.title}"


def cmd_undo(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task = state.service.update_task(_task_id(args), is_completed=False)
    return f"Reopened #{task.id} {task.title}"


def cmd_rename(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _task_id(args)
    task = state.service.update_task(task_id, title=" ".join(args[1:]))
    return f"Renamed #{task.id} to {task.title}"


def cmd_desc(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /desc <id> <text>  -> set description
    /desc <id>         -> clear description
    """
    task = state.service.update_task(_task_id(args), description=" ".join(args[1:]))
    if task.description:
        return f"Description of #{task.id} updated."
    return f"Description of #{task.id} cleared."


def cmd_move(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _task_id(args)
    position = _task_id(args, 1)
    task = state.service.update_task(task_id, position=position)
    return f"Moved #{task.id} to position {task.position}"


def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    removed = state.service.delete_task(_task_id(args))
    if len(removed) == 1:
        return f"Deleted #{removed[0]}"
    return f"Deleted #{removed[-1]} and {len(removed) - 1} subtask(s)"


def cmd_show(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    path = state.service.get_task_path(_task_id(args))
    task = path[-1]
    crumbs = " > ".join(t.title for t in path)
    parent = "none (root task)" if task.is_root else f"#{task.parent_id}"
    lines = [
        format_task_line(task),
        f"  Path: {crumbs}",
        f"  Parent: {parent}",
        f"  Position: {task.position}",
        f"  Created: {task.created_at}",
        f"  Updated: {task.updated_at}",
    ]
    if task.description:
        lines.append("")
        lines.extend(f"  {line}" for line in task.description.splitlines())
    return "\n".join(lines)


def cmd_find(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        raise UsageError
    query = " ".join(args)
    found = state.service.search_tasks(query)
    if not found:
        return f"No tasks match {query!r}."
    return "\n".join(format_task_line(t) for t in found)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store and task counts.")
registry.register("tree", _with_usage("/tree [id]", cmd_tree), help_text="Show the task tree: /tree [id].")
registry.register("next", cmd_next, help_text="Show actionable (deepest incomplete) tasks.", aliases=["deepest"])
registry.register("add", cmd_add, help_text="Add a root task: /add <title>.")
registry.register("sub", _with_usage("/sub <parent_id> <title>", cmd_sub), help_text="Add a subtask: /sub <parent_id> <title>.")
registry.register("sib", _with_usage("/sib <task_id> <title>", cmd_sib), help_text="Add a sibling: /sib <task_id> <title>.")
registry.register("done", _with_usage("/done <id>", cmd_done), help_text="Complete a task and its subtasks: /done <id>.")
registry.register("undo", _with_usage("/undo <id>", cmd_undo), help_text="Reopen a task and its ancestors: /undo <id>.")
registry.register("rename", _with_usage("/rename <id> <title>", cmd_rename), help_text="Rename a task: /rename <id> <title>.")
registry.register("desc", _with_usage("/desc <id> [text]", cmd_desc), help_text="Set or clear a description: /desc <id> [text].")
registry.register("move", _with_usage("/move <id> <position>", cmd_move), help_text="Change sibling position: /move <id> <position>.")
registry.register("rm", _with_usage("/rm <id>", cmd_rm), help_text="Delete a task and its subtasks: /rm <id>.", aliases=["del"])
registry.register("show", _with_usage("/show <id>", cmd_show), help_text="Show task details and path: /show <id>.")
registry.register("find", _with_usage("/find <text>", cmd_find), help_text="Search titles and descriptions: /find <text>.")
