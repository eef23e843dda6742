# src/tasktree/tasks/task_api.py

"""
Response-envelope helpers for HTTP-style callers.

Each function wraps one TaskService operation and always returns an
ApiResponse: {success, message, data} plus the status code an HTTP adapter
should send (201 create, 400 validation, 404 missing id, 500 backend).
No exception escapes from here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .task_errors import TaskNotFoundError, TaskStorageError, TaskValidationError
from .task_models import Task
from .task_service import TaskService

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_SERVER_ERROR = 500


@dataclass(slots=True, frozen=True)
class ApiResponse:
    success: bool
    message: str
    data: Any = None
    status_code: int = HTTP_OK

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, "data": self.data}


def _fields(payload: Any) -> dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise TaskValidationError("Request body must be an object")
    return payload


def _opt_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise TaskValidationError(f"Field '{key}' must be a string", context={"field": key})
    return value


def _opt_int(payload: dict[str, Any], key: str) -> int | None:
    value = payload.get(key)
    # bool is an int subclass; true/false is never a valid id or position
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise TaskValidationError(f"Field '{key}' must be an integer", context={"field": key})
    return value


def _opt_bool(payload: dict[str, Any], key: str) -> bool | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, bool):
        raise TaskValidationError(f"Field '{key}' must be a boolean", context={"field": key})
    return value


def _serialize(result: Any) -> Any:
    if isinstance(result, Task):
        return result.to_dict()
    if isinstance(result, list):
        return [_serialize(r) for r in result]
    return result


def _respond(
    action: str,
    fn: Callable[[], Any],
    *,
    ok_message: str,
    ok_status: int = HTTP_OK,
    not_found_message: str = "Task not found",
    include_data: bool = True,
) -> ApiResponse:
    try:
        result = fn()
    except TaskValidationError as e:
        return ApiResponse(False, e.message, None, HTTP_BAD_REQUEST)
    except TaskNotFoundError:
        return ApiResponse(False, not_found_message, None, HTTP_NOT_FOUND)
    except TaskStorageError as e:
        logger.error("Failed to %s: %s", action, e)
        return ApiResponse(False, f"Failed to {action}: {e.message}", None, HTTP_SERVER_ERROR)
    except Exception as e:
        logger.exception("Failed to %s", action)
        return ApiResponse(False, f"Failed to {action}: {e}", None, HTTP_SERVER_ERROR)

    data = _serialize(result) if include_data else None
    return ApiResponse(True, ok_message, data, ok_status)


def list_tasks(service: TaskService) -> ApiResponse:
    return _respond(
        "retrieve tasks",
        service.get_all_tasks,
        ok_message="Tasks retrieved successfully",
    )


def list_deepest_tasks(service: TaskService) -> ApiResponse:
    return _respond(
        "retrieve deepest tasks",
        service.get_deepest_tasks,
        ok_message="Deepest tasks retrieved successfully",
    )


def get_task(service: TaskService, task_id: int) -> ApiResponse:
    return _respond(
        "retrieve task",
        lambda: service.get_task(task_id),
        ok_message="Task retrieved successfully",
    )


def get_task_tree(service: TaskService, task_id: int) -> ApiResponse:
    return _respond(
        "retrieve task tree",
        lambda: service.get_task_tree(task_id),
        ok_message="Task tree retrieved successfully",
    )


def create_task(service: TaskService, payload: dict[str, Any]) -> ApiResponse:
    """payload: {title, description?, parentId?, position?}"""

    def run() -> Task:
        p = _fields(payload)
        return service.create_task(
            _opt_str(p, "title") or "",
            description=_opt_str(p, "description"),
            parent_id=_opt_int(p, "parentId"),
            position=_opt_int(p, "position"),
        )

    return _respond(
        "create task",
        run,
        ok_message="Task created successfully",
        ok_status=HTTP_CREATED,
        not_found_message="Parent task not found",
    )


def create_sibling_task(service: TaskService, anchor_id: int, payload: dict[str, Any]) -> ApiResponse:
    def run() -> Task:
        p = _fields(payload)
        return service.create_sibling(
            anchor_id,
            _opt_str(p, "title") or "",
            description=_opt_str(p, "description"),
        )

    return _respond(
        "create sibling task",
        run,
        ok_message="Sibling task created successfully",
        ok_status=HTTP_CREATED,
        not_found_message="Sibling task not found",
    )


def create_subtask(service: TaskService, parent_id: int, payload: dict[str, Any]) -> ApiResponse:
    def run() -> Task:
        p = _fields(payload)
        return service.create_subtask(
            parent_id,
            _opt_str(p, "title") or "",
            description=_opt_str(p, "description"),
        )

    return _respond(
        "create subtask",
        run,
        ok_message="Subtask created successfully",
        ok_status=HTTP_CREATED,
        not_found_message="Parent task not found",
    )


def update_task(service: TaskService, task_id: int, payload: dict[str, Any]) -> ApiResponse:
    """payload: any of {title, description, isCompleted, position}; isCompleted must be a JSON boolean."""

    def run() -> Task:
        p = _fields(payload)
        return service.update_task(
            task_id,
            title=_opt_str(p, "title"),
            description=_opt_str(p, "description"),
            is_completed=_opt_bool(p, "isCompleted"),
            position=_opt_int(p, "position"),
        )

    return _respond(
        "update task",
        run,
        ok_message="Task updated successfully",
    )


def delete_task(service: TaskService, task_id: int) -> ApiResponse:
    return _respond(
        "delete task",
        lambda: service.delete_task(task_id),
        ok_message="Task deleted successfully",
        include_data=False,
    )
