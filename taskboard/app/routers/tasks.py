"""Task API router: CRUD, status toggle and the projected list view."""

import logging

from fastapi import APIRouter, Depends, Query, Response

from taskboard.app.domain import Task
from taskboard.app.i18n import t
from taskboard.app.projection import DeadlineFilter, Projection, SortOption, StatusFilter, project
from taskboard.app.deps import get_task_store
from taskboard.app.schemas import (
    ProjectionFilters,
    ProjectionGroupOut,
    ProjectionResponse,
    TaskCounts,
    TaskCreate,
    TaskListResponse,
    TaskOut,
    TaskUpdate,
)
from taskboard.app.task_store import TaskStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _task_out(task: Task) -> TaskOut:
    return TaskOut.model_validate(task)


def _projection_response(
    projection: Projection, filters: ProjectionFilters, counts: dict[str, int]
) -> ProjectionResponse:
    return ProjectionResponse(
        filters=filters,
        grouped=projection.grouped,
        groups=[
            ProjectionGroupOut(
                key=group.key,
                label=group.label,
                count=group.count,
                items=[_task_out(task) for task in group.tasks],
            )
            for group in projection.groups
        ],
        matched=projection.matched,
        empty_state=projection.empty_state.value if projection.empty_state else None,
        message=projection.message,
        counts=TaskCounts(**counts),
        summary=t("task_count", **counts),
    )


@router.get("", response_model=TaskListResponse)
def list_tasks(store: TaskStore = Depends(get_task_store)):
    """Return every task of the signed-in user, deadline ascending."""

    tasks = store.load()
    return TaskListResponse(items=[_task_out(task) for task in tasks], counts=TaskCounts(**store.counts()))


@router.get("/view", response_model=ProjectionResponse)
def view_tasks(
    q: str = Query("", max_length=200),
    status: StatusFilter = Query(StatusFilter.ALL),
    deadline: DeadlineFilter = Query(DeadlineFilter.ALL),
    sort: SortOption = Query(SortOption.DEADLINE_ASC),
    store: TaskStore = Depends(get_task_store),
):
    """Filtered, sorted and grouped list, ready to render."""

    tasks = store.load()
    projection = project(tasks, q, status, deadline, sort)
    filters = ProjectionFilters(q=q, status=status, deadline=deadline, sort=sort)
    return _projection_response(projection, filters, store.counts())


@router.post("", response_model=TaskOut, status_code=201)
def create_task(body: TaskCreate, store: TaskStore = Depends(get_task_store)):
    return _task_out(store.create(body.text, body.deadline))


@router.put("/{task_id}", response_model=TaskOut)
def update_task(task_id: str, body: TaskUpdate, store: TaskStore = Depends(get_task_store)):
    return _task_out(store.update(task_id, body.text, body.deadline))


@router.post("/{task_id}/toggle", response_model=TaskOut)
def toggle_task(task_id: str, store: TaskStore = Depends(get_task_store)):
    return _task_out(store.toggle_status(task_id))


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: str, store: TaskStore = Depends(get_task_store)) -> Response:
    store.remove(task_id)
    return Response(status_code=204)
