"""View projection: filter, sort and group a task list for display.

Everything here is a pure function of its inputs. ``today`` is the only
ambient value and can be passed explicitly; when omitted it is read fresh on
every call, so crossing midnight is picked up by the next projection.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Iterable, Optional, Union

from taskboard.app.domain import Task, TaskStatus
from taskboard.app.i18n import t


class StatusFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    DONE = "done"


class DeadlineFilter(StrEnum):
    ALL = "all"
    OVERDUE = "overdue"
    TODAY = "today"
    FUTURE = "future"


class DeadlineCategory(StrEnum):
    OVERDUE = "overdue"
    TODAY = "today"
    FUTURE = "future"


class SortOption(StrEnum):
    DEADLINE_ASC = "deadline-asc"
    DEADLINE_DESC = "deadline-desc"
    STATUS = "status"


class EmptyState(StrEnum):
    NO_TASKS = "no_tasks"
    NO_MATCHES = "no_matches"


@dataclass(frozen=True)
class ProjectionGroup:
    key: str
    label: str
    tasks: tuple[Task, ...]

    @property
    def count(self) -> int:
        return len(self.tasks)


@dataclass(frozen=True)
class Projection:
    groups: tuple[ProjectionGroup, ...]
    grouped: bool
    empty_state: Optional[EmptyState] = None
    message: Optional[str] = None

    @property
    def tasks(self) -> list[Task]:
        return [task for group in self.groups for task in group.tasks]

    @property
    def matched(self) -> int:
        return sum(group.count for group in self.groups)


def deadline_category(deadline: date, today: date) -> DeadlineCategory:
    if deadline < today:
        return DeadlineCategory.OVERDUE
    if deadline == today:
        return DeadlineCategory.TODAY
    return DeadlineCategory.FUTURE


def filter_by_search(tasks: Iterable[Task], query: str) -> list[Task]:
    needle = (query or "").strip().casefold()
    if not needle:
        return list(tasks)
    return [task for task in tasks if needle in task.text.casefold()]


def filter_by_status(tasks: Iterable[Task], status_filter: StatusFilter) -> list[Task]:
    if status_filter == StatusFilter.ALL:
        return list(tasks)
    return [task for task in tasks if task.status.value == status_filter.value]


def filter_by_deadline(tasks: Iterable[Task], deadline_filter: DeadlineFilter, today: date) -> list[Task]:
    if deadline_filter == DeadlineFilter.ALL:
        return list(tasks)
    return [
        task for task in tasks if deadline_category(task.deadline, today).value == deadline_filter.value
    ]


def sort_tasks(tasks: Iterable[Task], sort_option: SortOption) -> list[Task]:
    # sorted() is stable, reverse=True included, so equal keys keep their filtered order
    if sort_option == SortOption.DEADLINE_ASC:
        return sorted(tasks, key=lambda task: task.deadline)
    if sort_option == SortOption.DEADLINE_DESC:
        return sorted(tasks, key=lambda task: task.deadline, reverse=True)
    return sorted(tasks, key=lambda task: 0 if task.status == TaskStatus.PENDING else 1)


def project(
    tasks: Iterable[Task],
    search_query: str = "",
    status_filter: Union[StatusFilter, str] = StatusFilter.ALL,
    deadline_filter: Union[DeadlineFilter, str] = DeadlineFilter.ALL,
    sort_option: Union[SortOption, str] = SortOption.DEADLINE_ASC,
    *,
    today: Optional[date] = None,
    lang: Optional[str] = None,
) -> Projection:
    """Apply search, status, deadline and sort in that order, then group for display.

    Grouping: a status filter yields one list labeled by that status; otherwise
    a deadline filter yields one list labeled by that category; otherwise the
    result is split into "Pending" then "Completed", empty groups omitted.
    """
    status_filter = StatusFilter(status_filter)
    deadline_filter = DeadlineFilter(deadline_filter)
    sort_option = SortOption(sort_option)
    today = today or date.today()

    all_tasks = list(tasks)
    result = filter_by_search(all_tasks, search_query)
    result = filter_by_status(result, status_filter)
    result = filter_by_deadline(result, deadline_filter, today)
    result = sort_tasks(result, sort_option)

    if not result:
        filtering = bool((search_query or "").strip()) or (
            status_filter != StatusFilter.ALL or deadline_filter != DeadlineFilter.ALL
        )
        state = EmptyState.NO_MATCHES if filtering else EmptyState.NO_TASKS
        return Projection(
            groups=(),
            grouped=status_filter == StatusFilter.ALL and deadline_filter == DeadlineFilter.ALL,
            empty_state=state,
            message=t(f"empty_{state.value}", lang),
        )

    if status_filter != StatusFilter.ALL:
        group = ProjectionGroup(status_filter.value, t(f"group_{status_filter.value}", lang), tuple(result))
        return Projection(groups=(group,), grouped=False)

    if deadline_filter != DeadlineFilter.ALL:
        group = ProjectionGroup(deadline_filter.value, t(f"group_{deadline_filter.value}", lang), tuple(result))
        return Projection(groups=(group,), grouped=False)

    groups = []
    for status in (TaskStatus.PENDING, TaskStatus.DONE):
        members = tuple(task for task in result if task.status == status)
        if members:
            groups.append(ProjectionGroup(status.value, t(f"group_{status.value}", lang), members))
    return Projection(groups=tuple(groups), grouped=True)
