from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from taskboard.app.auth import StaticSessionProvider
from taskboard.app.core.errors import (
    Forbidden,
    MutationInProgress,
    NotFound,
    StoreUnavailable,
    Unauthenticated,
    ValidationError,
)
from taskboard.app.domain import TaskStatus
from taskboard.app.task_store import MutationGuard, TaskStore, parse_deadline


def test_create_toggle_delete_scenario(store) -> None:
    task = store.create("Renew passport", "2024-07-01")

    assert len(store.tasks) == 1
    assert task.status == TaskStatus.PENDING
    assert task.finished_time is None
    assert task.deadline == date(2024, 7, 1)
    assert task.id

    done = store.toggle_status(task.id)
    assert done.status == TaskStatus.DONE
    assert done.finished_time is not None
    assert store.tasks[0].status == TaskStatus.DONE

    store.remove(task.id)
    assert store.tasks == []

    with pytest.raises(NotFound):
        store.remove(task.id)


def test_double_toggle_restores_pending_and_clears_finished_time(store) -> None:
    task = store.create("Water plants", date(2024, 6, 20))

    store.toggle_status(task.id)
    again = store.toggle_status(task.id)

    assert again.status == TaskStatus.PENDING
    assert again.finished_time is None
    for t in store.tasks:
        assert (t.status == TaskStatus.DONE) == (t.finished_time is not None)


def test_toggle_uses_clock_for_finished_time(memory_repo) -> None:
    moment = datetime(2024, 6, 15, 9, 30, tzinfo=timezone.utc)
    store = TaskStore(memory_repo, StaticSessionProvider("u1"), clock=lambda: moment)
    task = store.create("Call bank", "2024-06-15")

    assert store.toggle_status(task.id).finished_time == moment


def test_create_trims_text(store) -> None:
    task = store.create("  Buy milk \n", "2024-06-15")
    assert task.text == "Buy milk"


@pytest.mark.parametrize(
    "text,deadline",
    [
        ("", "2024-06-15"),
        ("   ", "2024-06-15"),
        (None, "2024-06-15"),
        ("Task", ""),
        ("Task", None),
        ("Task", "2024-13-40"),
        ("Task", "tomorrow"),
    ],
)
def test_create_rejects_invalid_input_before_touching_repository(store, memory_repo, text, deadline) -> None:
    with pytest.raises(ValidationError):
        store.create(text, deadline)
    assert store.tasks == []
    assert memory_repo.list_by_owner("user-a") == []


def test_parse_deadline_accepts_dates_datetimes_and_iso_timestamps() -> None:
    assert parse_deadline(date(2024, 6, 15)) == date(2024, 6, 15)
    assert parse_deadline(datetime(2024, 6, 15, 23, 59)) == date(2024, 6, 15)
    assert parse_deadline("2024-06-15T00:00:00.000Z") == date(2024, 6, 15)


def test_update_edits_text_and_deadline_only(store) -> None:
    task = store.create("Draft report", "2024-06-10")
    store.toggle_status(task.id)

    updated = store.update(task.id, "Final report", "2024-06-12")

    assert updated.text == "Final report"
    assert updated.deadline == date(2024, 6, 12)
    assert updated.status == TaskStatus.DONE
    assert updated.finished_time is not None
    assert store.tasks == [updated]


def test_update_missing_task_is_forbidden(store) -> None:
    with pytest.raises(Forbidden):
        store.update("nope", "Text", "2024-06-10")


def test_toggle_missing_task_is_not_found(store) -> None:
    with pytest.raises(NotFound):
        store.toggle_status("nope")


def test_other_users_task_cannot_be_mutated(memory_repo) -> None:
    owner = TaskStore(memory_repo, StaticSessionProvider("alice"))
    intruder = TaskStore(memory_repo, StaticSessionProvider("bob"))
    task = owner.create("Alice's secret", "2024-06-15")

    with pytest.raises(Forbidden):
        intruder.update(task.id, "hijacked", "2024-01-01")
    with pytest.raises(Forbidden):
        intruder.toggle_status(task.id)
    with pytest.raises(Forbidden):
        intruder.remove(task.id)

    stored = memory_repo.get(task.id)
    assert stored.text == "Alice's secret"
    assert stored.status == TaskStatus.PENDING
    assert intruder.load() == []


def test_operations_require_a_session(memory_repo) -> None:
    store = TaskStore(memory_repo, StaticSessionProvider(None))
    with pytest.raises(Unauthenticated):
        store.load()
    with pytest.raises(Unauthenticated):
        store.create("Task", "2024-06-15")
    with pytest.raises(Unauthenticated):
        store.remove("1")


def test_load_replaces_working_copy_and_orders_by_deadline(memory_repo) -> None:
    store = TaskStore(memory_repo, StaticSessionProvider("u1"))
    memory_repo.insert("u1", "late", date(2024, 7, 1))
    memory_repo.insert("u1", "early", date(2024, 6, 1))
    memory_repo.insert("u2", "not mine", date(2024, 5, 1))

    loaded = store.load()

    assert [t.text for t in loaded] == ["early", "late"]
    assert store.counts() == {"total": 2, "pending": 2, "done": 0}


class FailingRepository:
    """Delegates reads, fails every write."""

    def __init__(self, inner):
        self.inner = inner

    def list_by_owner(self, owner_id):
        return self.inner.list_by_owner(owner_id)

    def get(self, task_id):
        return self.inner.get(task_id)

    def insert(self, owner_id, text, deadline):
        raise StoreUnavailable("database down")

    def update(self, task_id, **fields):
        raise StoreUnavailable("database down")

    def delete(self, task_id):
        raise StoreUnavailable("database down")


def test_store_failures_leave_working_copy_unchanged(memory_repo) -> None:
    seeded = memory_repo.insert("u1", "existing", date(2024, 6, 15))
    store = TaskStore(FailingRepository(memory_repo), StaticSessionProvider("u1"))
    store.load()
    before = store.tasks

    with pytest.raises(StoreUnavailable):
        store.create("new", "2024-06-16")
    with pytest.raises(StoreUnavailable):
        store.update(seeded.id, "changed", "2024-06-16")
    with pytest.raises(StoreUnavailable):
        store.toggle_status(seeded.id)
    with pytest.raises(StoreUnavailable):
        store.remove(seeded.id)

    assert store.tasks == before
    assert store.is_saving is False


def test_second_mutation_while_one_is_in_flight_is_rejected(memory_repo) -> None:
    store = TaskStore(memory_repo, StaticSessionProvider("u1"))
    seen: dict = {}

    class ReentrantRepository(type(memory_repo)):
        def insert(self, owner_id, text, deadline):
            seen["saving"] = store.is_saving
            with pytest.raises(MutationInProgress):
                store.create("interleaved", deadline)
            return super().insert(owner_id, text, deadline)

    store._repo = ReentrantRepository()
    store.create("first", "2024-06-15")

    assert seen["saving"] is True
    assert [t.text for t in store.tasks] == ["first"]
    assert store.is_saving is False


def test_stores_sharing_a_guard_reject_overlapping_changes_for_one_user(memory_repo) -> None:
    guard = MutationGuard()
    first = TaskStore(memory_repo, StaticSessionProvider("u1"), guard=guard)
    second = TaskStore(memory_repo, StaticSessionProvider("u1"), guard=guard)
    other_user = TaskStore(memory_repo, StaticSessionProvider("u2"), guard=guard)
    outcome: dict = {}

    class SlowRepository(type(memory_repo)):
        def insert(self, owner_id, text, deadline):
            if text == "first":
                assert guard.is_busy("u1")
                with pytest.raises(MutationInProgress):
                    second.create("second", deadline)
                outcome["other_user"] = other_user.create("unrelated", deadline).text
            return super().insert(owner_id, text, deadline)

    repo = SlowRepository()
    first._repo = second._repo = other_user._repo = repo
    first.create("first", "2024-06-15")

    assert outcome["other_user"] == "unrelated"
    assert sorted(t.text for t in repo.list_by_owner("u1")) == ["first"]
    assert not guard.is_busy("u1")
    assert second.create("second", "2024-06-16").text == "second"


def test_listeners_are_notified_after_successful_mutations(store) -> None:
    events = []
    unsubscribe = store.subscribe(lambda op, task: events.append((op, task.text if task else None)))

    task = store.create("Pay rent", "2024-07-01")
    store.toggle_status(task.id)
    store.update(task.id, "Pay rent (June)", "2024-07-01")
    store.remove(task.id)
    unsubscribe()
    store.create("ignored", "2024-07-02")

    assert events == [
        ("create", "Pay rent"),
        ("toggle", "Pay rent"),
        ("update", "Pay rent (June)"),
        ("remove", "Pay rent (June)"),
    ]


def test_failing_listener_does_not_break_the_mutation(store) -> None:
    def boom(op, task):
        raise RuntimeError("listener bug")

    store.subscribe(boom)
    task = store.create("Still saved", "2024-07-01")
    assert store.tasks == [task]
