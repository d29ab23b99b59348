"""
Unit tests for TaskLifecycleManager failure handling.

All store interactions are mocked; happy paths against a real store live in
tests/integration/test_task_service.py.
"""

from datetime import UTC, datetime

import pytest

from core.domain import Task, TaskStatus
from core.errors import (
    EntityNotFound,
    NotAMemberError,
    PartialWriteInconsistency,
    StoreUnavailable,
    ValidationError,
)
from services.tasks import TaskLifecycleManager, apply_toggle


NOW = datetime(2025, 2, 2, 8, 30, tzinfo=UTC)

PROJECT_DOC = {"id": "P1", "name": "Alpha", "createdBy": "U1", "sharedWith": ["U2"], "isActive": True}
TASK_DOC = {
    "id": "T1",
    "name": "Write tests",
    "projectId": "P1",
    "owner": "U2",
    "status": "pending",
    "priority": "medium",
    "completedAt": None,
}


def _get_router(task_doc=TASK_DOC, project_doc=PROJECT_DOC):
    async def get(collection, doc_id):
        return {"tasks": task_doc, "projects": project_doc}.get(collection)

    return get


@pytest.fixture
def manager(mock_store):
    mock_store.get.side_effect = _get_router()
    mock_store.insert.return_value = "new-id"
    return TaskLifecycleManager(mock_store, clock=lambda: NOW)


class TestToggleCompletion:
    async def test_pending_to_completed_writes_status_then_activity(self, manager, mock_store):
        task = await manager.toggle_completion("T1", "pending", "U1")

        assert task.status is TaskStatus.COMPLETED
        assert task.completed_at == NOW
        mock_store.update.assert_awaited_once_with(
            "tasks", "T1", {"status": "completed", "completedAt": NOW}
        )
        collection, doc = mock_store.insert.await_args.args
        assert collection == "activities"
        assert doc["type"] == "status"
        assert doc["taskId"] == "T1"
        assert doc["projectId"] == "P1"
        assert "completed" in doc["content"]
        assert "Write tests" in doc["content"]

    async def test_completed_to_pending_clears_completed_at(self, manager, mock_store):
        mock_store.get.side_effect = _get_router(
            task_doc={**TASK_DOC, "status": "completed", "completedAt": NOW}
        )
        task = await manager.toggle_completion("T1", TaskStatus.COMPLETED, "U2")

        assert task.status is TaskStatus.PENDING
        assert task.completed_at is None
        assert mock_store.update.await_args.args[2] == {"status": "pending", "completedAt": None}
        assert "reopened" in mock_store.insert.await_args.args[1]["content"]

    async def test_audit_failure_raises_partial_write(self, manager, mock_store):
        mock_store.insert.side_effect = StoreUnavailable("insert failed")

        with pytest.raises(PartialWriteInconsistency) as exc_info:
            await manager.toggle_completion("T1", "pending", "U1")

        assert exc_info.value.task_id == "T1"
        assert exc_info.value.applied_status == "completed"
        assert isinstance(exc_info.value.__cause__, StoreUnavailable)
        mock_store.update.assert_awaited_once()

    async def test_status_update_failure_writes_no_activity(self, manager, mock_store):
        mock_store.update.side_effect = StoreUnavailable("update failed")

        with pytest.raises(StoreUnavailable):
            await manager.toggle_completion("T1", "pending", "U1")
        mock_store.insert.assert_not_awaited()

    @pytest.mark.parametrize(
        "task_id,status,user",
        [("", "pending", "U1"), ("T1", "pending", ""), ("T1", "archived", "U1")],
    )
    async def test_validation_precedes_store_access(self, manager, mock_store, task_id, status, user):
        with pytest.raises(ValidationError):
            await manager.toggle_completion(task_id, status, user)
        mock_store.get.assert_not_awaited()

    async def test_missing_task(self, manager, mock_store):
        mock_store.get.side_effect = _get_router(task_doc=None)
        with pytest.raises(EntityNotFound):
            await manager.toggle_completion("T404", "pending", "U1")
        mock_store.update.assert_not_awaited()

    async def test_non_member_cannot_toggle(self, manager, mock_store):
        with pytest.raises(NotAMemberError):
            await manager.toggle_completion("T1", "pending", "intruder")
        mock_store.update.assert_not_awaited()
        mock_store.insert.assert_not_awaited()


class TestAddTask:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": "", "project_id": "P1", "owner": "U1"},
            {"name": "   ", "project_id": "P1", "owner": "U1"},
            {"name": "Task", "project_id": "", "owner": "U1"},
            {"name": "Task", "project_id": "P1", "owner": ""},
            {"name": "Task", "project_id": "P1", "owner": "U1", "priority": "urgent"},
        ],
    )
    async def test_validation_precedes_store_access(self, manager, mock_store, kwargs):
        with pytest.raises(ValidationError):
            await manager.add_task(**kwargs)
        mock_store.get.assert_not_awaited()
        mock_store.insert.assert_not_awaited()

    async def test_creation_audit_failure_raises_partial_write(self, manager, mock_store):
        mock_store.insert.side_effect = ["T-new", StoreUnavailable("insert failed")]

        with pytest.raises(PartialWriteInconsistency) as exc_info:
            await manager.add_task(name="Task", project_id="P1", owner="U2")
        assert exc_info.value.task_id == "T-new"
        assert exc_info.value.applied_status == "pending"


class TestApplyToggle:
    def test_mirrors_remote_derivation(self):
        pending = Task(id="T1", status=TaskStatus.PENDING)
        completed = apply_toggle(pending, now=NOW)
        assert completed.status is TaskStatus.COMPLETED
        assert completed.completed_at == NOW

        reopened = apply_toggle(completed, now=NOW)
        assert reopened.status is TaskStatus.PENDING
        assert reopened.completed_at is None

    def test_does_not_mutate_input(self):
        pending = Task(id="T1")
        apply_toggle(pending, now=NOW)
        assert pending.status is TaskStatus.PENDING
