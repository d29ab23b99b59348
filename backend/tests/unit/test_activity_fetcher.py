"""
Unit tests for the batched activity fetcher.

The store is mocked so query counts, per-batch limits and merge ordering
can be asserted without a database.
"""

from datetime import UTC, datetime, timedelta

import pytest

from core.errors import StoreUnavailable, ValidationError
from core.interfaces.store import FilterOp
from services.activities import (
    _per_batch_limit,
    fetch_activities_for_tasks,
    fetch_recent_activities,
    group_activities_by_task,
)
from core.domain import Activity


BASE = datetime(2025, 1, 1, tzinfo=UTC)


def _doc(activity_id: str, project_id: str, minutes: int, task_id: str | None = None) -> dict:
    return {
        "id": activity_id,
        "projectId": project_id,
        "taskId": task_id,
        "userId": "u1",
        "type": "message",
        "content": activity_id,
        "fileUrl": None,
        "timestamp": BASE + timedelta(minutes=minutes),
    }


def _store_with_activities(mock_store, per_project: dict[str, list[dict]]):
    """Make ``query`` answer like a store: filter by projectId, newest first, limited."""

    async def query(collection, filters, order_by=None, limit=None):
        (flt,) = filters
        rows = [doc for pid in flt.value for doc in per_project.get(pid, [])]
        rows.sort(key=lambda d: d["timestamp"], reverse=True)
        return rows[:limit] if limit else rows

    mock_store.query.side_effect = query
    return mock_store


class TestPerBatchLimit:
    def test_unbounded_without_limits(self):
        assert _per_batch_limit(None, None) is None

    def test_uses_overall_limit(self):
        assert _per_batch_limit(5, None) == 5

    def test_uses_smaller_of_overall_and_cap(self):
        assert _per_batch_limit(50, 20) == 20
        assert _per_batch_limit(5, 20) == 5

    def test_cap_alone(self):
        assert _per_batch_limit(None, 20) == 20


class TestFetchRecentActivities:
    async def test_empty_project_list_issues_no_query(self, mock_store):
        result = await fetch_recent_activities(mock_store, [])
        assert result == []
        mock_store.query.assert_not_awaited()

    @pytest.mark.parametrize("count,expected_batches", [(1, 1), (10, 1), (11, 2), (25, 3), (30, 3)])
    async def test_one_query_per_ten_project_ids(self, mock_store, count, expected_batches):
        project_ids = [f"P{i}" for i in range(1, count + 1)]
        await fetch_recent_activities(mock_store, project_ids)

        assert mock_store.query.await_count == expected_batches
        for call in mock_store.query.await_args_list:
            (flt,) = call.args[1]
            assert flt.op == FilterOp.IN
            assert flt.field == "projectId"
            assert len(flt.value) <= 10

    async def test_batches_partition_ids_in_order(self, mock_store):
        project_ids = [f"P{i}" for i in range(1, 26)]
        await fetch_recent_activities(mock_store, project_ids)

        sent = [call.args[1][0].value for call in mock_store.query.await_args_list]
        assert sent == [project_ids[0:10], project_ids[10:20], project_ids[20:25]]

    async def test_twenty_five_projects_limit_five(self, mock_store):
        per_project = {
            f"P{i}": [_doc(f"P{i}-a{j}", f"P{i}", minutes=i * 10 + j) for j in range(3)]
            for i in range(1, 26)
        }
        _store_with_activities(mock_store, per_project)

        result = await fetch_recent_activities(
            mock_store, [f"P{i}" for i in range(1, 26)], max_activities=5
        )

        assert mock_store.query.await_count == 3
        for call in mock_store.query.await_args_list:
            assert call.kwargs["limit"] == 5
            assert call.kwargs["order_by"].field == "timestamp"
            assert call.kwargs["order_by"].descending is True

        # Most recent overall live in P25 (3) and P24 (top 2)
        assert [a.id for a in result] == ["P25-a2", "P25-a1", "P25-a0", "P24-a2", "P24-a1"]

    async def test_global_order_across_batches(self, mock_store):
        # Newest activity sits in the first batch, oldest in the last
        per_project = {f"P{i}": [_doc(f"a{i}", f"P{i}", minutes=100 - i)] for i in range(1, 21)}
        _store_with_activities(mock_store, per_project)

        result = await fetch_recent_activities(mock_store, list(per_project))

        timestamps = [a.timestamp for a in result]
        assert timestamps == sorted(timestamps, reverse=True)
        assert len(result) == 20

    async def test_ties_keep_arrival_order(self, mock_store):
        batches = [
            [_doc("first", "P1", 5)],
            [_doc("second", "P11", 5)],
        ]
        mock_store.query.side_effect = batches
        result = await fetch_recent_activities(mock_store, [f"P{i}" for i in range(1, 12)])
        assert [a.id for a in result] == ["first", "second"]

    async def test_projects_without_activities_contribute_nothing(self, mock_store):
        _store_with_activities(mock_store, {"P1": [_doc("a1", "P1", 1)]})
        result = await fetch_recent_activities(mock_store, ["P1", "P2", "P3"])
        assert [a.id for a in result] == ["a1"]

    async def test_failing_batch_aborts_whole_fetch(self, mock_store):
        mock_store.query.side_effect = [[_doc("a1", "P1", 1)], StoreUnavailable("down")]
        with pytest.raises(StoreUnavailable):
            await fetch_recent_activities(mock_store, [f"P{i}" for i in range(15)])

    async def test_non_positive_limit_rejected_before_store_access(self, mock_store):
        with pytest.raises(ValidationError):
            await fetch_recent_activities(mock_store, ["P1"], max_activities=0)
        mock_store.query.assert_not_awaited()

    async def test_repeated_ids_queried_once(self, mock_store):
        await fetch_recent_activities(mock_store, ["P1", "P1", "P2"])
        (flt,) = mock_store.query.await_args.args[1]
        assert flt.value == ["P1", "P2"]

    async def test_batch_count_follows_distinct_ids(self, mock_store):
        ids = [f"P{i}" for i in range(10)] + ["P0", "P3", "P7", "P9", "P1"]

        await fetch_recent_activities(mock_store, ids)

        assert mock_store.query.await_count == 1


class TestActivitiesForTasks:
    async def test_batches_over_task_ids(self, mock_store):
        await fetch_activities_for_tasks(mock_store, [f"T{i}" for i in range(12)])
        assert mock_store.query.await_count == 2
        (flt,) = mock_store.query.await_args_list[0].args[1]
        assert flt.field == "taskId"
        assert mock_store.query.await_args_list[0].kwargs["limit"] is None

    async def test_empty(self, mock_store):
        assert await fetch_activities_for_tasks(mock_store, []) == []
        mock_store.query.assert_not_awaited()


class TestGroupActivitiesByTask:
    def test_groups_and_skips_project_level(self):
        activities = [
            Activity.from_document(_doc("a1", "P1", 3, task_id="T1")),
            Activity.from_document(_doc("a2", "P1", 2)),
            Activity.from_document(_doc("a3", "P1", 1, task_id="T1")),
            Activity.from_document(_doc("a4", "P1", 0, task_id="T2")),
        ]
        grouped = group_activities_by_task(activities)
        assert {k: [a.id for a in v] for k, v in grouped.items()} == {
            "T1": ["a1", "a3"],
            "T2": ["a4"],
        }
