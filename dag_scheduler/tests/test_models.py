"""Tests for scheduler data models."""

import inspect
import pytest

from dag_scheduler.exceptions import GraphIntegrityError
from dag_scheduler.models import ROOT_KEY, TaskRecord, TaskStatus, noop


class TestTaskRecord:
    """Test cases for TaskRecord."""

    def test_defaults(self):
        """Test a fresh record."""
        record = TaskRecord(key="a")

        assert record.work is noop
        assert record.depends_on == set()
        assert record.dependents == set()
        assert record.result is None
        assert record.started is False
        assert record.status == TaskStatus.PENDING

    def test_root(self):
        """Test root detection."""
        assert TaskRecord(key=ROOT_KEY).is_root
        assert not TaskRecord(key="a").is_root

    def test_placeholder_status(self):
        """Test status of a record that was never registered."""
        assert TaskRecord(key="a", placeholder=True).status == TaskStatus.PLACEHOLDER

    @pytest.mark.asyncio
    async def test_launch_once(self):
        """Test that the result slot is write-once."""
        record = TaskRecord(key="a")
        calls = []

        async def work():
            calls.append(1)
            return "done"

        future = record.launch(work)
        assert record.status == TaskStatus.RUNNING

        with pytest.raises(GraphIntegrityError) as exc_info:
            record.launch(work)

        assert exc_info.value.task_name == "a"
        assert await future == "done"
        assert calls == [1]
        assert record.status == TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_failed_status(self):
        """Test status of a failed record."""
        record = TaskRecord(key="a")

        async def work():
            raise RuntimeError("boom")

        future = record.launch(work)
        with pytest.raises(RuntimeError):
            await future

        assert record.status == TaskStatus.FAILED

    @pytest.mark.asyncio
    async def test_noop(self):
        """Test the no-op work."""
        assert await noop() is None
        assert await noop({"a": 1}) is None
        assert inspect.iscoroutinefunction(noop)
