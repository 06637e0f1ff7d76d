"""Shared fixtures for scheduler tests."""

import asyncio
import logging

import pytest
from unittest.mock import AsyncMock

from dag_scheduler.scheduler import TaskScheduler

logging.basicConfig(level=logging.DEBUG)


def pytest_configure(config):
    """Add custom markers for tests"""
    config.addinivalue_line("markers", "asyncio: mark test as an asyncio test")

    # Set asyncio mode to auto to avoid warnings
    config.option.asyncio_mode = "auto"


@pytest.fixture
def scheduler():
    """Create a scheduler with default configuration."""
    return TaskScheduler()


@pytest.fixture
def make_task():
    """Factory for mock tasks that check their inputs and resolve after a delay."""

    def factory(value, delay: float = 0.01, expected_inputs=None):
        async def run(inputs):
            if expected_inputs is not None:
                assert inputs == expected_inputs
            await asyncio.sleep(delay)
            return value

        return AsyncMock(side_effect=run)

    return factory
