"""
Shared test fixtures for patrol tests.
"""
import multiprocessing

import pytest

from patrol.executor.base import Sandbox
from patrol.policy.rules import ALL, AllExcept, OnlyThese, Policy


@pytest.fixture
def empty_policy():
    return Policy()


@pytest.fixture
def sample_policy():
    return Policy(
        allowed_local={"add", "len", "list", "sum"},
        allowed_remote={
            "math": ALL,
            "os": AllExcept({"system", "remove"}),
            "json": OnlyThese({"dumps"}),
        },
        range_max=1000,
    )


@pytest.fixture
def sandbox():
    """Permissive sandbox with a timeout generous enough for slow process start."""
    return Sandbox(timeout=10)


@pytest.fixture
def sample_context():
    import operator
    return {"add": operator.add, "x": 21}


def _live_workers():
    return [p for p in multiprocessing.active_children() if p.name.startswith("patrol-worker-")]


@pytest.fixture
def live_workers():
    """Callable listing the worker processes still running."""
    return _live_workers


@pytest.fixture
def no_live_workers():
    """Assert that a test leaves no worker process running."""
    yield
    assert _live_workers() == []
