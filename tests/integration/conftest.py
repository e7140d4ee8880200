"""
pytest configuration for patrol integration tests.
"""
import pytest

from patrol import make_config, make_policy


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (spawns worker processes)"
    )


@pytest.fixture
def math_policy():
    return make_policy({
        "allowed_local": ["add", "list", "len"],
        "allowed_remote": {"math": "all"},
        "range_max": 1000,
    })


@pytest.fixture
def math_sandbox(math_policy):
    return make_config({"policy": math_policy, "timeout": 10})
