"""Shared fixtures: every test runs in its own execution context."""

import pytest

from heimdall_ltf.application import execution_context
from heimdall_ltf.infrastructure.platform import default_store, shutdown_worker_pool
from heimdall_ltf.infrastructure.testing import TestOverrides


@pytest.fixture(scope="session", autouse=True)
def worker_pool_lifecycle():
    """Shut the process-wide worker pool down once the session ends."""
    yield
    shutdown_worker_pool()


@pytest.fixture(autouse=True)
def context():
    """Fresh execution context for the duration of one test."""
    with execution_context() as ctx:
        yield ctx


@pytest.fixture
def overrides(context):
    """Test overrides bound to the test's context, reset afterwards."""
    with TestOverrides(context) as test_overrides:
        yield test_overrides


@pytest.fixture
def store():
    """The process-wide host store, emptied and unbound after the test."""
    record_store = default_store()
    record_store.clear()
    record_store.unbind_triggers()
    yield record_store
    record_store.clear()
    record_store.unbind_triggers()
