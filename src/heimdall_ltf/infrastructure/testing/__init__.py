"""
Testing utilities module.

Provides overrides, resource budgets and port doubles for testing handlers.
"""

from .budget import ResourceBudget
from .doubles import (
    FixedClock,
    InMemorySelector,
    RecordingEventBus,
    RecordingMutator,
    StubHttpClient,
    SynchronousEnqueuer,
    records_by_id,
)
from .utilities import TestOverrides, override_services

__all__ = [
    "TestOverrides",
    "override_services",
    "ResourceBudget",
    "InMemorySelector",
    "RecordingMutator",
    "StubHttpClient",
    "SynchronousEnqueuer",
    "RecordingEventBus",
    "FixedClock",
    "records_by_id",
]
