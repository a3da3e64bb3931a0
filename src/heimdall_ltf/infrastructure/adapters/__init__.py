"""
Production port implementations.

Only the composition root instantiates these classes.
"""

from .httpx_client import HttpxClient
from .logging_event_bus import LoggingEventBus
from .store_mutator import StoreMutator
from .store_selector import StoreSelector
from .system_clock import SystemClock
from .thread_pool_enqueuer import ThreadPoolEnqueuer

__all__ = [
    "HttpxClient",
    "LoggingEventBus",
    "StoreMutator",
    "StoreSelector",
    "SystemClock",
    "ThreadPoolEnqueuer",
]
