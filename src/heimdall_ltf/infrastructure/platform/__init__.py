"""
Host platform module.

Provides the in-process record storage that emits lifecycle events and the
worker pool that runs deferred work.
"""

from .record_store import RecordStore, default_store
from .worker_pool import shutdown_worker_pool, worker_pool

__all__ = [
    "RecordStore",
    "default_store",
    "worker_pool",
    "shutdown_worker_pool",
]
