"""
Production wiring.

``register_all`` is the only place production port implementations are
instantiated. The guardrails scanner enforces this for the whole source tree.
"""

import logging

from heimdall_ltf.domain import (
    IAsyncEnqueuer,
    IClock,
    IEventBus,
    IHttpClient,
    IMutator,
    ISelector,
    IServiceRegistry,
)
from heimdall_ltf.infrastructure.adapters import (
    HttpxClient,
    LoggingEventBus,
    StoreMutator,
    StoreSelector,
    SystemClock,
    ThreadPoolEnqueuer,
)
from heimdall_ltf.infrastructure.config import get_settings
from heimdall_ltf.infrastructure.platform import RecordStore, default_store, worker_pool

logger = logging.getLogger(__name__)


def register_all(registry: IServiceRegistry) -> None:
    """Register every production binding.

    Deterministic: running it again after ``registry.reset()`` produces the
    same set of contracts bound to the same implementation types.

    Args:
        registry: The registry to populate.
    """
    settings = get_settings()
    store = default_store()
    clock = SystemClock()

    registry.register(RecordStore, store)
    registry.register(IClock, clock)
    registry.register(ISelector, StoreSelector(store))
    registry.register(IMutator, StoreMutator(store))
    registry.register(IHttpClient, HttpxClient(base_url=settings.http_base_url, timeout=settings.http_timeout_seconds))
    registry.register(IAsyncEnqueuer, ThreadPoolEnqueuer(worker_pool(settings.async_max_workers)))
    registry.register(IEventBus, LoggingEventBus(clock))

    logger.debug("Registered production bindings")
