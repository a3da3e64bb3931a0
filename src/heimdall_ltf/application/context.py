"""Application layer - Execution context scoping."""

import contextvars
import logging
import time
import uuid
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Set, Type, TypeVar, Union

from heimdall_ltf.application.recursion_guard import RecursionGuard
from heimdall_ltf.application.registry import CompositionRoot, ServiceRegistry
from heimdall_ltf.domain import ResourceUsage

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_COMPOSITION_ROOT = "heimdall_ltf.infrastructure.composition_root:register_all"

UsageListener = Callable[[str, ResourceUsage], None]

_current_context: contextvars.ContextVar[Optional["ExecutionContext"]] = contextvars.ContextVar(
    "heimdall_ltf_execution_context",
    default=None,
)


class ExecutionContext:
    """State owned by one platform transaction or one test case.

    Holds the service registry, the recursion guard, the handler bypass set and
    resource usage counters. Nothing here is shared with any other context.

    Attributes:
        context_id: Unique identifier of this context.
        registry: Bindings resolved by handlers running in this context.
        guard: Re-entrancy state of handlers running in this context.
        usage: Backing calls made in this context.
    """

    def __init__(
        self,
        composition_root: Optional[Union[CompositionRoot, str]] = DEFAULT_COMPOSITION_ROOT,
        context_id: Optional[str] = None,
    ) -> None:
        """Initialize a fresh context.

        Args:
            composition_root: Production wiring for the registry, as a callable or
                ``module:attribute`` path. ``None`` disables bootstrap.
            context_id: Explicit id, generated when omitted.
        """
        self.context_id = context_id or uuid.uuid4().hex
        self.registry = ServiceRegistry(composition_root)
        self.guard = RecursionGuard(self.context_id)
        self.usage = ResourceUsage(cpu_started=time.process_time())
        self._bypassed: Set[Type] = set()
        self._usage_listeners: List[UsageListener] = []

    def __repr__(self) -> str:
        return f"ExecutionContext(context_id={self.context_id!r})"

    # Handler bypass

    def bypass(self, handler_type: Type) -> None:
        """Skip every dispatch to ``handler_type`` until the bypass is cleared."""
        self._bypassed.add(handler_type)

    def clear_bypass(self, handler_type: Type) -> None:
        self._bypassed.discard(handler_type)

    def is_bypassed(self, handler_type: Type) -> bool:
        return handler_type in self._bypassed

    def clear_all_bypasses(self) -> None:
        self._bypassed.clear()

    # Resource usage

    def add_usage_listener(self, listener: UsageListener) -> None:
        """Register a callback invoked with ``(resource, usage)`` after every count change."""
        self._usage_listeners.append(listener)

    def remove_usage_listener(self, listener: UsageListener) -> None:
        if listener in self._usage_listeners:
            self._usage_listeners.remove(listener)

    def record_data_access(self) -> None:
        self.usage.data_access_calls += 1
        self._notify("data_access_calls")

    def record_mutation(self) -> None:
        self.usage.mutation_calls += 1
        self._notify("mutation_calls")

    def record_callout(self) -> None:
        self.usage.callouts += 1
        self._notify("callouts")

    def record_queued_job(self) -> None:
        self.usage.queued_jobs += 1
        self._notify("queued_jobs")

    def cpu_time_ms(self) -> float:
        """Process CPU time consumed since the context started, in milliseconds."""
        return (time.process_time() - self.usage.cpu_started) * 1000.0

    def _notify(self, resource: str) -> None:
        for listener in list(self._usage_listeners):
            listener(resource, self.usage)

    def reset(self) -> None:
        """Return the context to its freshly created state, keeping its id."""
        self.registry.reset()
        self.guard.reset()
        self._bypassed.clear()
        self._usage_listeners.clear()
        self.usage = ResourceUsage(cpu_started=time.process_time())


@contextmanager
def execution_context(
    composition_root: Optional[Union[CompositionRoot, str]] = DEFAULT_COMPOSITION_ROOT,
    context_id: Optional[str] = None,
) -> Iterator[ExecutionContext]:
    """Open a fresh execution context for the duration of the block.

    The previous context (if any) becomes current again on exit and the new
    context's state is discarded.

    Example:
        >>> with execution_context() as ctx:
        ...     selector = ctx.registry.resolve(ISelector)
    """
    context = ExecutionContext(composition_root=composition_root, context_id=context_id)
    token = _current_context.set(context)
    logger.debug("Entered execution context %s", context.context_id)
    try:
        yield context
    finally:
        _current_context.reset(token)
        logger.debug("Left execution context %s", context.context_id)


def current_context() -> ExecutionContext:
    """Return the active execution context, opening a root context if none is active."""
    context = _current_context.get()
    if context is None:
        context = ExecutionContext()
        _current_context.set(context)
        logger.debug("Opened root execution context %s", context.context_id)
    return context


def resolve(contract: Type[T]) -> T:
    """Resolve a contract from the current context's registry."""
    return current_context().registry.resolve(contract)


def register(contract: Type[T], implementation: T) -> None:
    """Bind an implementation in the current context's registry."""
    current_context().registry.register(contract, implementation)
