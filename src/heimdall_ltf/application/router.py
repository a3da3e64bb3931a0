import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from heimdall_ltf.application.context import ExecutionContext, current_context
from heimdall_ltf.domain import (
    ILifecycleHandler,
    LifecycleEvent,
    OperationKind,
    Phase,
    Record,
)

logger = logging.getLogger(__name__)

# Fixed registration table. Combinations outside it (before-undelete) are ignored.
HANDLER_METHODS: Dict[Tuple[Phase, OperationKind], str] = {
    (Phase.BEFORE, OperationKind.INSERT): "before_insert",
    (Phase.BEFORE, OperationKind.UPDATE): "before_update",
    (Phase.BEFORE, OperationKind.DELETE): "before_delete",
    (Phase.AFTER, OperationKind.INSERT): "after_insert",
    (Phase.AFTER, OperationKind.UPDATE): "after_update",
    (Phase.AFTER, OperationKind.DELETE): "after_delete",
    (Phase.AFTER, OperationKind.UNDELETE): "after_undelete",
}


class LifecycleEventRouter:
    """Routes lifecycle events to the matching handler method.

    The handler method is called once per event with the whole batch, inside the
    recursion guard of the execution context the router dispatches in.

    Attributes:
        _context: Fixed execution context, or None to use the current one at dispatch time.
    """

    def __init__(self, context: Optional[ExecutionContext] = None) -> None:
        self._context = context

    @property
    def context(self) -> ExecutionContext:
        return self._context if self._context is not None else current_context()

    @staticmethod
    def method_for(handler: ILifecycleHandler, event: LifecycleEvent) -> Optional[Callable[..., None]]:
        """Look up the handler method registered for the event's phase and operation.

        Returns:
            The bound method, or None if the combination has no registration.
        """
        method_name = HANDLER_METHODS.get((event.phase, event.operation_kind))
        if method_name is None:
            return None
        return getattr(handler, method_name)

    def dispatch(self, event: LifecycleEvent, handler: ILifecycleHandler) -> bool:
        """Dispatch an event to a handler.

        Args:
            event: The lifecycle event delivered by the host.
            handler: The handler instance bound to the event's object type.

        Returns:
            True if the handler method ran, False if the event was ignored,
            the handler type is bypassed, or re-entry was rejected.

        Raises:
            Exception: Whatever the handler method raises, unchanged.
        """
        method = self.method_for(handler, event)
        if method is None:
            logger.debug("No handler method for %s %s, ignoring event", event.phase, event.operation_kind)
            return False

        handler_type = type(handler)
        context = self.context

        if context.is_bypassed(handler_type):
            logger.info("Handler %s is bypassed, skipping %s %s", handler_type.__name__, event.phase, event.operation_kind)
            return False

        if not context.guard.try_enter(handler_type):
            logger.debug(
                "Handler %s already running in context %s, skipping re-entrant %s %s",
                handler_type.__name__,
                context.context_id,
                event.phase,
                event.operation_kind,
            )
            return False

        try:
            logger.debug(
                "Dispatching %s %s to %s with %d record(s)",
                event.phase,
                event.operation_kind,
                handler_type.__name__,
                event.size,
            )
            method(event.new_records, event.old_records_by_id)
        finally:
            context.guard.exit(handler_type)
        return True


def dispatch(
    operation_kind: OperationKind,
    phase: Phase,
    new_records: Sequence[Record],
    old_records_by_id: Mapping[str, Record],
    handler: ILifecycleHandler,
) -> bool:
    """Host entrypoint: build the lifecycle event and route it in the current context.

    The ``new_records`` list is passed through to the handler as-is, so changes a
    before-phase handler makes to the records are visible to the host.

    Example:
        >>> dispatch(OperationKind.INSERT, Phase.BEFORE, records, {}, AccountHandler())
    """
    records: List[Record] = list(new_records)
    event = LifecycleEvent(
        operation_kind=operation_kind,
        phase=phase,
        new_records=records,
        old_records_by_id=dict(old_records_by_id),
    )
    return LifecycleEventRouter().dispatch(event, handler)
