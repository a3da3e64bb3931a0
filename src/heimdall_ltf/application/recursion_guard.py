"""Application layer - Re-entrancy protection for lifecycle handlers."""

import logging
from typing import Dict, Set, Tuple, Type

from heimdall_ltf.domain import ContextError, GuardState

logger = logging.getLogger(__name__)

GuardKey = Tuple[Type, str]


class RecursionGuard:
    """Tracks which handler types are executing in one execution context.

    Each (handler type, context id) pair moves ``IDLE -> ENTERED -> IDLE``. A
    second entry while ``ENTERED`` is rejected unless nesting has been allowed
    for that handler type, in which case entries are counted and the pair only
    returns to ``IDLE`` when the outermost entry exits.

    Attributes:
        _context_id: Id of the execution context owning this guard.
        _depths: Active entry count per guard key. Absent keys are idle.
        _allow_nested: Handler types permitted to re-enter.
    """

    def __init__(self, context_id: str) -> None:
        self._context_id = context_id
        self._depths: Dict[GuardKey, int] = {}
        self._allow_nested: Set[Type] = set()

    def _key(self, handler_type: Type) -> GuardKey:
        return (handler_type, self._context_id)

    def state(self, handler_type: Type) -> GuardState:
        """Return the current state for a handler type."""
        return GuardState.ENTERED if self._depths.get(self._key(handler_type), 0) > 0 else GuardState.IDLE

    def try_enter(self, handler_type: Type) -> bool:
        """Attempt to enter the guard for a handler type.

        Args:
            handler_type: The concrete handler class about to run.

        Returns:
            True if the caller may proceed and must later call ``exit``,
            False if this is a rejected re-entry.
        """
        key = self._key(handler_type)
        depth = self._depths.get(key, 0)

        if depth > 0 and handler_type not in self._allow_nested:
            return False

        self._depths[key] = depth + 1
        return True

    def exit(self, handler_type: Type) -> None:
        """Leave the guard for a handler type.

        Raises:
            ContextError: If the handler type is not currently entered.
        """
        key = self._key(handler_type)
        depth = self._depths.get(key, 0)
        if depth == 0:
            raise ContextError(f"Recursion guard for {handler_type.__name__} exited while idle")

        if depth == 1:
            del self._depths[key]
        else:
            self._depths[key] = depth - 1

    def allow_nested(self, handler_type: Type, allowed: bool = True) -> None:
        """Permit or forbid re-entry for a handler type."""
        if allowed:
            self._allow_nested.add(handler_type)
        else:
            self._allow_nested.discard(handler_type)

    def is_nested_allowed(self, handler_type: Type) -> bool:
        return handler_type in self._allow_nested

    def reset(self) -> None:
        """Return every handler type to idle and drop nesting overrides.

        Useful at a context boundary or between tests.
        """
        if self._depths:
            logger.debug("Resetting recursion guard with %d entered handler(s)", len(self._depths))
        self._depths.clear()
        self._allow_nested.clear()
