from typing import TYPE_CHECKING, List, Optional, Type

if TYPE_CHECKING:
    from heimdall_ltf.domain.models import MutationOutcome


class LtfException(Exception):
    """Base exception for lifecycle framework errors."""


class UnresolvedDependency(LtfException):
    """Raised when a contract has no binding after bootstrap.

    Attributes:
        contract: The contract type that could not be resolved.
        reason: Optional reason for the failure.
    """

    def __init__(self, contract: Type, reason: Optional[str] = None) -> None:
        self.contract = contract
        self.reason = reason
        message = f"No binding registered for contract: {getattr(contract, '__name__', repr(contract))}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class BulkMutationError(LtfException):
    """Per-record failure detail of a bulk mutation.

    Returned as part of the result in partial mode, raised in all-or-none mode.

    Attributes:
        outcomes: One outcome per input record, in input order.
    """

    def __init__(self, outcomes: List["MutationOutcome"]) -> None:
        self.outcomes = outcomes
        failed = [outcome for outcome in outcomes if not outcome.success]
        message = f"Bulk mutation failed for {len(failed)} of {len(outcomes)} record(s)"
        if failed:
            message += f": {'; '.join(failed[0].errors)}"
        super().__init__(message)

    @property
    def failed_indexes(self) -> List[int]:
        return [outcome.index for outcome in self.outcomes if not outcome.success]


class BudgetExceededError(LtfException, AssertionError):
    """Raised when a test exceeds its configured resource budget.

    Attributes:
        resource: Name of the exhausted resource.
        actual: Amount consumed.
        limit: Configured maximum.
    """

    def __init__(self, resource: str, actual: float, limit: float) -> None:
        self.resource = resource
        self.actual = actual
        self.limit = limit
        super().__init__(f"Resource budget exceeded for {resource}: used {actual}, allowed {limit}")


class HandlerError(LtfException):
    """Base class for domain errors raised from lifecycle handlers.

    The router propagates these unchanged so the enclosing operation aborts.
    """


class ContextError(LtfException):
    """Raised for invalid execution context operations.

    This occurs when a recursion guard is exited for a handler type that
    is not currently entered.
    """
