"""
heimdall-ltf: Lifecycle trigger framework with a context-scoped service registry.

Public API exports for the heimdall-ltf package.
"""

# Application exports
from heimdall_ltf.application import (
    ExecutionContext,
    LifecycleEventRouter,
    RecursionGuard,
    ServiceRegistry,
    current_context,
    dispatch,
    execution_context,
    register,
    resolve,
)

# Domain exports
from heimdall_ltf.domain import (
    BudgetExceededError,
    BulkMutationError,
    BulkMutationResult,
    ContextError,
    GuardState,
    HandlerError,
    HttpRequest,
    HttpResponse,
    IAsyncEnqueuer,
    IClock,
    IEventBus,
    IHttpClient,
    ILifecycleHandler,
    IMutator,
    ISelector,
    IUnitOfWork,
    JobHandle,
    JobStatus,
    LifecycleEvent,
    LtfException,
    MutationOutcome,
    OperationKind,
    Phase,
    PlatformEvent,
    Record,
    UnresolvedDependency,
)

__version__ = "0.1.0"

__all__ = [
    # Runtime
    "ExecutionContext",
    "LifecycleEventRouter",
    "RecursionGuard",
    "ServiceRegistry",
    "current_context",
    "dispatch",
    "execution_context",
    "register",
    "resolve",
    # Enums
    "OperationKind",
    "Phase",
    "GuardState",
    "JobStatus",
    # Models
    "LifecycleEvent",
    "Record",
    "MutationOutcome",
    "BulkMutationResult",
    "HttpRequest",
    "HttpResponse",
    "JobHandle",
    "PlatformEvent",
    # Contracts
    "ILifecycleHandler",
    "ISelector",
    "IMutator",
    "IHttpClient",
    "IUnitOfWork",
    "IAsyncEnqueuer",
    "IEventBus",
    "IClock",
    # Exceptions
    "LtfException",
    "UnresolvedDependency",
    "BulkMutationError",
    "BudgetExceededError",
    "HandlerError",
    "ContextError",
]
