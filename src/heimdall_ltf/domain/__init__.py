"""
Domain layer - Core contracts and models.

This layer contains the value objects, errors and port contracts of the lifecycle framework.
It has no dependencies on other layers.
"""

from .enums import GuardState, JobStatus, OperationKind, Phase
from .exceptions import (
    BudgetExceededError,
    BulkMutationError,
    ContextError,
    HandlerError,
    LtfException,
    UnresolvedDependency,
)
from .interfaces import (
    IAsyncEnqueuer,
    IClock,
    IEventBus,
    IHttpClient,
    ILifecycleHandler,
    IMutator,
    IServiceRegistry,
    ISelector,
    IUnitOfWork,
)
from .models import (
    Binding,
    BulkMutationResult,
    HttpRequest,
    HttpResponse,
    JobHandle,
    LifecycleEvent,
    MutationOutcome,
    PlatformEvent,
    Record,
    RegistryState,
    ResourceUsage,
)

__all__ = [
    # Enums
    "GuardState",
    "JobStatus",
    "OperationKind",
    "Phase",
    # Exceptions
    "LtfException",
    "UnresolvedDependency",
    "BulkMutationError",
    "BudgetExceededError",
    "HandlerError",
    "ContextError",
    # Interfaces
    "IServiceRegistry",
    "ILifecycleHandler",
    "ISelector",
    "IMutator",
    "IHttpClient",
    "IUnitOfWork",
    "IAsyncEnqueuer",
    "IEventBus",
    "IClock",
    # Models
    "Binding",
    "BulkMutationResult",
    "HttpRequest",
    "HttpResponse",
    "JobHandle",
    "LifecycleEvent",
    "MutationOutcome",
    "PlatformEvent",
    "Record",
    "RegistryState",
    "ResourceUsage",
]
