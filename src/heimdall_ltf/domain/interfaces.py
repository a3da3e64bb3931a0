from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Mapping, Sequence, Set, Type, TypeVar

from heimdall_ltf.domain.models import (
    BulkMutationResult,
    HttpRequest,
    HttpResponse,
    JobHandle,
    PlatformEvent,
    Record,
)

T = TypeVar("T")


class IServiceRegistry(ABC):
    """Abstract interface for the contract-to-implementation binding store."""

    @abstractmethod
    def register(self, contract: Type[T], implementation: T) -> None:
        """Bind an implementation to a contract, replacing any existing binding.

        Args:
            contract: The contract type used as lookup key.
            implementation: The instance shared by every resolver of the contract.
        """

    @abstractmethod
    def resolve(self, contract: Type[T]) -> T:
        """Return the implementation bound to the contract.

        Args:
            contract: The contract type to resolve.

        Raises:
            UnresolvedDependency: If no binding exists after bootstrap.
        """

    @abstractmethod
    def reset(self) -> None:
        """Clear all bindings and mark the registry as not bootstrapped."""

    @abstractmethod
    def get_bindings_copy(self) -> Dict[Type, Any]:
        """Get a copy of the current contract-to-implementation mapping."""


class ILifecycleHandler(ABC):
    """Surface every domain handler implements, one method per phase and operation.

    Every method receives the whole batch. Implementations must be bulk-safe:
    no per-record backing calls and no assumption that the batch has one record.
    Methods a handler does not override are no-ops.
    """

    def before_insert(self, new_records: List[Record], old_records_by_id: Mapping[str, Record]) -> None:
        """Called before new records are persisted. Records may be changed in place."""

    def before_update(self, new_records: List[Record], old_records_by_id: Mapping[str, Record]) -> None:
        """Called before changed records are persisted. Records may be changed in place."""

    def before_delete(self, new_records: List[Record], old_records_by_id: Mapping[str, Record]) -> None:
        """Called before records are deleted. ``new_records`` is empty."""

    def after_insert(self, new_records: List[Record], old_records_by_id: Mapping[str, Record]) -> None:
        """Called after new records are persisted."""

    def after_update(self, new_records: List[Record], old_records_by_id: Mapping[str, Record]) -> None:
        """Called after changed records are persisted."""

    def after_delete(self, new_records: List[Record], old_records_by_id: Mapping[str, Record]) -> None:
        """Called after records are deleted. ``new_records`` is empty."""

    def after_undelete(self, new_records: List[Record], old_records_by_id: Mapping[str, Record]) -> None:
        """Called after records are restored from the recycle bin."""


class ISelector(ABC):
    """Bulk read access to persisted records."""

    @abstractmethod
    def fetch_by_ids(self, ids: Set[str]) -> Dict[str, Record]:
        """Fetch records by id in one round-trip.

        Args:
            ids: Ids to fetch. An empty set returns an empty mapping without a backing call.

        Returns:
            Mapping of id to record for every id that exists.
        """


class IMutator(ABC):
    """Bulk write access to persisted records.

    With ``all_or_none=True`` the first failing record aborts the whole call with
    ``BulkMutationError``. With ``all_or_none=False`` valid records are persisted
    and failures are reported in the returned result.
    """

    @abstractmethod
    def insert_all(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        """Insert records as one bulk operation."""

    @abstractmethod
    def update_all(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        """Update records as one bulk operation."""

    @abstractmethod
    def delete_all(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        """Delete records as one bulk operation."""

    @abstractmethod
    def undelete_all(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        """Restore deleted records as one bulk operation."""


class IHttpClient(ABC):
    """Synchronous outbound HTTP calls."""

    @abstractmethod
    def send(self, request: HttpRequest) -> HttpResponse:
        """Send the request and block until the response arrives."""


class IUnitOfWork(ABC):
    """Deferred work handed to the async enqueuer."""

    @abstractmethod
    def execute(self) -> None:
        """Run the work. Called later, in a different execution context."""


class IAsyncEnqueuer(ABC):
    """Deferred execution of units of work. Ordering is not guaranteed."""

    @abstractmethod
    def enqueue(self, unit_of_work: IUnitOfWork) -> JobHandle:
        """Queue a unit of work and return a handle to it."""


class IEventBus(ABC):
    """Fire-and-forget event publication."""

    @abstractmethod
    def publish(self, event: PlatformEvent) -> None:
        """Publish an event. Delivery confirmation is not reported."""


class IClock(ABC):
    """Source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current timestamp."""
