from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from heimdall_ltf.domain.enums import JobStatus, OperationKind, Phase
from heimdall_ltf.domain.exceptions import BulkMutationError


class Record(BaseModel):
    """A platform record as seen by handlers and ports.

    Records are mutable so before-phase handlers can change the batch in place.

    Attributes:
        id: Platform identifier, assigned by the host on insert.
        object_type: Name of the record's object type (e.g. "Account").
        fields: Field values keyed by field name.
    """

    model_config = ConfigDict(validate_assignment=False)

    id: Optional[str] = Field(default=None, description="Platform identifier of the record.")
    object_type: str = Field(..., description="Object type the record belongs to.")
    fields: Dict[str, Any] = Field(default_factory=dict, description="Field values keyed by field name.")

    def get(self, field_name: str, default: Any = None) -> Any:
        return self.fields.get(field_name, default)

    def put(self, field_name: str, value: Any) -> None:
        self.fields[field_name] = value

    def clone(self) -> "Record":
        """Return a deep copy detached from this record."""
        return self.model_copy(deep=True)


class LifecycleEvent(BaseModel):
    """A single host-delivered notification of a record operation at a phase.

    Attributes:
        operation_kind: The operation being performed.
        phase: Whether the event fires before or after persistence.
        new_records: Ordered batch of new record versions.
        old_records_by_id: Prior record versions keyed by id, may be empty.
    """

    model_config = ConfigDict(frozen=True)

    operation_kind: OperationKind = Field(..., description="Operation being performed.")
    phase: Phase = Field(..., description="Phase at which the event fires.")
    new_records: List[Record] = Field(default_factory=list, description="Ordered batch of new record versions.")
    old_records_by_id: Dict[str, Record] = Field(
        default_factory=dict,
        description="Prior record versions keyed by record id.",
    )

    @property
    def size(self) -> int:
        return max(len(self.new_records), len(self.old_records_by_id))


class Binding(BaseModel):
    """Value object associating a contract with its current implementation.

    Attributes:
        contract: The contract type used as lookup key.
        implementation: The shared instance returned for the contract.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    contract: Type = Field(..., description="The contract type being bound.")
    implementation: Any = Field(..., description="The implementation instance shared by all resolvers.")


class RegistryState(BaseModel):
    """Bindings owned by one service registry.

    Attributes:
        bindings: Mapping of contract types to their bindings.
        bootstrapped: Whether the composition root has run since the last reset.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    bindings: Dict[Type, Binding] = Field(default_factory=dict, description="Bindings keyed by contract type.")
    bootstrapped: bool = Field(default=False, description="Whether production bindings have been registered.")

    def clear(self) -> None:
        self.bindings.clear()
        self.bootstrapped = False


class MutationOutcome(BaseModel):
    """Result of one record within a bulk mutation.

    Attributes:
        index: Position of the record in the input sequence.
        record_id: Id of the record after the operation, when known.
        success: Whether the record was persisted.
        errors: Failure messages for this record.
    """

    index: int = Field(..., description="Position of the record in the input sequence.")
    record_id: Optional[str] = Field(default=None, description="Id of the record, when known.")
    success: bool = Field(..., description="Whether the record was persisted.")
    errors: List[str] = Field(default_factory=list, description="Failure messages for this record.")


class BulkMutationResult(BaseModel):
    """Outcome of a bulk mutation, one entry per input record in input order."""

    outcomes: List[MutationOutcome] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(outcome.success for outcome in self.outcomes)

    @property
    def error(self) -> Optional[BulkMutationError]:
        """Per-record failure detail, or None when every record succeeded."""
        if self.success:
            return None
        return BulkMutationError(list(self.outcomes))

    def __len__(self) -> int:
        return len(self.outcomes)


class HttpRequest(BaseModel):
    """Outbound request handed to the HTTP client port."""

    method: str = Field(default="GET", description="HTTP method.")
    url: str = Field(..., description="Absolute URL or path relative to the client's base URL.")
    headers: Dict[str, str] = Field(default_factory=dict)
    params: Dict[str, Any] = Field(default_factory=dict)
    body: Optional[Any] = Field(default=None, description="JSON-serializable request body.")


class HttpResponse(BaseModel):
    """Response returned by the HTTP client port."""

    status_code: int
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class JobHandle(BaseModel):
    """Reference to a deferred unit of work.

    Attributes:
        job_id: Identifier assigned at enqueue time.
        status: Last known status of the job.
        error: Failure message when the job failed.
    """

    job_id: str
    status: JobStatus = JobStatus.QUEUED
    error: Optional[str] = None


class PlatformEvent(BaseModel):
    """Event published through the event bus port."""

    name: str = Field(..., description="Event channel name.")
    payload: Dict[str, Any] = Field(default_factory=dict)
    published_at: Optional[datetime] = None


class ResourceUsage(BaseModel):
    """Counts of backing calls made within one execution context.

    Attributes:
        data_access_calls: Selector round-trips to the host storage.
        mutation_calls: Bulk mutation statements issued.
        callouts: Outbound HTTP requests sent.
        queued_jobs: Units of work handed to the async enqueuer.
        cpu_started: Process time (seconds) when the context started.
    """

    data_access_calls: int = 0
    mutation_calls: int = 0
    callouts: int = 0
    queued_jobs: int = 0
    cpu_started: float = 0.0
