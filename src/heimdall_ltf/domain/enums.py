from enum import Enum


class OperationKind(str, Enum):
    """Record operation that produced a lifecycle event.

    Attributes:
        INSERT: Records are being created.
        UPDATE: Existing records are being changed.
        DELETE: Records are being moved to the recycle bin.
        UNDELETE: Records are being restored from the recycle bin.
    """

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    UNDELETE = "undelete"

    def __str__(self) -> str:
        return self.value


class Phase(str, Enum):
    """Stage of an operation at which a lifecycle event fires.

    Attributes:
        BEFORE: Pre-persistence, records in the batch may be changed in place.
        AFTER: Post-persistence, records are read-only.
    """

    BEFORE = "before"
    AFTER = "after"

    def __str__(self) -> str:
        return self.value


class GuardState(str, Enum):
    """Recursion guard state for one handler type in one execution context."""

    IDLE = "idle"
    ENTERED = "entered"

    def __str__(self) -> str:
        return self.value


class JobStatus(str, Enum):
    """Lifecycle of a deferred unit of work."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value
