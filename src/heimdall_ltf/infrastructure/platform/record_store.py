import contextvars
import itertools
import logging
import threading
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from heimdall_ltf.application import dispatch
from heimdall_ltf.domain import (
    BulkMutationError,
    BulkMutationResult,
    ILifecycleHandler,
    MutationOutcome,
    OperationKind,
    Phase,
    Record,
)

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[], ILifecycleHandler]
Validator = Callable[[Record], Optional[str]]
UndoLog = List[Callable[[], None]]

ROLLED_BACK = "Not processed: batch rolled back"

# Undo steps of the bulk mutation running in the current execution context.
# Worker threads start with an empty context, so their writes never join it.
_undo_log: contextvars.ContextVar[Optional[UndoLog]] = contextvars.ContextVar(
    "heimdall_ltf_store_undo_log",
    default=None,
)


class RecordStore:
    """In-process host platform: record storage plus trigger routing.

    Every bulk mutation runs the before-phase triggers bound to each object type
    in the batch, persists, then runs the after-phase triggers. If any handler
    raises, the writes made by that call, including nested mutations issued by
    its handlers, are undone and the error propagates unchanged. Writes
    committed meanwhile by other execution contexts are kept.

    Storage access is serialized with a re-entrant lock. The lock is never held
    while handlers run.

    Attributes:
        _records: Live records keyed by id. Stored values are detached copies.
        _recycle_bin: Deleted records keyed by id.
        _triggers: Handler factories keyed by object type.
        _lock: Guards ``_records``, ``_recycle_bin`` and id assignment.
    """

    def __init__(self) -> None:
        """Initialize an empty store with no trigger bindings."""
        self._records: Dict[str, Record] = {}
        self._recycle_bin: Dict[str, Record] = {}
        self._triggers: Dict[str, List[HandlerFactory]] = {}
        self._sequence = itertools.count(1)
        self._lock = threading.RLock()

    # Trigger bindings

    def bind_trigger(self, object_type: str, handler_factory: HandlerFactory) -> None:
        """Route lifecycle events for ``object_type`` to handlers built by ``handler_factory``.

        A fresh handler instance is created for every event, in binding order.

        Example:
            >>> store.bind_trigger("Account", AccountHandler)
        """
        self._triggers.setdefault(object_type, []).append(handler_factory)

    def unbind_triggers(self, object_type: Optional[str] = None) -> None:
        if object_type is None:
            self._triggers.clear()
        else:
            self._triggers.pop(object_type, None)

    # Reads

    def get_many(self, ids: Iterable[str]) -> Dict[str, Record]:
        """Return detached copies of the live records with the given ids."""
        with self._lock:
            return {record_id: self._records[record_id].clone() for record_id in ids if record_id in self._records}

    def count(self, object_type: Optional[str] = None) -> int:
        with self._lock:
            if object_type is None:
                return len(self._records)
            return sum(1 for record in self._records.values() if record.object_type == object_type)

    def in_recycle_bin(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._recycle_bin

    def clear(self) -> None:
        """Drop all records. Trigger bindings are kept."""
        with self._lock:
            self._records.clear()
            self._recycle_bin.clear()

    # Bulk mutations

    def insert(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        seen: Set[int] = set()

        def validate(record: Record) -> Optional[str]:
            if record.id is not None:
                return f"Cannot insert record that already has id {record.id}"
            if id(record) in seen:
                return "Duplicate record in batch"
            seen.add(id(record))
            return None

        def apply(batch: List[Record]) -> None:
            self._run_triggers(OperationKind.INSERT, Phase.BEFORE, batch, {})
            for record in batch:
                record.id = self._next_id(record.object_type)
                self._write(record.id, record.clone(), None)
            try:
                self._run_triggers(OperationKind.INSERT, Phase.AFTER, batch, {})
            except Exception:
                for record in batch:
                    record.id = None
                raise

        return self._mutate(records, all_or_none, validate, apply)

    def update(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        def apply(batch: List[Record]) -> None:
            old_records = self.get_many(record.id for record in batch)
            self._run_triggers(OperationKind.UPDATE, Phase.BEFORE, batch, old_records)
            for record in batch:
                self._write(record.id, record.clone(), None)
            self._run_triggers(OperationKind.UPDATE, Phase.AFTER, batch, old_records)

        return self._mutate(records, all_or_none, self._live_validator(records), apply)

    def delete(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        def apply(batch: List[Record]) -> None:
            old_records = self.get_many(record.id for record in batch)
            self._run_triggers(OperationKind.DELETE, Phase.BEFORE, [], old_records)
            for record in batch:
                with self._lock:
                    current = self._records[record.id]
                self._write(record.id, None, current)
            self._run_triggers(OperationKind.DELETE, Phase.AFTER, [], old_records)

        return self._mutate(records, all_or_none, self._live_validator(records), apply)

    def undelete(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        seen: Set[str] = set()

        def validate(record: Record) -> Optional[str]:
            if record.id is None:
                return "Cannot undelete record without an id"
            if record.id in seen:
                return f"Duplicate id in batch: {record.id}"
            seen.add(record.id)
            if record.id not in self._recycle_bin:
                return f"Record is not in the recycle bin: {record.id}"
            return None

        def apply(batch: List[Record]) -> None:
            for record in batch:
                with self._lock:
                    restored = self._recycle_bin[record.id]
                self._write(record.id, restored, None)
                record.object_type = restored.object_type
                record.fields = dict(restored.fields)
            self._run_triggers(OperationKind.UNDELETE, Phase.AFTER, batch, {})

        return self._mutate(records, all_or_none, validate, apply)

    # Internals

    def _live_validator(self, records: Sequence[Record]) -> Validator:
        seen: Set[str] = set()

        def validate(record: Record) -> Optional[str]:
            if record.id is None:
                return "Record has no id"
            if record.id in seen:
                return f"Duplicate id in batch: {record.id}"
            seen.add(record.id)
            if record.id not in self._records:
                return f"Record not found: {record.id}"
            return None

        return validate

    def _place(self, record_id: str, live: Optional[Record], deleted: Optional[Record]) -> None:
        with self._lock:
            if live is None:
                self._records.pop(record_id, None)
            else:
                self._records[record_id] = live
            if deleted is None:
                self._recycle_bin.pop(record_id, None)
            else:
                self._recycle_bin[record_id] = deleted

    def _write(self, record_id: str, live: Optional[Record], deleted: Optional[Record]) -> None:
        """Set the live and recycle-bin versions of one id, logging how to undo it."""
        with self._lock:
            previous = (self._records.get(record_id), self._recycle_bin.get(record_id))
            self._place(record_id, live, deleted)
        undo_log = _undo_log.get()
        if undo_log is not None:
            undo_log.append(lambda: self._place(record_id, *previous))

    def _mutate(
        self,
        records: Sequence[Record],
        all_or_none: bool,
        validate: Validator,
        apply: Callable[[List[Record]], None],
    ) -> BulkMutationResult:
        with self._lock:
            errors = [validate(record) for record in records]

        if all_or_none and any(errors):
            first_failure = next(index for index, error in enumerate(errors) if error)
            outcomes = [
                MutationOutcome(
                    index=index,
                    record_id=record.id,
                    success=False,
                    errors=[errors[index]] if index == first_failure else [ROLLED_BACK],
                )
                for index, record in enumerate(records)
            ]
            raise BulkMutationError(outcomes)

        batch = [record for record, error in zip(records, errors) if error is None]
        if batch:
            enclosing = _undo_log.get()
            undo_log: UndoLog = []
            token = _undo_log.set(undo_log)
            try:
                apply(batch)
            except Exception:
                for undo in reversed(undo_log):
                    undo()
                logger.debug("Rolled back %d write(s) of bulk mutation of %d record(s)", len(undo_log), len(batch))
                raise
            finally:
                _undo_log.reset(token)
            # Nested mutations roll back with the operation whose handler issued them.
            if enclosing is not None:
                enclosing.extend(undo_log)

        return BulkMutationResult(
            outcomes=[
                MutationOutcome(
                    index=index,
                    record_id=record.id,
                    success=error is None,
                    errors=[error] if error else [],
                )
                for index, (record, error) in enumerate(zip(records, errors))
            ]
        )

    def _run_triggers(
        self,
        operation_kind: OperationKind,
        phase: Phase,
        new_records: List[Record],
        old_records_by_id: Mapping[str, Record],
    ) -> None:
        for object_type in self._object_types(new_records, old_records_by_id):
            factories = self._triggers.get(object_type)
            if not factories:
                continue
            typed_new = [record for record in new_records if record.object_type == object_type]
            typed_old = {
                record_id: record
                for record_id, record in old_records_by_id.items()
                if record.object_type == object_type
            }
            for factory in factories:
                dispatch(operation_kind, phase, typed_new, typed_old, factory())

    @staticmethod
    def _object_types(new_records: List[Record], old_records_by_id: Mapping[str, Record]) -> List[str]:
        # dict keeps first-seen order
        ordered = dict.fromkeys(record.object_type for record in new_records)
        ordered.update(dict.fromkeys(record.object_type for record in old_records_by_id.values()))
        return list(ordered)

    def _next_id(self, object_type: str) -> str:
        prefix = (object_type[:3] or "REC").upper()
        with self._lock:
            number = next(self._sequence)
        return f"{prefix}{number:012d}"


_default_store: Optional[RecordStore] = None
_default_store_lock = threading.Lock()


def default_store() -> RecordStore:
    """Return the host storage shared by production adapters in this process."""
    global _default_store
    with _default_store_lock:
        if _default_store is None:
            _default_store = RecordStore()
        return _default_store
