from typing import Sequence

from heimdall_ltf.application import current_context
from heimdall_ltf.domain import BulkMutationResult, IMutator, Record
from heimdall_ltf.infrastructure.platform import RecordStore


class StoreMutator(IMutator):
    """Mutator backed by the host record store.

    Every call is one mutation statement against the current context's budget,
    whatever the batch size. Empty batches issue no statement.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def insert_all(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        if not records:
            return BulkMutationResult()
        current_context().record_mutation()
        return self._store.insert(records, all_or_none)

    def update_all(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        if not records:
            return BulkMutationResult()
        current_context().record_mutation()
        return self._store.update(records, all_or_none)

    def delete_all(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        if not records:
            return BulkMutationResult()
        current_context().record_mutation()
        return self._store.delete(records, all_or_none)

    def undelete_all(self, records: Sequence[Record], all_or_none: bool = True) -> BulkMutationResult:
        if not records:
            return BulkMutationResult()
        current_context().record_mutation()
        return self._store.undelete(records, all_or_none)
