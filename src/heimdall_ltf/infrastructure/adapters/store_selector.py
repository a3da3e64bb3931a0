import logging
from typing import Dict, Set

from heimdall_ltf.application import current_context
from heimdall_ltf.domain import ISelector, Record
from heimdall_ltf.infrastructure.platform import RecordStore

logger = logging.getLogger(__name__)


class StoreSelector(ISelector):
    """Selector backed by the host record store.

    Each non-empty fetch is one data-access call against the current context's budget.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def fetch_by_ids(self, ids: Set[str]) -> Dict[str, Record]:
        if not ids:
            return {}

        current_context().record_data_access()
        records = self._store.get_many(ids)
        logger.debug("Fetched %d of %d requested record(s)", len(records), len(ids))
        return records
