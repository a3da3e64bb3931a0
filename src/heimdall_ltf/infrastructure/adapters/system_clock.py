from datetime import datetime, timezone

from heimdall_ltf.domain import IClock


class SystemClock(IClock):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
