import json
import logging
from typing import Optional

from heimdall_ltf.domain import IClock, IEventBus, PlatformEvent

logger = logging.getLogger(__name__)


class LoggingEventBus(IEventBus):
    """Event bus that emits each event as a JSON line on a logger.

    Gives observable delivery without a broker. Events without a publish time
    are stamped from the clock.
    """

    def __init__(self, clock: IClock, event_logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self._clock = clock
        self._logger = event_logger or logging.getLogger("heimdall_ltf.events")
        self._level = level

    def publish(self, event: PlatformEvent) -> None:
        if event.published_at is None:
            event = event.model_copy(update={"published_at": self._clock.now()})
        self._logger.log(self._level, json.dumps(event.model_dump(mode="json"), sort_keys=True))
