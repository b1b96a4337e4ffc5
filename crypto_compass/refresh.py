"""
Refresh bookkeeping for data the dashboard reloads on a timer.

Each logical resource ("listing", "prices", "history") gets a monotonically
increasing sequence number per request. A response is applied only if its
number is still the latest issued for that resource, so a slow response can
never overwrite a newer one. Failures keep the last good value on screen.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Generic, Optional, TypeVar

from crypto_compass.errors import CompassError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestSequencer:
    """Hands out per-resource sequence numbers and remembers the latest."""

    def __init__(self):
        self._counter = itertools.count(1)
        self._latest: Dict[str, int] = {}
        self._lock = threading.Lock()

    def issue(self, resource: str) -> int:
        with self._lock:
            seq = next(self._counter)
            self._latest[resource] = seq
            return seq

    def is_latest(self, resource: str, seq: int) -> bool:
        with self._lock:
            return self._latest.get(resource) == seq

    def latest(self, resource: str) -> Optional[int]:
        return self._latest.get(resource)


@dataclass(frozen=True)
class Stamped(Generic[T]):
    """A fetched value plus when it actually came off the wire.

    Loaders behind a cache return this so a cache hit does not look fresh.
    """
    value: T
    fetched_at: datetime


@dataclass
class RefreshOutcome:
    applied: bool
    error: Optional[str] = None


class ResourceState(Generic[T]):
    """Last good value for one resource plus the error from the latest attempt."""

    def __init__(self, resource: str, sequencer: Optional[RequestSequencer] = None,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.resource = resource
        self.sequencer = sequencer or RequestSequencer()
        self.value: Optional[T] = None
        self.error: Optional[str] = None
        self.last_updated: Optional[datetime] = None
        self.closed = False
        self._clock = clock

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def begin(self) -> int:
        return self.sequencer.issue(self.resource)

    def apply(self, seq: int, value: T, fetched_at: Optional[datetime] = None) -> bool:
        if not self._accepts(seq):
            return False
        self.value = value
        self.error = None
        self.last_updated = fetched_at or self._clock()
        return True

    def fail(self, seq: int, message: str) -> bool:
        if not self._accepts(seq):
            return False
        # the previous value stays put
        self.error = message
        return True

    def refresh(self, fetch: Callable[[], T]) -> RefreshOutcome:
        """Run `fetch` under a fresh sequence number and record the outcome."""
        seq = self.begin()
        try:
            value = fetch()
        except CompassError as e:
            logger.warning("Refresh of %s failed: %s", self.resource, e.message)
            return RefreshOutcome(self.fail(seq, e.message), e.message)
        if isinstance(value, Stamped):
            return RefreshOutcome(self.apply(seq, value.value, value.fetched_at))
        return RefreshOutcome(self.apply(seq, value))

    def close(self) -> None:
        """Tear down; responses arriving afterwards are ignored.

        The dashboard never calls this: Streamlit drops the whole session state
        when a session ends, taking the resource with it.
        """
        self.closed = True

    def _accepts(self, seq: int) -> bool:
        if self.closed:
            logger.debug("Ignoring response #%s for closed resource %s", seq, self.resource)
            return False
        if not self.sequencer.is_latest(self.resource, seq):
            logger.debug("Discarding stale response #%s for %s (latest #%s)",
                         seq, self.resource, self.sequencer.latest(self.resource))
            return False
        return True
