"""Handshake between scrape requests and the collection loop"""
import threading
import time
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional


class GateState(Enum):
    """Collection loop state as seen through the gate"""
    IDLE = "idle"
    COLLECTING = "collecting"
    CLOSED = "closed"


class GateClosedError(RuntimeError):
    """The collection loop is no longer accepting scrapes"""


class ScrapeTimeoutError(TimeoutError):
    """A scrape gave up waiting for its collection cycle"""


class ScrapeGate:
    """Rendezvous of one "request received" and one "cycle finished" signal.

    Each signal is a single flag guarded by one condition variable, so at
    most one request and one completion are ever outstanding. Scrapes hold
    ``_scrape_lock`` from posting their request until they have rendered:
    overlapping scrapes queue up and each only sees the writes of its own
    cycle. The loop blocks in ``wait_for_request`` and answers with
    ``notify_finished``.
    """

    def __init__(self, scrape_timeout: Optional[float] = None):
        self.scrape_timeout = scrape_timeout
        self._scrape_lock = threading.Lock()
        self._cond = threading.Condition()
        self._state = GateState.IDLE
        self._requested = False
        self._finished = False
        self.requests_received = 0
        self.cycles_finished = 0

    @property
    def state(self) -> GateState:
        with self._cond:
            return self._state

    @property
    def closed(self) -> bool:
        return self.state == GateState.CLOSED

    @contextmanager
    def scrape(self) -> Iterator[None]:
        """Trigger one cycle and block until it has finished.

        The body of the ``with`` block runs while the gate is still held,
        which is where the caller renders the registry.
        """
        deadline = None if self.scrape_timeout is None else time.monotonic() + self.scrape_timeout
        with self._scrape_lock:
            with self._cond:
                # A scrape that timed out may have left its cycle queued or running
                ready = self._cond.wait_for(
                    lambda: self._state != GateState.COLLECTING and not self._requested,
                    timeout=self._remaining(deadline)
                )
                if self._state == GateState.CLOSED:
                    raise GateClosedError("collection loop is stopped")
                if not ready:
                    raise ScrapeTimeoutError("previous collection cycle is still running")

                self._finished = False
                self._requested = True
                self._cond.notify_all()

                self._cond.wait_for(
                    lambda: self._finished or self._state == GateState.CLOSED,
                    timeout=self._remaining(deadline)
                )
                if self._finished:
                    self._finished = False
                elif self._state == GateState.CLOSED:
                    raise GateClosedError("collection loop stopped before finishing the cycle")
                else:
                    raise ScrapeTimeoutError(f"collection cycle did not finish within {self.scrape_timeout}s")
            yield

    @staticmethod
    def _remaining(deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())

    def wait_for_request(self, timeout: Optional[float] = None) -> bool:
        """Block until a scrape arrives; False on timeout or close"""
        with self._cond:
            self._cond.wait_for(lambda: self._requested or self._state == GateState.CLOSED, timeout=timeout)
            if self._state == GateState.CLOSED or not self._requested:
                return False
            self._requested = False
            self._state = GateState.COLLECTING
            self.requests_received += 1
            return True

    def notify_finished(self) -> None:
        """Release the scrape waiting on the current cycle"""
        with self._cond:
            self.cycles_finished += 1
            self._finished = True
            if self._state != GateState.CLOSED:
                self._state = GateState.IDLE
            self._cond.notify_all()

    def close(self) -> None:
        """Stop the loop and fail any scrape still waiting"""
        with self._cond:
            self._state = GateState.CLOSED
            self._cond.notify_all()
