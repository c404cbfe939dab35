"""Fixed-cadence background sender for heartbeat pings."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class PeriodicSender:
    """Runs ``send`` once per interval until stopped or a send fails.

    The first send happens after one full interval. Ticks are scheduled on a
    fixed cadence, so a slow send does not push later ticks back. A failed
    send ends the loop; ``wait()`` re-raises it.
    """

    def __init__(
        self,
        send: Callable[[], None],
        interval_seconds: float,
        *,
        stop_event: threading.Event | None = None,
        clock: Clock | None = None,
        name: str = "heartbeat-sender",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._send = send
        self._interval = interval_seconds
        self._stop_event = stop_event or threading.Event()
        self._clock = clock or time.monotonic
        self._name = name
        self._done = threading.Event()
        self._thread: threading.Thread | None = None
        self._failure: BaseException | None = None
        self._ticks = 0

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "PeriodicSender":
        if self._thread is not None:
            return self
        self._thread = threading.Thread(target=self._run_captured, name=self._name, daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the loop ends; returns False on timeout."""

        finished = self._done.wait(timeout=timeout)
        if self._failure is not None:
            raise self._failure
        return finished

    def run(self) -> None:
        """Run the loop in the calling thread."""

        next_due = self._clock() + self._interval
        logger.info(
            "Sending heartbeat every %.3gs",
            self._interval,
            extra={"event": "loop_start", "interval_seconds": self._interval},
        )
        while not self._stop_event.wait(timeout=max(0.0, next_due - self._clock())):
            self._send()
            self._ticks += 1
            next_due += self._interval
            now = self._clock()
            if next_due <= now:
                skipped = int((now - next_due) // self._interval) + 1
                next_due += skipped * self._interval
                logger.warning(
                    "Heartbeat send overran %d interval(s)",
                    skipped,
                    extra={"event": "loop_overrun", "skipped": skipped},
                )
        logger.info("Heartbeat loop stopped", extra={"event": "loop_stop", "ticks": self._ticks})

    def _run_captured(self) -> None:
        try:
            self.run()
        except BaseException as exc:  # noqa: BLE001 - surfaced to the waiting thread
            self._failure = exc
        finally:
            self._done.set()
