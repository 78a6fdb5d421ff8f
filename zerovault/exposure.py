"""
Exposure Window — bounded reveal time for sensitive values.

Each subject tag ("password", "username", ...) is either idle or armed with
a deadline. ``start`` re-arms a tag, replacing any live ticket; ``tick``
expires due tickets and calls the revoke hook once per expired ticket.
Tickets are only ever expired by ``tick``, so a cancelled or replaced ticket
can never fire.

``run_exposure_loop`` is the single scheduler that drives ``tick``.
"""
import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional, Protocol

from .vault.exceptions import InvalidInput

logger = logging.getLogger("zerovault.exposure")

DEFAULT_EXPOSURE_SECONDS = 15


@dataclass(frozen=True)
class ExposureTicket:
    subject_tag: str
    deadline: float
    generation: int

    def remaining(self, now: float) -> float:
        return max(0.0, self.deadline - now)


class ExposureWindow:
    """Per-tag reveal/auto-revoke state machine."""

    def __init__(
        self,
        on_revoke: Callable[[str], None],
        clock: Callable[[], float] = time.monotonic,
    ):
        self._on_revoke = on_revoke
        self._clock = clock
        self._lock = threading.RLock()
        self._tickets: dict[str, ExposureTicket] = {}
        self._generation = 0

    def __repr__(self) -> str:
        return f"<ExposureWindow armed={self.armed_tags()}>"

    def start(self, subject_tag: str, duration_seconds: float) -> ExposureTicket:
        """Arm ``subject_tag`` for ``duration_seconds``, replacing a live ticket.

        Raises:
            InvalidInput: If the tag is empty or the duration is not positive.
        """
        if not subject_tag:
            raise InvalidInput("Exposure subject tag is required")
        if duration_seconds <= 0:
            raise InvalidInput("Exposure duration must be positive")
        with self._lock:
            self._generation += 1
            ticket = ExposureTicket(
                subject_tag=subject_tag,
                deadline=self._clock() + duration_seconds,
                generation=self._generation,
            )
            replaced = self._tickets.get(subject_tag)
            self._tickets[subject_tag] = ticket
        if replaced is not None:
            logger.debug(
                "Exposure %s re-armed (generation %d replaces %d)",
                subject_tag, ticket.generation, replaced.generation,
            )
        return ticket

    def cancel(self, subject_tag: str) -> bool:
        """Disarm ``subject_tag`` without revoking. Returns True if it was armed."""
        with self._lock:
            return self._tickets.pop(subject_tag, None) is not None

    def cancel_all(self) -> int:
        with self._lock:
            count = len(self._tickets)
            self._tickets.clear()
        return count

    def tick(self, now: Optional[float] = None) -> list[str]:
        """Expire every due ticket and revoke it.

        Returns:
            Tags revoked by this tick.
        """
        with self._lock:
            now = self._clock() if now is None else now
            due = [t for t in self._tickets.values() if t.deadline <= now]
            for ticket in due:
                if self._tickets.get(ticket.subject_tag) is ticket:
                    del self._tickets[ticket.subject_tag]
        expired = []
        for ticket in due:
            try:
                self._on_revoke(ticket.subject_tag)
            except Exception as err:
                logger.error(
                    "Failed to revoke exposure %s: %s", ticket.subject_tag, err,
                )
            expired.append(ticket.subject_tag)
        return expired

    def remaining(self, subject_tag: str) -> Optional[float]:
        with self._lock:
            ticket = self._tickets.get(subject_tag)
            if ticket is None:
                return None
            return ticket.remaining(self._clock())

    def is_armed(self, subject_tag: str) -> bool:
        with self._lock:
            return subject_tag in self._tickets

    def armed_tags(self) -> list[str]:
        with self._lock:
            return sorted(self._tickets)


async def run_exposure_loop(
    window: ExposureWindow,
    interval: float = 0.5,
    stop: Optional[asyncio.Event] = None,
) -> None:
    """Drive ``window.tick()`` every ``interval`` seconds until ``stop`` is set."""
    stop = stop or asyncio.Event()
    logger.debug("Exposure loop started (interval=%.2fs)", interval)
    while not stop.is_set():
        window.tick()
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
    logger.debug("Exposure loop stopped")


# ---------------------------------------------------------------------------
# Clipboard
# ---------------------------------------------------------------------------

class ClipboardSink(Protocol):
    def write_text(self, text: str) -> None:
        ...


class MemoryClipboard:
    """Process-local clipboard; records every write."""

    def __init__(self) -> None:
        self.text = ""
        self.writes: list[str] = []

    def write_text(self, text: str) -> None:
        self.text = text
        self.writes.append(text)


class ClipboardExposure:
    """Copy secrets to a clipboard sink and blank it when the window closes."""

    def __init__(
        self,
        sink: ClipboardSink,
        clear_after: float = DEFAULT_EXPOSURE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._sink = sink
        self.clear_after = clear_after
        self.window = ExposureWindow(self._revoke, clock=clock)

    def copy(
        self,
        text: str,
        subject_tag: str = "text",
        seconds: Optional[float] = None,
    ) -> bool:
        """Write ``text`` to the sink and arm auto-clear for ``subject_tag``.

        Returns:
            False if the sink refused the write, True otherwise.
        """
        if not text:
            raise InvalidInput("Nothing to copy")
        self.window.cancel(subject_tag)
        try:
            self._sink.write_text(text)
        except Exception as err:
            logger.error("Copy failed for %s: %s", subject_tag, err)
            return False
        self.window.start(subject_tag, seconds or self.clear_after)
        return True

    def revoke_all(self) -> None:
        """Disarm every tag and blank the sink now."""
        if self.window.cancel_all():
            self._sink.write_text("")

    def _revoke(self, subject_tag: str) -> None:
        self._sink.write_text("")
        logger.info("Clipboard cleared for %s", subject_tag)
