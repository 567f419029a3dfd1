from __future__ import annotations

import logging
import sched
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class TimerToken:
    """Handle for one scheduled callback. Cancelling a fired token is a no-op."""

    def __init__(self, owner: 'Scheduler', label: str = '') -> None:
        self._owner = owner
        self._event: Optional[sched.Event] = None
        self.label = label
        self.fired = False
        self.cancelled = False

    @property
    def active(self) -> bool:
        return not (self.fired or self.cancelled)

    def cancel(self) -> bool:
        if not self.active:
            return False
        self.cancelled = True
        if self._event is not None:
            try:
                self._owner._queue.cancel(self._event)
            except ValueError:
                pass  # already popped by the queue
        return True


class Scheduler:
    """Single-threaded timer queue on a virtual clock.

    Nothing runs on its own: time only moves through ``advance`` and
    ``run_until_idle``, and due callbacks run in deadline order on the caller's
    thread.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._queue = sched.scheduler(self.time, lambda _delay: None)
        self._tokens: list = []
        self._fired = 0

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], Any], label: str = '') -> TimerToken:
        if delay < 0:
            raise ValueError(f'delay must be non-negative, got {delay}')
        token = TimerToken(self, label)

        def _fire() -> None:
            if not token.active:
                return
            token.fired = True
            self._fired += 1
            callback()

        token._event = self._queue.enter(delay, 0, _fire)
        self._tokens.append(token)
        return token

    def pending(self) -> int:
        self._tokens = [t for t in self._tokens if t.active]
        return len(self._tokens)

    def next_deadline(self) -> Optional[float]:
        queue = self._queue.queue
        return queue[0].time if queue else None

    def advance(self, seconds: float) -> int:
        """Moves the clock forward, running every callback that falls due. Returns how many ran."""
        if seconds < 0:
            raise ValueError(f'cannot move the clock backwards ({seconds})')
        return self._advance_to(self._now + seconds)

    def _advance_to(self, target: float) -> int:
        fired_before = self._fired
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            self._now = max(self._now, deadline)
            self._queue.run(blocking=False)
        self._now = target
        self._tokens = [t for t in self._tokens if t.active]
        return self._fired - fired_before

    def step(self) -> int:
        """Jumps the clock to the next deadline and runs what falls due there."""
        deadline = self.next_deadline()
        if deadline is None:
            return 0
        return self._advance_to(max(deadline, self._now))

    def run_until_idle(self, limit: int = 10000) -> None:
        """Runs queued callbacks, jumping the clock, until nothing is left."""
        for _ in range(limit):
            if self.next_deadline() is None:
                return
            self.step()
        raise RuntimeError(f'scheduler still busy after {limit} rounds')

    def cancel_all(self) -> int:
        cancelled = 0
        for token in self._tokens:
            if token.cancel():
                cancelled += 1
        self._tokens = []
        if cancelled:
            logger.debug('Cancelled %d pending timers', cancelled)
        return cancelled
