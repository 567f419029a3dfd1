"""
Presentation hooks the board controller drives.

The controller never waits on these: it hands an animator a completion
callback and carries on when that callback runs. Renderers are fire and
forget.
"""
from __future__ import annotations

import logging
from typing import Callable, Protocol

from .board import Coord
from .creature import Creature, IceCover
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

Done = Callable[[], None]


class Renderer(Protocol):
    def present(self, creature: Creature) -> None: ...

    def present_ice(self, cover: IceCover) -> None: ...

    def remove_visual(self, visual_id: str) -> None: ...


class Animator(Protocol):
    def play_step_move(self, creature: Creature, src: Coord, dst: Coord, on_done: Done) -> None: ...

    def play_elimination(self, creature: Creature, on_done: Done) -> None: ...

    def play_reveal(self, creature: Creature, on_done: Done) -> None: ...


class Once:
    """Completion callback where only the first call has any effect.

    ``failed`` is set when the wrapped callback itself raised, which tells a
    broken animator apart from an error in the work it was completing.
    """

    def __init__(self, callback: Done, what: str) -> None:
        self._callback = callback
        self.what = what
        self.called = False
        self.failed = False

    def __call__(self) -> None:
        if self.called:
            logger.warning('Ignoring repeated completion signal for %s', self.what)
            return
        self.called = True
        try:
            self._callback()
        except Exception:
            self.failed = True
            raise


def once(callback: Done, what: str) -> Once:
    return Once(callback, what)


class NullRenderer:
    def present(self, creature: Creature) -> None:
        pass

    def present_ice(self, cover: IceCover) -> None:
        pass

    def remove_visual(self, visual_id: str) -> None:
        pass


class ImmediateAnimator:
    """Completes every animation on the spot."""

    def play_step_move(self, creature: Creature, src: Coord, dst: Coord, on_done: Done) -> None:
        on_done()

    def play_elimination(self, creature: Creature, on_done: Done) -> None:
        on_done()

    def play_reveal(self, creature: Creature, on_done: Done) -> None:
        on_done()


class ScheduledAnimator:
    """Signals completion after fixed durations on a scheduler's clock."""

    def __init__(
        self,
        scheduler: Scheduler,
        step_duration: float,
        elimination_duration: float = 0.5,
        reveal_duration: float = 0.5,
    ) -> None:
        self.scheduler = scheduler
        self.step_duration = step_duration
        self.elimination_duration = elimination_duration
        self.reveal_duration = reveal_duration

    def play_step_move(self, creature: Creature, src: Coord, dst: Coord, on_done: Done) -> None:
        self.scheduler.call_later(self.step_duration, on_done, label=f'step {creature.id} {src}->{dst}')

    def play_elimination(self, creature: Creature, on_done: Done) -> None:
        self.scheduler.call_later(self.elimination_duration, on_done, label=f'eliminate {creature.id}')

    def play_reveal(self, creature: Creature, on_done: Done) -> None:
        self.scheduler.call_later(self.reveal_duration, on_done, label=f'reveal {creature.id}')
