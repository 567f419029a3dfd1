from __future__ import annotations

# Facade module that re-exports Icewalk core functionality.
# The Flask app and tests import from here; single-responsibility modules
# live under icewalk_core/*.

from icewalk_core.board import Coord, Grid, PlacementError
from icewalk_core.catalog import (
    DEFAULT_COLORS,
    DEFAULT_SHAPES,
    SINGLE,
    Movement,
    Piece,
    PieceCatalog,
    Shape,
)
from icewalk_core.collaborators import (
    Animator,
    ImmediateAnimator,
    NullRenderer,
    Renderer,
    ScheduledAnimator,
)
from icewalk_core.config import GameConfig
from icewalk_core.controller import BoardController
from icewalk_core.creature import Creature, CreatureState, IceCover
from icewalk_core.deal import deal_creatures
from icewalk_core.exits import Exit, ExitRegistry, edge_slots
from icewalk_core.layout import ExitPlacement, Layout, LayoutError, PiecePlacement, apply_layout
from icewalk_core.moves import compute_path, manhattan, neighbors
from icewalk_core.scheduler import Scheduler, TimerToken
from icewalk_core.session import GameSession

__all__ = [
    'Animator',
    'BoardController',
    'Coord',
    'Creature',
    'CreatureState',
    'DEFAULT_COLORS',
    'DEFAULT_SHAPES',
    'Exit',
    'ExitPlacement',
    'ExitRegistry',
    'GameConfig',
    'GameSession',
    'Grid',
    'IceCover',
    'ImmediateAnimator',
    'Layout',
    'LayoutError',
    'Movement',
    'NullRenderer',
    'Piece',
    'PieceCatalog',
    'PiecePlacement',
    'PlacementError',
    'Renderer',
    'SINGLE',
    'ScheduledAnimator',
    'Scheduler',
    'Shape',
    'TimerToken',
    'apply_layout',
    'compute_path',
    'deal_creatures',
    'edge_slots',
    'manhattan',
    'neighbors',
    'new_game',
]


def new_game(config: GameConfig | None = None, scheduled: bool = False, layout: Layout | None = None) -> BoardController:
    """Builds and starts a controller. ``scheduled`` plays animations on the game clock; ``layout`` replaces the dealt first level."""
    config = config or GameConfig()
    scheduler = Scheduler()
    animator: Animator
    if scheduled:
        animator = ScheduledAnimator(scheduler, step_duration=config.step_duration)
    else:
        animator = ImmediateAnimator()
    game = BoardController(config=config, scheduler=scheduler, animator=animator)
    game.start()
    if layout is not None:
        game.load_layout(layout)
    return game


def main() -> None:
    # CLI driver delegated to icewalk_core.cli
    from icewalk_core.cli import main as _main
    _main()


if __name__ == '__main__':
    main()
