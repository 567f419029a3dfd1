from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, TYPE_CHECKING

from .board import Coord
from .catalog import Color, Piece, Shape

if TYPE_CHECKING:
    from .scheduler import TimerToken


class CreatureState(str, Enum):
    HIDDEN = 'hidden'
    IDLE = 'idle'
    SELECTED = 'selected'
    WALKING = 'walking'
    ELIMINATED = 'eliminated'


# Legal lifecycle edges. Anything else is a bug in the caller.
TRANSITIONS: Dict[CreatureState, FrozenSet[CreatureState]] = {
    CreatureState.HIDDEN: frozenset({CreatureState.IDLE}),
    CreatureState.IDLE: frozenset({CreatureState.SELECTED}),
    CreatureState.SELECTED: frozenset({CreatureState.IDLE, CreatureState.WALKING}),
    CreatureState.WALKING: frozenset({CreatureState.IDLE, CreatureState.ELIMINATED}),
    CreatureState.ELIMINATED: frozenset(),
}


@dataclass
class Creature:
    """A live piece on the board.

    ``anchor`` is the settled cell the grid claim is derived from. ``position``
    is where the creature is drawn; it only differs from the anchor while the
    creature walks over cells it cannot settle on.
    """
    id: int
    anchor: Coord
    piece: Piece
    state: CreatureState = CreatureState.IDLE
    position: Optional[Coord] = None
    moving: bool = False

    def __post_init__(self) -> None:
        if self.position is None:
            self.position = self.anchor

    @property
    def color(self) -> Color:
        return self.piece.color

    @property
    def shape(self) -> Shape:
        return self.piece.shape

    @property
    def visible(self) -> bool:
        return self.state is not CreatureState.HIDDEN

    def cells(self) -> List[Coord]:
        return self.piece.cells(self.anchor)

    def transition(self, new_state: CreatureState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise ValueError(f'creature {self.id}: illegal transition {self.state.value} -> {new_state.value}')
        self.state = new_state
        self.moving = new_state is CreatureState.WALKING

    def settle(self, anchor: Coord) -> None:
        self.anchor = anchor
        self.position = anchor


@dataclass
class IceCover:
    """Ice over a patch of cells, optionally hiding a creature.

    ``token`` is the pending reveal timer; at most one exists per cover.
    """
    id: int
    anchor: Coord
    cells: Tuple[Coord, ...]
    creature_id: Optional[int] = None
    melting: bool = False
    token: Optional['TimerToken'] = field(default=None, repr=False)

    @property
    def pending(self) -> bool:
        return self.token is not None and self.token.active

    def distance_to(self, cell: Coord) -> int:
        """Manhattan distance from ``cell`` to the nearest covered cell."""
        r, c = cell
        return min(abs(r - cr) + abs(c - cc) for cr, cc in self.cells)
