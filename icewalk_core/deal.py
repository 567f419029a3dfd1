from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import List

from .board import Coord, Grid
from .catalog import SINGLE, PieceCatalog
from .creature import Creature, CreatureState, IceCover
from .session import GameSession

logger = logging.getLogger(__name__)


@dataclass
class DealResult:
    visible: List[Creature] = field(default_factory=list)
    hidden: List[Creature] = field(default_factory=list)
    ice: List[IceCover] = field(default_factory=list)
    dropped: int = 0


def _random_anchor(rng: random.Random, size: int) -> Coord:
    return (rng.randrange(size), rng.randrange(size))


def deal_creatures(
    grid: Grid,
    session: GameSession,
    catalog: PieceCatalog,
    rng: random.Random,
    visible: int,
    hidden: int,
    empty_ice: int = 0,
) -> DealResult:
    """
    Scatters pieces over an empty board. Every candidate gets exactly one random
    anchor; if it does not fit there it is dropped, so a crowded board simply ends
    up with fewer pieces. Hidden creatures claim their cells right away and are
    wrapped in ice. Empty ice goes on free cells and claims nothing.
    """
    result = DealResult()

    for _ in range(visible):
        piece = catalog.random_piece(rng)
        anchor = _random_anchor(rng, grid.size)
        if not grid.can_place(anchor, piece.shape):
            logger.debug('Dropped %s %s at %s: no room', piece.color, piece.shape.name, anchor)
            result.dropped += 1
            continue
        cr = Creature(id=session.next_id(), anchor=anchor, piece=piece, state=CreatureState.IDLE)
        grid.place(cr.id, anchor, piece.shape)
        session.creatures[cr.id] = cr
        result.visible.append(cr)

    for _ in range(hidden):
        piece = catalog.random_piece(rng)
        anchor = _random_anchor(rng, grid.size)
        if not grid.can_place(anchor, piece.shape):
            logger.debug('Dropped hidden %s %s at %s: no room', piece.color, piece.shape.name, anchor)
            result.dropped += 1
            continue
        cr = Creature(id=session.next_id(), anchor=anchor, piece=piece, state=CreatureState.HIDDEN)
        grid.place(cr.id, anchor, piece.shape)
        session.creatures[cr.id] = cr
        cover = IceCover(id=session.next_id(), anchor=anchor, cells=tuple(cr.cells()), creature_id=cr.id)
        session.ice[cover.id] = cover
        result.hidden.append(cr)
        result.ice.append(cover)

    iced = {cell for cover in session.ice.values() for cell in cover.cells}
    for _ in range(empty_ice):
        anchor = _random_anchor(rng, grid.size)
        if anchor in iced or not grid.can_place(anchor, SINGLE):
            logger.debug('Dropped empty ice at %s: no room', anchor)
            result.dropped += 1
            continue
        cover = IceCover(id=session.next_id(), anchor=anchor, cells=(anchor,))
        session.ice[cover.id] = cover
        iced.add(anchor)
        result.ice.append(cover)

    return result
