from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple

from .board import Coord, Grid
from .catalog import SINGLE, Color, PieceCatalog
from .config import MAX_BOARD_SIZE
from .creature import Creature, CreatureState, IceCover
from .deal import DealResult
from .exits import ExitRegistry
from .session import GameSession

logger = logging.getLogger(__name__)


class LayoutError(ValueError):
    """Raised when an authored layout is malformed or its pieces do not fit."""


@dataclass(frozen=True)
class PiecePlacement:
    shape: str
    color: Color
    anchor: Coord
    hidden: bool = False


@dataclass(frozen=True)
class ExitPlacement:
    color: Color
    cell: Coord


@dataclass(frozen=True)
class Layout:
    """
    A hand-authored level: fixed pieces, ice, rocks and exits on a board of
    ``size``. Without ``exits`` the usual edge slots are used. ``target`` and
    ``time_limit`` override the level's defaults when set.

    The mapping form (what ``from_mapping`` reads, e.g. a JSON file)::

        {"name": "corner", "size": 8, "target": 2, "timeLimit": 60,
         "pieces": [{"shape": "single", "color": "red", "row": 1, "col": 1},
                    {"shape": "square", "color": "blue", "row": 4, "col": 4, "hidden": true}],
         "ice": [[2, 2]],
         "rocks": [[3, 3]],
         "exits": [{"color": "red", "row": 0, "col": 1}]}
    """
    size: int
    pieces: Tuple[PiecePlacement, ...] = ()
    ice: Tuple[Coord, ...] = ()
    rocks: Tuple[Coord, ...] = ()
    exits: Tuple[ExitPlacement, ...] = ()
    target: Optional[int] = None
    time_limit: Optional[float] = None
    name: str = ''

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'Layout':
        if not isinstance(data, Mapping):
            raise LayoutError('layout must be a mapping')
        try:
            size = int(data['size'])
            pieces = tuple(_piece(entry) for entry in data.get('pieces') or ())
            ice = tuple(_cell(entry) for entry in data.get('ice') or ())
            rocks = tuple(_cell(entry) for entry in data.get('rocks') or ())
            exits = tuple(
                ExitPlacement(color=str(entry['color']), cell=(int(entry['row']), int(entry['col'])))
                for entry in data.get('exits') or ()
            )
            target = None if data.get('target') is None else int(data['target'])
            time_limit = None if data.get('timeLimit') is None else float(data['timeLimit'])
        except KeyError as e:
            raise LayoutError(f'layout is missing {e}') from None
        except (TypeError, ValueError) as e:
            raise LayoutError(f'bad layout value: {e}') from None
        if not 3 <= size <= MAX_BOARD_SIZE:
            raise LayoutError(f'layout size must be between 3 and {MAX_BOARD_SIZE}, got {size}')
        if target is not None and target < 0:
            raise LayoutError('layout target must be non-negative')
        if time_limit is not None and time_limit < 0:
            raise LayoutError('layout timeLimit must be non-negative')
        return cls(
            size=size,
            pieces=pieces,
            ice=ice,
            rocks=rocks,
            exits=exits,
            target=target,
            time_limit=time_limit,
            name=str(data.get('name', '')),
        )


def _cell(entry: Any) -> Coord:
    if isinstance(entry, Mapping):
        return (int(entry['row']), int(entry['col']))
    r, c = entry
    return (int(r), int(c))


def _piece(entry: Mapping[str, Any]) -> PiecePlacement:
    return PiecePlacement(
        shape=str(entry['shape']),
        color=str(entry['color']),
        anchor=(int(entry['row']), int(entry['col'])),
        hidden=bool(entry.get('hidden', False)),
    )


def _exit_registry(exits: Iterable[ExitPlacement], catalog: PieceCatalog, size: int) -> ExitRegistry:
    exits = list(exits)
    if not exits:
        return ExitRegistry.for_colors(catalog.colors, size)
    registry = ExitRegistry(size)
    for ex in exits:
        if ex.color not in catalog.colors:
            raise LayoutError(f'exit color {ex.color} is not in the catalog')
        try:
            registry.bind(ex.color, ex.cell)
        except ValueError as e:
            raise LayoutError(str(e)) from None
    return registry


def apply_layout(layout: Layout, grid: Grid, session: GameSession, catalog: PieceCatalog) -> DealResult:
    """
    Writes ``layout`` onto an empty board. Rocks go down first, then pieces, then
    empty ice. Every placement goes through ``Grid.can_place`` and the first one
    that does not fit raises LayoutError; the board is left half-built in that
    case, so check a layout on a scratch grid before applying it for real.
    """
    if grid.size != layout.size:
        raise LayoutError(f'layout is {layout.size}x{layout.size} but the grid is {grid.size}x{grid.size}')
    result = DealResult()
    session.exits = _exit_registry(layout.exits, catalog, grid.size)

    for cell in layout.rocks:
        if not grid.can_place(cell, SINGLE):
            raise LayoutError(f'rock at {cell} is off the board or on a taken cell')
        rock_id = session.next_id()
        grid.place(rock_id, cell, SINGLE)
        session.rocks[rock_id] = cell

    for i, placement in enumerate(layout.pieces):
        try:
            piece = catalog.piece(placement.shape, placement.color)
        except ValueError as e:
            raise LayoutError(f'piece {i}: {e}') from None
        if not grid.can_place(placement.anchor, piece.shape):
            raise LayoutError(f'piece {i} ({placement.color} {placement.shape}) does not fit at {placement.anchor}')
        state = CreatureState.HIDDEN if placement.hidden else CreatureState.IDLE
        cr = Creature(id=session.next_id(), anchor=placement.anchor, piece=piece, state=state)
        grid.place(cr.id, placement.anchor, piece.shape)
        session.creatures[cr.id] = cr
        if placement.hidden:
            cover = IceCover(id=session.next_id(), anchor=cr.anchor, cells=tuple(cr.cells()), creature_id=cr.id)
            session.ice[cover.id] = cover
            result.hidden.append(cr)
            result.ice.append(cover)
        else:
            result.visible.append(cr)

    iced = {cell for cover in session.ice.values() for cell in cover.cells}
    for cell in layout.ice:
        if cell in iced or not grid.can_place(cell, SINGLE):
            raise LayoutError(f'ice at {cell} is off the board, on a taken cell or already iced')
        cover = IceCover(id=session.next_id(), anchor=cell, cells=(cell,))
        session.ice[cover.id] = cover
        iced.add(cell)
        result.ice.append(cover)

    logger.debug(
        'Layout %r: %d pieces, %d rocks, %d ice', layout.name, len(layout.pieces), len(layout.rocks), len(result.ice)
    )
    return result

