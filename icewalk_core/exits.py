from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .board import Coord
from .catalog import Color

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Exit:
    color: Color
    cell: Coord


def edge_slots(size: int) -> Tuple[Coord, ...]:
    """The fixed edge cells exits are bound to, in assignment order.

    Six cells on boards of 4 and up; on a 3x3 board some slots coincide and
    only the distinct ones are kept.
    """
    last = size - 1
    mid = size // 2
    slots = (
        (0, 1),
        (0, last - 1),
        (mid, last),
        (last, last - 1),
        (last, 1),
        (mid, 0),
    )
    return tuple(dict.fromkeys(slots))


class ExitRegistry:
    """Color-to-edge-cell bindings for one level."""

    def __init__(self, size: int) -> None:
        self.size = size
        self._by_color: Dict[Color, Exit] = {}
        self._by_cell: Dict[Coord, Exit] = {}

    @classmethod
    def for_colors(cls, colors: Iterable[Color], size: int) -> 'ExitRegistry':
        """Binds colors to the edge slots in order. Colors past the last slot get no exit."""
        registry = cls(size)
        slots = edge_slots(size)
        colors = list(colors)
        for color, cell in zip(colors, slots):
            registry.bind(color, cell)
        unbound = colors[len(slots):]
        if unbound:
            logger.warning('No exit slot left for colors %s; they cannot be eliminated', unbound)
        return registry

    def _is_edge(self, cell: Coord) -> bool:
        r, c = cell
        last = self.size - 1
        if not (0 <= r <= last and 0 <= c <= last):
            return False
        return r == 0 or c == 0 or r == last or c == last

    def bind(self, color: Color, cell: Coord) -> Exit:
        if not self._is_edge(cell):
            raise ValueError(f'exit cell {cell} is not on the edge of a {self.size}x{self.size} board')
        if color in self._by_color:
            raise ValueError(f'color {color} already has an exit at {self._by_color[color].cell}')
        if cell in self._by_cell:
            raise ValueError(f'cell {cell} already holds the {self._by_cell[cell].color} exit')
        ex = Exit(color=color, cell=cell)
        self._by_color[color] = ex
        self._by_cell[cell] = ex
        return ex

    def exit_for(self, color: Color) -> Optional[Exit]:
        return self._by_color.get(color)

    def exit_at(self, cell: Coord) -> Optional[Exit]:
        return self._by_cell.get(cell)

    def matches(self, color: Color, cell: Coord) -> bool:
        ex = self._by_cell.get(cell)
        return ex is not None and ex.color == color

    def unbound(self, colors: Iterable[Color]) -> List[Color]:
        return [c for c in colors if c not in self._by_color]

    def __iter__(self) -> Iterator[Exit]:
        return iter(self._by_color.values())

    def __len__(self) -> int:
        return len(self._by_color)
