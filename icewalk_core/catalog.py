from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .board import Coord

Color = str  # 'red', 'blue', ...
Offset = Tuple[int, int]  # (dx, dy): column delta, row delta

DEFAULT_COLORS: Tuple[Color, ...] = ('red', 'blue', 'green', 'yellow', 'purple', 'orange')


class Movement(str, Enum):
    """How a creature gets around. Only renderers and animators look at this."""
    LEGGED = 'legged'
    WINGED = 'winged'
    CRAWLING = 'crawling'


@dataclass(frozen=True)
class Shape:
    """Immutable footprint template: offsets from the anchor plus a movement tag."""
    name: str
    offsets: Tuple[Offset, ...]
    movement: Movement

    def cells(self, anchor: Coord) -> List[Coord]:
        r, c = anchor
        return [(r + dy, c + dx) for dx, dy in self.offsets]


@dataclass(frozen=True)
class Piece:
    """A shape in a given color: what a creature is instantiated from."""
    shape: Shape
    color: Color

    def cells(self, anchor: Coord) -> List[Coord]:
        return self.shape.cells(anchor)


def _shape(name: str, offsets: Iterable[Offset], movement: Movement) -> Shape:
    return Shape(name=name, offsets=tuple(offsets), movement=movement)


SINGLE = _shape('single', [(0, 0)], Movement.LEGGED)

DEFAULT_SHAPES: Tuple[Shape, ...] = (
    SINGLE,
    _shape('line2_h', [(0, 0), (1, 0)], Movement.CRAWLING),
    _shape('line2_v', [(0, 0), (0, 1)], Movement.CRAWLING),
    _shape('line3_h', [(0, 0), (1, 0), (2, 0)], Movement.CRAWLING),
    _shape('line3_v', [(0, 0), (0, 1), (0, 2)], Movement.CRAWLING),
    _shape('square', [(0, 0), (1, 0), (0, 1), (1, 1)], Movement.LEGGED),
    _shape('lshape_up', [(0, 0), (0, 1), (0, 2), (1, 2)], Movement.WINGED),
    _shape('lshape_right', [(0, 0), (1, 0), (2, 0), (0, 1)], Movement.WINGED),
    _shape('lshape_down', [(0, 0), (1, 0), (1, 1), (1, 2)], Movement.WINGED),
    _shape('lshape_left', [(2, 0), (0, 1), (1, 1), (2, 1)], Movement.WINGED),
    _shape('tshape_up', [(0, 0), (1, 0), (2, 0), (1, 1)], Movement.WINGED),
    _shape('tshape_right', [(1, 0), (0, 1), (1, 1), (1, 2)], Movement.WINGED),
    _shape('tshape_down', [(1, 0), (0, 1), (1, 1), (2, 1)], Movement.WINGED),
    _shape('tshape_left', [(0, 0), (0, 1), (1, 1), (0, 2)], Movement.WINGED),
    _shape('hshape_v', [(0, 0), (2, 0), (0, 1), (1, 1), (2, 1), (0, 2), (2, 2)], Movement.CRAWLING),
    _shape('hshape_h', [(0, 0), (0, 2), (1, 0), (1, 1), (1, 2), (2, 0), (2, 2)], Movement.CRAWLING),
)


class PieceCatalog:
    """Static colors and shapes that creatures are drawn from."""

    def __init__(self, colors: Iterable[Color] = DEFAULT_COLORS, shapes: Iterable[Shape] = DEFAULT_SHAPES) -> None:
        self.colors: Tuple[Color, ...] = tuple(colors)
        if not self.colors:
            raise ValueError('catalog needs at least one color')
        if len(set(self.colors)) != len(self.colors):
            raise ValueError(f'duplicate colors in catalog: {self.colors}')
        self._shapes: Dict[str, Shape] = {}
        for shape in shapes:
            if not shape.offsets:
                raise ValueError(f'shape {shape.name} has no cells')
            self._shapes[shape.name] = shape
        if not self._shapes:
            raise ValueError('catalog needs at least one shape')

    @property
    def shapes(self) -> Tuple[Shape, ...]:
        return tuple(self._shapes.values())

    def shape(self, name: str) -> Shape:
        try:
            return self._shapes[name]
        except KeyError:
            raise ValueError(f'unknown shape: {name}') from None

    def piece(self, shape_name: str, color: Color) -> Piece:
        if color not in self.colors:
            raise ValueError(f'unknown color: {color}')
        return Piece(shape=self.shape(shape_name), color=color)

    def random_color(self, rng: random.Random) -> Color:
        return rng.choice(self.colors)

    def random_piece(self, rng: random.Random, shape: Optional[Shape] = None) -> Piece:
        chosen = shape if shape is not None else rng.choice(self.shapes)
        return Piece(shape=chosen, color=self.random_color(rng))
