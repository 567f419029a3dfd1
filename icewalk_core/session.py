from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .board import Coord
from .config import GameConfig
from .creature import Creature, CreatureState, IceCover
from .exits import ExitRegistry


@dataclass
class GameSession:
    """Everything that lives for one level: progress counters plus the live pieces."""
    size: int
    level: int = 1
    score: int = 0
    target: int = 0
    creatures: Dict[int, Creature] = field(default_factory=dict)
    ice: Dict[int, IceCover] = field(default_factory=dict)
    rocks: Dict[int, Coord] = field(default_factory=dict)
    exits: Optional[ExitRegistry] = None
    _ids: Iterator[int] = field(default_factory=lambda: itertools.count(1), repr=False)

    def next_id(self) -> int:
        return next(self._ids)

    def clear_board(self) -> None:
        self.creatures.clear()
        self.ice.clear()
        self.rocks.clear()
        self.exits = ExitRegistry(self.size)

    def reset(self) -> None:
        """Back to level 1 with nothing on the board."""
        self.level = 1
        self.score = 0
        self.target = 0
        self.clear_board()

    def advance_level(self, config: GameConfig) -> None:
        self.level += 1
        self.score = 0
        self.target = config.level_target(self.level)
        self.clear_board()

    def creature(self, creature_id: int) -> Optional[Creature]:
        return self.creatures.get(creature_id)

    def in_state(self, state: CreatureState) -> List[Creature]:
        return [cr for cr in self.creatures.values() if cr.state is state]

    def visible_creatures(self) -> List[Creature]:
        return [cr for cr in self.creatures.values() if cr.visible]

    def ice_near(self, cell: Coord, radius: int) -> List[IceCover]:
        return [cover for cover in self.ice.values() if cover.distance_to(cell) <= radius]

    def ice_for_creature(self, creature_id: int) -> Optional[IceCover]:
        for cover in self.ice.values():
            if cover.creature_id == creature_id:
                return cover
        return None
