from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .catalog import DEFAULT_COLORS, Color

ENV_PREFIX = 'ICEWALK_'
MAX_BOARD_SIZE = 40  # immediate animations recurse once per path step

_TRUTHY = ('1', 'true', 'yes', 'on')
_FALSY = ('0', 'false', 'no', 'off')


@dataclass(frozen=True)
class GameConfig:
    """Static settings for one game session. Times are in seconds.

    ``melt_radius`` is the Manhattan reach of an elimination's melt check
    around the vacated anchor. The default of 1 also melts ice next to that
    cell; set it to 0 to melt only ice lying on the vacated anchor itself.
    """
    board_size: int = 8
    visible_count: int = 8
    hidden_count: int = 3
    empty_ice_count: int = 0
    grace_delay: float = 0.2
    melt_delay: float = 1.0
    step_duration: float = 0.3
    elimination_reward: int = 10
    target_base: int = 5
    target_step: int = 2
    target_cap: int = 20
    melt_radius: int = 1
    cancel_stale_reveals: bool = True
    time_limit: float = 0.0  # seconds per level, 0 for none
    seed: Optional[int] = None
    colors: Tuple[Color, ...] = DEFAULT_COLORS

    def validate(self) -> 'GameConfig':
        if not 3 <= self.board_size <= MAX_BOARD_SIZE:
            raise ValueError(f'board_size must be between 3 and {MAX_BOARD_SIZE}, got {self.board_size}')
        for name in ('visible_count', 'hidden_count', 'empty_ice_count', 'elimination_reward', 'melt_radius'):
            if getattr(self, name) < 0:
                raise ValueError(f'{name} must be non-negative')
        cells = self.board_size * self.board_size
        for name in ('visible_count', 'hidden_count', 'empty_ice_count'):
            if getattr(self, name) > cells:
                raise ValueError(f'{name} cannot exceed the {cells} cells of a {self.board_size}x{self.board_size} board')
        for name in ('grace_delay', 'melt_delay', 'step_duration', 'time_limit'):
            if getattr(self, name) < 0:
                raise ValueError(f'{name} must be non-negative')
        if self.target_cap < 1:
            raise ValueError('target_cap must be at least 1')
        if not self.colors:
            raise ValueError('at least one color is required')
        return self

    def level_target(self, level: int) -> int:
        return min(self.target_base + level * self.target_step, self.target_cap)

    def replace(self, **changes: Any) -> 'GameConfig':
        return dataclasses.replace(self, **changes).validate()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base: Optional['GameConfig'] = None) -> 'GameConfig':
        """Builds a config from loosely typed values (JSON bodies, env vars)."""
        base = base or cls()
        known = {f.name: f for f in dataclasses.fields(cls)}
        changes: Dict[str, Any] = {}
        for key, raw in data.items():
            if key not in known:
                raise ValueError(f'unknown config option: {key}')
            changes[key] = _coerce(key, getattr(base, key), raw)
        return dataclasses.replace(base, **changes).validate()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'GameConfig':
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is not None and raw != '':
                values[f.name] = raw
        return cls.from_mapping(values)


def _coerce(key: str, default: Any, raw: Any) -> Any:
    if key == 'seed':
        return None if raw is None or raw == '' else int(raw)
    if key == 'colors':
        if isinstance(raw, str):
            parts = [p.strip() for p in raw.split(',')]
        else:
            parts = [str(p).strip() for p in raw]
        return tuple(p for p in parts if p)
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUTHY:
            return True
        if text in _FALSY:
            return False
        raise ValueError(f'{key}: expected a boolean, got {raw!r}')
    try:
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except (TypeError, ValueError):
        raise ValueError(f'{key}: bad value {raw!r}') from None
    return raw
