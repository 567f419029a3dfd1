from __future__ import annotations

import logging
import random
from typing import Any, Callable, Dict, List, Optional

from .board import Coord, Grid
from .catalog import SINGLE, Piece, PieceCatalog
from .collaborators import Animator, ImmediateAnimator, NullRenderer, Once, Renderer, once
from .config import GameConfig
from .creature import Creature, CreatureState, IceCover
from .deal import DealResult, deal_creatures
from .exits import ExitRegistry
from .layout import Layout, apply_layout
from .moves import compute_path, neighbors
from .scheduler import Scheduler
from .session import GameSession

logger = logging.getLogger(__name__)


def _creature_visual(creature_id: int) -> str:
    return f'creature-{creature_id}'


def _ice_visual(cover_id: int) -> str:
    return f'ice-{cover_id}'


class BoardController:
    """
    Owns the grid, the session and the exit registry, and runs the creature
    lifecycle: selection, step-by-step walks, exit matching, ice reveals and
    level changes. All mutation happens on the caller's thread, either from an
    input event or from a callback queued on ``scheduler``.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        catalog: Optional[PieceCatalog] = None,
        renderer: Optional[Renderer] = None,
        animator: Optional[Animator] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = (config or GameConfig()).validate()
        self.catalog = catalog or PieceCatalog(self.config.colors)
        self.scheduler = scheduler or Scheduler()
        self.renderer: Renderer = renderer or NullRenderer()
        self.animator: Animator = animator or ImmediateAnimator()
        self.rng = rng or random.Random(self.config.seed)
        self.grid = Grid(self.config.board_size)
        self.session = GameSession(size=self.config.board_size)
        self.session.exits = ExitRegistry.for_colors(self.catalog.colors, self.grid.size)
        self.selected_id: Optional[int] = None
        self.walking_id: Optional[int] = None
        self.levels_completed = 0
        self.game_over = False
        self._deadline: Optional[float] = None
        self._shown: set = set()

    # ---------- Lifecycle ----------

    @property
    def exits(self) -> ExitRegistry:
        assert self.session.exits is not None
        return self.session.exits

    def start(self) -> None:
        """Starts a fresh game at level 1."""
        self._drop_visuals()
        self.session.reset()
        self.levels_completed = 0
        self.initialize_board()

    def initialize_board(self) -> None:
        """Full reset of the board for the current level. Nothing from before survives."""
        self._clear_level()
        self.session.exits = ExitRegistry.for_colors(self.catalog.colors, self.grid.size)

        cfg = self.config
        dealt = deal_creatures(
            self.grid,
            self.session,
            self.catalog,
            self.rng,
            visible=cfg.visible_count,
            hidden=cfg.hidden_count,
            empty_ice=cfg.empty_ice_count,
        )
        if self.session.level == 1:
            self.session.target = len(dealt.visible)
        self._begin_level(dealt, cfg.time_limit)

    def load_layout(self, layout: Layout) -> None:
        """
        Replaces the current level's board with an authored layout, keeping the
        level number and score. The layout is tried on a scratch board first, so a
        LayoutError leaves the running level untouched. The board takes the
        layout's size; levels dealt after it keep that size.
        """
        apply_layout(layout, Grid(layout.size), GameSession(size=layout.size), self.catalog)

        self._clear_level()
        if layout.size != self.grid.size:
            self.grid = Grid(layout.size)
            self.session.size = layout.size
        placed = apply_layout(layout, self.grid, self.session, self.catalog)
        self.session.target = layout.target if layout.target is not None else len(placed.visible)
        limit = layout.time_limit if layout.time_limit is not None else self.config.time_limit
        self._begin_level(placed, limit, name=layout.name)

    def _clear_level(self) -> None:
        self.scheduler.cancel_all()
        self._drop_visuals()
        self.grid.clear()
        self.session.clear_board()
        self.selected_id = None
        self.walking_id = None
        self.game_over = False
        self._deadline = None

    def _begin_level(self, placed: DealResult, time_limit: float, name: str = '') -> None:
        for cr in placed.visible:
            self._present(cr)
        for cover in placed.ice:
            self._present_ice(cover)
        if time_limit > 0:
            self._deadline = self.scheduler.time() + time_limit
            self.scheduler.call_later(time_limit, self._time_up, label='level time limit')
        logger.info(
            'Level %d%s: %d creatures, %d hidden, %d rocks, %d dropped, target %d',
            self.session.level, f' ({name})' if name else '', len(placed.visible), len(placed.hidden),
            len(self.session.rocks), placed.dropped, self.session.target,
        )

    def _time_up(self) -> None:
        self.game_over = True
        logger.info(
            'Level %d failed: time is up at score %d/%d', self.session.level, self.session.score, self.session.target,
        )

    @property
    def time_left(self) -> Optional[float]:
        """Seconds until the level's time limit, or None when the level has none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self.scheduler.time())

    def add_creature(self, piece: Piece, anchor: Coord, hidden: bool = False) -> Optional[Creature]:
        """Places one creature by hand. Returns None when it does not fit."""
        if not self.grid.can_place(anchor, piece.shape):
            return None
        state = CreatureState.HIDDEN if hidden else CreatureState.IDLE
        cr = Creature(id=self.session.next_id(), anchor=anchor, piece=piece, state=state)
        self.grid.place(cr.id, anchor, piece.shape)
        self.session.creatures[cr.id] = cr
        if hidden:
            cover = IceCover(id=self.session.next_id(), anchor=anchor, cells=tuple(cr.cells()), creature_id=cr.id)
            self.session.ice[cover.id] = cover
            self._present_ice(cover)
        else:
            self._present(cr)
        return cr

    def add_ice(self, anchor: Coord) -> Optional[IceCover]:
        """Lays an empty ice cover on a free cell."""
        if not self.grid.can_place(anchor, SINGLE):
            return None
        if any(anchor in cover.cells for cover in self.session.ice.values()):
            return None
        cover = IceCover(id=self.session.next_id(), anchor=anchor, cells=(anchor,))
        self.session.ice[cover.id] = cover
        self._present_ice(cover)
        return cover

    # ---------- Input ----------

    def creature_activated(self, creature_id: int) -> bool:
        if self.game_over:
            return False
        if self.walking_id is not None:
            logger.debug('Ignoring activation of %s: creature %s is walking', creature_id, self.walking_id)
            return False
        if creature_id == self.selected_id:
            return self.deselect()
        return self.select(creature_id)

    def cell_activated(self, r: int, c: int) -> bool:
        if self.game_over:
            return False
        if self.walking_id is not None:
            logger.debug('Ignoring cell %s: creature %s is walking', (r, c), self.walking_id)
            return False
        if not self.grid.in_bounds(r, c):
            return self.deselect()
        occupant = self.session.creatures.get(self.grid.occupant_at(r, c))
        if occupant is not None and occupant.visible:
            return self.creature_activated(occupant.id)
        if self.selected_id is not None:
            return self.move_selected_to(r, c)
        return False

    # ---------- Selection ----------

    @property
    def selected(self) -> Optional[Creature]:
        if self.selected_id is None:
            return None
        return self.session.creatures.get(self.selected_id)

    def select(self, creature_id: int) -> bool:
        if self.game_over or self.walking_id is not None:
            return False
        cr = self.session.creature(creature_id)
        if cr is None or cr.state is not CreatureState.IDLE:
            logger.debug('Ignoring select of %s', creature_id)
            return False
        self.deselect()
        cr.transition(CreatureState.SELECTED)
        self.selected_id = cr.id
        self._present(cr)
        return True

    def deselect(self) -> bool:
        if self.walking_id is not None:
            return False
        cr = self.selected
        self.selected_id = None
        if cr is None or cr.state is not CreatureState.SELECTED:
            return False
        cr.transition(CreatureState.IDLE)
        self._present(cr)
        return True

    # ---------- Movement ----------

    def move_selected_to(self, r: int, c: int) -> bool:
        """Walks the selected creature's anchor towards (r, c). False when nothing was started."""
        cr = self.selected
        if cr is None or cr.state is not CreatureState.SELECTED:
            logger.debug('Ignoring move to %s: nothing selected', (r, c))
            return False
        if self.game_over:
            logger.debug('Ignoring move to %s: the level has ended', (r, c))
            return False
        if not self.grid.in_bounds(r, c):
            logger.debug('Ignoring move to %s: out of bounds', (r, c))
            return False
        path = compute_path(cr.anchor, (r, c))
        cr.transition(CreatureState.WALKING)
        self.walking_id = cr.id
        if not path:
            self._finish_move(cr, check_exit=False)
            return True
        self._play_step(cr, path, 0)
        return True

    def valid_moves(self, creature_id: int) -> List[Coord]:
        """Anchors one orthogonal step away where the creature would fit. Empty for hidden or unknown ids."""
        cr = self.session.creature(creature_id)
        if cr is None or not cr.visible:
            return []
        return [cell for cell in neighbors(cr.anchor) if self.grid.can_place(cell, cr.shape, ignore=cr.id)]

    def _play_step(self, cr: Creature, path: List[Coord], index: int) -> None:
        src = cr.position or cr.anchor
        dst = path[index]
        done = once(lambda: self._commit_step(cr, path, index), f'step {index} of creature {cr.id}')
        self._animate(self.animator.play_step_move, done, cr, src, dst)

    def _commit_step(self, cr: Creature, path: List[Coord], index: int) -> None:
        if self.session.creatures.get(cr.id) is not cr or cr.state is not CreatureState.WALKING:
            logger.debug('Dropping stale step for creature %s', cr.id)
            return
        dst = path[index]
        cr.position = dst
        if self.grid.can_place(dst, cr.shape, ignore=cr.id):
            self.grid.vacate(cr.id)
            self.grid.place(cr.id, dst, cr.shape)
            cr.anchor = dst
            self._cancel_stale_reveals(self.grid.cells_of(cr.id))
        self._present(cr)
        if index + 1 < len(path):
            self._play_step(cr, path, index + 1)
        else:
            self._finish_move(cr, check_exit=True)

    def _finish_move(self, cr: Creature, check_exit: bool) -> None:
        # Creatures that ended a walk over someone else fall back to their last free cell.
        cr.settle(cr.anchor)
        self.walking_id = None
        self.selected_id = None
        if check_exit and self.grid.is_edge(*cr.anchor) and self.exits.matches(cr.color, cr.anchor):
            self._eliminate(cr)
            return
        cr.transition(CreatureState.IDLE)
        self._present(cr)

    # ---------- Exits & elimination ----------

    def _eliminate(self, cr: Creature) -> None:
        cr.transition(CreatureState.ELIMINATED)
        self.grid.vacate(cr.id)
        del self.session.creatures[cr.id]
        self.session.score += self.config.elimination_reward
        logger.info(
            'Creature %s (%s) left through its exit at %s; score %d/%d',
            cr.id, cr.color, cr.anchor, self.session.score, self.session.target,
        )
        visual = _creature_visual(cr.id)
        self._animate(
            self.animator.play_elimination,
            once(lambda: self._remove(visual), f'elimination of {cr.id}'),
            cr,
        )
        self._schedule_reveal(cr.anchor)
        if self.session.score >= self.session.target and not self.game_over:
            self._complete_level()

    def _complete_level(self) -> None:
        logger.info('Level %d complete with score %d', self.session.level, self.session.score)
        self.levels_completed += 1
        self.session.advance_level(self.config)
        self.initialize_board()

    # ---------- Ice ----------

    def _schedule_reveal(self, cell: Coord) -> None:
        self.scheduler.call_later(
            self.config.grace_delay,
            lambda: self._begin_melt(cell),
            label=f'melt check {cell}',
        )

    def _begin_melt(self, cell: Coord) -> None:
        for cover in self.session.ice_near(cell, self.config.melt_radius):
            if cover.pending:
                continue
            cover.melting = True
            cover.token = self.scheduler.call_later(
                self.config.melt_delay,
                lambda cover=cover: self._resolve_ice(cover),
                label=f'melt ice {cover.id}',
            )
            self._present_ice(cover)

    def _resolve_ice(self, cover: IceCover) -> None:
        if self.session.ice.pop(cover.id, None) is None:
            return
        cover.melting = False
        self._remove(_ice_visual(cover.id))

        hidden = self.session.creatures.get(cover.creature_id) if cover.creature_id is not None else None
        if hidden is not None and hidden.state is CreatureState.HIDDEN:
            hidden.transition(CreatureState.IDLE)
            logger.info('Ice %s melted; creature %s (%s) revealed', cover.id, hidden.id, hidden.color)
            self._present_reveal(hidden)
            return

        if not self.grid.can_place(cover.anchor, SINGLE):
            logger.warning('Ice %s melted but %s is taken; no creature spawned', cover.id, cover.anchor)
            return
        piece = Piece(shape=SINGLE, color=self.catalog.random_color(self.rng))
        fresh = Creature(id=self.session.next_id(), anchor=cover.anchor, piece=piece, state=CreatureState.IDLE)
        self.grid.place(fresh.id, fresh.anchor, piece.shape)
        self.session.creatures[fresh.id] = fresh
        logger.info('Ice %s melted; spawned %s creature %s at %s', cover.id, piece.color, fresh.id, fresh.anchor)
        self._present_reveal(fresh)

    def _present_reveal(self, cr: Creature) -> None:
        self._present(cr)
        self._animate(self.animator.play_reveal, once(lambda: None, f'reveal of {cr.id}'), cr)

    def _cancel_stale_reveals(self, cells) -> None:
        if not self.config.cancel_stale_reveals:
            return
        claimed = set(cells)
        for cover in self.session.ice.values():
            if cover.pending and cover.anchor in claimed:
                assert cover.token is not None
                cover.token.cancel()
                cover.melting = False
                logger.debug('Cancelled reveal of ice %s: %s was claimed first', cover.id, cover.anchor)
                self._present_ice(cover)

    # ---------- Collaborator plumbing ----------

    def _render(self, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception('Renderer call %s failed', getattr(fn, '__name__', fn))

    def _animate(self, fn: Callable[..., Any], done: Once, *args: Any) -> None:
        try:
            fn(*args, done)
        except Exception:
            # Errors raised by our own continuation are not the animator's.
            if done.failed:
                raise
            logger.exception('Animator call %s failed; completing without it', getattr(fn, '__name__', fn))
            if not done.called:
                done()

    def _present(self, cr: Creature) -> None:
        self._shown.add(_creature_visual(cr.id))
        self._render(self.renderer.present, cr)

    def _present_ice(self, cover: IceCover) -> None:
        self._shown.add(_ice_visual(cover.id))
        self._render(self.renderer.present_ice, cover)

    def _remove(self, visual_id: str) -> None:
        if visual_id not in self._shown:
            return
        self._shown.discard(visual_id)
        self._render(self.renderer.remove_visual, visual_id)

    def _drop_visuals(self) -> None:
        for visual_id in sorted(self._shown):
            self._remove(visual_id)

    # ---------- Inspection ----------

    def integrity_problems(self) -> List[str]:
        """Cross-checks the grid against the live creatures and rocks. Empty means consistent."""
        problems: List[str] = []
        seen: Dict[Coord, int] = {}
        for rock_id, cell in self.session.rocks.items():
            if self.grid.cells_of(rock_id) != (cell,):
                problems.append(f'rock {rock_id} claims {list(self.grid.cells_of(rock_id))}, expected {[cell]}')
            seen[cell] = rock_id
        for cr in self.session.creatures.values():
            expected = sorted(cr.cells())
            actual = sorted(self.grid.cells_of(cr.id))
            if expected != actual:
                problems.append(f'creature {cr.id} claims {actual}, expected {expected}')
            for cell in expected:
                if cell in seen:
                    problems.append(f'cell {cell} shared by pieces {seen[cell]} and {cr.id}')
                seen[cell] = cr.id
                if self.grid.occupant_at(*cell) != cr.id:
                    problems.append(f'cell {cell} does not point back to creature {cr.id}')
        if self.grid.occupied_count() != len(seen):
            problems.append(f'grid holds {self.grid.occupied_count()} cells, pieces cover {len(seen)}')
        for cell in self.grid.coords():
            holder = self.grid.occupant_at(*cell)
            if holder is not None and holder not in self.session.creatures and holder not in self.session.rocks:
                problems.append(f'cell {cell} is held by unknown piece {holder}')
        selected = self.session.in_state(CreatureState.SELECTED)
        if len(selected) > 1:
            problems.append(f'{len(selected)} creatures selected at once')
        walking = self.session.in_state(CreatureState.WALKING)
        if len(walking) > 1:
            problems.append(f'{len(walking)} creatures walking at once')
        return problems

    def labels(self) -> Dict[int, str]:
        """One-character board labels: color initial, upper case when selected, '?' when hidden, '#' for rocks."""
        out: Dict[int, str] = {}
        for cr in self.session.creatures.values():
            if not cr.visible:
                out[cr.id] = '?'
            elif cr.state in (CreatureState.SELECTED, CreatureState.WALKING):
                out[cr.id] = cr.color[0].upper()
            else:
                out[cr.id] = cr.color[0]
        for rock_id in self.session.rocks:
            out[rock_id] = '#'
        return out

    def pretty(self) -> str:
        marks: Dict[Coord, str] = {}
        for cover in self.session.ice.values():
            for cell in cover.cells:
                marks[cell] = '~'
        for ex in self.exits:
            marks[ex.cell] = ex.color[0].upper()
        return self.grid.pretty(self.labels(), marks)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the whole session."""
        s = self.session
        return {
            'level': s.level,
            'score': s.score,
            'target': s.target,
            'size': self.grid.size,
            'clock': self.scheduler.time(),
            'selected': self.selected_id,
            'walking': self.walking_id,
            'levelsCompleted': self.levels_completed,
            'gameOver': self.game_over,
            'timeLeft': self.time_left,
            'creatures': [
                {
                    'id': cr.id,
                    'color': cr.color,
                    'shape': cr.shape.name,
                    'movement': cr.shape.movement.value,
                    'state': cr.state.value,
                    'anchor': [cr.anchor[0], cr.anchor[1]],
                    'position': [cr.position[0], cr.position[1]] if cr.position else None,
                    'cells': [[r, c] for r, c in cr.cells()],
                }
                for cr in sorted(s.visible_creatures(), key=lambda x: x.id)
            ],
            'ice': [
                {
                    'id': cover.id,
                    'anchor': [cover.anchor[0], cover.anchor[1]],
                    'cells': [[r, c] for r, c in cover.cells],
                    'melting': cover.melting,
                }
                for cover in sorted(s.ice.values(), key=lambda x: x.id)
            ],
            'rocks': [[r, c] for r, c in sorted(s.rocks.values())],
            'exits': [{'color': ex.color, 'cell': [ex.cell[0], ex.cell[1]]} for ex in self.exits],
        }
