from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, List, Optional, TextIO

from .collaborators import ScheduledAnimator
from .config import GameConfig
from .controller import BoardController
from .layout import Layout
from .scheduler import Scheduler

HELP = (
    's <id>: select/deselect creature   c <row> <col>: activate cell   m <id>: list one-step moves   '
    't <seconds>: let time pass   q: quit'
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Icewalk text-mode board')
    parser.add_argument('--size', type=int, default=None, help='Board size (NxN)')
    parser.add_argument('--visible', type=int, default=None, help='Visible creatures per level')
    parser.add_argument('--hidden', type=int, default=None, help='Creatures hidden under ice per level')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for dealing')
    parser.add_argument('--script', default=None, help='Read commands from this file instead of stdin')
    parser.add_argument('--layout', default=None, help='Play an authored layout (JSON file) as the first level')
    parser.add_argument('--verbose', action='store_true', help='Log engine events')
    return parser


def config_from_args(args: argparse.Namespace) -> GameConfig:
    overrides = {}
    if args.size is not None:
        overrides['board_size'] = args.size
    if args.visible is not None:
        overrides['visible_count'] = args.visible
    if args.hidden is not None:
        overrides['hidden_count'] = args.hidden
    if args.seed is not None:
        overrides['seed'] = args.seed
    return GameConfig.from_env().replace(**overrides)


def status_line(game: BoardController) -> str:
    s = game.session
    line = f'Level {s.level}  score {s.score}/{s.target}  t={game.scheduler.time():.1f}s'
    if game.time_left is not None:
        line += f'  left={game.time_left:.1f}s'
    if game.game_over:
        line += '  GAME OVER'
    return line


def run_commands(game: BoardController, lines: Iterable[str], out: TextIO) -> None:
    """Feeds text commands to the controller, printing the board after each one."""
    for raw in lines:
        parts = raw.split()
        if not parts:
            continue
        cmd, rest = parts[0].lower(), parts[1:]
        try:
            if cmd == 'q':
                return
            if cmd == 's' and len(rest) == 1:
                game.creature_activated(int(rest[0]))
            elif cmd == 'c' and len(rest) == 2:
                game.cell_activated(int(rest[0]), int(rest[1]))
            elif cmd == 'm' and len(rest) == 1:
                moves = game.valid_moves(int(rest[0]))
                print(f'Moves for {rest[0]}: ' + (' '.join(f'{r},{c}' for r, c in moves) or 'none'), file=out)
                continue
            elif cmd == 't' and len(rest) == 1:
                game.scheduler.advance(float(rest[0]))
            else:
                print(HELP, file=out)
                continue
        except ValueError:
            print('Could not parse. Try again.', file=out)
            continue
        # Let any walk that was just started play out before drawing.
        while game.walking_id is not None and game.scheduler.next_deadline() is not None:
            game.scheduler.step()
        print(game.pretty(), file=out)
        print(status_line(game), file=out)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
    )
    config = config_from_args(args)
    scheduler = Scheduler()
    game = BoardController(
        config=config,
        scheduler=scheduler,
        animator=ScheduledAnimator(scheduler, step_duration=config.step_duration),
    )
    game.start()
    if args.layout:
        with open(args.layout, encoding='utf-8') as fh:
            game.load_layout(Layout.from_mapping(json.load(fh)))
    print('Initial board:')
    print(game.pretty())
    print(status_line(game))
    print(HELP)
    if args.script:
        with open(args.script, encoding='utf-8') as fh:
            run_commands(game, fh, sys.stdout)
    else:
        run_commands(game, sys.stdin, sys.stdout)


if __name__ == '__main__':
    main()
