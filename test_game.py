import io
import unittest

from game import (
    GameConfig,
    Layout,
    PieceCatalog,
    compute_path,
    edge_slots,
    manhattan,
    new_game,
)
from icewalk_core.cli import build_parser, config_from_args, run_commands


def quiet_config(**changes):
    return GameConfig(board_size=8, visible_count=0, hidden_count=0, seed=0).replace(**changes)


class TestIcewalkBasics(unittest.TestCase):
    def test_path_goes_rows_first(self):
        self.assertEqual(compute_path((0, 0), (2, 3)), [(1, 0), (2, 0), (2, 1), (2, 2), (2, 3)])
        self.assertEqual(compute_path((4, 4), (4, 4)), [])
        self.assertEqual(manhattan((0, 0), (2, 3)), 5)

    def test_exit_slots_sit_on_edges(self):
        for size in (3, 8, 40):
            for r, c in edge_slots(size):
                self.assertTrue(r in (0, size - 1) or c in (0, size - 1))

    def test_new_game_is_consistent(self):
        game = new_game(GameConfig(board_size=10, seed=11))
        self.assertEqual(game.session.level, 1)
        self.assertEqual(game.integrity_problems(), [])
        self.assertEqual(len(game.pretty().splitlines()), 10)

    def test_scheduled_game_walks_only_when_clock_moves(self):
        game = new_game(quiet_config(step_duration=0.5), scheduled=True)
        cr = game.add_creature(PieceCatalog().piece('single', 'blue'), (3, 3))
        game.creature_activated(cr.id)
        game.cell_activated(3, 5)
        self.assertEqual(cr.anchor, (3, 3))
        game.scheduler.advance(0.5)
        self.assertEqual(cr.anchor, (3, 4))
        game.scheduler.run_until_idle()
        self.assertEqual(cr.anchor, (3, 5))
        self.assertIsNone(game.walking_id)


class TestTextMode(unittest.TestCase):
    def test_parser_overrides_config(self):
        args = build_parser().parse_args(['--size', '6', '--visible', '2', '--hidden', '0', '--seed', '9'])
        cfg = config_from_args(args)
        self.assertEqual((cfg.board_size, cfg.visible_count, cfg.hidden_count, cfg.seed), (6, 2, 0, 9))

    def test_commands_drive_the_board(self):
        game = new_game(quiet_config(), scheduled=True)
        cr = game.add_creature(PieceCatalog().piece('single', 'green'), (4, 4))
        out = io.StringIO()
        run_commands(game, [f's {cr.id}', 'c 4 6', '', 'bogus', 'c x y', 'q', 's 1'], out)
        self.assertEqual(cr.anchor, (4, 6))
        text = out.getvalue()
        self.assertIn('Could not parse', text)
        self.assertIn('s <id>', text)
        self.assertIn('Level 1', text)

    def test_moves_command_lists_free_neighbours(self):
        layout = Layout.from_mapping({
            'size': 5,
            'pieces': [{'shape': 'single', 'color': 'red', 'row': 0, 'col': 0}],
            'rocks': [[0, 1]],
        })
        game = new_game(quiet_config(), scheduled=True, layout=layout)
        red_id = game.grid.occupant_at(0, 0)
        out = io.StringIO()
        run_commands(game, [f'm {red_id}', 'm 999'], out)
        lines = out.getvalue().splitlines()
        self.assertEqual(lines[0], f'Moves for {red_id}: 1,0')
        self.assertEqual(lines[1], 'Moves for 999: none')

    def test_parser_accepts_layout_path(self):
        args = build_parser().parse_args(['--layout', 'levels/corner.json'])
        self.assertEqual(args.layout, 'levels/corner.json')


if __name__ == '__main__':
    unittest.main(verbosity=2)
