import random
import unittest

from game import (
    BoardController,
    Creature,
    CreatureState,
    GameConfig,
    GameSession,
    Grid,
    PieceCatalog,
    Scheduler,
    deal_creatures,
)


class TestScheduler(unittest.TestCase):
    def test_given_callbacks_when_advancing_then_run_in_deadline_order(self):
        sched = Scheduler()
        seen = []
        sched.call_later(2.0, lambda: seen.append('b'))
        sched.call_later(1.0, lambda: seen.append('a'))
        sched.call_later(5.0, lambda: seen.append('c'))
        self.assertEqual(sched.advance(2.0), 2)
        self.assertEqual(seen, ['a', 'b'])
        self.assertEqual(sched.time(), 2.0)
        self.assertEqual(sched.pending(), 1)
        self.assertEqual(sched.next_deadline(), 5.0)

    def test_given_callback_scheduling_more_when_advancing_then_chain_runs_in_window(self):
        sched = Scheduler()
        seen = []

        def first():
            seen.append(sched.time())
            sched.call_later(1.0, lambda: seen.append(sched.time()))

        sched.call_later(1.0, first)
        sched.advance(3.0)
        self.assertEqual(seen, [1.0, 2.0])
        self.assertEqual(sched.time(), 3.0)

    def test_given_token_when_cancelled_then_callback_never_runs(self):
        sched = Scheduler()
        seen = []
        token = sched.call_later(1.0, lambda: seen.append(1))
        self.assertTrue(token.active)
        self.assertTrue(token.cancel())
        self.assertFalse(token.cancel())
        sched.run_until_idle()
        self.assertEqual(seen, [])
        self.assertTrue(token.cancelled)
        self.assertFalse(token.fired)

    def test_given_fired_token_when_cancelled_then_no_op(self):
        sched = Scheduler()
        token = sched.call_later(0.0, lambda: None)
        sched.step()
        self.assertTrue(token.fired)
        self.assertFalse(token.cancel())

    def test_given_many_fired_timers_when_advancing_then_no_tokens_retained(self):
        sched = Scheduler()
        for i in range(100):
            sched.call_later(i * 0.1, lambda: None)
        keep = sched.call_later(50.0, lambda: None)
        self.assertEqual(sched.advance(20.0), 100)
        self.assertEqual(sched._tokens, [keep])

    def test_given_pending_timers_when_cancel_all_then_queue_empty(self):
        sched = Scheduler()
        seen = []
        for i in range(3):
            sched.call_later(float(i), lambda i=i: seen.append(i))
        self.assertEqual(sched.cancel_all(), 3)
        sched.advance(10.0)
        self.assertEqual(seen, [])
        self.assertEqual(sched.pending(), 0)

    def test_given_negative_inputs_when_scheduling_or_advancing_then_error(self):
        sched = Scheduler()
        with self.assertRaises(ValueError):
            sched.call_later(-1.0, lambda: None)
        with self.assertRaises(ValueError):
            sched.advance(-0.5)


class TestConfig(unittest.TestCase):
    def test_given_env_vars_when_loading_then_values_coerced(self):
        env = {
            'ICEWALK_BOARD_SIZE': '10',
            'ICEWALK_HIDDEN_COUNT': '5',
            'ICEWALK_MELT_DELAY': '2.5',
            'ICEWALK_CANCEL_STALE_REVEALS': 'off',
            'ICEWALK_SEED': '42',
            'ICEWALK_COLORS': 'red, blue,green',
            'UNRELATED': 'x',
        }
        cfg = GameConfig.from_env(env)
        self.assertEqual(cfg.board_size, 10)
        self.assertEqual(cfg.hidden_count, 5)
        self.assertEqual(cfg.melt_delay, 2.5)
        self.assertFalse(cfg.cancel_stale_reveals)
        self.assertEqual(cfg.seed, 42)
        self.assertEqual(cfg.colors, ('red', 'blue', 'green'))
        self.assertEqual(cfg.visible_count, GameConfig().visible_count)

    def test_given_bad_values_when_loading_then_value_error(self):
        with self.assertRaises(ValueError):
            GameConfig.from_mapping({'board_size': 'big'})
        with self.assertRaises(ValueError):
            GameConfig.from_mapping({'board_size': 2})
        with self.assertRaises(ValueError):
            GameConfig.from_mapping({'board_size': 500})
        with self.assertRaises(ValueError):
            GameConfig.from_mapping({'visible_count': -1})
        with self.assertRaises(ValueError):
            GameConfig.from_mapping({'visible_count': 10**9})
        with self.assertRaises(ValueError):
            GameConfig.from_mapping({'board_size': 3, 'empty_ice_count': 10})
        with self.assertRaises(ValueError):
            GameConfig.from_mapping({'cancel_stale_reveals': 'maybe'})
        with self.assertRaises(ValueError):
            GameConfig.from_mapping({'warp_speed': 9})
        with self.assertRaises(ValueError):
            GameConfig.from_mapping({'colors': []})

    def test_given_base_config_when_replacing_then_other_fields_kept(self):
        base = GameConfig(board_size=9, seed=3)
        cfg = base.replace(hidden_count=0)
        self.assertEqual(cfg.board_size, 9)
        self.assertEqual(cfg.seed, 3)
        self.assertEqual(cfg.hidden_count, 0)


class TestDealing(unittest.TestCase):
    def test_given_same_seed_when_starting_twice_then_identical_boards(self):
        cfg = GameConfig(board_size=10, seed=99)
        a = BoardController(config=cfg)
        b = BoardController(config=cfg)
        a.start()
        b.start()
        self.assertEqual(a.snapshot(), b.snapshot())
        self.assertEqual(a.pretty(), b.pretty())

    def test_given_tiny_board_when_dealing_many_then_shortfall_tolerated(self):
        grid = Grid(3)
        session = GameSession(size=3)
        result = deal_creatures(grid, session, PieceCatalog(), random.Random(0), visible=40, hidden=10)
        self.assertGreater(result.dropped, 0)
        self.assertEqual(len(result.visible) + len(result.hidden) + result.dropped, 50)
        self.assertLessEqual(grid.occupied_count(), 9)
        claimed = [cell for cr in session.creatures.values() for cell in cr.cells()]
        self.assertEqual(len(claimed), len(set(claimed)))

    def test_given_hidden_count_when_starting_then_each_hidden_has_ice(self):
        seen_hidden = 0
        for seed in range(10):
            game = BoardController(config=GameConfig(board_size=10, visible_count=4, hidden_count=4, seed=seed))
            game.start()
            hidden = game.session.in_state(CreatureState.HIDDEN)
            seen_hidden += len(hidden)
            self._check_hidden(game, hidden)
        self.assertGreater(seen_hidden, 0)

    def _check_hidden(self, game, hidden):
        for cr in hidden:
            cover = game.session.ice_for_creature(cr.id)
            self.assertIsNotNone(cover)
            self.assertEqual(set(cover.cells), set(cr.cells()))
            self.assertEqual(set(game.grid.cells_of(cr.id)), set(cr.cells()))
        self.assertEqual(game.session.target, len(game.session.in_state(CreatureState.IDLE)))
        self.assertEqual(game.integrity_problems(), [])

    def test_given_empty_ice_count_when_starting_then_covers_claim_nothing(self):
        game = BoardController(config=GameConfig(board_size=8, visible_count=0, hidden_count=0, empty_ice_count=3, seed=4))
        game.start()
        self.assertTrue(game.session.ice)
        for cover in game.session.ice.values():
            self.assertIsNone(cover.creature_id)
            self.assertIsNone(game.grid.occupant_at(*cover.anchor))

    def test_given_illegal_transition_when_forced_then_value_error(self):
        cr = Creature(id=1, anchor=(2, 2), piece=PieceCatalog().piece('single', 'red'))
        with self.assertRaises(ValueError):
            cr.transition(CreatureState.WALKING)
        with self.assertRaises(ValueError):
            cr.transition(CreatureState.HIDDEN)


if __name__ == '__main__':
    unittest.main(verbosity=2)
