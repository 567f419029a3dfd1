import unittest

from game import (
    SINGLE,
    ExitRegistry,
    Grid,
    Movement,
    PieceCatalog,
    PlacementError,
    Shape,
    compute_path,
    edge_slots,
    neighbors,
)


def _shape(name, offsets):
    return Shape(name=name, offsets=tuple(offsets), movement=Movement.CRAWLING)


class TestGrid(unittest.TestCase):
    def test_given_free_cells_when_can_place_then_place_marks_exactly_the_shape(self):
        grid = Grid(6)
        ell = _shape('ell', [(0, 0), (0, 1), (0, 2), (1, 2)])
        self.assertTrue(grid.can_place((1, 1), ell))
        grid.place(7, (1, 1), ell)
        expected = {(1, 1), (2, 1), (3, 1), (3, 2)}
        for r, c in grid.coords():
            if (r, c) in expected:
                self.assertEqual(grid.occupant_at(r, c), 7)
            else:
                self.assertIsNone(grid.occupant_at(r, c))
        self.assertEqual(set(grid.cells_of(7)), expected)
        self.assertEqual(grid.occupied_count(), 4)

    def test_given_shape_hanging_off_board_when_can_place_then_false(self):
        grid = Grid(4)
        line = _shape('line3_h', [(0, 0), (1, 0), (2, 0)])
        self.assertTrue(grid.can_place((0, 1), line))
        self.assertFalse(grid.can_place((0, 2), line))
        self.assertFalse(grid.can_place((-1, 0), SINGLE))
        self.assertFalse(grid.can_place((4, 0), SINGLE))

    def test_given_overlap_when_place_then_fails_fast_without_mutation(self):
        grid = Grid(5)
        square = _shape('square', [(0, 0), (1, 0), (0, 1), (1, 1)])
        grid.place(1, (0, 0), square)
        self.assertFalse(grid.can_place((1, 1), square))
        with self.assertRaises(PlacementError):
            grid.place(2, (1, 1), square)
        self.assertIsNone(grid.occupant_at(2, 2))
        self.assertEqual(grid.occupied_count(), 4)
        # PlacementError is a ValueError
        with self.assertRaises(ValueError):
            grid.place(3, (4, 4), square)

    def test_given_placed_creature_when_placed_again_then_error(self):
        grid = Grid(5)
        grid.place(1, (0, 0), SINGLE)
        with self.assertRaises(PlacementError):
            grid.place(1, (3, 3), SINGLE)

    def test_given_own_cells_when_can_place_with_ignore_then_true(self):
        grid = Grid(5)
        line = _shape('line2_h', [(0, 0), (1, 0)])
        grid.place(4, (2, 1), line)
        self.assertFalse(grid.can_place((2, 2), line))
        self.assertTrue(grid.can_place((2, 2), line, ignore=4))
        self.assertFalse(grid.can_place((2, 2), line, ignore=5))

    def test_given_placed_creature_when_vacate_then_cells_cleared(self):
        grid = Grid(5)
        grid.place(1, (0, 0), SINGLE)
        grid.place(2, (0, 1), SINGLE)
        self.assertEqual(grid.vacate(1), ((0, 0),))
        self.assertIsNone(grid.occupant_at(0, 0))
        self.assertEqual(grid.occupant_at(0, 1), 2)
        self.assertEqual(grid.vacate(99), ())
        grid.clear()
        self.assertEqual(grid.occupied_count(), 0)
        self.assertIsNone(grid.occupant_at(0, 1))

    def test_given_coords_when_checking_bounds_and_edges_then_expected(self):
        grid = Grid(5)
        self.assertTrue(grid.in_bounds(0, 0))
        self.assertFalse(grid.in_bounds(5, 0))
        self.assertIsNone(grid.occupant_at(-1, 2))
        self.assertTrue(grid.is_edge(0, 3))
        self.assertTrue(grid.is_edge(4, 4))
        self.assertTrue(grid.is_edge(2, 0))
        self.assertFalse(grid.is_edge(2, 2))
        self.assertFalse(grid.is_edge(-1, 0))

    def test_given_labels_when_pretty_then_symbols_rendered(self):
        grid = Grid(3)
        grid.place(1, (0, 0), SINGLE)
        txt = grid.pretty({1: 'r'}, {(2, 2): '~'})
        self.assertEqual(txt.splitlines()[0], 'r . .')
        self.assertEqual(txt.splitlines()[2], '. . ~')

    def test_given_bad_size_when_constructing_then_error(self):
        with self.assertRaises(ValueError):
            Grid(0)


class TestPathPlanner(unittest.TestCase):
    def test_given_same_cell_when_compute_path_then_empty(self):
        self.assertEqual(compute_path((3, 4), (3, 4)), [])

    def test_given_origin_to_2_3_when_compute_path_then_rows_first(self):
        self.assertEqual(
            compute_path((0, 0), (2, 3)),
            [(1, 0), (2, 0), (2, 1), (2, 2), (2, 3)],
        )

    def test_given_reverse_direction_when_compute_path_then_rows_first_again(self):
        self.assertEqual(
            compute_path((2, 3), (0, 0)),
            [(1, 3), (0, 3), (0, 2), (0, 1), (0, 0)],
        )

    def test_given_any_pair_when_compute_path_then_unit_steps_of_manhattan_length(self):
        start, dest = (5, 1), (1, 7)
        path = compute_path(start, dest)
        self.assertEqual(len(path), 4 + 6)
        self.assertEqual(path[-1], dest)
        prev = start
        for cell in path:
            self.assertIn(cell, neighbors(prev))
            prev = cell
        # Pure: a second call gives the same answer.
        self.assertEqual(compute_path(start, dest), path)


class TestCatalogAndExits(unittest.TestCase):
    def test_given_default_catalog_when_inspecting_then_six_colors_and_known_shapes(self):
        catalog = PieceCatalog()
        self.assertEqual(len(catalog.colors), 6)
        self.assertEqual(len(catalog.shape('square').offsets), 4)
        self.assertEqual(catalog.shape('line3_v').cells((0, 0)), [(0, 0), (1, 0), (2, 0)])
        piece = catalog.piece('single', 'red')
        self.assertEqual(piece.cells((2, 3)), [(2, 3)])
        with self.assertRaises(ValueError):
            catalog.shape('nope')
        with self.assertRaises(ValueError):
            catalog.piece('single', 'mauve')

    def test_given_duplicate_colors_when_building_catalog_then_error(self):
        with self.assertRaises(ValueError):
            PieceCatalog(colors=('red', 'red'))

    def test_given_board_size_when_listing_edge_slots_then_six_edge_cells(self):
        slots = edge_slots(12)
        self.assertEqual(slots, ((0, 1), (0, 10), (6, 11), (11, 10), (11, 1), (6, 0)))
        grid = Grid(12)
        for cell in slots:
            self.assertTrue(grid.is_edge(*cell))

    def test_given_colors_when_building_registry_then_bound_in_order(self):
        registry = ExitRegistry.for_colors(['red', 'blue'], 12)
        self.assertEqual(len(registry), 2)
        self.assertEqual(registry.exit_for('red').cell, (0, 1))
        self.assertEqual(registry.exit_at((0, 10)).color, 'blue')
        self.assertTrue(registry.matches('red', (0, 1)))
        self.assertFalse(registry.matches('blue', (0, 1)))
        self.assertFalse(registry.matches('red', (0, 2)))

    def test_given_seven_colors_when_building_registry_then_last_has_no_exit(self):
        colors = ['red', 'blue', 'green', 'yellow', 'purple', 'orange', 'pink']
        with self.assertLogs('icewalk_core.exits', level='WARNING'):
            registry = ExitRegistry.for_colors(colors, 8)
        self.assertEqual(len(registry), 6)
        self.assertIsNone(registry.exit_for('pink'))
        self.assertEqual(registry.unbound(colors), ['pink'])

    def test_given_bad_binding_when_bind_then_error(self):
        registry = ExitRegistry(8)
        with self.assertRaises(ValueError):
            registry.bind('red', (3, 3))  # not on the edge
        registry.bind('red', (0, 3))
        with self.assertRaises(ValueError):
            registry.bind('red', (0, 4))
        with self.assertRaises(ValueError):
            registry.bind('blue', (0, 3))

    def test_given_3x3_board_when_building_registry_then_distinct_slots_only(self):
        self.assertEqual(edge_slots(3), ((0, 1), (1, 2), (2, 1), (1, 0)))
        with self.assertLogs('icewalk_core.exits', level='WARNING'):
            registry = ExitRegistry.for_colors(['red', 'blue', 'green', 'yellow', 'purple', 'orange'], 3)
        self.assertEqual(len(registry), 4)
        self.assertEqual(registry.exit_for('green').cell, (2, 1))


if __name__ == '__main__':
    unittest.main(verbosity=2)
