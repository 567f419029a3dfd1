"""
Icewalk core Python package.

Board and creature state engine for the ice-and-exits puzzle game.
Modules:
- board.py: Grid, Coord, PlacementError
- catalog.py: colors, shapes, PieceCatalog
- creature.py: Creature, CreatureState, IceCover
- moves.py: compute_path and step helpers
- exits.py: ExitRegistry and the edge slot table
- deal.py: random placement at level start
- layout.py: Layout and apply_layout for authored levels
- session.py: GameSession
- scheduler.py: virtual-clock Scheduler
- collaborators.py: Renderer/Animator interfaces and headless implementations
- controller.py: BoardController
- config.py: GameConfig
- cli.py: text-mode driver
"""
