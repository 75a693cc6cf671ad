from .entities import Entity, EntityKind, available_positions, place_entities
from .generator import GenerationResult, MazeGenerator, carve_passages
from .grid import Cell, Grid
from .maze import Maze
from .repair import carve_guaranteed_path
from .solver import find_path_length, is_solvable, reachable_cells

__all__ = [
    "Cell",
    "Grid",
    "Entity",
    "EntityKind",
    "GenerationResult",
    "Maze",
    "MazeGenerator",
    "available_positions",
    "carve_guaranteed_path",
    "carve_passages",
    "find_path_length",
    "is_solvable",
    "place_entities",
    "reachable_cells",
]
