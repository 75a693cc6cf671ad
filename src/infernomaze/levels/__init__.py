from .manager import LevelManager, LevelRecord
from .table import LevelConfig, LevelTable, load_level_table

__all__ = ["LevelConfig", "LevelManager", "LevelRecord", "LevelTable", "load_level_table"]
