"""
Inferno Maze core package.

Headless domain logic for the maze-exploration game:
- Maze generation with a solvability guarantee and entity placement
- Objective tracking that gates the level exit
- Level progression over the nine-circle level table
- Versioned, backed-up persistence with throttled auto-save

Rendering and input layers should import and compose these services.
"""
from importlib.metadata import version, PackageNotFoundError

__all__ = ["__version__"]

try:
    __version__ = version("infernomaze")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"
