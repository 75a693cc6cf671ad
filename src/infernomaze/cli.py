import argparse
import json
import logging
import random
from pathlib import Path

from pydantic import ValidationError

from .config import GameConfig, MazeConfig
from .logging_config import configure_logging
from .maze import Maze
from .persistence import FileStorage, SaveStore, format_time


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="infernomaze",
        description="Inferno Maze - maze generation and save tooling",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to a user config YAML file to load/override defaults.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a maze and print it as ASCII.")
    gen.add_argument("--width", type=int, default=15)
    gen.add_argument("--height", type=int, default=15)
    gen.add_argument("--seed", type=int, default=None, help="Seed for a reproducible maze.")
    gen.add_argument("--fragments", type=int, default=3, help="Number of memory fragments to place.")
    gen.add_argument("--no-guide", action="store_true", help="Do not place the guide.")

    for name, text in (("save-info", "Show a summary of the stored save."), ("clear-save", "Delete stored save data.")):
        cmd = sub.add_parser(name, help=text)
        cmd.add_argument(
            "--save-dir",
            type=Path,
            default=None,
            help="Directory holding save files (defaults to the platform data dir).",
        )
    return parser.parse_args(argv)


def _generate(args, config: GameConfig) -> int:
    try:
        maze_config = MazeConfig(
            width=args.width,
            height=args.height,
            max_generation_attempts=config.generation.max_attempts,
        )
    except ValidationError as exc:
        print(f"Invalid maze size: {exc.errors()[0]['msg']}")
        return 2
    maze = Maze(maze_config, rng=random.Random(args.seed))
    maze.generate()
    maze.place_entities(wants_guide=not args.no_guide, fragment_count=args.fragments)
    for row in maze.render():
        print(row)
    print(f"repaired={maze.repaired} entities={len(maze.entities)}")
    return 0


def _store(args, config: GameConfig) -> SaveStore:
    return SaveStore(FileStorage(args.save_dir), config.save)


def _save_info(args, config: GameConfig) -> int:
    store = _store(args, config)
    info = store.get_save_info()
    if info is None:
        print("No loadable save found.")
        return 1
    info["playTimeFormatted"] = format_time(info["playTime"])
    print(json.dumps(info, indent=2, sort_keys=True))
    return 0


def _clear_save(args, config: GameConfig) -> int:
    ok = _store(args, config).clear()
    print("Save data cleared." if ok else "Failed to clear save data.")
    return 0 if ok else 1


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(default_level=logging.DEBUG if args.debug else logging.INFO)

    config = GameConfig.load(user_path=args.config_path)
    handlers = {"generate": _generate, "save-info": _save_info, "clear-save": _clear_save}
    return handlers[args.command](args, config)
