from pathlib import Path
import argparse
import logging
import sys

try:
    from dotenv import load_dotenv
except Exception:
    load_dotenv = None

# Ensure the src directory is on sys.path when running as a script
_SRC_DIR = Path(__file__).resolve().parents[1]
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from geoquest.bootstrap import EngineSettings, build_world_service
from geoquest.domain.errors import GameError
from geoquest.presentation.cli import run_dungeon, run_duel, run_pois

if load_dotenv is not None:
    load_dotenv()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="geoquest", description="Deterministic world and combat engine tools")
    commands = parser.add_subparsers(dest="command", required=True)

    pois = commands.add_parser("pois", help="List the points of interest around a position")
    pois.add_argument("latitude", type=float)
    pois.add_argument("longitude", type=float)
    pois.add_argument("--radius", type=int, default=None, help="Visibility radius in tiles")

    dungeon = commands.add_parser("dungeon", help="Render every floor of a seeded dungeon")
    dungeon.add_argument("--seed", type=int, required=True)
    dungeon.add_argument("--floors", type=int, default=3)
    dungeon.add_argument("--difficulty", type=str, default="normal")

    duel = commands.add_parser("duel", help="Fight a catalog monster to the end with a fresh character")
    duel.add_argument("--seed", type=int, required=True)
    duel.add_argument("--monster", type=str, required=True, help="Catalog monster id, e.g. goblin")
    duel.add_argument("--class", dest="character_class", type=str, default="warrior")
    duel.add_argument("--level", type=int, default=1)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = EngineSettings.from_env()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.WARNING))

    try:
        if args.command == "pois":
            run_pois(build_world_service(settings), args.latitude, args.longitude, radius=args.radius)
        elif args.command == "dungeon":
            run_dungeon(args.seed, args.floors, args.difficulty)
        else:
            run_duel(args.seed, args.monster, args.character_class, level=args.level)
    except KeyboardInterrupt:
        print("\nSession ended.")
        return 130
    except GameError as exc:
        print("The command could not be completed.")
        print(f"Reason: {exc}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
