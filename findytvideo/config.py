# config.py
import argparse
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

SEARCH_FILTERS = (
    "songs", "videos", "albums", "artists", "playlists",
    "community_playlists", "featured_playlists", "podcasts", "episodes", "profiles",
)

@dataclass
class Config:
    """Holds all application configuration."""
    SEARCH_RESULT_LIMIT: int = 20
    SEARCH_FILTER: Optional[str] = None
    PLAYER_COMMANDS: Tuple[str, ...] = ("celluloid", "mpv")
    WATCH_URL_TEMPLATE: str = "https://www.youtube.com/watch?v={video_id}"
    FETCH_THUMBNAILS: bool = True
    THUMBNAIL_TIMEOUT: float = 5.0
    LOG_LEVEL: str = "INFO"
    INITIAL_QUERY: str = ""


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="findytvideo",
        description="Search YouTube videos from the terminal and play them in an external player.",
    )
    parser.add_argument("query", nargs="?", default="",
                        help="Optional query to search for on startup.")
    parser.add_argument("-n", "--limit", type=_positive_int, default=Config.SEARCH_RESULT_LIMIT,
                        help=f"Maximum number of results per search (default: {Config.SEARCH_RESULT_LIMIT}).")
    parser.add_argument("--filter", choices=SEARCH_FILTERS, default=None,
                        help="Restrict results to one kind (default: mixed results).")
    parser.add_argument("--player", default=None,
                        help="Player command to launch videos with (default: celluloid, then mpv).")
    parser.add_argument("--no-thumbnails", action="store_true",
                        help="Do not download thumbnails for results.")
    parser.add_argument("--debug", action="store_true",
                        help="Log debug messages to the textual console.")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Config:
    """Builds a Config from command line arguments."""
    args = build_parser().parse_args(argv)
    config = Config(
        SEARCH_RESULT_LIMIT=args.limit,
        SEARCH_FILTER=args.filter,
        FETCH_THUMBNAILS=not args.no_thumbnails,
        LOG_LEVEL="DEBUG" if args.debug else Config.LOG_LEVEL,
        INITIAL_QUERY=args.query,
    )
    if args.player:
        config.PLAYER_COMMANDS = (args.player,)
    return config
