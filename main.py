# --- YouTube audio streamer: resolve a video, play its audio through ffplay ---

import argparse
import logging
import sys
from typing import Callable, List, Optional

from rich.console import Console

from core.errors import MissingDependency, YtStreamError
from core.models import PlaybackStatus, ResolveRequest
from core.playback import PlaybackController
from core.presenter import Presenter
from core.resolver import StreamResolver
from utils.config_loader import load_config
from utils.console import ConsolePresenter
from utils.environment import find_player
from utils.logger import setup_logging

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yt-audio-streamer",
        description="YouTube Audio Streamer - Stream audio from YouTube videos",
    )
    parser.add_argument("--url", help="YouTube video URL to stream")
    parser.add_argument("--search", "-s", help="Search term to find a video to stream")
    parser.add_argument("--verbose", action="store_true",
                        help="List every available audio stream before playback")
    parser.add_argument("--config", default=None,
                        help="Path to a YAML config file (default: config.yml if present)")
    return parser


def run(
        argv: Optional[List[str]] = None,
        presenter: Optional[Presenter] = None,
        resolver: Optional[StreamResolver] = None,
        controller_factory: Optional[Callable[[dict, Presenter, str], PlaybackController]] = None,
) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)

    console = Console()
    presenter = presenter or ConsolePresenter(console)

    try:
        cfg = load_config(args.config)
    except (OSError, ValueError) as e:
        presenter.error(f"Could not load configuration: {e}")
        return EXIT_FAILURE

    log_cfg = cfg["logging"]
    setup_logging(
        log_dir=log_cfg["dir"],
        level=log_cfg["level"],
        backup_count=int(log_cfg["backup_count"]),
        console=console,
    )

    # Player must be discoverable before any network work starts.
    presenter.info("Checking for ffplay installation...")
    try:
        player_path = find_player(cfg["player"]["path"])
    except MissingDependency as e:
        presenter.error(str(e))
        return EXIT_FAILURE
    presenter.success(f"ffplay found at: {player_path}")

    try:
        request = ResolveRequest(url=args.url, search=args.search)
    except YtStreamError as e:
        presenter.error(str(e))
        presenter.info("Use --help for more information.")
        return EXIT_FAILURE

    resolver = resolver or StreamResolver(ydl_opts=cfg["resolver"].get("options"))
    try:
        resolution = resolver.try_resolve(request)
    except Exception as e:
        presenter.error(f"Exception occurred in resolution: {e}")
        logging.debug("[CORE] Resolution crashed", exc_info=True)
        return EXIT_FAILURE
    if not resolution.ok:
        presenter.error(str(resolution.error))
        return EXIT_FAILURE

    if args.verbose:
        presenter.audio_streams(resolution.streams)

    factory = controller_factory or PlaybackController.from_config
    controller = factory(cfg, presenter, player_path)

    try:
        outcome = controller.play(resolution.target)
    except KeyboardInterrupt:
        controller.stop()
        presenter.success("Playback stopped.")
        return EXIT_OK
    except YtStreamError as e:
        presenter.error(str(e))
        logging.debug("[CORE] Playback aborted", exc_info=True)
        return EXIT_FAILURE
    except Exception as e:
        presenter.error(f"Exception occurred in application: {e}")
        logging.debug("[CORE] Playback crashed", exc_info=True)
        return EXIT_FAILURE

    if outcome.status is PlaybackStatus.CANCELLED:
        presenter.success("Playback stopped.")
        return EXIT_OK
    if outcome.status is PlaybackStatus.COMPLETED:
        return EXIT_OK
    return EXIT_FAILURE


def main() -> None:
    try:
        code = run()
    except KeyboardInterrupt:
        code = EXIT_OK
    sys.exit(code)


if __name__ == "__main__":
    main()
