import argparse
import sys
import time
import logging

from peertrack.settings import load_settings
from peertrack.tracker import PeerTracker

logger = logging.getLogger(__name__)


def configure_logging(level="INFO", verbose=False):
    logging.basicConfig(
        stream=sys.stdout,
        level=logging.DEBUG if verbose else getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def watch(tracker, rescan_secs):
    """Keep the saver running and re-sweep the log directory periodically."""
    tracker.start()
    try:
        while True:
            result = tracker.check_logs()
            logger.info(
                f"Sweep done: files={result.files} observations={result.observations} "
                f"updated={result.updated}"
            )
            time.sleep(rescan_secs)
    except KeyboardInterrupt:
        logger.info("Stopping...")
    finally:
        tracker.stop(timeout=5)
        tracker.save()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Peer Tracker: persistent UID <-> IP mapping from game logs"
    )
    parser.add_argument("--config", type=str, default=None, help="Settings TOML")
    parser.add_argument("--peer-file", type=str, default=None, help="Peer list JSON")
    parser.add_argument("--log-dir", type=str, default=None, help="Directory of .log files")
    parser.add_argument(
        "--scan", action="store_true", help="Sweep the log directory once and save"
    )
    parser.add_argument("--view-state", action="store_true", help="Print tracked peers")
    parser.add_argument(
        "--watch", action="store_true", help="Run the saver and re-sweep logs until interrupted"
    )
    parser.add_argument(
        "--rescan-secs", type=float, default=60.0, help="Seconds between sweeps in --watch"
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    settings = load_settings(args.config)
    configure_logging(settings.logging.level, args.verbose)

    tracker = PeerTracker(settings, peer_file=args.peer_file, log_dir=args.log_dir)
    tracker.load()

    if args.view_state:
        tracker.view_state()
    elif args.scan:
        tracker.check_logs()
        if not tracker.save():
            return 1
    elif args.watch:
        watch(tracker, args.rescan_secs)
    else:
        parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
