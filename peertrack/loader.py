import logging
from dataclasses import dataclass
from typing import Optional

from peertrack.errors import LoadError
from peertrack.peer import Peer
from peertrack.record_store import backup_path

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    source: Optional[str]  # "primary", "backup" or None
    count: int = 0
    error: Optional[LoadError] = None


def _peers_from_records(records):
    peers = []
    for rec in records:
        try:
            peers.append(Peer.from_record(rec))
        except ValueError as e:
            raise OSError(f"Bad peer record {rec!r}: {e}") from e
    return peers


def load_peers(store, path, registry, save):
    """
    Fill `registry` from the peer file at `path`, falling back once to its
    backup. When the backup was used, `save()` is called straight away so
    the primary file is rewritten from the recovered peers.
    """
    backup = backup_path(path)
    causes = []
    for source, check in (("primary", path), ("backup", backup)):
        try:
            peers = _peers_from_records(store.read_all(check))
        except OSError as e:
            causes.append(e)
            if source == "primary":
                logger.warning(f"No usable peers file at {check} ({e}), checking backup")
            continue

        for peer in peers:
            registry.add(peer)
        logger.info(f"Loaded {len(peers)} tracked users from {check}")

        if source == "backup":
            if save():
                logger.info(f"Restored {path} from backup")
            else:
                logger.error(f"Could not restore {path} from backup, will retry on next change")
        return LoadResult(source=source, count=len(peers))

    err = LoadError(path, backup, causes)
    logger.warning(f"{err}. Starting with an empty peer list.")
    return LoadResult(source=None, count=0, error=err)
