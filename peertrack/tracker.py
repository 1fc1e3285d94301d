"""
tracker.py

Keeps a persistent UID <-> IP mapping for peers seen in game logs, so that
ratings follow a player across dynamic IP changes. Owns the registry, the
record store and the background saver; nothing here is process-global.
"""

import os
import logging
from functools import partial

from peertrack.extractor import extract_pairs
from peertrack.loader import load_peers
from peertrack.log_scanner import scan_logs
from peertrack.record_store import JsonRecordStore
from peertrack.registry import PeerRegistry
from peertrack.settings import load_settings
from peertrack.syncer import BackgroundSyncer

logger = logging.getLogger(__name__)


def default_log_dir():
    """Parent of %APPDATA%, or None when that is not set."""
    appdata = os.getenv("APPDATA")
    if not appdata:
        return None
    return os.path.dirname(os.path.abspath(appdata.rstrip("/\\")))


class PeerTracker:
    def __init__(self, settings=None, peer_file=None, log_dir=None, store=None):
        self.settings = settings or load_settings()
        self.peer_file = peer_file or self.settings.storage.peer_file
        self.log_dir = log_dir or self.settings.logs.directory or default_log_dir()
        self.store = store or JsonRecordStore()
        self.registry = PeerRegistry()
        self.syncer = BackgroundSyncer(
            self.registry,
            self.store,
            self.peer_file,
            interval=self.settings.sync.interval_secs,
        )
        self.load_result = None

    def load(self):
        """Read the peer list into memory, restoring the primary from backup if needed."""
        self.load_result = load_peers(
            self.store, self.peer_file, self.registry, save=self.syncer.save
        )
        return self.load_result

    def start(self):
        """Start the background saver thread."""
        return self.syncer.start()

    def stop(self, timeout=None):
        self.syncer.stop(timeout)

    def save(self):
        return self.syncer.save()

    def get_peer(self, ip):
        return self.registry.get_or_create(ip)

    def check_logs(self):
        if not self.log_dir:
            raise ValueError("No log directory configured")
        extractor = partial(extract_pairs, pattern=self.settings.logs.pattern)
        return scan_logs(
            self.log_dir,
            self.registry,
            extractor=extractor,
            extension=self.settings.logs.extension,
        )

    def view_state(self):
        for peer in self.registry.snapshot():
            logger.info(repr(peer))
        return self.registry.snapshot()
