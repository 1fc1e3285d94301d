"""
syncer.py

Background saver for the peer registry. Polls for dirty peers on a fixed
interval and writes a deduplicated copy through the record store. Only one
save runs at a time; a second caller is turned away instead of waiting.
"""

import enum
import threading
import logging

from peertrack.dedup import deduplicate
from peertrack.errors import SaveError

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECS = 0.1


class SyncState(enum.Enum):
    IDLE = "idle"
    SAVING = "saving"


class BackgroundSyncer:
    def __init__(self, registry, store, path, interval=POLL_INTERVAL_SECS):
        self.registry = registry
        self.store = store
        self.path = path
        self.interval = interval
        self._save_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread = None
        self.saves = 0
        self.failures = 0
        self.rejected = 0
        self.last_error = None

    @property
    def state(self):
        return SyncState.SAVING if self._save_lock.locked() else SyncState.IDLE

    def save(self):
        """
        Persist the current snapshot. Returns True on success, False if the
        store failed or another save is already running.
        """
        if not self._save_lock.acquire(blocking=False):
            self.rejected += 1
            logger.warning("Peer file is busy!")
            return False
        try:
            return self._save_snapshot()
        finally:
            self._save_lock.release()

    def _save_snapshot(self):
        snapshot = self.registry.snapshot()
        revisions = [(peer, peer.revision) for peer in snapshot]
        unique = deduplicate(snapshot)
        logger.info(f"Saving {len(unique)} peers ({len(snapshot)} tracked)")
        try:
            self.store.write_all(self.path, [p.to_record() for p in unique])
        except OSError as e:
            self.failures += 1
            self.last_error = SaveError(self.path, e)
            logger.error(str(self.last_error))
            return False

        for peer, revision in revisions:
            peer.mark_saved(revision)
        self.saves += 1
        self.last_error = None
        return True

    def poll_once(self):
        """One loop iteration. Returns the save result, or None if nothing to do."""
        if self.registry.has_dirty() and self.state is SyncState.IDLE:
            return self.save()
        return None

    def run(self):
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Peer saver poll failed")
            self._stop.wait(self.interval)

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="PeerSaver", daemon=True)
        self._thread.start()
        logger.debug(f"Peer saver started, polling every {self.interval}s")
        return self._thread

    def stop(self, timeout=None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
