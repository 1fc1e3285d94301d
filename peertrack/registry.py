"""
registry.py

Live set of tracked peers, shared between the log scanner and the saver thread.
Writers serialise on one lock; readers take snapshots of an immutable tuple that
is swapped on every insert, so iteration never sees a half-applied change.
"""

import threading
import logging

from peertrack.peer import Peer, parse_ip

logger = logging.getLogger(__name__)


class PeerRegistry:
    def __init__(self, peers=()):
        self._lock = threading.Lock()
        self._peers = ()
        self._owners = {}  # IPv4Address -> Peer
        for peer in peers:
            self.add(peer)

    def __len__(self):
        return len(self._peers)

    def __iter__(self):
        return iter(self._peers)

    def snapshot(self):
        """Point-in-time view; later inserts are not reflected in it."""
        return self._peers

    def has_dirty(self):
        return any(p.dirty for p in self._peers)

    def owner_of(self, ip):
        return self._owners.get(parse_ip(ip))

    def find_by_uid(self, uid):
        return [p for p in self._peers if p.uid == uid]

    def _claim(self, peer, addr):
        owner = self._owners.setdefault(addr, peer)
        if owner is not peer:
            logger.debug(f"{addr} already owned by {owner!r}, not reassigning")
            return False
        return True

    def add(self, peer):
        """Insert an existing peer (e.g. one read from disk)."""
        with self._lock:
            for addr in sorted(peer.ips):
                self._claim(peer, addr)
            self._peers = self._peers + (peer,)
        return peer

    def get_or_create(self, ip):
        """
        Return the peer that owns `ip`, creating (and marking dirty) a new
        anonymous peer holding only that address if nobody does.
        """
        addr = parse_ip(ip)
        owner = self._owners.get(addr)
        if owner is not None:
            return owner

        with self._lock:
            # Re-check under the lock, another thread may have won the race.
            owner = self._owners.get(addr)
            if owner is not None:
                return owner
            peer = Peer(ips=[addr], dirty=True)
            self._owners[addr] = peer
            self._peers = self._peers + (peer,)
        logger.debug(f"New peer for {addr}")
        return peer

    def observe(self, peer, uid=None, ip=None):
        """
        Attach `uid` and/or `ip` to `peer`. An IP owned by another peer is
        left with its owner. Returns True if the peer changed.
        """
        changed = False
        with self._lock:
            if uid is not None:
                changed |= peer.set_uid(uid)
            if ip is not None:
                addr = parse_ip(ip)
                if self._claim(peer, addr):
                    changed |= peer.add_ip(addr)
        return changed
