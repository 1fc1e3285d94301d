import ipaddress
import threading
import logging

logger = logging.getLogger(__name__)


def parse_ip(ip):
    """Normalise a str/IPv4Address into an IPv4Address, or raise ValueError."""
    if isinstance(ip, ipaddress.IPv4Address):
        return ip
    addr = ipaddress.ip_address(str(ip).strip())
    if not isinstance(addr, ipaddress.IPv4Address):
        raise ValueError(f"Not an IPv4 address: {ip}")
    return addr


class Peer:
    """
    One tracked participant: an optional UID plus every IPv4 address
    it has been seen on. `meta` holds caller-owned data (ratings etc).
    """

    def __init__(self, uid=None, ips=(), meta=None, dirty=True):
        self._lock = threading.Lock()
        self.uid = uid
        self.ips = {parse_ip(ip) for ip in ips}
        self.meta = dict(meta or {})
        self.dirty = dirty
        self.revision = 0

    def __repr__(self):
        with self._lock:
            ips = ", ".join(str(ip) for ip in sorted(self.ips))
            return f"Peer(uid={self.uid!r}, ips=[{ips}], dirty={self.dirty})"

    def has_uid(self):
        return self.uid is not None

    def has_ip(self, ip):
        return parse_ip(ip) in self.ips

    def _touch(self):
        self.dirty = True
        self.revision += 1

    def set_uid(self, uid):
        """Attach a UID if none is set yet. Returns True if it changed."""
        if uid is None:
            return False
        with self._lock:
            if self.uid is not None:
                if self.uid != uid:
                    logger.debug(f"Ignoring uid {uid} for peer already known as {self.uid}")
                return False
            self.uid = uid
            self._touch()
            return True

    def add_ip(self, ip):
        addr = parse_ip(ip)
        with self._lock:
            if addr in self.ips:
                return False
            self.ips.add(addr)
            self._touch()
            return True

    def set_meta(self, key, value):
        with self._lock:
            if key in self.meta and self.meta[key] == value:
                return False
            self.meta[key] = value
            self._touch()
            return True

    def mark_saved(self, revision):
        """Clear dirty, unless the peer changed after `revision` was read."""
        with self._lock:
            if self.revision != revision:
                return False
            self.dirty = False
            return True

    def _fields(self):
        with self._lock:
            return self.uid, set(self.ips), dict(self.meta), self.dirty, self.revision

    def copy(self):
        uid, ips, meta, dirty, revision = self._fields()
        dup = Peer(uid=uid, ips=ips, meta=meta, dirty=dirty)
        dup.revision = revision
        return dup

    def merge_from(self, other):
        """
        Fold `other` into this peer: union of IPs, and any meta key that is
        unset here takes other's value. Existing values always win.
        """
        # Read other first so the two locks are never held together.
        _, other_ips, other_meta, other_dirty, _ = other._fields()
        with self._lock:
            before = (len(self.ips), len(self.meta))
            self.ips |= other_ips
            for key, value in other_meta.items():
                if self.meta.get(key) is None and value is not None:
                    self.meta[key] = value
            if other_dirty:
                self.dirty = True
            return (len(self.ips), len(self.meta)) != before

    def to_record(self):
        uid, ips, meta, _, _ = self._fields()
        return {
            "uid": uid,
            "ips": [str(ip) for ip in sorted(ips)],
            "meta": meta,
        }

    @classmethod
    def from_record(cls, record):
        if not isinstance(record, dict):
            raise ValueError("Peer record is not a dict.")
        uid = record.get("uid")
        if uid is not None and not isinstance(uid, str):
            raise ValueError(f"Peer uid must be a string, got {uid!r}")
        ips = record.get("ips", [])
        if not isinstance(ips, list):
            raise ValueError("Peer ips must be a list.")
        meta = record.get("meta", {})
        if not isinstance(meta, dict):
            raise ValueError("Peer meta must be a dict.")
        return cls(uid=uid, ips=ips, meta=meta, dirty=False)
