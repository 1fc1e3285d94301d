import copy
import logging
import re

import tomli

from peertrack.extractor import DEFAULT_PATTERN, compile_pattern
from peertrack.log_scanner import LOG_EXTENSION
from peertrack.syncer import POLL_INTERVAL_SECS

logger = logging.getLogger(__name__)

DEFAULTS = {
    "storage": {"peer_file": "peers.json"},
    "logs": {
        "directory": "",
        "extension": LOG_EXTENSION,
        "pattern": DEFAULT_PATTERN,
    },
    "sync": {"interval_secs": POLL_INTERVAL_SECS},
    "logging": {"level": "INFO"},
}


def merge_settings(base, override):
    """Deep-merge `override` on top of `base`, returning a new dict."""
    merged = copy.deepcopy(base)
    for key, val in override.items():
        if isinstance(val, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], val)
        else:
            merged[key] = val
    return merged


class Settings:
    """
    Config sections as attributes (`settings.sync.interval_secs`), with
    anything the file leaves out taken from DEFAULTS.
    """

    def __init__(self, data=None, defaults=DEFAULTS):
        self._data = merge_settings(defaults, data or {})

    def __getattr__(self, key):
        if key.startswith("_"):
            raise AttributeError(key)
        try:
            val = self._data[key]
        except KeyError:
            raise AttributeError(f"Unknown setting '{key}'") from None
        return Settings(val, defaults={}) if isinstance(val, dict) else val

    def __repr__(self):
        return f"Settings({self._data!r})"

    def get(self, key, default=None):
        val = self._data.get(key, default)
        return Settings(val, defaults={}) if isinstance(val, dict) else val

    def to_dict(self):
        return copy.deepcopy(self._data)

    def validate(self):
        interval = self.sync.interval_secs
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
            raise ValueError(f"[sync] interval_secs must be a positive number, got {interval!r}")
        if not str(self.storage.peer_file):
            raise ValueError("[storage] peer_file must not be empty")
        try:
            compile_pattern(self.logs.pattern)
        except re.error as e:
            raise ValueError(f"[logs] pattern is not a valid regex: {e}") from e
        return self


def load_settings(path=None):
    """Read the TOML config at `path` (if any) on top of DEFAULTS."""
    data = {}
    if path is not None:
        with open(path, "rb") as f:
            data = tomli.load(f)
        logger.debug(f"Loaded settings from {path}")
    return Settings(data).validate()
