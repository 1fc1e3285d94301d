import re
import logging

logger = logging.getLogger(__name__)

# SteamID64 followed, somewhere later on the line, by the peer's address.
DEFAULT_PATTERN = r"(?P<uid>\b7656\d{13}\b).*?(?P<ip>\b\d{1,3}(?:\.\d{1,3}){3}\b)"


def compile_pattern(pattern=DEFAULT_PATTERN):
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    missing = {"uid", "ip"} - set(regex.groupindex)
    if missing:
        raise ValueError(f"Log pattern needs named groups: {sorted(missing)}")
    return regex


def extract_pairs(path, pattern=DEFAULT_PATTERN):
    """Lazily yield (uid, ip) for every line of `path` matching `pattern`."""
    regex = compile_pattern(pattern)
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            match = regex.search(line)
            if match:
                yield match.group("uid"), match.group("ip")
