import os
import logging
from dataclasses import dataclass

from peertrack.extractor import extract_pairs

logger = logging.getLogger(__name__)

LOG_EXTENSION = ".log"


@dataclass
class ScanResult:
    files: int = 0
    observations: int = 0
    updated: int = 0


def list_log_files(log_dir, extension=LOG_EXTENSION):
    """Regular files directly inside `log_dir` whose name ends in `extension`."""
    with os.scandir(log_dir) as entries:
        return sorted(
            entry.path
            for entry in entries
            if entry.is_file() and entry.name.endswith(extension)
        )


def record_observation(registry, uid, ip):
    """Attach `uid` and `ip` to whichever peer owns `ip`. Returns True if it changed."""
    known = registry.owner_of(ip) is not None
    peer = registry.get_or_create(ip)
    changed = registry.observe(peer, uid=uid, ip=ip)
    return changed or not known


def scan_logs(log_dir, registry, extractor=extract_pairs, extension=LOG_EXTENSION):
    """
    Sweep `log_dir` once and feed every (uid, ip) pair found into `registry`.
    Subdirectories are skipped and files created mid-sweep may be missed.
    """
    result = ScanResult()
    try:
        paths = list_log_files(log_dir, extension)
    except OSError as e:
        logger.error(f"Error listing log directory {log_dir}: {e}")
        return result

    for path in paths:
        logger.info(f"Scanning {os.path.basename(path)}")
        result.files += 1
        try:
            for uid, ip in extractor(path):
                result.observations += 1
                try:
                    if record_observation(registry, uid, ip):
                        result.updated += 1
                except ValueError as e:
                    logger.debug(f"Skipping observation {uid}@{ip} in {path}: {e}")
        except OSError as e:
            logger.error(f"Error reading log {path}: {e}")

    logger.info(f"Identified {len(registry)} unique user/ip combos!")
    return result
