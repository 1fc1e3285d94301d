import json
import os
import shutil
import logging

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".1"


def backup_path(path):
    """Emergency copy kept next to the peer file."""
    return f"{os.fspath(path)}{BACKUP_SUFFIX}"


def validate_records(records):
    if not isinstance(records, list):
        raise ValueError("Peer file is not a list.")
    for rec in records:
        if not isinstance(rec, dict):
            raise ValueError(f"Peer record is not a dict: {rec!r}")
        if not isinstance(rec.get("ips", []), list):
            raise ValueError(f"Peer record has bad ips: {rec!r}")
    return True


class JsonRecordStore:
    """
    Reads and writes the peer list as a JSON array of records.
    Every failure surfaces as OSError, whatever the underlying cause.
    """

    def read_all(self, path):
        try:
            with open(path, "r") as f:
                records = json.load(f)
            validate_records(records)
        except OSError:
            raise
        except ValueError as e:
            raise OSError(f"Malformed peer file {path}: {e}") from e
        return records

    def write_all(self, path, records):
        path = os.fspath(path)
        tmp_path = f"{path}.tmp"
        try:
            validate_records(records)

            # Write to temp file first
            with open(tmp_path, "w") as f:
                json.dump(records, f, indent=2)
                f.flush()
                os.fsync(f.fileno())

            # Validate file can be read back
            self.read_all(tmp_path)

            self._rotate_backup(path)

            # Move tmp to final atomically
            os.replace(tmp_path, path)
        except (TypeError, ValueError) as e:
            raise OSError(f"Could not serialise peers for {path}: {e}") from e
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        logger.debug(f"Wrote {len(records)} peer records to {path}")

    def _rotate_backup(self, path):
        # A broken primary must never overwrite a good backup.
        if not os.path.exists(path):
            return
        try:
            self.read_all(path)
        except OSError as e:
            logger.warning(f"Not backing up unreadable peer file {path}: {e}")
            return
        shutil.copy2(path, backup_path(path))
