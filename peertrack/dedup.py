import logging

logger = logging.getLogger(__name__)


def deduplicate(snapshot):
    """
    Collapse peers that share a UID into one record, ready to be persisted.

    The first peer seen with a given UID becomes the canonical entry and every
    later peer with the same UID is folded into it (IPs unioned, unset meta
    filled in). Peers without a UID are always emitted on their own.

    The live peers are not touched: canonical entries are copies, so the
    registry keeps every live instance for the rest of the session.
    """
    unique = []
    by_uid = {}
    for peer in snapshot:
        if peer.has_uid():
            target = by_uid.get(peer.uid)
            if target is not None:
                target.merge_from(peer)
                continue
        entry = peer.copy()
        unique.append(entry)
        if entry.has_uid():
            by_uid[entry.uid] = entry

    if len(unique) != len(snapshot):
        logger.debug(f"Deduplicated {len(snapshot)} peers into {len(unique)}")
    return unique
