class PeerTrackError(Exception):
    pass


class LoadError(PeerTrackError):
    """Neither the peer file nor its backup could be read."""

    def __init__(self, path, backup, causes=()):
        self.path = path
        self.backup = backup
        self.causes = list(causes)
        reasons = "; ".join(str(c) for c in self.causes) or "unknown"
        super().__init__(f"Could not load peers from {path} or {backup}: {reasons}")


class SaveError(PeerTrackError):
    """The record store refused a write."""

    def __init__(self, path, cause=None):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not save peers to {path}: {cause}")
