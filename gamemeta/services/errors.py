class SyncError(Exception):
    """Base class for every failure the metadata sync pipeline reports."""


class UnknownEntity(SyncError):
    """A contributor or game id the server does not know about."""

    def __init__(self, kind: str, key: object) -> None:
        super().__init__(f"Unknown {kind}: {key}")
        self.kind = kind
        self.key = key


class EmptyObservation(SyncError):
    """A submission where every numeric field is missing."""


class Unauthorized(SyncError):
    """Missing, malformed or expired contributor token."""


class ExternalSourceMiss(SyncError):
    """The external source has no match for the game.

    Not an error for the scanner: the game stays eligible for the next scan.
    """


class TransportFailure(SyncError):
    """Network, timeout or malformed-response failure talking to a remote."""
