# aasdiscovery/errors.py
"""
Error kinds raised by the discovery index.

Callers can tell invalid input, an absent record and a storage fault
apart by type; each also subclasses the builtin exception it resembles.
"""


class DiscoveryError(Exception):
    """Base class for all discovery index errors."""


class InvalidInputError(DiscoveryError, ValueError):
    """Rejected input: empty id, empty name/value, bad limit or cursor."""


class NotFoundError(DiscoveryError, KeyError):
    """No record is registered for the requested AAS id."""

    def __init__(self, aas_id: str):
        super().__init__(aas_id)
        self.aas_id = aas_id

    def __str__(self) -> str:
        return f"No asset links registered for AAS: {self.aas_id}"


class StorageError(DiscoveryError, RuntimeError):
    """The durable storage layer failed."""


class PayloadTooLargeError(InvalidInputError):
    """The request body exceeds the configured maximum size."""
