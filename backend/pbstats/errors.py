"""Error kinds raised by pbstats operations.

Every error is recovered at the user action that triggered it and turned
into a short message; ``str(exc)`` is that message.
"""


class PbStatsError(Exception):
    """Base class for recoverable pbstats failures."""


class Unauthenticated(PbStatsError):
    """No resolved identity at the point an owner-scoped operation was attempted."""

    def __init__(self, message: str = "Not signed in") -> None:
        super().__init__(message)


class ValidationFailure(PbStatsError):
    """Locally caught bad input (form values, password rules)."""


class PersistenceFailure(PbStatsError):
    """The store rejected a write or the network failed during an insert."""


class RetrievalFailure(PbStatsError):
    """The store rejected a read or the network failed during a query."""


class IdentityError(PbStatsError):
    """The identity service rejected a request; the message is shown verbatim."""
