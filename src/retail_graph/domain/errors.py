"""Error taxonomy shared by the API and the store adapters.

Client input errors are recovered at the request boundary and reported
to the caller. Store errors are scoped to the failing request and never
terminate the process.
"""

from __future__ import annotations


class ClientInputError(Exception):
    """Raised when a request payload is malformed or semantically invalid."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class UnknownReferenceError(ClientInputError):
    """Raised when a payload references a node uid that does not exist."""

    def __init__(self, field: str, uid: str) -> None:
        self.uid = uid
        super().__init__(field, f"No node with uid '{uid}'")


class StoreError(Exception):
    """Base class for graph store failures."""

    detail = "Graph store error"


class StoreUnavailableError(StoreError):
    """The graph store could not be reached."""

    detail = "Graph store unavailable"


class StoreQueryError(StoreError):
    """A query or mutation failed while executing against the store."""

    detail = "Graph store query failed"
