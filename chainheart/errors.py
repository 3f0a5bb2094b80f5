"""Error taxonomy shared by the ledger services and the HTTP layer."""


class LedgerError(Exception):
    """Base exception for ledger errors.

    Every subclass carries a stable ``kind`` string that callers can
    switch on without parsing the message.
    """

    kind = "ledger_error"


class ValidationError(LedgerError):
    """Raised when input is malformed or a required value is missing."""

    kind = "validation_error"


class DuplicateKeyError(LedgerError):
    """Raised when a transaction hash is already recorded."""

    kind = "duplicate_key"


class NotFoundError(LedgerError):
    """Raised when an operation targets an id that does not exist."""

    kind = "not_found"


class InvalidTransitionError(LedgerError):
    """Raised when a status change is not allowed from the current state."""

    kind = "invalid_transition"


class ExternalDependencyError(LedgerError):
    """Raised when a storage or notification collaborator fails."""

    kind = "external_dependency"
