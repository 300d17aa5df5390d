"""Exception taxonomy for the triage service."""


class TriageError(Exception):
    """Base class for every recoverable triage failure."""


class MalformedInput(TriageError):
    """Raised when uploaded text is empty or not valid JSON."""


class NoValidEntries(TriageError):
    """Raised when an upload parses but no entry carries a cabinet field."""


class RemoteStoreFailure(TriageError):
    """Raised when a select/upsert/delete call against the state store fails."""

    def __init__(self, operation: str, table: str, cause: Exception | None = None):
        self.operation = operation
        self.table = table
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} on '{table}' failed{detail}")
