"""
Custom exceptions for the duplicate detection engine.

Pure components (scorer, clusterer) only raise these for caller contract
violations. Failures coming from the record store are caught by the
resolution coordinator and reported as results instead.
"""


class DedupEngineError(Exception):
    """Base exception for all duplicate detection engine errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidRecordError(DedupEngineError):
    """A record in the snapshot violates the input contract."""

    def __init__(self, message: str, record_id=None, index: int = None):
        super().__init__(message, {
            'record_id': record_id,
            'index': index
        })
        self.record_id = record_id
        self.index = index


class RecordNotFoundError(DedupEngineError):
    """Requested record was not found in the store."""

    def __init__(self, record_id):
        super().__init__(f"Record '{record_id}' not found", {'record_id': record_id})
        self.record_id = record_id


class StoreError(DedupEngineError):
    """Error raised by a record store while mutating records."""

    def __init__(self, operation: str, record_id=None, cause: str = None):
        message = f"Store error during {operation}"
        if record_id is not None:
            message += f" for record '{record_id}'"
        if cause:
            message += f": {cause}"
        super().__init__(message, {
            'operation': operation,
            'record_id': record_id,
            'cause': cause
        })
        self.operation = operation
        self.record_id = record_id


class AnalysisCancelledError(DedupEngineError):
    """The clustering pass was cancelled before it completed."""

    def __init__(self, leaders_processed: int = 0, total_records: int = 0):
        super().__init__(
            f"Duplicate analysis cancelled after {leaders_processed} of {total_records} records",
            {'leaders_processed': leaders_processed, 'total_records': total_records}
        )
        self.leaders_processed = leaders_processed
        self.total_records = total_records


class SessionStateError(DedupEngineError):
    """Operation is not allowed in the current review session state."""

    def __init__(self, operation: str, state: str):
        super().__init__(f"Cannot {operation} while session is {state}", {
            'operation': operation,
            'state': state
        })
        self.operation = operation
        self.state = state


class InvalidResolutionError(DedupEngineError):
    """A merge or delete request does not match the group it targets."""
    pass


class ConfigurationError(DedupEngineError):
    """Error in engine configuration or tunable parameters."""
    pass
