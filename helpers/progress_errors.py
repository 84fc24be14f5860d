"""
Typed failures of progress tracking.

The store and tracker raise these instead of leaking botocore or pydantic
exceptions, so the API layer can map each one to a status code.
"""


class ProgressError(Exception):
    status_code = 500


class ProgressNotFoundError(ProgressError):
    """Course structure or progress record does not exist"""
    status_code = 404


class ProgressConflictError(ProgressError):
    """A concurrent write changed the record between read and write"""
    status_code = 409


class ProgressValidationError(ProgressError):
    """Malformed input, rejected before any mutation"""
    status_code = 400


class PersistenceUnavailableError(ProgressError):
    """DynamoDB timed out, throttled, or could not be reached"""
    status_code = 503
