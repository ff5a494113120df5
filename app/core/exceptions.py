"""
Domain errors raised by the registry, synchronizer, record store and services.
HTTP status codes are assigned by the exception handlers in app.main.
"""

from typing import Optional


class PlatformError(Exception):
    """Base class for every error the platform reports to callers"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ModelValidationError(PlatformError):
    """Malformed or incomplete model definition; rejected before any mutation"""

    status_code = 400


class RecordValidationError(PlatformError):
    """Record payload value that cannot be stored in its declared column type"""

    status_code = 400


class NotFoundError(PlatformError):
    status_code = 404


class ModelNotFoundError(NotFoundError):
    def __init__(self, model_name: str):
        super().__init__(f"Model '{model_name}' not found")
        self.model_name = model_name


class RecordNotFoundError(NotFoundError):
    def __init__(self, model_name: str, record_id: int):
        super().__init__(f"Record {record_id} not found in '{model_name}'")
        self.model_name = model_name
        self.record_id = record_id


class AccessDeniedError(PlatformError):
    """RBAC refusal, carrying the decision that produced it"""

    status_code = 403

    def __init__(self, decision):
        super().__init__(f"Forbidden: {decision.reason}")
        self.decision = decision


class StorageConstraintError(PlatformError):
    """Unique or required constraint violated by the backing store"""

    status_code = 409


class SynchronizationError(PlatformError):
    """DDL execution failed; the model stays registered"""

    def __init__(self, table_name: str, message: str, cause: Optional[Exception] = None):
        super().__init__(f"Failed to synchronize table '{table_name}': {message}")
        self.table_name = table_name
        self.cause = cause
