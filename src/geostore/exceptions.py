class GeoStoreError(Exception):
    """Base exception for all GeoStore harness errors."""

    pass


class BootstrapError(GeoStoreError):
    """Raised when the database or schema could not be created or verified."""

    pass


class SingletonInitError(GeoStoreError):
    """Raised when the shared harness context could not be constructed."""

    pass


class PurgePlanError(GeoStoreError):
    """Raised when a purge dependency table is inconsistent (unknown entity or cycle)."""

    pass


class TeardownError(GeoStoreError):
    """Base class for failures while emptying the database before a test."""

    def __init__(self, entity: str, message: str) -> None:
        super().__init__(message)
        self.entity = entity


class TeardownRowError(TeardownError):
    """Raised when a single row could not be removed."""

    def __init__(self, entity: str, row_id: object, reason: str) -> None:
        super().__init__(entity, f"{entity} row {row_id!r} not removed: {reason}")
        self.row_id = row_id
        self.reason = reason


class TeardownCountInvariantError(TeardownError):
    """Raised when rows remain in a table after its purge."""

    def __init__(self, entity: str, remaining: int) -> None:
        super().__init__(entity, f"{entity} has not been properly deleted: {remaining} row(s) remain")
        self.remaining = remaining


class TeardownQueryError(TeardownError):
    """Raised when listing or counting an entity's rows fails during a purge."""

    def __init__(self, entity: str, operation: str, reason: str) -> None:
        super().__init__(entity, f"{entity} {operation}() failed: {reason}")
        self.operation = operation
        self.reason = reason
