"""
Custom exception classes for the data-access layer.

Repositories raise these instead of leaking driver exceptions, so callers can
react to "row missing" or "store down" without importing SQLAlchemy.

Exception hierarchy:
    DataAccessError (base)
    ├── StoreError                    — the primitive executor failed
    │   ├── StoreUnavailableError     — connection could not be established
    │   ├── ConstraintViolationError  — NOT NULL / FK / CHECK / UNIQUE failure
    │   └── QueryFailedError          — any other statement failure
    ├── RecordNotFoundError           — update/delete target does not exist
    ├── CreateFailedError             — inserted row could not be read back
    │   └── TransactionCreateFailedError
    ├── RetrievalFailedError          — updated row could not be read back
    ├── TransactionError              — atomic unit failed and was rolled back
    └── InvalidStatusTransitionError  — illegal transaction status change

Field validation is deliberately absent from this list: rejected field names
are stripped and logged, never raised.
"""


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class DataAccessError(Exception):
    """Base exception for all data-access errors."""

    def __init__(self, detail: str = "A data access error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Store (primitive executor) errors
# ---------------------------------------------------------------------------

class StoreError(DataAccessError):
    """
    Raised by the primitive executor when a statement cannot be run.

    Attributes:
        original: The underlying driver exception, if any.
    """

    def __init__(self, detail: str, original: BaseException | None = None):
        self.original = original
        super().__init__(detail)


class StoreUnavailableError(StoreError):
    """Raised when the connection to the store cannot be (re-)established."""

    def __init__(self, url: str, original: BaseException | None = None):
        self.url = url
        super().__init__(f"Failed to connect to database at {url}", original)


class ConstraintViolationError(StoreError):
    """Raised when the store rejects a write because of a constraint."""


class QueryFailedError(StoreError):
    """Raised when the store rejects a statement for any other reason."""


# ---------------------------------------------------------------------------
# Repository errors
# ---------------------------------------------------------------------------

class RecordNotFoundError(DataAccessError):
    """Raised when an update target row does not exist."""

    def __init__(self, table: str, record_id: str):
        self.table = table
        self.record_id = record_id
        super().__init__(f"Record with id {record_id} not found in {table}")


class CreateFailedError(DataAccessError):
    """Raised when a freshly inserted row cannot be fetched back."""

    def __init__(self, table: str, detail: str | None = None):
        self.table = table
        super().__init__(detail or f"Failed to create record in {table}")


class TransactionCreateFailedError(CreateFailedError):
    """Raised when a balance-adjusting transaction is missing after commit."""

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(
            "transactions",
            f"Failed to create transaction {transaction_id}",
        )


class RetrievalFailedError(DataAccessError):
    """Raised when an updated row cannot be fetched back."""

    def __init__(self, table: str, record_id: str):
        self.table = table
        self.record_id = record_id
        super().__init__(f"Failed to retrieve updated record {record_id} from {table}")


class TransactionError(DataAccessError):
    """
    Raised when an atomic unit of work fails.

    The unit has been rolled back unless `rollback_error` is set, in which
    case the rollback itself failed too and both errors are reported.

    Attributes:
        original: The error that aborted the unit.
        rollback_error: The error raised while rolling back, if any.
    """

    def __init__(
        self,
        original: BaseException,
        rollback_error: BaseException | None = None,
    ):
        self.original = original
        self.rollback_error = rollback_error
        detail = f"Transaction failed: {original}"
        if rollback_error is not None:
            detail += f"; rollback also failed: {rollback_error}"
        super().__init__(detail)


class InvalidStatusTransitionError(DataAccessError):
    """Raised when a transaction status change is not allowed."""

    def __init__(self, record_id: str, current: str, requested: str):
        self.record_id = record_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Transaction {record_id} cannot move from {current} to {requested}"
        )
