"""Exception types raised by the migration engine."""

from typing import Optional


class MigrationError(Exception):
    """Base class for recoverable migration failures.

    Every failure that should end a run with a free-text message and a
    non-zero exit status derives from this class.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class ConfigurationError(MigrationError):
    """Missing or conflicting configuration fields."""

    def __init__(self, message: str):
        super().__init__(message, stage="configuration")


class DiscoveryError(MigrationError):
    """The source columns could not be determined."""

    def __init__(self, message: str):
        super().__init__(message, stage="discovery")


class SourceError(MigrationError):
    """The source could not be opened or queried."""

    def __init__(self, message: str):
        super().__init__(message, stage="source")


class RowError(MigrationError):
    """A single source row could not be scanned into a record."""

    def __init__(self, message: str, row_number: Optional[int] = None):
        super().__init__(message, stage="read")
        self.row_number = row_number

    def __str__(self) -> str:
        if self.row_number is not None:
            return f"[{self.stage}] row {self.row_number}: {self.message}"
        return super().__str__()


class WriteError(MigrationError):
    """A batch could not be written to the target."""

    def __init__(self, message: str, batch_index: Optional[int] = None):
        super().__init__(message, stage="write")
        self.batch_index = batch_index


class CoercionContractError(TypeError):
    """A driver returned a value kind the coercer does not know.

    Raised for programming errors, never for bad data. Not a MigrationError.
    """

    def __init__(self, value: object):
        super().__init__(
            f"Cannot coerce driver value of type {type(value).__name__}: {value!r}"
        )
        self.value = value
