"""Error types raised by ledger operations."""


class LedgerError(Exception):
    """Base class for ledger errors."""


class ValidationError(LedgerError):
    """User input rejected for a single field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class DuplicateNameError(LedgerError):
    """A registry already contains the name."""

    def __init__(self, name: str, noun: str = "name") -> None:
        super().__init__(f"That {noun} already exists.")
        self.name = name


class RecordNotFoundError(LedgerError):
    """No record with the given id."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class SnapshotNotFoundError(RecordNotFoundError):
    """No usable snapshot with the given id."""

    def __init__(self, snapshot_id: str) -> None:
        super().__init__("snapshot", snapshot_id)


class ConfirmationRequiredError(LedgerError):
    """A destructive action was attempted without the confirmation phrase."""
