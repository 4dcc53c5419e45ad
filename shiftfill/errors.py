class ShiftFillError(Exception):
    """Base class for errors raised by the fill engine and its stores."""


class InvalidDate(ShiftFillError, ValueError):
    def __init__(self, value: object, detail: str = "Invalid date.") -> None:
        super().__init__(f"{detail} ({value!r})")
        self.value = value


class RotationError(ShiftFillError, ValueError):
    pass


class FillValidationError(ShiftFillError):
    """Raised before any I/O when fill parameters cannot be used."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ProcessingBlocked(ShiftFillError):
    """Existing records in the period were already checked or exported."""

    def __init__(self, processed_count: int, total_count: int) -> None:
        self.processed_count = processed_count
        self.total_count = total_count
        super().__init__(
            f"Cannot replace records: {processed_count} of {total_count} records "
            "have been processed (checked or exported). Manual review required."
        )


class StoreUnavailableError(ShiftFillError):
    pass


class RecordWriteError(ShiftFillError):
    pass
