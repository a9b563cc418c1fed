"""
Exceptions raised by the automation core.

Fatal errors (configuration, validation) stop a run before the loop starts.
Per-item errors are recorded against a single candidate and never stop
the loop. Batch fetch errors end the run early with partial counters.
"""


class AutomationError(Exception):
    """Base class for automation errors."""


class ConfigurationError(AutomationError):
    """Missing credentials or unusable environment defaults."""


class ValidationError(AutomationError):
    """A malformed run configuration, with messages grouped by field."""

    def __init__(self, field_errors: dict[str, list[str]]):
        self.field_errors = field_errors
        super().__init__(self.summary())

    def summary(self) -> str:
        return ", ".join(
            message
            for messages in self.field_errors.values()
            for message in messages
        )


class PerItemError(AutomationError):
    """A failure scoped to one candidate."""

    def __init__(self, person_id: str, message: str):
        self.person_id = person_id
        super().__init__(message)


class QualificationError(PerItemError):
    """The oracle call for a candidate failed or returned garbage."""


class BatchFetchError(AutomationError):
    """The directory search for a whole page failed."""

    def __init__(self, offset: int, size: int, message: str, attempts: int = 1):
        self.offset = offset
        self.size = size
        self.attempts = attempts
        super().__init__(message)
