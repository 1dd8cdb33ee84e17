"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to appropriate HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainError):
    """Input violates one or more validation rules.

    Carries every violated rule, not just the first one.
    """

    def __init__(self, messages: list[str] | str):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = list(fields)
        super().__init__(message or f"Duplicate value for field(s): {', '.join(self.fields)}")


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class StoreError(DomainError):
    """Document store or file storage failed (infrastructure, not the caller's fault)."""
