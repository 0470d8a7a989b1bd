"""Custom exception classes for peridot."""

from typing import Any


class PeridotError(Exception):
    """Base exception for peridot."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class MalformedInputError(PeridotError):
    """Structurally or semantically invalid input."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class InvalidDomainValueError(PeridotError):
    """An enum-coded value fell outside its domain.

    ``default`` holds the enum's zero value so a caller may choose to
    ignore the error and carry on with it.
    """

    def __init__(self, enum_name: str, value: Any, default: Any):
        self.enum_name = enum_name
        self.value = value
        self.default = default
        super().__init__(
            "INVALID_DOMAIN_VALUE",
            f"invalid {enum_name} {'integer' if isinstance(value, int) else 'string'} {value}",
            details={"enum": enum_name, "value": value},
            status_code=400,
        )


class NotFoundError(PeridotError):
    """A lookup or single-row mutation matched nothing."""

    def __init__(self, entity: str, entity_id: Any, field: str = "ID"):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            "NOT_FOUND",
            f"no {entity} found with {field} {entity_id}",
            status_code=404,
        )


class ReferentialIntegrityError(PeridotError):
    """A write referenced a row that does not exist, or was still referenced."""

    def __init__(self, relationship: str, message: str):
        self.relationship = relationship
        super().__init__(
            "REFERENTIAL_INTEGRITY",
            message,
            details={"relationship": relationship},
            status_code=409,
        )


class DuplicateKeyError(PeridotError):
    """A write collided with a unique key."""

    def __init__(self, message: str, details=None):
        super().__init__("CONFLICT", message, details, status_code=409)


class StoreTimeoutError(PeridotError):
    """A store round trip took longer than the configured limit."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            "STORE_TIMEOUT",
            f"{operation} did not complete within {timeout}s",
            status_code=504,
        )
