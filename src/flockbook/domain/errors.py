"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input, rejected before any store mutation."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class PersistenceError(DomainError):
    """Underlying store operation failed."""


class InconsistencyError(DomainError):
    """Derived lot or cash state violates its invariants."""


def record_not_found(kind: str, record_id: int) -> str:
    """Return message for a missing record."""
    return f"{kind.capitalize()} {record_id} not found"


def unknown_product_type(product_type: str) -> str:
    """Return message for a product type outside the configured list."""
    return f"Unknown product type '{product_type}'"


def must_be_positive(field_name: str) -> str:
    """Return message for a non-positive numeric field."""
    return f"{field_name} must be greater than zero"


def must_not_be_negative(field_name: str) -> str:
    """Return message for a negative numeric field."""
    return f"{field_name} must not be negative"


def required_field(field_name: str) -> str:
    """Return message for an empty required field."""
    return f"{field_name} is required"


def due_log_not_found(due_id: int, log_id: int) -> str:
    """Return message for a missing due log entry."""
    return f"Log {log_id} not found on due record {due_id}"
