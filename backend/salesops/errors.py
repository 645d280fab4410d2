"""Error kinds raised by the sales managers and their HTTP mapping."""

from __future__ import annotations


class SalesError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(SalesError):
    """A referenced client, employee, product or document does not exist."""

    status_code = 404

    @classmethod
    def for_id(cls, kind: str, ident) -> "NotFoundError":
        return cls(f"{kind} not found with id: {ident}")


class BusinessRuleError(SalesError):
    """The document's current state forbids the requested operation."""

    status_code = 400


class ConflictError(BusinessRuleError):
    """Edit or delete of a document that has become immutable."""

    status_code = 409


class ValidationFailure(SalesError):
    """Malformed or missing input, detected before any write."""

    status_code = 400
