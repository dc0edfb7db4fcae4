"""
RSCP Error Types

Privacy gate failures share one exception type with a kind discriminant so
callers branch on ``err.kind`` rather than on a class hierarchy.
"""

from enum import Enum
from typing import List, Optional, Sequence

from .constants import ALLOWED_PUBLIC_FIELDS


class ErrorKind(str, Enum):
    """Privacy gate failure kinds."""
    PROTOCOL_VIOLATION = "PROTOCOL_VIOLATION"
    MISSING_ATTRIBUTE = "MISSING_ATTRIBUTE"
    INVALID_ATTRIBUTE = "INVALID_ATTRIBUTE"


class ProtocolError(ValueError):
    """
    Raised by the privacy gate.

    PROTOCOL_VIOLATION is security relevant: a forbidden field was offered
    for the registry. MISSING_ATTRIBUTE and INVALID_ATTRIBUTE are ordinary
    validation failures.
    """

    def __init__(
        self,
        kind: ErrorKind,
        field: str,
        message: str,
        fields: Optional[Sequence[str]] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.field = field
        self.fields: List[str] = list(fields) if fields else [field]
        self.message = message

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def is_violation(self) -> bool:
        return self.kind == ErrorKind.PROTOCOL_VIOLATION

    @classmethod
    def violation(cls, fields: Sequence[str]) -> "ProtocolError":
        fields = list(fields)
        message = (
            "PROTOCOL VIOLATION: Cannot store the following fields in the registry: "
            f"{', '.join(fields)}. These fields contain private data and must remain "
            f"with the issuer. Only allowed fields: {', '.join(ALLOWED_PUBLIC_FIELDS)}."
        )
        return cls(ErrorKind.PROTOCOL_VIOLATION, fields[0], message, fields)

    @classmethod
    def missing(cls, field: str) -> "ProtocolError":
        return cls(
            ErrorKind.MISSING_ATTRIBUTE,
            field,
            f'Missing required public attribute: "{field}".'
        )

    @classmethod
    def invalid(cls, field: str, reason: str) -> "ProtocolError":
        return cls(
            ErrorKind.INVALID_ATTRIBUTE,
            field,
            f'Invalid attribute "{field}": {reason}'
        )

    def __repr__(self) -> str:
        return f"ProtocolError(kind={self.kind.value}, field={self.field!r})"


class IdentifierValidationError(ValueError):
    """Invalid input to an identifier generator."""

    def __init__(self, field: str, value, constraint: str):
        super().__init__(f"Invalid {field}: {value!r}. {constraint}")
        self.field = field
        self.value = value
        self.constraint = constraint
