"""Custom exceptions for ormgen."""

from __future__ import annotations

from typing import Sequence


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaValidationError(SchemaError):
    """Raised when a schema snapshot or model fails validation."""

    def __init__(
        self,
        message: str,
        schema_path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, schema_path)


class DialectError(SchemaError):
    """Raised for dialect-specific issues."""

    def __init__(
        self,
        message: str,
        dialect: str,
        schema_path: str | None = None,
    ) -> None:
        self.dialect = dialect
        super().__init__(f"Dialect '{dialect}': {message}", schema_path)


class UnsupportedTypeError(DialectError):
    """Raised when a column type is outside the dialect's type catalog."""

    def __init__(
        self,
        dialect: str,
        type_name: str,
        context: str | None = None,
    ) -> None:
        self.type_name = type_name
        self.context = context
        message = f"unsupported column type '{type_name}'"
        if context:
            message = f"{message} ({context})"
        super().__init__(message, dialect)


class UnsupportedTypesError(SchemaError):
    """Raised once per run with every column whose type could not be mapped."""

    def __init__(self, errors: Sequence[UnsupportedTypeError]) -> None:
        self.errors = list(errors)
        lines = "\n".join(f"  - {error}" for error in self.errors)
        super().__init__(f"{len(self.errors)} column type(s) could not be mapped:\n{lines}")


class UnresolvedForeignKeyTargetError(SchemaError):
    """Raised when a foreign key references a table missing from the model."""

    def __init__(self, table: str, target: str, constraint: str | None = None) -> None:
        self.table = table
        self.target = target
        self.constraint = constraint
        label = f"foreign key '{constraint}'" if constraint else "foreign key"
        super().__init__(
            f"Table '{table}': {label} references unknown table '{target}'"
        )


class IdentifierCollisionError(SchemaError):
    """Raised when no free identifier remains after disambiguation."""

    def __init__(self, identifier: str, scope: str) -> None:
        self.identifier = identifier
        self.scope = scope
        super().__init__(
            f"Cannot find a free name for '{identifier}' in {scope}"
        )


class OptionError(ValueError):
    """Raised for unknown generator names or option tokens."""

    def __init__(self, token: str, kind: str = "option") -> None:
        self.token = token
        self.kind = kind
        super().__init__(f"Unknown {kind}: {token}")
