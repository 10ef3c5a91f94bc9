"""Mapped type values and the catalog entry renderer shared by all dialects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..shared.model import ColumnType

SQLALCHEMY: str = "sqlalchemy"

ImportSpec = tuple[str, str | None]


class TypeKind(str, Enum):
    """How a catalog entry turns column modifiers into a type expression."""

    SIMPLE = "simple"
    STRING = "string"
    NUMERIC = "numeric"
    DATETIME = "datetime"
    FIXED = "fixed"


@dataclass(frozen=True, slots=True)
class TypeSpec:
    """One entry of a dialect's type catalog."""

    symbol: str
    python_type: str
    module: str = SQLALCHEMY
    kind: TypeKind = TypeKind.SIMPLE
    unbounded: str | None = None
    timezone: bool = False
    expression: str | None = None


@dataclass(frozen=True, slots=True)
class MappedType:
    """SQLAlchemy type expression plus the Python annotation for a column.

    ``imports`` are the (module, symbol) pairs the expression needs;
    ``annotation_imports`` covers the ``Mapped[...]`` annotation.
    """

    sa_type: str
    python_type: str
    imports: tuple[tuple[str, str], ...]
    nullable: bool = False

    @property
    def annotation(self) -> str:
        if self.nullable:
            return f"Optional[{self.python_type}]"
        return self.python_type

    @property
    def annotation_imports(self) -> tuple[ImportSpec, ...]:
        imports: list[ImportSpec] = []
        if "." in self.python_type:
            imports.append((self.python_type.rsplit(".", 1)[0], None))
        if self.nullable:
            imports.append(("typing", "Optional"))
        return tuple(imports)


def format_string_type(base: str, length: int | None, collation: str | None) -> str:
    """Format a String/Unicode expression with optional length and collation.

    Examples:
        >>> format_string_type("String", 50, "Latin1_General_CI_AS")
        "String(50, 'Latin1_General_CI_AS')"
        >>> format_string_type("Unicode", None, "Latin1_General_CI_AS")
        "Unicode(collation='Latin1_General_CI_AS')"
    """
    if length is not None and collation:
        return f"{base}({length}, {collation!r})"
    if length is not None:
        return f"{base}({length})"
    if collation:
        return f"{base}(collation={collation!r})"
    return base


def format_numeric_type(base: str, precision: int | None, scale: int | None) -> str:
    if precision is not None and scale is not None:
        return f"{base}({precision}, {scale})"
    if precision is not None:
        return f"{base}({precision})"
    return base


def render_type_spec(spec: TypeSpec, column_type: ColumnType) -> MappedType:
    """Apply a column's modifiers to a catalog entry."""
    symbol = spec.symbol

    if spec.kind is TypeKind.STRING:
        if column_type.length is None and spec.unbounded:
            symbol = spec.unbounded
        sa_type = format_string_type(symbol, column_type.length, column_type.collation)
    elif spec.kind is TypeKind.NUMERIC:
        sa_type = format_numeric_type(symbol, column_type.precision, column_type.scale)
    elif spec.kind is TypeKind.DATETIME:
        if spec.timezone or column_type.timezone:
            sa_type = f"{symbol}(timezone=True)"
        else:
            sa_type = symbol
    elif spec.kind is TypeKind.FIXED:
        sa_type = spec.expression or symbol
    else:
        sa_type = symbol

    return MappedType(
        sa_type=sa_type,
        python_type=spec.python_type,
        imports=((spec.module, symbol),),
    )
