"""PostgreSQL type catalog."""

from __future__ import annotations

from dataclasses import replace
from typing import Final

from ..shared.errors import UnsupportedTypeError
from ..shared.model import ColumnType, Dialect
from .base import SQLALCHEMY, MappedType, TypeKind, TypeSpec, render_type_spec

DIALECT_MODULE: Final[str] = "sqlalchemy.dialects.postgresql"

_BOOLEAN = TypeSpec("Boolean", "bool")
_SMALLINT = TypeSpec("SmallInteger", "int")
_INTEGER = TypeSpec("Integer", "int")
_BIGINT = TypeSpec("BigInteger", "int")
_FLOAT = TypeSpec("Float", "float")
_DOUBLE = TypeSpec("Double", "float")
_NUMERIC = TypeSpec("Numeric", "decimal.Decimal", kind=TypeKind.NUMERIC)
_STRING = TypeSpec("String", "str", kind=TypeKind.STRING, unbounded="Text")
_TIMESTAMP = TypeSpec("DateTime", "datetime.datetime", kind=TypeKind.DATETIME)
_TIMESTAMPTZ = TypeSpec("DateTime", "datetime.datetime", kind=TypeKind.DATETIME, timezone=True)
_TIME = TypeSpec("Time", "datetime.time", kind=TypeKind.DATETIME)
_TIMETZ = TypeSpec("Time", "datetime.time", kind=TypeKind.DATETIME, timezone=True)

# Keys are udt names as reported by information_schema plus their SQL spellings
CATALOG: Final[dict[str, TypeSpec]] = {
    "bool": _BOOLEAN,
    "boolean": _BOOLEAN,
    "int2": _SMALLINT,
    "smallint": _SMALLINT,
    "smallserial": _SMALLINT,
    "int4": _INTEGER,
    "int": _INTEGER,
    "integer": _INTEGER,
    "serial": _INTEGER,
    "int8": _BIGINT,
    "bigint": _BIGINT,
    "bigserial": _BIGINT,
    "float4": _FLOAT,
    "real": _FLOAT,
    "float8": _DOUBLE,
    "double precision": _DOUBLE,
    "numeric": _NUMERIC,
    "decimal": _NUMERIC,
    "text": TypeSpec("Text", "str"),
    "varchar": _STRING,
    "character varying": _STRING,
    "char": _STRING,
    "bpchar": _STRING,
    "character": _STRING,
    "bytea": TypeSpec("LargeBinary", "bytes"),
    "timestamp": _TIMESTAMP,
    "timestamp without time zone": _TIMESTAMP,
    "timestamptz": _TIMESTAMPTZ,
    "timestamp with time zone": _TIMESTAMPTZ,
    "date": TypeSpec("Date", "datetime.date"),
    "time": _TIME,
    "time without time zone": _TIME,
    "timetz": _TIMETZ,
    "time with time zone": _TIMETZ,
    "interval": TypeSpec("Interval", "datetime.timedelta"),
    "uuid": TypeSpec("UUID", "uuid.UUID", module=DIALECT_MODULE),
    "json": TypeSpec("JSON", "dict", module=DIALECT_MODULE),
    "jsonb": TypeSpec("JSONB", "dict", module=DIALECT_MODULE),
    "inet": TypeSpec("INET", "str", module=DIALECT_MODULE),
    "cidr": TypeSpec("CIDR", "str", module=DIALECT_MODULE),
    "macaddr": TypeSpec("MACADDR", "str", module=DIALECT_MODULE),
}


def _array_element(column_type: ColumnType) -> ColumnType | None:
    """Return the element type if ``column_type`` describes an array."""
    if column_type.element_type is not None:
        return column_type.element_type
    # udt names of array types carry a leading underscore (_int4)
    if column_type.name.startswith("_") and len(column_type.name) > 1:
        return replace(column_type, name=column_type.name[1:])
    return None


def map_column_type(column_type: ColumnType) -> MappedType:
    """Map a PostgreSQL column type to its SQLAlchemy representation.

    Raises:
        UnsupportedTypeError: If the type is not in the catalog.
    """
    element = _array_element(column_type)
    if element is not None:
        inner = map_column_type(element)
        return MappedType(
            sa_type=f"ARRAY({inner.sa_type})",
            python_type="list",
            imports=tuple(dict.fromkeys(((SQLALCHEMY, "ARRAY"),) + inner.imports)),
        )

    spec = CATALOG.get(column_type.name)
    if spec is None:
        raise UnsupportedTypeError(Dialect.POSTGRESQL.value, column_type.name)
    return render_type_spec(spec, column_type)
