"""MSSQL type catalog."""

from __future__ import annotations

from typing import Final

from ..shared.errors import UnsupportedTypeError
from ..shared.model import ColumnType, Dialect
from .base import MappedType, TypeKind, TypeSpec, render_type_spec

DIALECT_MODULE: Final[str] = "sqlalchemy.dialects.mssql"

_NUMERIC = TypeSpec("Numeric", "decimal.Decimal", kind=TypeKind.NUMERIC)
_STRING = TypeSpec("String", "str", kind=TypeKind.STRING, unbounded="Text")
_UNICODE = TypeSpec("Unicode", "str", kind=TypeKind.STRING, unbounded="UnicodeText")
_BINARY = TypeSpec("LargeBinary", "bytes")
_DATETIME = TypeSpec("DateTime", "datetime.datetime", kind=TypeKind.DATETIME)

CATALOG: Final[dict[str, TypeSpec]] = {
    "bit": TypeSpec("Boolean", "bool"),
    "tinyint": TypeSpec("TINYINT", "int", module=DIALECT_MODULE),
    "smallint": TypeSpec("SmallInteger", "int"),
    "int": TypeSpec("Integer", "int"),
    "bigint": TypeSpec("BigInteger", "int"),
    "real": TypeSpec("Float", "float"),
    "float": TypeSpec("Double", "float"),
    "decimal": _NUMERIC,
    "numeric": _NUMERIC,
    "money": TypeSpec(
        "Numeric", "decimal.Decimal", kind=TypeKind.FIXED, expression="Numeric(19, 4)"
    ),
    "smallmoney": TypeSpec(
        "Numeric", "decimal.Decimal", kind=TypeKind.FIXED, expression="Numeric(10, 4)"
    ),
    "varchar": _STRING,
    "char": _STRING,
    "nvarchar": _UNICODE,
    "nchar": _UNICODE,
    "text": TypeSpec("Text", "str"),
    "ntext": TypeSpec("UnicodeText", "str"),
    "binary": _BINARY,
    "varbinary": _BINARY,
    "image": _BINARY,
    "datetime": _DATETIME,
    "datetime2": _DATETIME,
    "smalldatetime": _DATETIME,
    "datetimeoffset": TypeSpec(
        "DateTime", "datetime.datetime", kind=TypeKind.DATETIME, timezone=True
    ),
    "date": TypeSpec("Date", "datetime.date"),
    "time": TypeSpec("Time", "datetime.time", kind=TypeKind.DATETIME),
    "uniqueidentifier": TypeSpec("UNIQUEIDENTIFIER", "str", module=DIALECT_MODULE),
}


def map_column_type(column_type: ColumnType) -> MappedType:
    """Map a MSSQL column type to its SQLAlchemy representation.

    Raises:
        UnsupportedTypeError: If the type is not in the catalog.
    """
    spec = CATALOG.get(column_type.name)
    if spec is None:
        raise UnsupportedTypeError(Dialect.MSSQL.value, column_type.name)
    return render_type_spec(spec, column_type)
