"""Type mapping entry points dispatching by dialect."""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Callable, Final

from ..shared.errors import DialectError, UnsupportedTypeError
from ..shared.model import Column, ColumnType, Dialect, Table
from . import mssql, postgresql
from .base import MappedType, TypeSpec

_MAPPERS: Final[dict[Dialect, Callable[[ColumnType], MappedType]]] = {
    Dialect.POSTGRESQL: postgresql.map_column_type,
    Dialect.MSSQL: mssql.map_column_type,
}

_CATALOGS: Final[dict[Dialect, dict[str, TypeSpec]]] = {
    Dialect.POSTGRESQL: postgresql.CATALOG,
    Dialect.MSSQL: mssql.CATALOG,
}


def map_type(
    dialect: Dialect | str,
    column_type: ColumnType,
    nullable: bool = False,
) -> MappedType:
    """Map a raw column type to its SQLAlchemy type expression and imports.

    Args:
        dialect: Source dialect (enum member or name).
        column_type: Raw type descriptor with its modifiers.
        nullable: Whether the annotation gets wrapped in ``Optional``.

    Raises:
        UnsupportedTypeError: If the type is outside the dialect's catalog.
        DialectError: If the dialect is unknown.
    """
    mapper = _MAPPERS[Dialect.parse(dialect)]
    mapped = mapper(column_type)
    return replace(mapped, nullable=True) if nullable else mapped


def map_column(dialect: Dialect | str, table: Table, column: Column) -> MappedType:
    """Map a column; primary key columns are never wrapped in ``Optional``."""
    is_primary = column.name in table.primary_key_columns
    try:
        return map_type(dialect, column.type, nullable=column.nullable and not is_primary)
    except UnsupportedTypeError as e:
        raise UnsupportedTypeError(
            e.dialect,
            e.type_name,
            f"column '{table.qualified_name}.{column.name}'",
        ) from e


def catalog(dialect: Dialect | str) -> dict[str, TypeSpec]:
    """Return the supported raw type names for a dialect, sorted by name."""
    entries = _CATALOGS[Dialect.parse(dialect)]
    return {name: entries[name] for name in sorted(entries)}


def main(argv: list[str] | None = None) -> None:
    """List the type catalog of one or all dialects."""
    parser = argparse.ArgumentParser(
        description="List the database types ormgen can map",
    )
    parser.add_argument(
        "dialects",
        nargs="*",
        help="Dialect(s) to list (default: all)",
    )
    args = parser.parse_args(argv)

    try:
        dialects = [Dialect.parse(name) for name in args.dialects] or list(Dialect)
    except DialectError as e:
        raise SystemExit(f"Error: {e}") from e

    for dialect in dialects:
        print(f"{dialect.value}:")
        for name, spec in catalog(dialect).items():
            print(f"  {name:28} {spec.module}.{spec.symbol} -> {spec.python_type}")
        if dialect is Dialect.POSTGRESQL:
            print(f"  {'<type>[]':28} sqlalchemy.ARRAY -> list")


if __name__ == "__main__":
    main()
