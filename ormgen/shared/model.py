"""In-memory schema model consumed by the code generators.

The model is built once (by the snapshot loader or by callers embedding
ormgen) and never mutated afterwards; every container is a tuple.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Union

from .errors import DialectError, SchemaValidationError

TableKey = tuple[str, str]


class Dialect(str, Enum):
    """Supported database backends."""

    POSTGRESQL = "postgresql"
    MSSQL = "mssql"

    @property
    def default_schema(self) -> str:
        """Return the default schema name for this dialect."""
        return _DEFAULT_SCHEMAS[self]

    @classmethod
    def parse(cls, value: str | Dialect) -> Dialect:
        """Resolve a dialect from its name or a common alias."""
        if isinstance(value, Dialect):
            return value
        normalized = str(value).strip().lower()
        try:
            return cls(_DIALECT_ALIASES.get(normalized, normalized))
        except ValueError:
            raise DialectError("unknown dialect", str(value)) from None


_DEFAULT_SCHEMAS: dict[Dialect, str] = {
    Dialect.POSTGRESQL: "public",
    Dialect.MSSQL: "dbo",
}

_DIALECT_ALIASES: dict[str, str] = {
    "postgres": "postgresql",
    "pg": "postgresql",
    "sqlserver": "mssql",
}


@dataclass(frozen=True, slots=True)
class ColumnType:
    """Raw database type descriptor: base type tag plus modifiers."""

    name: str
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    timezone: bool = False
    element_type: ColumnType | None = None
    collation: str | None = None


@dataclass(frozen=True, slots=True)
class Identity:
    """Parameters of an identity column's underlying sequence."""

    start: int = 1
    increment: int = 1
    min_value: int | None = None
    max_value: int | None = None
    cycle: bool = False
    cache: int | None = None


@dataclass(frozen=True, slots=True)
class Column:
    name: str
    type: ColumnType
    nullable: bool = True
    default: str | None = None
    comment: str | None = None
    identity: Identity | None = None


@dataclass(frozen=True, slots=True)
class PrimaryKey:
    columns: tuple[str, ...]
    name: str | None = None


@dataclass(frozen=True, slots=True)
class ForeignKey:
    """Foreign key referencing another table by name only.

    ``target_schema`` of None means the schema of the referencing table.
    """

    columns: tuple[str, ...]
    target_table: str
    target_columns: tuple[str, ...]
    target_schema: str | None = None
    name: str | None = None
    on_delete: str | None = None
    on_update: str | None = None


@dataclass(frozen=True, slots=True)
class Unique:
    columns: tuple[str, ...]
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Check:
    expression: str
    name: str | None = None


Constraint = Union[PrimaryKey, ForeignKey, Unique, Check]


@dataclass(frozen=True, slots=True)
class Index:
    name: str
    columns: tuple[str, ...]
    unique: bool = False


@dataclass(frozen=True, slots=True)
class Table:
    """A table or view with its columns, constraints and indexes."""

    name: str
    schema: str
    columns: tuple[Column, ...] = ()
    constraints: tuple[Constraint, ...] = ()
    indexes: tuple[Index, ...] = ()
    comment: str | None = None
    is_view: bool = False

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for column in self.columns:
            if column.name in seen:
                raise SchemaValidationError(
                    f"duplicate column in table '{self.name}'",
                    field=column.name,
                )
            seen.add(column.name)

        for kind, columns in self._column_references():
            for name in columns:
                if name not in seen:
                    raise SchemaValidationError(
                        f"{kind} of table '{self.name}' references unknown column",
                        field=name,
                    )

        for fk in self.foreign_keys:
            if len(fk.columns) != len(fk.target_columns):
                raise SchemaValidationError(
                    f"foreign key of table '{self.name}' has {len(fk.columns)} column(s) "
                    f"but {len(fk.target_columns)} target column(s)",
                    field=fk.name or ", ".join(fk.columns),
                )

    def _column_references(self) -> Iterator[tuple[str, tuple[str, ...]]]:
        for constraint in self.constraints:
            if isinstance(constraint, PrimaryKey):
                yield "primary key", constraint.columns
            elif isinstance(constraint, ForeignKey):
                yield "foreign key", constraint.columns
            elif isinstance(constraint, Unique):
                yield "unique constraint", constraint.columns
        for index in self.indexes:
            yield f"index '{index.name}'", index.columns

    @property
    def key(self) -> TableKey:
        return (self.schema, self.name)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"

    @property
    def primary_key(self) -> PrimaryKey | None:
        return next(
            (c for c in self.constraints if isinstance(c, PrimaryKey)),
            None,
        )

    @property
    def primary_key_columns(self) -> tuple[str, ...]:
        pk = self.primary_key
        return pk.columns if pk is not None else ()

    @property
    def foreign_keys(self) -> tuple[ForeignKey, ...]:
        return tuple(c for c in self.constraints if isinstance(c, ForeignKey))

    @property
    def unique_constraints(self) -> tuple[Unique, ...]:
        return tuple(c for c in self.constraints if isinstance(c, Unique))

    @property
    def checks(self) -> tuple[Check, ...]:
        return tuple(c for c in self.constraints if isinstance(c, Check))

    def column(self, name: str) -> Column | None:
        return next((col for col in self.columns if col.name == name), None)

    def target_key(self, fk: ForeignKey) -> TableKey:
        """Key of the table a foreign key of this table points at."""
        return (fk.target_schema or self.schema, fk.target_table)


@dataclass(frozen=True, slots=True)
class SchemaModel:
    """Ordered set of tables for one dialect."""

    dialect: Dialect
    tables: tuple[Table, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        seen: set[TableKey] = set()
        for table in self.tables:
            if table.key in seen:
                raise SchemaValidationError(
                    "duplicate table in schema model",
                    field=table.qualified_name,
                )
            seen.add(table.key)

    def __iter__(self) -> Iterator[Table]:
        return iter(self.tables)

    def __len__(self) -> int:
        return len(self.tables)

    def index(self) -> dict[TableKey, Table]:
        """Build the (schema, name) lookup used to resolve foreign keys."""
        return {table.key: table for table in self.tables}
