"""Schema snapshot loading: YAML/JSON documents to SchemaModel."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Final

import yaml

from .errors import SchemaError, SchemaValidationError
from .model import (
    Check,
    Column,
    ColumnType,
    Constraint,
    Dialect,
    ForeignKey,
    Identity,
    Index,
    PrimaryKey,
    SchemaModel,
    Table,
    Unique,
)

# Base types whose single parenthesized argument is a length, not a precision
LENGTH_TYPES: Final[frozenset[str]] = frozenset({
    "char",
    "character",
    "bpchar",
    "varchar",
    "character varying",
    "nchar",
    "nvarchar",
    "binary",
    "varbinary",
})

_TYPE_PATTERN = re.compile(
    r"^\s*(?P<base>[a-z_][a-z0-9_ ]*?)\s*"
    r"(?:\((?P<args>[^)]*)\)\s*(?P<suffix>[a-z][a-z ]*?)?)?\s*"
    r"(?P<array>(?:\[\s*\])*)\s*$",
    re.IGNORECASE,
)


def load_schema(schema_path: Path) -> dict[str, Any]:
    """Load a schema snapshot document from a YAML (or JSON) file.

    Args:
        schema_path: Path to the snapshot file.

    Returns:
        The parsed snapshot dictionary.

    Raises:
        SchemaError: If the file cannot be read or parsed.
    """
    try:
        content = schema_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Failed to read schema file: {e}", str(schema_path)) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML: {e}", str(schema_path)) from e

    if not isinstance(data, dict):
        raise SchemaError("Schema root must be a mapping", str(schema_path))

    return data


def load_schema_model(schema_path: Path) -> SchemaModel:
    """Load a snapshot file and build the immutable schema model."""
    return build_schema_model(load_schema(schema_path), str(schema_path))


def parse_type(raw: str | dict[str, Any], schema_path: str | None = None) -> ColumnType:
    """Parse a type declaration into a ColumnType.

    Accepts SQL-style strings (``varchar(100)``, ``numeric(10, 2)``,
    ``int4[]``, ``timestamp(3) with time zone``) or a mapping with the
    ColumnType field names.

    Examples:
        >>> parse_type("varchar(100)")
        ColumnType(name='varchar', length=100, precision=None, scale=None, timezone=False, element_type=None, collation=None)
    """
    if isinstance(raw, dict):
        return _parse_type_mapping(raw, schema_path)

    match = _TYPE_PATTERN.match(str(raw))
    if match is None:
        raise SchemaValidationError(f"cannot parse type '{raw}'", schema_path)

    base = " ".join(match.group("base").lower().split())
    suffix = " ".join((match.group("suffix") or "").lower().split())
    if suffix:
        base = f"{base} {suffix}"

    args = _parse_type_args(match.group("args"), raw, schema_path)
    length = precision = scale = None
    if base in LENGTH_TYPES:
        length = args[0] if args else None
    elif args:
        precision = args[0]
        scale = args[1] if len(args) > 1 else None

    column_type = ColumnType(
        name=base,
        length=length,
        precision=precision,
        scale=scale,
    )
    for _ in range(match.group("array").count("[")):
        column_type = ColumnType(name="array", element_type=column_type)
    return column_type


def _parse_type_args(
    raw_args: str | None,
    raw: Any,
    schema_path: str | None,
) -> list[int | None]:
    if raw_args is None:
        return []
    values: list[int | None] = []
    for item in raw_args.split(","):
        item = item.strip().lower()
        if item == "max":
            values.append(None)
        elif item.isdigit():
            values.append(int(item))
        else:
            raise SchemaValidationError(
                f"invalid type modifier '{item}' in '{raw}'",
                schema_path,
            )
    return values


def _parse_type_mapping(raw: dict[str, Any], schema_path: str | None) -> ColumnType:
    if "name" not in raw:
        raise SchemaValidationError("type mapping requires a 'name'", schema_path)
    element = raw.get("element_type", raw.get("element"))
    return ColumnType(
        name=str(raw["name"]).strip().lower(),
        length=raw.get("length"),
        precision=raw.get("precision"),
        scale=raw.get("scale"),
        timezone=bool(raw.get("timezone", False)),
        element_type=parse_type(element, schema_path) if element is not None else None,
        collation=raw.get("collation"),
    )


def _as_names(value: Any, schema_path: str | None, field: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise SchemaValidationError("expected a column name or list of names", schema_path, field)


def _as_entries(
    raw: dict[str, Any],
    key: str,
    schema_path: str | None,
    table_name: str,
) -> list[Any]:
    """Return the list stored under ``key``; a missing or null value is empty."""
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SchemaValidationError(
            f"'{key}' must be a list",
            schema_path,
            field=f"{table_name}.{key}",
        )
    return value


def _require_mapping(
    value: Any,
    schema_path: str | None,
    field: str,
    what: str,
) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaValidationError(f"{what} must be a mapping", schema_path, field)
    return value


def _build_column(raw: Any, schema_path: str | None, table_name: str) -> Column:
    raw = _require_mapping(raw, schema_path, f"{table_name}.columns", "column")
    name = raw.get("name")
    if not name:
        raise SchemaValidationError(
            "column is missing required 'name'",
            schema_path,
            field=f"{table_name}.columns",
        )
    if "type" not in raw:
        raise SchemaValidationError(
            "column is missing required 'type'",
            schema_path,
            field=str(name),
        )

    identity = raw.get("identity")
    if identity is True:
        identity = {}
    try:
        parsed_identity = Identity(**identity) if isinstance(identity, dict) else None
    except TypeError as e:
        raise SchemaValidationError(
            f"invalid identity definition: {e}",
            schema_path,
            field=str(name),
        ) from e

    return Column(
        name=str(name),
        type=parse_type(raw["type"], schema_path),
        nullable=bool(raw.get("nullable", True)),
        default=None if raw.get("default") is None else str(raw["default"]),
        comment=raw.get("comment"),
        identity=parsed_identity,
    )


def _build_foreign_key(raw: Any, schema_path: str | None, table_name: str) -> ForeignKey:
    field = f"{table_name}.foreign_keys"
    raw = _require_mapping(raw, schema_path, field, "foreign key")
    references = raw.get("references")
    if not isinstance(references, dict) or "table" not in references:
        raise SchemaValidationError(
            "foreign key requires 'references.table'",
            schema_path,
            field=table_name,
        )
    return ForeignKey(
        columns=_as_names(raw.get("columns"), schema_path, field),
        target_table=str(references["table"]),
        target_columns=_as_names(references.get("columns", "id"), schema_path, field),
        target_schema=references.get("schema"),
        name=raw.get("name"),
        on_delete=raw.get("on_delete"),
        on_update=raw.get("on_update"),
    )


def _build_check(raw: Any, schema_path: str | None, table_name: str) -> Check:
    if isinstance(raw, str):
        return Check(expression=raw)
    raw = _require_mapping(raw, schema_path, f"{table_name}.checks", "check")
    if not raw.get("expression"):
        raise SchemaValidationError(
            "check is missing required 'expression'",
            schema_path,
            field=f"{table_name}.checks",
        )
    return Check(expression=str(raw["expression"]), name=raw.get("name"))


def _build_index(raw: Any, schema_path: str | None, table_name: str) -> Index:
    field = f"{table_name}.indexes"
    raw = _require_mapping(raw, schema_path, field, "index")
    if not raw.get("name"):
        raise SchemaValidationError("index is missing required 'name'", schema_path, field)
    return Index(
        name=str(raw["name"]),
        columns=_as_names(raw.get("columns"), schema_path, field),
        unique=bool(raw.get("unique", False)),
    )


def _build_constraints(
    raw: dict[str, Any],
    schema_path: str | None,
) -> list[Constraint]:
    table_name = str(raw["name"])
    raw_columns = _as_entries(raw, "columns", schema_path, table_name)
    constraints: list[Constraint] = []

    raw_pk = raw.get("primary_key")
    if isinstance(raw_pk, dict):
        constraints.append(
            PrimaryKey(
                columns=_as_names(raw_pk.get("columns"), schema_path, f"{table_name}.primary_key"),
                name=raw_pk.get("name"),
            )
        )
    elif raw_pk:
        constraints.append(
            PrimaryKey(columns=_as_names(raw_pk, schema_path, f"{table_name}.primary_key"))
        )
    else:
        # Fallback to column-level primary_key flags
        flagged = tuple(str(col["name"]) for col in raw_columns if col.get("primary_key"))
        if flagged:
            constraints.append(PrimaryKey(columns=flagged))

    for fk in _as_entries(raw, "foreign_keys", schema_path, table_name):
        constraints.append(_build_foreign_key(fk, schema_path, table_name))

    for unique in _as_entries(raw, "unique", schema_path, table_name):
        if isinstance(unique, dict):
            constraints.append(
                Unique(
                    columns=_as_names(unique.get("columns"), schema_path, f"{table_name}.unique"),
                    name=unique.get("name"),
                )
            )
        else:
            constraints.append(
                Unique(columns=_as_names(unique, schema_path, f"{table_name}.unique"))
            )

    # Column-level unique flags
    for col in raw_columns:
        if col.get("unique"):
            constraints.append(Unique(columns=(str(col["name"]),)))

    for check in _as_entries(raw, "checks", schema_path, table_name):
        constraints.append(_build_check(check, schema_path, table_name))

    return constraints


def _build_table(
    raw: Any,
    dialect: Dialect,
    schema_path: str | None,
) -> Table:
    if not isinstance(raw, dict) or not raw.get("name"):
        raise SchemaValidationError("table is missing required 'name'", schema_path)

    table_name = str(raw["name"])
    columns = [
        _build_column(col, schema_path, table_name)
        for col in _as_entries(raw, "columns", schema_path, table_name)
    ]
    indexes = [
        _build_index(index, schema_path, table_name)
        for index in _as_entries(raw, "indexes", schema_path, table_name)
    ]
    constraints = _build_constraints(raw, schema_path)

    return Table(
        name=table_name,
        schema=str(raw.get("schema") or dialect.default_schema),
        columns=tuple(columns),
        constraints=tuple(constraints),
        indexes=tuple(indexes),
        comment=raw.get("comment"),
        is_view=bool(raw.get("view", False)),
    )


def build_schema_model(data: dict[str, Any], schema_path: str | None = None) -> SchemaModel:
    """Build a SchemaModel from a parsed snapshot document.

    Raises:
        SchemaValidationError: If the document is structurally invalid.
        DialectError: If the dialect is unknown.
    """
    dialect = Dialect.parse(data.get("dialect", Dialect.POSTGRESQL.value))
    tables = data.get("tables")

    if not isinstance(tables, list):
        raise SchemaValidationError("schema must provide a 'tables' list", schema_path)

    try:
        return SchemaModel(
            dialect=dialect,
            tables=tuple(_build_table(table, dialect, schema_path) for table in tables),
        )
    except SchemaValidationError as e:
        if e.schema_path or schema_path is None:
            raise
        wrapped = SchemaValidationError(str(e), schema_path)
        wrapped.field = e.field
        raise wrapped from e
