"""Shared utilities: schema model, snapshot loading, naming and errors."""

from .schema_loader import (
    build_schema_model,
    load_schema,
    load_schema_model,
    parse_type,
)
from .model import (
    Check,
    Column,
    ColumnType,
    Dialect,
    ForeignKey,
    Identity,
    Index,
    PrimaryKey,
    SchemaModel,
    Table,
    Unique,
)
from .naming import (
    Direction,
    column_to_attr_name,
    disambiguate,
    pluralize,
    relationship_name,
    sanitize_identifier,
    singularize,
    table_to_class_name,
    table_to_variable_name,
    to_pascal_case,
    PYTHON_KEYWORDS,
)
from .options import GeneratorOptions
from .errors import (
    SchemaError,
    SchemaValidationError,
    DialectError,
    UnsupportedTypeError,
    UnsupportedTypesError,
    UnresolvedForeignKeyTargetError,
    IdentifierCollisionError,
    OptionError,
)

__all__ = [
    # Snapshot loading
    "build_schema_model",
    "load_schema",
    "load_schema_model",
    "parse_type",
    # Schema model
    "Check",
    "Column",
    "ColumnType",
    "Dialect",
    "ForeignKey",
    "Identity",
    "Index",
    "PrimaryKey",
    "SchemaModel",
    "Table",
    "Unique",
    # Naming utilities
    "Direction",
    "column_to_attr_name",
    "disambiguate",
    "pluralize",
    "relationship_name",
    "sanitize_identifier",
    "singularize",
    "table_to_class_name",
    "table_to_variable_name",
    "to_pascal_case",
    "PYTHON_KEYWORDS",
    # Options
    "GeneratorOptions",
    # Errors
    "SchemaError",
    "SchemaValidationError",
    "DialectError",
    "UnsupportedTypeError",
    "UnsupportedTypesError",
    "UnresolvedForeignKeyTargetError",
    "IdentifierCollisionError",
    "OptionError",
]
