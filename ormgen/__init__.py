"""ormgen - SQLAlchemy model code generation from schema snapshots."""

from .codegen import render
from .shared import GeneratorOptions, SchemaModel, load_schema_model
from .typemap import map_type

__all__ = [
    "GeneratorOptions",
    "SchemaModel",
    "load_schema_model",
    "map_type",
    "render",
]
