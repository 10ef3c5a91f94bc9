"""Type mapper - raw database column types to SQLAlchemy type expressions."""

from .base import MappedType, TypeKind, TypeSpec
from .main import catalog, map_column, map_type

__all__ = [
    "MappedType",
    "TypeKind",
    "TypeSpec",
    "catalog",
    "map_column",
    "map_type",
]
