"""SQLAlchemy code generator - renders model source from a schema model."""

from .common import CodeGenerator
from .declarative import DeclarativeGenerator
from .imports import ImportCollector
from .main import (
    GENERATORS,
    GeneratorContext,
    generate,
    render,
)
from .tables import TablesGenerator

__all__ = [
    "CodeGenerator",
    "DeclarativeGenerator",
    "TablesGenerator",
    "ImportCollector",
    "GENERATORS",
    "GeneratorContext",
    "generate",
    "render",
]
