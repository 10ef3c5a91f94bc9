"""
SQLAlchemy code generator - renders model source from a schema snapshot.

Supports:
- Declarative classes (``Mapped[...]`` attributes, relationships)
- Plain ``Table(...)`` constructions on a shared ``MetaData``
- Parallel rendering of table blocks with deterministic output
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Final

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..shared.errors import OptionError, SchemaError
from ..shared.model import SchemaModel
from ..shared.options import GENERATOR_NAMES, OPTION_TOKENS, GeneratorOptions
from ..shared.schema_loader import load_schema_model
from .common import CodeGenerator
from .declarative import DeclarativeGenerator
from .tables import TablesGenerator

# Template configuration
TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"

GENERATORS: Final[dict[str, type[CodeGenerator]]] = {
    DeclarativeGenerator.name: DeclarativeGenerator,
    TablesGenerator.name: TablesGenerator,
}


@dataclass
class GeneratorContext:
    """Shared template environment; read-only once constructed."""

    template_env: Environment = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,
            enable_async=False,
        )
        # Pre-compile templates so worker threads only render
        for name in ("declarative.py.j2", "tables.py.j2", "class.py.j2", "table.py.j2"):
            self.template_env.get_template(name)

    def generator(self, name: str) -> CodeGenerator:
        """Instantiate the generator registered under ``name``.

        Raises:
            OptionError: If no generator has that name.
        """
        try:
            return GENERATORS[name](self.template_env)
        except KeyError:
            raise OptionError(name, kind="generator") from None


@lru_cache(maxsize=1)
def get_context() -> GeneratorContext:
    return GeneratorContext()


def render(
    schema: SchemaModel,
    options: GeneratorOptions | None = None,
    *,
    parallel: bool = False,
    max_workers: int | None = None,
) -> str:
    """Render Python source for ``schema`` with the generator named in ``options``.

    Args:
        schema: Schema model to render.
        options: Generator name, filters and flags (defaults: declarative).
        parallel: Whether to render table blocks on a thread pool.
        max_workers: Maximum number of parallel workers.

    Returns:
        The generated module source.
    """
    options = options or GeneratorOptions()
    generator = get_context().generator(options.generator)
    return generator.render(schema, options, parallel=parallel, max_workers=max_workers)


def generate(
    schema_path: Path,
    options: GeneratorOptions,
    outfile: Path | None = None,
    parallel: bool = False,
    max_workers: int | None = None,
) -> str:
    """Load a snapshot, render it and optionally write the result to ``outfile``."""
    schema = load_schema_model(schema_path)
    source = render(schema, options, parallel=parallel, max_workers=max_workers)
    if outfile is not None:
        outfile.parent.mkdir(parents=True, exist_ok=True)
        outfile.write_text(source, encoding="utf-8")
    return source


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Generate SQLAlchemy model code from a schema snapshot",
    )
    parser.add_argument(
        "snapshot",
        type=Path,
        help="Schema snapshot file (YAML or JSON)",
    )
    parser.add_argument(
        "--generator",
        choices=GENERATOR_NAMES,
        default="declarative",
        help="Output style (default: declarative)",
    )
    parser.add_argument(
        "--tables",
        default=None,
        help="Comma-delimited list of tables to render",
    )
    parser.add_argument(
        "--schemas",
        default=None,
        help="Comma-delimited list of schemas to render",
    )
    parser.add_argument(
        "--noviews",
        action="store_true",
        help="Ignore views",
    )
    parser.add_argument(
        "--options",
        default=None,
        help=f"Comma-delimited generator options ({', '.join(OPTION_TOKENS)})",
    )
    parser.add_argument(
        "--outfile",
        type=Path,
        default=None,
        help="File to write output to (default: stdout)",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Render table blocks in parallel",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Maximum number of parallel workers",
    )

    args = parser.parse_args(argv)

    try:
        options = GeneratorOptions.from_tokens(
            _split_list(args.options),
            generator=args.generator,
            tables=_split_list(args.tables),
            schemas=tuple(_split_list(args.schemas)),
            include_views=not args.noviews,
        )
        source = generate(
            args.snapshot,
            options,
            outfile=args.outfile,
            parallel=args.parallel,
            max_workers=args.workers,
        )
    except (SchemaError, OptionError, FileNotFoundError) as e:
        raise SystemExit(f"Error: {e}") from e

    if args.outfile is None:
        sys.stdout.write(source)
    else:
        print(
            f"Generated {options.generator} code for {args.snapshot} into {args.outfile}",
            file=sys.stderr,
        )


if __name__ == "__main__":
    main()
