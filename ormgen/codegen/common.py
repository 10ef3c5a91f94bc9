"""Rendering pipeline shared by the declarative and tables generators.

A render call runs in fixed steps: select tables, map every column type
(collecting failures), resolve foreign keys against the whole model, name
things, render one block per table and wrap the blocks in a frame
template. Each block gets its own ImportCollector so blocks can be
rendered concurrently and merged deterministically.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, ClassVar, Final, Sequence

from jinja2 import Environment

from ..shared.errors import (
    SchemaError,
    SchemaValidationError,
    UnresolvedForeignKeyTargetError,
    UnsupportedTypeError,
    UnsupportedTypesError,
)
from ..shared.model import (
    Column,
    Dialect,
    ForeignKey,
    Identity,
    Index,
    SchemaModel,
    Table,
    TableKey,
)
from ..shared.options import GeneratorOptions
from ..typemap import MappedType, map_column
from .imports import ImportCollector

SQLALCHEMY: Final[str] = "sqlalchemy"
SQLALCHEMY_ORM: Final[str] = "sqlalchemy.orm"

# Names every generated module may bind at module level
RESERVED_MODULE_NAMES: Final[frozenset[str]] = frozenset({
    "Base",
    "metadata",
    "CheckConstraint",
    "Column",
    "DeclarativeBase",
    "ForeignKey",
    "ForeignKeyConstraint",
    "Identity",
    "Index",
    "List",
    "Mapped",
    "MetaData",
    "Optional",
    "PrimaryKeyConstraint",
    "Table",
    "UniqueConstraint",
    "mapped_column",
    "relationship",
    "text",
})

# Referential actions that are the database default and never rendered
_DEFAULT_FK_ACTIONS: Final[frozenset[str]] = frozenset({"NO ACTION"})

BlockRenderer = Callable[[ImportCollector], str]


@dataclass(frozen=True, slots=True)
class RenderRun:
    """Inputs of one render call after selection, mapping and FK resolution."""

    dialect: Dialect
    options: GeneratorOptions
    tables: tuple[Table, ...]
    index: dict[TableKey, Table]
    types: dict[tuple[TableKey, str], MappedType]

    def mapped_type(self, table: Table, column: Column) -> MappedType:
        return self.types[(table.key, column.name)]

    @property
    def type_symbols(self) -> frozenset[str]:
        """Symbols imported by the mapped column types of this run."""
        imports = ImportCollector()
        for mapped in self.types.values():
            imports.add_all(mapped.imports)
        return imports.symbols


def select_tables(schema: SchemaModel, options: GeneratorOptions) -> tuple[Table, ...]:
    """Apply the table/schema/view filters and sort by (schema, name)."""
    selected = [
        table
        for table in schema
        if (not options.tables or table.name in options.tables)
        and (not options.schemas or table.schema in options.schemas)
        and (options.include_views or not table.is_view)
    ]
    return tuple(sorted(selected, key=lambda table: table.key))


def map_table_types(
    dialect: Dialect,
    tables: Sequence[Table],
) -> dict[tuple[TableKey, str], MappedType]:
    """Map every column type of ``tables``.

    Raises:
        UnsupportedTypesError: With every unmapped column, not just the first.
    """
    mapped: dict[tuple[TableKey, str], MappedType] = {}
    errors: list[UnsupportedTypeError] = []

    for table in tables:
        for column in table.columns:
            try:
                mapped[(table.key, column.name)] = map_column(dialect, table, column)
            except UnsupportedTypeError as e:
                errors.append(e)

    if errors:
        raise UnsupportedTypesError(errors)
    return mapped


def resolve_foreign_keys(tables: Sequence[Table], index: dict[TableKey, Table]) -> None:
    """Check that every foreign key of ``tables`` targets a known table and columns.

    Raises:
        UnresolvedForeignKeyTargetError: If a target is absent from the model.
        SchemaValidationError: If a target column is missing from its table.
    """
    for table in tables:
        for fk in table.foreign_keys:
            target_key = table.target_key(fk)
            target = index.get(target_key)
            if target is None:
                raise UnresolvedForeignKeyTargetError(
                    table.qualified_name,
                    ".".join(target_key),
                    fk.name,
                )
            for column in fk.target_columns:
                if target.column(column) is None:
                    raise SchemaValidationError(
                        f"foreign key of table '{table.qualified_name}' references "
                        f"unknown column of table '{target.qualified_name}'",
                        field=column,
                    )


def prepare_run(schema: SchemaModel, options: GeneratorOptions) -> RenderRun:
    tables = select_tables(schema, options)
    index = schema.index()
    types = map_table_types(schema.dialect, tables)
    resolve_foreign_keys(tables, index)
    return RenderRun(
        dialect=schema.dialect,
        options=options,
        tables=tables,
        index=index,
        types=types,
    )


def is_mapped_class(table: Table) -> bool:
    """Whether the declarative generator renders ``table`` as a class."""
    return not table.is_view and table.primary_key is not None


def columns_are_unique(table: Table, columns: Sequence[str]) -> bool:
    """Whether ``columns`` are covered exactly by a unique constraint or index."""
    wanted = set(columns)
    if any(set(unique.columns) == wanted for unique in table.unique_constraints):
        return True
    return any(index.unique and set(index.columns) == wanted for index in table.indexes)


def format_server_default(dialect: Dialect, default: str) -> str | None:
    """Clean a raw server default into the SQL passed to ``text()``.

    Returns None for defaults that only restate a serial sequence.

    Examples:
        >>> format_server_default(Dialect.POSTGRESQL, "'active'::character varying")
        "'active'"
        >>> format_server_default(Dialect.MSSQL, "((0))")
        '0'
    """
    value = default.strip()
    if dialect is Dialect.POSTGRESQL:
        if value.lower().startswith("nextval("):
            return None
        value = _strip_pg_cast(value)
    elif dialect is Dialect.MSSQL:
        value = _strip_outer_parens(value)
        if value[:2] in ("N'", "n'"):
            value = value[1:]
    return value or None


def _strip_pg_cast(value: str) -> str:
    # Cut at the first "::" outside quotes and parentheses
    depth = 0
    in_quote = False
    for position, char in enumerate(value):
        if char == "'":
            in_quote = not in_quote
        elif in_quote:
            continue
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif depth == 0 and value.startswith("::", position):
            return value[:position].strip()
    return value


def _strip_outer_parens(value: str) -> str:
    while value.startswith("(") and value.endswith(")") and _wraps_whole(value):
        value = value[1:-1].strip()
    return value


def _wraps_whole(value: str) -> bool:
    """Whether the opening parenthesis of ``value`` closes at its last char."""
    depth = 0
    in_quote = False
    for position, char in enumerate(value):
        if char == "'":
            in_quote = not in_quote
        elif in_quote:
            continue
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return position == len(value) - 1
    return False


def format_identity(dialect: Dialect, identity: Identity) -> str:
    """Render an ``Identity(...)`` construct; MSSQL supports seed and step only."""
    args = [f"start={identity.start}", f"increment={identity.increment}"]
    if dialect is Dialect.POSTGRESQL:
        if identity.min_value is not None:
            args.append(f"minvalue={identity.min_value}")
        if identity.max_value is not None:
            args.append(f"maxvalue={identity.max_value}")
        if identity.cycle:
            args.append("cycle=True")
        if identity.cache is not None:
            args.append(f"cache={identity.cache}")
    return f"Identity({', '.join(args)})"


def _referential_actions(fk: ForeignKey) -> list[str]:
    actions = []
    for keyword, action in (("ondelete", fk.on_delete), ("onupdate", fk.on_update)):
        if action and action.upper() not in _DEFAULT_FK_ACTIONS:
            actions.append(f"{keyword}={action.upper()!r}")
    return actions


def foreign_key_target(run: RenderRun, table: Table, fk: ForeignKey, column: str) -> str:
    """Dotted ``[schema.]table.column`` target of a foreign key column."""
    target_schema, target_name = table.target_key(fk)
    if target_schema != run.dialect.default_schema:
        return f"{target_schema}.{target_name}.{column}"
    return f"{target_name}.{column}"


def column_arguments(
    run: RenderRun,
    table: Table,
    column: Column,
    imports: ImportCollector,
) -> list[str]:
    """Arguments after the column name of ``Column(...)``/``mapped_column(...)``."""
    options = run.options
    mapped = run.mapped_type(table, column)
    imports.add_all(mapped.imports)
    args = [mapped.sa_type]

    if not options.noconstraints:
        for fk in table.foreign_keys:
            if fk.columns == (column.name,):
                imports.add(SQLALCHEMY, "ForeignKey")
                target = foreign_key_target(run, table, fk, fk.target_columns[0])
                args.append(
                    ", ".join([f"ForeignKey({target!r}"] + _referential_actions(fk)) + ")"
                )

    if column.identity is not None:
        imports.add(SQLALCHEMY, "Identity")
        args.append(format_identity(run.dialect, column.identity))

    if column.name in table.primary_key_columns:
        args.append("primary_key=True")
    elif not column.nullable:
        args.append("nullable=False")

    if not options.noconstraints and any(
        unique.columns == (column.name,) for unique in table.unique_constraints
    ):
        args.append("unique=True")

    if column.default is not None:
        default = format_server_default(run.dialect, column.default)
        if default is not None:
            imports.add(SQLALCHEMY, "text")
            args.append(f"server_default=text({default!r})")

    if column.comment and not options.nocomments:
        args.append(f"comment={column.comment!r}")

    return args


def _format_names(names: Sequence[str]) -> str:
    return ", ".join(repr(name) for name in names)


def _index_backs_unique(table: Table, index: Index) -> bool:
    return index.unique and any(
        set(unique.columns) == set(index.columns) for unique in table.unique_constraints
    )


def table_items(run: RenderRun, table: Table, imports: ImportCollector) -> list[str]:
    """Table-level constraints and indexes not expressed on a single column."""
    options = run.options
    items: list[str] = []

    if not options.noconstraints:
        pk = table.primary_key
        if pk is not None and pk.name:
            imports.add(SQLALCHEMY, "PrimaryKeyConstraint")
            items.append(f"PrimaryKeyConstraint({_format_names(pk.columns)}, name={pk.name!r})")

        for fk in table.foreign_keys:
            if len(fk.columns) < 2:
                continue
            imports.add(SQLALCHEMY, "ForeignKeyConstraint")
            targets = [foreign_key_target(run, table, fk, col) for col in fk.target_columns]
            args = [f"[{_format_names(fk.columns)}]", f"[{_format_names(targets)}]"]
            args.extend(_referential_actions(fk))
            if fk.name:
                args.append(f"name={fk.name!r}")
            items.append(f"ForeignKeyConstraint({', '.join(args)})")

        for unique in table.unique_constraints:
            if len(unique.columns) < 2:
                continue
            imports.add(SQLALCHEMY, "UniqueConstraint")
            args = [_format_names(unique.columns)]
            if unique.name:
                args.append(f"name={unique.name!r}")
            items.append(f"UniqueConstraint({', '.join(args)})")

        for check in table.checks:
            imports.add(SQLALCHEMY, "CheckConstraint")
            args = [repr(check.expression)]
            if check.name:
                args.append(f"name={check.name!r}")
            items.append(f"CheckConstraint({', '.join(args)})")

    if not options.noindexes:
        for index in table.indexes:
            if not options.noconstraints and _index_backs_unique(table, index):
                continue
            imports.add(SQLALCHEMY, "Index")
            args = [repr(index.name), _format_names(index.columns)]
            if index.unique:
                args.append("unique=True")
            items.append(f"Index({', '.join(arg for arg in args if arg)})")

    return items


def format_elements(elements: Sequence[str]) -> list[str]:
    """Append a comma to every element except the last."""
    return [f"{element}," for element in elements[:-1]] + list(elements[-1:])


def render_table_block(
    env: Environment,
    run: RenderRun,
    table: Table,
    variable: str,
    metadata: str,
    imports: ImportCollector,
    *,
    always_schema: bool,
) -> str:
    """Render a ``t_<name> = Table(...)`` assignment."""
    imports.add(SQLALCHEMY, "Table")

    elements = [f"{table.name!r}, {metadata}"]
    for column in table.columns:
        imports.add(SQLALCHEMY, "Column")
        args = [repr(column.name)] + column_arguments(run, table, column, imports)
        elements.append(f"Column({', '.join(args)})")
    elements.extend(table_items(run, table, imports))
    if table.comment and not run.options.nocomments:
        elements.append(f"comment={table.comment!r}")
    if always_schema or table.schema != run.dialect.default_schema:
        elements.append(f"schema={table.schema!r}")

    rendered = env.get_template("table.py.j2").render(
        variable=variable,
        elements=format_elements(elements),
    )
    return rendered.rstrip("\n")


class CodeGenerator(ABC):
    """Shared ``render`` contract; variants differ in naming and framing."""

    name: ClassVar[str]
    frame_template: ClassVar[str]

    def __init__(self, env: Environment) -> None:
        self.env = env

    @abstractmethod
    def register_frame_imports(self, run: RenderRun, imports: ImportCollector) -> None:
        """Register the imports of the module boilerplate."""

    @abstractmethod
    def plan_blocks(self, run: RenderRun) -> list[tuple[Table, BlockRenderer]]:
        """Name everything and return one renderer per selected table."""

    def render(
        self,
        schema: SchemaModel,
        options: GeneratorOptions,
        *,
        parallel: bool = False,
        max_workers: int | None = None,
    ) -> str:
        """Render the module source for ``schema``.

        Args:
            schema: Model to render.
            options: Selection and rendering options.
            parallel: Render table blocks on a thread pool.
            max_workers: Maximum number of parallel workers.

        Raises:
            UnsupportedTypesError: If any selected column type is unsupported.
            UnresolvedForeignKeyTargetError: If a foreign key target is unknown.
        """
        run = prepare_run(schema, options)
        imports = ImportCollector()
        self.register_frame_imports(run, imports)

        jobs = self.plan_blocks(run)
        blocks = _render_blocks(jobs, parallel, max_workers)

        # Merge in sorted table order so output does not depend on scheduling
        for _, block_imports in blocks:
            imports.update(block_imports)

        return self.env.get_template(self.frame_template).render(
            imports=imports.render(),
            blocks=[text for text, _ in blocks],
        )


def _render_block(table: Table, renderer: BlockRenderer) -> tuple[str, ImportCollector]:
    imports = ImportCollector()
    try:
        return renderer(imports), imports
    except SchemaError:
        raise
    except Exception as e:
        raise SchemaError(
            f"Failed to render table '{table.qualified_name}': {e}"
        ) from e


def _render_blocks(
    jobs: Sequence[tuple[Table, BlockRenderer]],
    parallel: bool,
    max_workers: int | None,
) -> list[tuple[str, ImportCollector]]:
    if not parallel or len(jobs) < 2:
        return [_render_block(table, renderer) for table, renderer in jobs]

    results: list[tuple[str, ImportCollector] | None] = [None] * len(jobs)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(_render_block, table, renderer): position
            for position, (table, renderer) in enumerate(jobs)
        }
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return [result for result in results if result is not None]
