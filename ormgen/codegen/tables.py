"""Tables generator: ``Table(...)`` constructions on a shared ``MetaData``."""

from __future__ import annotations

from functools import partial

from ..shared.model import Table
from ..shared.naming import disambiguate, table_to_variable_name
from .common import (
    RESERVED_MODULE_NAMES,
    SQLALCHEMY,
    BlockRenderer,
    CodeGenerator,
    RenderRun,
    render_table_block,
)
from .imports import ImportCollector


class TablesGenerator(CodeGenerator):
    name = "tables"
    frame_template = "tables.py.j2"

    def register_frame_imports(self, run: RenderRun, imports: ImportCollector) -> None:
        imports.add(SQLALCHEMY, "MetaData")

    def plan_blocks(self, run: RenderRun) -> list[tuple[Table, BlockRenderer]]:
        taken = set(RESERVED_MODULE_NAMES) | run.type_symbols
        jobs: list[tuple[Table, BlockRenderer]] = []
        for table in run.tables:
            variable = disambiguate(table_to_variable_name(table.name), taken)
            taken.add(variable)
            jobs.append((
                table,
                partial(
                    render_table_block,
                    self.env,
                    run,
                    table,
                    variable,
                    "metadata",
                    always_schema=True,
                ),
            ))
        return jobs
