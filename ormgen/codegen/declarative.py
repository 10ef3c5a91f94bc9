"""Declarative generator: one ``Mapped[...]`` class per table with a primary key."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial

from ..shared.model import Column, ForeignKey, Table, TableKey
from ..shared.naming import (
    Direction,
    column_to_attr_name,
    disambiguate,
    relationship_name,
    table_to_class_name,
    table_to_variable_name,
)
from .common import (
    RESERVED_MODULE_NAMES,
    SQLALCHEMY_ORM,
    BlockRenderer,
    CodeGenerator,
    RenderRun,
    column_arguments,
    columns_are_unique,
    is_mapped_class,
    render_table_block,
    table_items,
)
from .imports import ImportCollector


@dataclass(slots=True)
class RelationshipPlan:
    """A relationship attribute; ``back_populates`` is filled in by the second pass."""

    name: str
    target_class: str
    collection: bool = False
    optional: bool = False
    arguments: list[str] = field(default_factory=list)
    back_populates: str | None = None

    @property
    def annotation(self) -> str:
        target = repr(self.target_class)
        if self.collection:
            return f"List[{target}]"
        if self.optional:
            return f"Optional[{target}]"
        return target

    def render(self) -> str:
        args = [repr(self.target_class)] + self.arguments
        if self.back_populates is not None:
            args.append(f"back_populates={self.back_populates!r}")
        return f"{self.name}: Mapped[{self.annotation}] = relationship({', '.join(args)})"


@dataclass(slots=True)
class ClassPlan:
    table: Table
    class_name: str
    attributes: dict[str, str] = field(default_factory=dict)
    relationships: list[RelationshipPlan] = field(default_factory=list)
    taken: set[str] = field(default_factory=set)

    def attribute(self, column: str) -> str:
        return self.attributes[column]


def ordered_columns(table: Table) -> list[Column]:
    """Primary key columns, then non-nullable, then nullable, each in declaration order."""
    primary = set(table.primary_key_columns)
    return (
        [col for col in table.columns if col.name in primary]
        + [col for col in table.columns if col.name not in primary and not col.nullable]
        + [col for col in table.columns if col.name not in primary and col.nullable]
    )


class DeclarativeGenerator(CodeGenerator):
    name = "declarative"
    frame_template = "declarative.py.j2"

    def register_frame_imports(self, run: RenderRun, imports: ImportCollector) -> None:
        imports.add(SQLALCHEMY_ORM, "DeclarativeBase")

    def plan_blocks(self, run: RenderRun) -> list[tuple[Table, BlockRenderer]]:
        taken = set(RESERVED_MODULE_NAMES) | run.type_symbols
        plans: dict[TableKey, ClassPlan] = {}
        variables: dict[TableKey, str] = {}

        for table in run.tables:
            if is_mapped_class(table):
                name = table_to_class_name(table.name, run.options.use_inflect)
                plan = ClassPlan(table=table, class_name=disambiguate(name, taken))
                taken.add(plan.class_name)
                for column in table.columns:
                    attr = disambiguate(
                        column_to_attr_name(column.name),
                        plan.taken,
                        scope=f"class {plan.class_name}",
                    )
                    plan.attributes[column.name] = attr
                    plan.taken.add(attr)
                plans[table.key] = plan
            else:
                variable = disambiguate(table_to_variable_name(table.name), taken)
                taken.add(variable)
                variables[table.key] = variable

        if not run.options.nojoined:
            self._plan_relationships(run, plans)

        jobs: list[tuple[Table, BlockRenderer]] = []
        for table in run.tables:
            if table.key in plans:
                jobs.append((table, partial(self._render_class, run, plans[table.key])))
            else:
                jobs.append((
                    table,
                    partial(
                        render_table_block,
                        self.env,
                        run,
                        table,
                        variables[table.key],
                        "Base.metadata",
                        always_schema=False,
                    ),
                ))
        return jobs

    def _plan_relationships(self, run: RenderRun, plans: dict[TableKey, ClassPlan]) -> None:
        """Name forward relationships for every class first, then back-references."""
        forwards: list[tuple[ClassPlan, ForeignKey, RelationshipPlan, ClassPlan]] = []
        use_inflect = run.options.use_inflect

        for plan in plans.values():
            table = plan.table
            target_counts: dict[TableKey, int] = {}
            for fk in table.foreign_keys:
                key = table.target_key(fk)
                target_counts[key] = target_counts.get(key, 0) + 1

            for fk in table.foreign_keys:
                target_key = table.target_key(fk)
                target = run.index[target_key]
                if not is_mapped_class(target):
                    continue
                target_plan = plans.get(target_key)
                if target_plan is not None:
                    target_class = target_plan.class_name
                else:
                    target_class = table_to_class_name(target.name, use_inflect)

                forward = RelationshipPlan(
                    name=self._claim(
                        plan,
                        relationship_name(
                            fk, Direction.FORWARD, use_inflect, source_table=table.name
                        ),
                    ),
                    target_class=target_class,
                    optional=any(
                        column.nullable
                        for column in (table.column(name) for name in fk.columns)
                        if column is not None
                    ),
                )
                if target_key == table.key:
                    remote = ", ".join(plan.attribute(col) for col in fk.target_columns)
                    forward.arguments.append(f"remote_side=[{remote}]")
                if target_counts[target_key] > 1:
                    local = ", ".join(plan.attribute(col) for col in fk.columns)
                    forward.arguments.append(f"foreign_keys=[{local}]")
                plan.relationships.append(forward)

                if target_plan is not None:
                    forwards.append((plan, fk, forward, target_plan))

        if run.options.nobidi:
            return

        for plan, fk, forward, target_plan in forwards:
            table = plan.table
            unique = columns_are_unique(table, fk.columns)
            backref = RelationshipPlan(
                name=self._claim(
                    target_plan,
                    relationship_name(
                        fk,
                        Direction.BACKREF,
                        use_inflect,
                        source_table=table.name,
                        unique=unique,
                    ),
                ),
                target_class=plan.class_name,
                collection=not unique,
                optional=unique,
                back_populates=forward.name,
            )
            if unique:
                backref.arguments.append("uselist=False")
            if target_plan is plan:
                local = ", ".join(plan.attribute(col) for col in fk.columns)
                backref.arguments.append(f"remote_side=[{local}]")
            elif any(arg.startswith("foreign_keys=") for arg in forward.arguments):
                # The source class is defined elsewhere in the module, so pass a string
                local = ", ".join(
                    f"{plan.class_name}.{plan.attribute(col)}" for col in fk.columns
                )
                expression = f"[{local}]"
                backref.arguments.append(f"foreign_keys={expression!r}")
            forward.back_populates = backref.name
            target_plan.relationships.append(backref)

    @staticmethod
    def _claim(plan: ClassPlan, name: str) -> str:
        attr = disambiguate(name, plan.taken, scope=f"class {plan.class_name}")
        plan.taken.add(attr)
        return attr

    def _render_class(self, run: RenderRun, plan: ClassPlan, imports: ImportCollector) -> str:
        table = plan.table
        options = run.options
        imports.add(SQLALCHEMY_ORM, "Mapped")
        imports.add(SQLALCHEMY_ORM, "mapped_column")

        columns: list[str] = []
        for column in ordered_columns(table):
            mapped = run.mapped_type(table, column)
            imports.add_all(mapped.annotation_imports)
            attr = plan.attribute(column.name)
            args = column_arguments(run, table, column, imports)
            if attr != column.name:
                args.insert(0, repr(column.name))
            columns.append(
                f"{attr}: Mapped[{mapped.annotation}] = mapped_column({', '.join(args)})"
            )

        relationships: list[str] = []
        for relationship in plan.relationships:
            imports.add(SQLALCHEMY_ORM, "relationship")
            if relationship.collection:
                imports.add("typing", "List")
            elif relationship.optional:
                imports.add("typing", "Optional")
            relationships.append(relationship.render())

        rendered = self.env.get_template("class.py.j2").render(
            class_name=plan.class_name,
            table_name=repr(table.name),
            table_args=self._table_args(run, table, imports),
            columns=columns,
            relationships=relationships,
        )
        return rendered.rstrip("\n")

    @staticmethod
    def _table_args(run: RenderRun, table: Table, imports: ImportCollector) -> str | None:
        items = table_items(run, table, imports)
        kwargs: dict[str, str] = {}
        if table.comment and not run.options.nocomments:
            kwargs["comment"] = table.comment
        if table.schema != run.dialect.default_schema:
            kwargs["schema"] = table.schema
        if kwargs:
            items.append(repr(kwargs))

        if not items:
            return None
        if not kwargs or len(items) > 1:
            body = "".join(f"        {item},\n" for item in items)
            return f"(\n{body}    )"
        return items[0]
