import ast

from ormgen.codegen.main import get_context, render
from ormgen.codegen.tables import TablesGenerator
from ormgen.shared.options import GeneratorOptions

USERS_MODULE = """\
from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, Text, text

metadata = MetaData()


t_users = Table(
    'users', metadata,
    Column('id', Integer, primary_key=True),
    Column('name', String(100), nullable=False),
    Column('email', String(255), unique=True),
    Column('bio', Text),
    Column('created_at', DateTime(timezone=True), server_default=text('now()')),
    schema='public'
)
"""


def _render(schema, **options) -> str:
    source = render(schema, GeneratorOptions(generator="tables", **options))
    ast.parse(source)
    return source


class TestUsersScenario:
    def test_exact_output(self, users_schema):
        assert _render(users_schema) == USERS_MODULE

    def test_generator_class_directly(self, users_schema):
        generator = TablesGenerator(get_context().template_env)
        options = GeneratorOptions(generator="tables")
        assert generator.render(users_schema, options) == USERS_MODULE

    def test_five_columns(self, users_schema):
        assert _render(users_schema).count("    Column(") == 5


class TestTablesGenerator:
    def test_empty_selection(self, users_schema):
        source = _render(users_schema, tables=["missing"])
        assert source == "from sqlalchemy import MetaData\n\nmetadata = MetaData()\n"

    def test_no_relationships_or_classes(self, blog_schema):
        source = _render(blog_schema)
        assert "relationship" not in source
        assert "class " not in source
        assert "Column('user_id', Integer, ForeignKey('users.id'), nullable=False)," in source

    def test_blocks_separated_and_sorted(self, blog_schema):
        source = _render(blog_schema)
        assert "\n)\n\n\nt_users = Table(\n" in source
        assert source.index("t_posts = Table(") < source.index("t_users = Table(")

    def test_schema_always_emitted(self, make_schema):
        schema = make_schema(
            {"name": "orders", "columns": [{"name": "id", "type": "int"}]},
            dialect="mssql",
        )
        assert "    schema='dbo'\n)" in _render(schema)

    def test_table_items_and_comment(self, make_schema):
        schema = make_schema(
            {
                "name": "memberships",
                "comment": "Group members",
                "columns": [
                    {"name": "group_id", "type": "int4", "nullable": False},
                    {"name": "user_id", "type": "int4", "nullable": False},
                ],
                "primary_key": ["group_id", "user_id"],
                "checks": ["group_id <> user_id"],
                "indexes": [{"name": "ix_memberships_user", "columns": ["user_id"]}],
            }
        )
        source = _render(schema)
        assert (
            "t_memberships = Table(\n"
            "    'memberships', metadata,\n"
            "    Column('group_id', Integer, primary_key=True),\n"
            "    Column('user_id', Integer, primary_key=True),\n"
            "    CheckConstraint('group_id <> user_id'),\n"
            "    Index('ix_memberships_user', 'user_id'),\n"
            "    comment='Group members',\n"
            "    schema='public'\n"
            ")\n"
        ) in source
        assert "from sqlalchemy import CheckConstraint, Column, Index, Integer, MetaData, Table" in source

    def test_variable_names_disambiguated(self, make_schema):
        schema = make_schema(
            {"name": "user-roles", "columns": []},
            {"name": "user_roles", "columns": []},
        )
        source = _render(schema)
        assert "t_user_roles = Table(\n    'user-roles', metadata," in source
        assert "t_user_roles1 = Table(\n    'user_roles', metadata," in source

    def test_array_column(self, make_schema):
        schema = make_schema(
            {"name": "posts", "columns": [{"name": "tags", "type": "text[]"}]}
        )
        source = _render(schema)
        assert "Column('tags', ARRAY(Text))," in source
        assert "from sqlalchemy import ARRAY, Column, MetaData, Table, Text" in source

    def test_parallel_matches_sequential(self, blog_schema):
        options = GeneratorOptions(generator="tables")
        assert render(blog_schema, options, parallel=True) == render(blog_schema, options)
