from typing import Any

import pytest

from ormgen.shared.schema_loader import build_schema_model


@pytest.fixture
def users_table() -> dict[str, Any]:
    return {
        "name": "users",
        "columns": [
            {"name": "id", "type": "serial", "nullable": False, "primary_key": True},
            {"name": "name", "type": "varchar(100)", "nullable": False},
            {"name": "email", "type": "varchar(255)", "unique": True},
            {"name": "bio", "type": "text"},
            {"name": "created_at", "type": "timestamptz", "default": "now()"},
        ],
    }


@pytest.fixture
def posts_table() -> dict[str, Any]:
    return {
        "name": "posts",
        "columns": [
            {"name": "id", "type": "serial", "nullable": False, "primary_key": True},
            {"name": "user_id", "type": "int4", "nullable": False},
            {"name": "title", "type": "varchar(200)", "nullable": False},
        ],
        "foreign_keys": [
            {"columns": ["user_id"], "references": {"table": "users", "columns": ["id"]}},
        ],
    }


@pytest.fixture
def make_schema():
    """Build a SchemaModel from table dictionaries in snapshot format."""

    def _make(*tables: dict[str, Any], dialect: str = "postgresql"):
        return build_schema_model({"dialect": dialect, "tables": list(tables)})

    return _make


@pytest.fixture
def users_schema(make_schema, users_table):
    return make_schema(users_table)


@pytest.fixture
def blog_schema(make_schema, users_table, posts_table):
    return make_schema(users_table, posts_table)


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "schema.yaml"
    path.write_text(
        """\
dialect: postgresql
tables:
  - name: users
    columns:
      - {name: id, type: serial, nullable: false}
      - {name: name, type: varchar(100), nullable: false}
    primary_key: [id]
  - name: posts
    columns:
      - {name: id, type: serial, nullable: false}
      - {name: user_id, type: int4, nullable: false}
    primary_key: [id]
    foreign_keys:
      - columns: [user_id]
        references: {table: users}
""",
        encoding="utf-8",
    )
    return path
