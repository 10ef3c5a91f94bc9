import pytest

from ormgen.shared.errors import DialectError, UnsupportedTypeError
from ormgen.shared.model import Column, ColumnType, Dialect, PrimaryKey, Table
from ormgen.typemap import MappedType, catalog, map_column, map_type
from ormgen.typemap import main as typemap_main
from ormgen.typemap import mssql, postgresql
from ormgen.typemap.base import format_numeric_type, format_string_type

PG_DIALECTS = "sqlalchemy.dialects.postgresql"
MSSQL_DIALECTS = "sqlalchemy.dialects.mssql"


class TestFormatHelpers:
    @pytest.mark.parametrize(
        "length,collation,expected",
        [
            (50, None, "String(50)"),
            (50, "C", "String(50, 'C')"),
            (None, "C", "String(collation='C')"),
            (None, None, "String"),
        ],
    )
    def test_format_string_type(self, length, collation, expected):
        assert format_string_type("String", length, collation) == expected

    @pytest.mark.parametrize(
        "precision,scale,expected",
        [
            (10, 2, "Numeric(10, 2)"),
            (10, None, "Numeric(10)"),
            (None, None, "Numeric"),
        ],
    )
    def test_format_numeric_type(self, precision, scale, expected):
        assert format_numeric_type("Numeric", precision, scale) == expected


class TestPostgresqlTypes:
    @pytest.mark.parametrize(
        "column_type,sa_type,python_type",
        [
            (ColumnType("int4"), "Integer", "int"),
            (ColumnType("serial"), "Integer", "int"),
            (ColumnType("int8"), "BigInteger", "int"),
            (ColumnType("int2"), "SmallInteger", "int"),
            (ColumnType("bool"), "Boolean", "bool"),
            (ColumnType("float8"), "Double", "float"),
            (ColumnType("real"), "Float", "float"),
            (ColumnType("text"), "Text", "str"),
            (ColumnType("varchar", length=100), "String(100)", "str"),
            (ColumnType("bpchar", length=2), "String(2)", "str"),
            (ColumnType("numeric", precision=10, scale=2), "Numeric(10, 2)", "decimal.Decimal"),
            (ColumnType("numeric"), "Numeric", "decimal.Decimal"),
            (ColumnType("bytea"), "LargeBinary", "bytes"),
            (ColumnType("timestamp"), "DateTime", "datetime.datetime"),
            (ColumnType("timestamptz"), "DateTime(timezone=True)", "datetime.datetime"),
            (ColumnType("timestamp", timezone=True), "DateTime(timezone=True)", "datetime.datetime"),
            (ColumnType("timetz"), "Time(timezone=True)", "datetime.time"),
            (ColumnType("date"), "Date", "datetime.date"),
            (ColumnType("interval"), "Interval", "datetime.timedelta"),
            (ColumnType("uuid"), "UUID", "uuid.UUID"),
            (ColumnType("jsonb"), "JSONB", "dict"),
            (ColumnType("inet"), "INET", "str"),
        ],
    )
    def test_scalar_mapping(self, column_type, sa_type, python_type):
        mapped = map_type(Dialect.POSTGRESQL, column_type)
        assert mapped.sa_type == sa_type
        assert mapped.python_type == python_type

    def test_bounded_string_imports_string(self):
        mapped = map_type("postgresql", ColumnType("varchar", length=255))
        assert mapped.imports == (("sqlalchemy", "String"),)

    def test_unbounded_string_maps_to_text(self):
        mapped = map_type("postgresql", ColumnType("varchar"))
        assert mapped.sa_type == "Text"
        assert mapped.imports == (("sqlalchemy", "Text"),)

    def test_collation(self):
        mapped = map_type("postgresql", ColumnType("varchar", length=20, collation="C"))
        assert mapped.sa_type == "String(20, 'C')"

    def test_dialect_specific_import(self):
        mapped = map_type("postgresql", ColumnType("uuid"))
        assert mapped.imports == ((PG_DIALECTS, "UUID"),)
        assert mapped.annotation_imports == (("uuid", None),)

    def test_underscore_array(self):
        mapped = map_type("postgresql", ColumnType("_int4"))
        assert mapped.sa_type == "ARRAY(Integer)"
        assert mapped.python_type == "list"
        assert mapped.imports == (("sqlalchemy", "ARRAY"), ("sqlalchemy", "Integer"))

    def test_underscore_array_keeps_modifiers(self):
        mapped = map_type("postgresql", ColumnType("_varchar", length=10))
        assert mapped.sa_type == "ARRAY(String(10))"

    def test_nested_array(self):
        inner = ColumnType("array", element_type=ColumnType("text"))
        mapped = map_type("postgresql", ColumnType("array", element_type=inner))
        assert mapped.sa_type == "ARRAY(ARRAY(Text))"
        assert mapped.imports == (("sqlalchemy", "ARRAY"), ("sqlalchemy", "Text"))

    def test_array_of_dialect_type(self):
        mapped = map_type("postgresql", ColumnType("array", element_type=ColumnType("uuid")))
        assert mapped.sa_type == "ARRAY(UUID)"
        assert (PG_DIALECTS, "UUID") in mapped.imports

    def test_array_without_element_is_unsupported(self):
        with pytest.raises(UnsupportedTypeError) as exc_info:
            map_type("postgresql", ColumnType("array"))
        assert exc_info.value.type_name == "array"

    @pytest.mark.parametrize("name", ["tsvector", "point", "money", "_tsvector"])
    def test_unsupported(self, name):
        with pytest.raises(UnsupportedTypeError) as exc_info:
            map_type("postgresql", ColumnType(name))
        assert exc_info.value.dialect == "postgresql"


class TestMssqlTypes:
    @pytest.mark.parametrize(
        "column_type,sa_type,python_type",
        [
            (ColumnType("bit"), "Boolean", "bool"),
            (ColumnType("int"), "Integer", "int"),
            (ColumnType("float"), "Double", "float"),
            (ColumnType("money"), "Numeric(19, 4)", "decimal.Decimal"),
            (ColumnType("smallmoney"), "Numeric(10, 4)", "decimal.Decimal"),
            (ColumnType("decimal", precision=18, scale=0), "Numeric(18, 0)", "decimal.Decimal"),
            (ColumnType("varchar", length=50), "String(50)", "str"),
            (ColumnType("varchar"), "Text", "str"),
            (ColumnType("nvarchar", length=50), "Unicode(50)", "str"),
            (ColumnType("nvarchar"), "UnicodeText", "str"),
            (ColumnType("ntext"), "UnicodeText", "str"),
            (ColumnType("varbinary", length=16), "LargeBinary", "bytes"),
            (ColumnType("datetime2"), "DateTime", "datetime.datetime"),
            (ColumnType("datetimeoffset"), "DateTime(timezone=True)", "datetime.datetime"),
            (ColumnType("uniqueidentifier"), "UNIQUEIDENTIFIER", "str"),
            (ColumnType("tinyint"), "TINYINT", "int"),
        ],
    )
    def test_scalar_mapping(self, column_type, sa_type, python_type):
        mapped = map_type(Dialect.MSSQL, column_type)
        assert mapped.sa_type == sa_type
        assert mapped.python_type == python_type

    def test_collation(self):
        mapped = map_type("mssql", ColumnType("nvarchar", collation="Latin1_General_CI_AS"))
        assert mapped.sa_type == "UnicodeText(collation='Latin1_General_CI_AS')"

    def test_dialect_specific_imports(self):
        assert map_type("mssql", ColumnType("uniqueidentifier")).imports == (
            (MSSQL_DIALECTS, "UNIQUEIDENTIFIER"),
        )
        assert map_type("mssql", ColumnType("money")).imports == (("sqlalchemy", "Numeric"),)

    @pytest.mark.parametrize("name", ["xml", "int4", "sql_variant", "array"])
    def test_unsupported(self, name):
        with pytest.raises(UnsupportedTypeError):
            map_type("mssql", ColumnType(name))


class TestCatalogTotality:
    @pytest.mark.parametrize("name", sorted(postgresql.CATALOG))
    def test_every_postgresql_entry_maps(self, name):
        assert isinstance(map_type("postgresql", ColumnType(name)), MappedType)

    @pytest.mark.parametrize("name", sorted(mssql.CATALOG))
    def test_every_mssql_entry_maps(self, name):
        assert isinstance(map_type("mssql", ColumnType(name)), MappedType)

    def test_catalog_is_sorted(self):
        names = list(catalog("postgresql"))
        assert names == sorted(names)
        assert set(names) == set(postgresql.CATALOG)

    def test_unknown_dialect(self):
        with pytest.raises(DialectError):
            map_type("oracle", ColumnType("int"))


class TestNullable:
    def test_not_nullable_unwrapped(self):
        mapped = map_type("postgresql", ColumnType("text"), nullable=False)
        assert mapped.annotation == "str"
        assert mapped.annotation_imports == ()

    def test_nullable_wrapped(self):
        mapped = map_type("postgresql", ColumnType("text"), nullable=True)
        assert mapped.annotation == "Optional[str]"
        assert mapped.annotation_imports == (("typing", "Optional"),)

    def test_nullable_module_type(self):
        mapped = map_type("postgresql", ColumnType("date"), nullable=True)
        assert mapped.annotation == "Optional[datetime.date]"
        assert mapped.annotation_imports == (("datetime", None), ("typing", "Optional"))

    def test_deterministic(self):
        column_type = ColumnType("numeric", precision=8, scale=3)
        assert map_type("postgresql", column_type) == map_type("postgresql", column_type)


class TestMapColumn:
    def _table(self, *columns: Column) -> Table:
        return Table(
            name="users",
            schema="public",
            columns=columns,
            constraints=(PrimaryKey(("id",)),),
        )

    def test_primary_key_never_optional(self):
        column = Column("id", ColumnType("int4"), nullable=True)
        assert map_column("postgresql", self._table(column), column).annotation == "int"

    def test_nullable_column_optional(self):
        column = Column("bio", ColumnType("text"))
        table = self._table(Column("id", ColumnType("int4")), column)
        assert map_column("postgresql", table, column).annotation == "Optional[str]"

    def test_error_names_column(self):
        column = Column("search", ColumnType("tsvector"))
        table = self._table(Column("id", ColumnType("int4")), column)
        with pytest.raises(UnsupportedTypeError) as exc_info:
            map_column("postgresql", table, column)
        assert exc_info.value.context == "column 'public.users.search'"
        assert "tsvector" in str(exc_info.value)


class TestTypesCommand:
    def test_lists_one_dialect(self, capsys):
        typemap_main.main(["mssql"])
        out = capsys.readouterr().out
        assert out.startswith("mssql:")
        assert "uniqueidentifier" in out
        assert "postgresql:" not in out

    def test_lists_all_dialects(self, capsys):
        typemap_main.main([])
        out = capsys.readouterr().out
        assert "postgresql:" in out
        assert "mssql:" in out
        assert "sqlalchemy.ARRAY -> list" in out

    def test_unknown_dialect(self):
        with pytest.raises(SystemExit) as exc_info:
            typemap_main.main(["oracle"])
        assert str(exc_info.value.code).startswith("Error:")
