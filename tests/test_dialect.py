import re
import sqlite3
from datetime import datetime

import pytest

from ormkit.dialect import (
    ColumnSpec,
    CommonDialect,
    build_key_name,
    current_database_and_table,
    get_dialect,
    new_dialect,
    parse_field_for_dialect,
    register_dialect,
)


class FakeCursor:
    def __init__(self, owner):
        self.owner = owner

    def execute(self, sql, params=()):
        self.owner.executed.append((sql, tuple(params)))
        if self.owner.error is not None:
            raise self.owner.error

    def fetchone(self):
        return self.owner.row

    def close(self):
        pass


class FakeDB:
    def __init__(self, row=None, error=None):
        self.row = row
        self.error = error
        self.executed = []

    def cursor(self):
        return FakeCursor(self)


def test_common_dialect_is_registered():
    assert get_dialect("common") is CommonDialect
    assert get_dialect("no-such-dialect") is None


def test_register_and_new_dialect():
    class Custom(CommonDialect):
        name = "custom_test"

    register_dialect("custom_test", Custom)
    db = FakeDB()
    dialect = new_dialect("custom_test", db)
    assert isinstance(dialect, Custom)
    assert dialect.db is db


def test_new_dialect_unknown_falls_back(capsys):
    db = FakeDB()
    dialect = new_dialect("unknown_thing", db)
    assert type(dialect) is CommonDialect
    assert dialect.db is db
    assert "running under compatibility mode" in capsys.readouterr().out


def test_current_database_and_table_split():
    dialect = CommonDialect(FakeDB())
    assert current_database_and_table(dialect, "shop.orders") == ("shop", "orders")
    assert current_database_and_table(dialect, "a.b.c") == ("a", "b.c")


def test_current_database_and_table_uses_current_database():
    dialect = CommonDialect(FakeDB(row=("shop",)))
    assert current_database_and_table(dialect, "orders") == ("shop", "orders")


def test_parse_field_defaults():
    value_type, data_type, size, additional = parse_field_for_dialect(
        ColumnSpec("name", str), CommonDialect()
    )
    assert value_type is str
    assert data_type == ""
    assert size == 255
    assert additional == ""


def test_parse_field_tags():
    spec = ColumnSpec(
        "name",
        str,
        {
            "type": "citext",
            "size": "40",
            "NOT NULL": "NOT NULL",
            "UNIQUE": "UNIQUE",
            "DEFAULT": "'x'",
            "COMMENT": "'c'",
        },
    )
    _, data_type, size, additional = parse_field_for_dialect(spec, CommonDialect())
    assert data_type == "citext"
    assert size == 40
    assert additional == "NOT NULL UNIQUE DEFAULT 'x' COMMENT 'c'"


def test_parse_field_invalid_size_is_zero():
    spec = ColumnSpec("name", str, {"SIZE": "big"})
    assert parse_field_for_dialect(spec, CommonDialect())[2] == 0


def test_orm_data_type_hook():
    class Money:
        @classmethod
        def orm_data_type(cls, dialect):
            return "DECIMAL(10,2)" if dialect.name == "common" else "money"

    spec = ColumnSpec("price", Money)
    assert CommonDialect().data_type_of(spec) == "DECIMAL(10,2)"


def test_wrapper_type_unwrapped():
    class NullInt:
        sql_value_type = int

        def scan(self, value):
            self.value = value

    spec = ColumnSpec("count", NullInt)
    assert parse_field_for_dialect(spec, CommonDialect())[0] is int
    assert CommonDialect().data_type_of(spec) == "INTEGER"


@pytest.mark.parametrize(
    "spec, expected",
    [
        (ColumnSpec("flag", bool), "BOOLEAN"),
        (ColumnSpec("id", int, is_primary_key=True), "INTEGER AUTO_INCREMENT"),
        (ColumnSpec("age", int), "INTEGER"),
        (ColumnSpec("id", int, is_primary_key=True, bits=64), "BIGINT AUTO_INCREMENT"),
        (
            ColumnSpec("id", int, {"AUTO_INCREMENT": "False"}, is_primary_key=True, bits=64),
            "BIGINT",
        ),
        (ColumnSpec("ratio", float), "FLOAT"),
        (ColumnSpec("body", str, {"SIZE": "70000"}), "VARCHAR(65532)"),
        (ColumnSpec("born", datetime), "TIMESTAMP"),
        (ColumnSpec("blob", bytes, {"SIZE": "0"}), "BINARY(65532)"),
    ],
)
def test_common_data_types(spec, expected):
    assert CommonDialect().data_type_of(spec) == expected


def test_common_sized_types_follow_size():
    dialect = CommonDialect()
    assert dialect.data_type_of(ColumnSpec("name", str, {"SIZE": "100"})) == "VARCHAR(100)"
    assert dialect.data_type_of(ColumnSpec("raw", bytes, {"SIZE": "16"})) == "BINARY(16)"
    assert dialect.data_type_of(ColumnSpec("raw", bytes)) == "BINARY(255)"


def test_common_data_type_with_additional():
    spec = ColumnSpec("age", int, {"NOT NULL": "NOT NULL"})
    assert CommonDialect().data_type_of(spec) == "INTEGER NOT NULL"


def test_common_data_type_unsupported():
    class Opaque:
        pass

    with pytest.raises(TypeError, match="invalid sql type Opaque"):
        CommonDialect().data_type_of(ColumnSpec("thing", Opaque))


def test_limit_and_offset():
    dialect = CommonDialect()
    assert dialect.limit_and_offset_sql(10, 5) == " LIMIT 10 OFFSET 5"
    assert dialect.limit_and_offset_sql(None, None) == ""
    assert dialect.limit_and_offset_sql(-1, -1) == ""
    assert dialect.limit_and_offset_sql("0x10", None) == dialect.limit_and_offset_sql(16, None)


def test_limit_invalid_raises():
    with pytest.raises(ValueError):
        CommonDialect().limit_and_offset_sql("abc", None)
    with pytest.raises(ValueError):
        CommonDialect().limit_and_offset_sql(None, "ten")


def test_has_table_uses_count():
    assert CommonDialect(FakeDB(row=(1,))).has_table("x.orders") is True
    assert CommonDialect(FakeDB(row=(0,))).has_table("x.orders") is False
    db = FakeDB(row=(1,))
    CommonDialect(db).has_column("x.orders", "total")
    assert db.executed[-1][1] == ("x", "orders", "total")


def test_has_index_with_error_is_false():
    dialect = CommonDialect(FakeDB(error=RuntimeError("boom")))
    assert dialect.has_index("x.orders", "idx") is False
    assert dialect.current_database() == ""


def test_common_on_sqlite_has_no_information_schema():
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE orders (id integer)")
    dialect = CommonDialect(conn)
    assert dialect.has_table("orders") is False
    assert dialect.has_foreign_key("orders", "fk") is False


def test_remove_index_and_modify_column_execute():
    db = FakeDB()
    dialect = CommonDialect(db)
    dialect.remove_index("orders", "idx_orders_total")
    assert db.executed[-1][0].startswith("DROP INDEX")
    assert db.executed[-1][0].endswith("idx_orders_total")
    dialect.modify_column("orders", "total", "bigint")
    assert db.executed[-1][0].startswith("ALTER TABLE orders ALTER COLUMN total")


def test_execute_errors_propagate():
    dialect = CommonDialect(FakeDB(error=RuntimeError("boom")))
    with pytest.raises(RuntimeError):
        dialect.remove_index("orders", "idx")


def test_build_key_name_invariants():
    name = build_key_name("idx", "my-table", "first name", "last.name")
    assert re.fullmatch(r"[a-zA-Z0-9_]+", name)
    assert name.startswith("idx_my_table_")
    assert CommonDialect().build_key_name("idx", "my-table", "first name", "last.name") == name


def test_misc_values():
    dialect = CommonDialect()
    assert dialect.bind_var(3) == "$$$"
    assert dialect.quote("user") == '"user"'
    assert dialect.default_value_str() == "DEFAULT VALUES"
    assert dialect.select_from_dummy_table() == ""
    assert dialect.last_insert_id_returning_suffix("t", "id") == ""
    assert dialect.last_insert_id_output_interstitial("t", "id", ["a"]) == ""
    assert dialect.normalize_index_and_column("idx(10)", "name") == ("idx(10)", "name")