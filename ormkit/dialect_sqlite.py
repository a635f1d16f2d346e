"""The SQLite dialect."""

from __future__ import annotations

from typing import Any

from .dialect import (
    ColumnSpec,
    CommonDialect,
    _type_label,
    _value_kind,
    _with_additional,
    parse_field_for_dialect,
    register_dialect,
)


class SQLite3Dialect(CommonDialect):
    """Dialect for SQLite databases."""

    name = "sqlite3"

    def data_type_of(self, field: ColumnSpec) -> str:
        """Return the SQLite column type for ``field``."""
        value_type, sql_type, size, additional = parse_field_for_dialect(field, self)
        kind = _value_kind(value_type)

        if not sql_type:
            if kind == "bool":
                sql_type = "bool"
            elif kind == "int":
                if self._field_can_auto_increment(field):
                    field.tag_settings["AUTO_INCREMENT"] = "AUTO_INCREMENT"
                    sql_type = "integer primary key autoincrement"
                else:
                    sql_type = "bigint" if field.bits == 64 else "integer"
            elif kind == "float":
                sql_type = "real"
            elif kind == "string":
                sql_type = f"varchar({size})" if 0 < size < 65532 else "text"
            elif kind == "time":
                sql_type = "datetime"
            elif kind == "bytes":
                sql_type = "blob"

        if not sql_type:
            raise TypeError(
                f"invalid sql type {_type_label(value_type)} ({kind}) for sqlite3"
            )
        return _with_additional(sql_type, additional)

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Tell whether ``table_name`` has the index ``index_name``."""
        sql = (
            "SELECT count(*) FROM sqlite_master WHERE tbl_name = ? "
            f"AND sql LIKE '%INDEX {index_name} ON%'"
        )
        return self._count(sql, (table_name,)) > 0

    def has_table(self, table_name: str) -> bool:
        """Tell whether the table exists."""
        return (
            self._count(
                "SELECT count(*) FROM sqlite_master WHERE type='table' AND name=?",
                (table_name,),
            )
            > 0
        )

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Tell whether the table definition mentions the column."""
        sql = (
            "SELECT count(*) FROM sqlite_master WHERE tbl_name = ? AND "
            f"(sql LIKE '%\"{column_name}\" %' OR sql LIKE '%{column_name} %');\n"
        )
        return self._count(sql, (table_name,)) > 0

    def current_database(self) -> str:
        """Return the name of the first attached database, or an empty string."""
        try:
            row: Any = self._query_row("PRAGMA database_list")
        except Exception:
            return ""
        if not row or len(row) < 2 or row[1] is None:
            return ""
        return str(row[1])


register_dialect("sqlite3", SQLite3Dialect)