"""The Microsoft SQL Server dialect."""

from __future__ import annotations

from typing import Any, Sequence

from .dialect import (
    ColumnSpec,
    CommonDialect,
    _parse_int,
    _type_label,
    _value_kind,
    _with_additional,
    current_database_and_table,
    parse_field_for_dialect,
    register_dialect,
)

_MAX_SIZED_LENGTH = 8000


class MSSQLDialect(CommonDialect):
    """Dialect for Microsoft SQL Server databases."""

    name = "mssql"

    def _field_can_auto_increment(self, field: ColumnSpec) -> bool:
        if "AUTO_INCREMENT" in field.tag_settings:
            return field.tag_settings["AUTO_INCREMENT"] != "FALSE"
        return field.is_primary_key

    def bind_var(self, i: int) -> str:
        """Return the placeholder for the ``i``-th bound value."""
        return "$$$"

    def quote(self, key: str) -> str:
        """Quote an identifier with square brackets."""
        return f"[{key}]"

    def data_type_of(self, field: ColumnSpec) -> str:
        """Return the SQL Server column type for ``field``."""
        value_type, sql_type, size, additional = parse_field_for_dialect(field, self)
        kind = _value_kind(value_type)

        if not sql_type:
            if kind == "bool":
                sql_type = "bit"
            elif kind == "int":
                base = "bigint" if field.bits == 64 else "int"
                if self._field_can_auto_increment(field):
                    field.tag_settings["AUTO_INCREMENT"] = "AUTO_INCREMENT"
                    sql_type = f"{base} IDENTITY(1,1)"
                else:
                    sql_type = base
            elif kind == "float":
                sql_type = "float"
            elif kind == "string":
                if 0 < size < _MAX_SIZED_LENGTH:
                    sql_type = f"nvarchar({size})"
                else:
                    sql_type = "nvarchar(max)"
            elif kind == "time":
                sql_type = "datetimeoffset"
            elif kind == "bytes":
                if 0 < size < _MAX_SIZED_LENGTH:
                    sql_type = f"varbinary({size})"
                else:
                    sql_type = "varbinary(max)"

        if not sql_type:
            raise TypeError(
                f"invalid sql type {_type_label(value_type)} ({kind}) for mssql"
            )
        return _with_additional(sql_type, additional)

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Tell whether ``table_name`` has the index ``index_name``."""
        return (
            self._count(
                "SELECT count(*) FROM sys.indexes WHERE name=? AND object_id=OBJECT_ID(?)",
                (index_name, table_name),
            )
            > 0
        )

    def remove_index(self, table_name: str, index_name: str) -> None:
        """Drop the index ``index_name`` from ``table_name``."""
        self._execute(f"DROP INDEX {index_name} ON {self.quote(table_name)}")

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        """Tell whether the foreign key exists on the table."""
        database, table = current_database_and_table(self, table_name)
        return (
            self._count(
                "SELECT count(*) \n"
                "\tFROM sys.foreign_keys as F inner join sys.tables as T "
                "on F.parent_object_id=T.object_id \n"
                "\t\tinner join information_schema.tables as I on I.TABLE_NAME = T.name \n"
                "\tWHERE F.name = ? \n"
                "\t\tAND T.Name = ? AND I.TABLE_CATALOG = ?;",
                (foreign_key_name, table, database),
            )
            > 0
        )

    def has_table(self, table_name: str) -> bool:
        """Tell whether the table exists in the current catalog."""
        database, table = current_database_and_table(self, table_name)
        return (
            self._count(
                "SELECT count(*) FROM INFORMATION_SCHEMA.tables "
                "WHERE table_name = ? AND table_catalog = ?",
                (table, database),
            )
            > 0
        )

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Tell whether the table has the column."""
        database, table = current_database_and_table(self, table_name)
        return (
            self._count(
                "SELECT count(*) FROM information_schema.columns "
                "WHERE table_catalog = ? AND table_name = ? AND column_name = ?",
                (database, table, column_name),
            )
            > 0
        )

    def modify_column(self, table_name: str, column_name: str, typ: str) -> None:
        """Change the type of a column."""
        self._execute(f"ALTER TABLE {table_name} ALTER COLUMN {column_name} {typ}")

    def current_database(self) -> str:
        """Return the name of the current database, or an empty string."""
        try:
            row = self._query_row("SELECT DB_NAME() AS [Current Database]")
        except Exception:
            return ""
        if not row or row[0] is None:
            return ""
        return str(row[0])

    def limit_and_offset_sql(self, limit: Any, offset: Any) -> str:
        """Return the OFFSET/FETCH clause; a limit without offset starts at row 0."""
        sql = ""
        if offset is not None:
            parsed_offset = _parse_int(offset)
            if parsed_offset >= 0:
                sql += f" OFFSET {parsed_offset} ROWS"
        if limit is not None:
            parsed_limit = _parse_int(limit)
            if parsed_limit >= 0:
                if not sql:
                    sql += " OFFSET 0 ROWS"
                sql += f" FETCH NEXT {parsed_limit} ROWS ONLY"
        return sql

    def select_from_dummy_table(self) -> str:
        """Return the FROM clause needed to select bare values."""
        return ""

    def last_insert_id_output_interstitial(
        self, table_name: str, column_name: str, columns: Sequence[str]
    ) -> str:
        """Return the OUTPUT clause that yields the new id, if columns are inserted."""
        if not columns:
            return ""
        return f"OUTPUT Inserted.{column_name}"

    def last_insert_id_returning_suffix(self, table_name: str, column_name: str) -> str:
        """Return the statement appended to an INSERT to get the new id."""
        return "; SELECT SCOPE_IDENTITY()"

    def default_value_str(self) -> str:
        """Return the clause used to insert a row of default values."""
        return "DEFAULT VALUES"

    def normalize_index_and_column(self, index_name: str, column_name: str) -> tuple[str, str]:
        """Return the index and column names unchanged."""
        return index_name, column_name


register_dialect("mssql", MSSQLDialect)