"""The MySQL dialect."""

from __future__ import annotations

import hashlib
import re
from typing import Any, Optional, Sequence

from .dialect import (
    _KEY_NAME_PATTERN,
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

_INDEX_PREFIX_PATTERN = re.compile(r"(.+)\((\d+)\)")
_MAX_KEY_NAME_LENGTH = 64
_KEY_PREFIX_LENGTH = 24


class MySQLDialect(CommonDialect):
    """Dialect for MySQL databases."""

    name = "mysql"

    def quote(self, key: str) -> str:
        """Quote an identifier with backticks."""
        return f"`{key}`"

    def _integer_type(self, field: ColumnSpec) -> str:
        if field.bits == 64:
            base = "bigint unsigned" if field.unsigned else "bigint"
        elif field.bits == 8:
            base = "tinyint unsigned" if field.unsigned else "tinyint"
        else:
            base = "int unsigned" if field.unsigned else "int"
        if self._field_can_auto_increment(field):
            field.tag_settings["AUTO_INCREMENT"] = "AUTO_INCREMENT"
            return f"{base} AUTO_INCREMENT"
        return base

    def data_type_of(self, field: ColumnSpec) -> str:
        """Return the MySQL column type for ``field``."""
        value_type, sql_type, size, additional = parse_field_for_dialect(field, self)
        tags = field.tag_settings

        # Only one auto increment column is allowed per table, and it must be a key.
        if "AUTO_INCREMENT" in tags and "INDEX" not in tags and not field.is_primary_key:
            del tags["AUTO_INCREMENT"]

        kind = _value_kind(value_type)
        if not sql_type:
            if kind == "bool":
                sql_type = "boolean"
            elif kind == "int":
                sql_type = self._integer_type(field)
            elif kind == "float":
                sql_type = "double"
            elif kind == "string":
                sql_type = f"varchar({size})" if 0 < size < 65532 else "longtext"
            elif kind == "time":
                precision = f"({tags['PRECISION']})" if "PRECISION" in tags else ""
                if "NOT NULL" in tags or field.is_primary_key:
                    sql_type = f"DATETIME{precision}"
                else:
                    sql_type = f"DATETIME{precision} NULL"
            elif kind == "bytes":
                sql_type = f"varbinary({size})" if 0 < size < 65532 else "longblob"

        if not sql_type:
            raise TypeError(
                f"invalid sql type {_type_label(value_type)} ({kind}) "
                f"in field {field.name} for mysql"
            )
        return _with_additional(sql_type, additional)

    def remove_index(self, table_name: str, index_name: str) -> None:
        """Drop the index ``index_name`` from ``table_name``."""
        self._execute(f"DROP INDEX {index_name} ON {self.quote(table_name)}")

    def modify_column(self, table_name: str, column_name: str, typ: str) -> None:
        """Change the type of a column."""
        self._execute(f"ALTER TABLE {table_name} MODIFY COLUMN {column_name} {typ}")

    def limit_and_offset_sql(self, limit: Any, offset: Any) -> str:
        """Return the LIMIT/OFFSET clause; an offset needs a non-negative limit."""
        sql = ""
        if limit is not None:
            parsed_limit = _parse_int(limit)
            if parsed_limit >= 0:
                sql += f" LIMIT {parsed_limit}"
                if offset is not None:
                    parsed_offset = _parse_int(offset)
                    if parsed_offset >= 0:
                        sql += f" OFFSET {parsed_offset}"
        return sql

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        """Tell whether the foreign key exists on the table."""
        database, table = current_database_and_table(self, table_name)
        return (
            self._count(
                "SELECT count(*) FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS "
                "WHERE CONSTRAINT_SCHEMA=? AND TABLE_NAME=? AND CONSTRAINT_NAME=? "
                "AND CONSTRAINT_TYPE='FOREIGN KEY'",
                (database, table, foreign_key_name),
            )
            > 0
        )

    def _row_exists(self, sql: str, params: Sequence[Any]) -> bool:
        row: Optional[Sequence[Any]] = self._query_row(sql, params)
        return row is not None

    def has_table(self, table_name: str) -> bool:
        """Tell whether the table exists; database errors are raised."""
        database, table = current_database_and_table(self, table_name)
        return self._row_exists(
            f"SHOW TABLES FROM `{database}` WHERE `Tables_in_{database}` = ?",
            (table,),
        )

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Tell whether the table has the index; database errors are raised."""
        database, table = current_database_and_table(self, table_name)
        return self._row_exists(
            f"SHOW INDEXES FROM `{table}` FROM `{database}` WHERE Key_name = ?",
            (index_name,),
        )

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Tell whether the table has the column; database errors are raised."""
        database, table = current_database_and_table(self, table_name)
        return self._row_exists(
            f"SHOW COLUMNS FROM `{table}` FROM `{database}` WHERE Field = ?",
            (column_name,),
        )

    def current_database(self) -> str:
        """Return the name of the current database, or an empty string."""
        try:
            row = self._query_row("SELECT DATABASE()")
        except Exception:
            return ""
        if not row or row[0] is None:
            return ""
        return str(row[0])

    def select_from_dummy_table(self) -> str:
        """Return the FROM clause needed to select bare values."""
        return "FROM DUAL"

    def build_key_name(self, kind: str, table_name: str, *args: str) -> str:
        """Build a key name, hashing it when it exceeds MySQL's 64 character limit."""
        key_name = super().build_key_name(kind, table_name, *args)
        if len(key_name) <= _MAX_KEY_NAME_LENGTH:
            return key_name
        if not args:
            raise ValueError("a field name is needed to shorten a long key name")
        digest = hashlib.sha1(key_name.encode("utf-8")).hexdigest()
        prefix = _KEY_NAME_PATTERN.sub("_", args[0])[:_KEY_PREFIX_LENGTH]
        return f"{prefix}{digest}"

    def normalize_index_and_column(self, index_name: str, column_name: str) -> tuple[str, str]:
        """Move an index prefix length such as ``name(10)`` onto the column."""
        match = _INDEX_PREFIX_PATTERN.fullmatch(index_name)
        if match is None:
            return index_name, column_name
        return match.group(1), f"{column_name}({match.group(2)})"

    def default_value_str(self) -> str:
        """Return the clause used to insert a row of default values."""
        return "VALUES()"


register_dialect("mysql", MySQLDialect)