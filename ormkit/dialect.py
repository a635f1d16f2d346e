"""SQL dialect registry, column type resolution and the generic dialect."""

from __future__ import annotations

import re
from dataclasses import dataclass, field as dc_field
from datetime import datetime
from typing import Any, Optional, Sequence

_KEY_NAME_PATTERN = re.compile(r"[^a-zA-Z0-9]+")
_LEGACY_OCTAL = re.compile(r"^[+-]?0[0-7_]+$")

DEFAULT_SIZE = 255


@dataclass
class ColumnSpec:
    """Description of a model field as seen by a dialect.

    ``value_type`` is the Python type stored in the field. For integers,
    ``bits`` gives the width (8, 16, 32 or 64; ``None`` for a plain int) and
    ``unsigned`` the signedness. Tag setting keys are kept upper case.
    """

    name: str
    value_type: Any = str
    tag_settings: dict[str, str] = dc_field(default_factory=dict)
    is_primary_key: bool = False
    bits: Optional[int] = None
    unsigned: bool = False

    def __post_init__(self) -> None:
        self.tag_settings = {
            key.strip().upper(): value for key, value in self.tag_settings.items()
        }


def _value_kind(value_type: Any) -> str:
    """Classify a Python type into the broad kind used for type mapping."""
    if not isinstance(value_type, type):
        return "invalid"
    if issubclass(value_type, bool):
        return "bool"
    if issubclass(value_type, int):
        return "int"
    if issubclass(value_type, float):
        return "float"
    if issubclass(value_type, str):
        return "string"
    if issubclass(value_type, datetime):
        return "time"
    if issubclass(value_type, (bytes, bytearray, memoryview)):
        return "bytes"
    if issubclass(value_type, dict):
        return "map"
    return "struct"


def _type_label(value_type: Any) -> str:
    return getattr(value_type, "__name__", str(value_type))


def _parse_int(value: Any) -> int:
    text = str(value).strip()
    if _LEGACY_OCTAL.match(text):
        return int(text.replace("_", ""), 8)
    try:
        return int(text, 0)
    except ValueError as exc:
        raise ValueError(f"invalid integer {text!r}") from exc


_dialects: dict[str, type] = {}


def register_dialect(name: str, dialect_class: type) -> None:
    """Register ``dialect_class`` under ``name``."""
    _dialects[name] = dialect_class


def get_dialect(name: str) -> Optional[type]:
    """Return the dialect class registered under ``name``, or None."""
    return _dialects.get(name)


def new_dialect(name: str, db: Any) -> Any:
    """Create a dialect for ``name`` bound to ``db``.

    Unknown names fall back to the generic dialect after a notice.
    """
    dialect_class = _dialects.get(name)
    if dialect_class is not None:
        return dialect_class(db)
    print(f"`{name}` is not officially supported, running under compatibility mode.")
    return CommonDialect(db)


def parse_field_for_dialect(field: ColumnSpec, dialect: Any) -> tuple[Any, str, int, str]:
    """Resolve a field's value type, explicit SQL type, size and extra column options.

    A type may choose its own SQL type through an ``orm_data_type(dialect)``
    class-level callable; a wrapper type may point at the type it stores with
    ``sql_value_type``.
    """
    tags = field.tag_settings
    value_type = field.value_type
    data_type = tags.get("TYPE", "")

    hook = getattr(value_type, "orm_data_type", None)
    if callable(hook):
        data_type = hook(dialect)

    if not data_type:
        seen: set[int] = set()
        while (
            hasattr(value_type, "scan")
            and hasattr(value_type, "sql_value_type")
            and id(value_type) not in seen
        ):
            seen.add(id(value_type))
            value_type = value_type.sql_value_type

    if "SIZE" in tags:
        try:
            size = int(tags["SIZE"])
        except ValueError:
            size = 0
    else:
        size = DEFAULT_SIZE

    additional = tags.get("NOT NULL", "") + " " + tags.get("UNIQUE", "")
    if "DEFAULT" in tags:
        additional += " DEFAULT " + tags["DEFAULT"]
    if "COMMENT" in tags and getattr(dialect, "name", "") != "sqlite3":
        additional += " COMMENT " + tags["COMMENT"]

    return value_type, data_type, size, additional.strip()


def current_database_and_table(dialect: Any, table_name: str) -> tuple[str, str]:
    """Split ``db.table`` names; otherwise use the dialect's current database."""
    if "." in table_name:
        database, table = table_name.split(".", 1)
        return database, table
    return dialect.current_database(), table_name


def build_key_name(kind: str, table_name: str, *args: str) -> str:
    """Build a key name (index, foreign key) from a kind, table and fields."""
    key_name = f"{kind}_{table_name}_{'_'.join(args)}"
    return _KEY_NAME_PATTERN.sub("_", key_name)


def _with_additional(sql_type: str, additional: str) -> str:
    if not additional.strip():
        return sql_type
    return f"{sql_type} {additional}"


class CommonDialect:
    """Generic SQL dialect used when nothing more specific is known.

    ``db`` is a DB-API connection (anything with a ``cursor()`` method).
    """

    name = "common"

    def __init__(self, db: Any = None) -> None:
        self.db = db

    def _query_row(self, sql: str, params: Sequence[Any] = ()) -> Optional[Sequence[Any]]:
        cursor = self.db.cursor()
        try:
            cursor.execute(sql, tuple(params))
            return cursor.fetchone()
        finally:
            cursor.close()

    def _count(self, sql: str, params: Sequence[Any] = ()) -> int:
        try:
            row = self._query_row(sql, params)
        except Exception:
            return 0
        if not row or row[0] is None:
            return 0
        return int(row[0])

    def _execute(self, sql: str) -> None:
        cursor = self.db.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()

    def _field_can_auto_increment(self, field: ColumnSpec) -> bool:
        if "AUTO_INCREMENT" in field.tag_settings:
            return field.tag_settings["AUTO_INCREMENT"].lower() != "false"
        return field.is_primary_key

    def bind_var(self, i: int) -> str:
        """Return the placeholder for the ``i``-th bound value."""
        return "$$$"

    def quote(self, key: str) -> str:
        """Quote an identifier."""
        return f'"{key}"'

    def data_type_of(self, field: ColumnSpec) -> str:
        """Return the column definition type for ``field``."""
        value_type, sql_type, size, additional = parse_field_for_dialect(field, self)
        kind = _value_kind(value_type)

        if not sql_type:
            if kind == "bool":
                sql_type = "BOOLEAN"
            elif kind == "int":
                sql_type = "BIGINT" if field.bits == 64 else "INTEGER"
                if self._field_can_auto_increment(field):
                    sql_type += " AUTO_INCREMENT"
            elif kind == "float":
                sql_type = "FLOAT"
            elif kind == "string":
                sql_type = f"VARCHAR({size})" if 0 < size < 65532 else "VARCHAR(65532)"
            elif kind == "time":
                sql_type = "TIMESTAMP"
            elif kind == "bytes":
                sql_type = f"BINARY({size})" if 0 < size < 65532 else "BINARY(65532)"

        if not sql_type:
            raise TypeError(
                f"invalid sql type {_type_label(value_type)} ({kind}) for commonDialect"
            )
        return _with_additional(sql_type, additional)

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Tell whether ``table_name`` has the index ``index_name``."""
        database, table = current_database_and_table(self, table_name)
        return (
            self._count(
                "SELECT count(*) FROM INFORMATION_SCHEMA.STATISTICS "
                "WHERE table_schema = ? AND table_name = ? AND index_name = ?",
                (database, table, index_name),
            )
            > 0
        )

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        """Tell whether the foreign key exists; the generic dialect cannot know."""
        return False

    def remove_index(self, table_name: str, index_name: str) -> None:
        """Drop the index ``index_name``."""
        self._execute(f"DROP INDEX {index_name}")

    def has_table(self, table_name: str) -> bool:
        """Tell whether the table exists."""
        database, table = current_database_and_table(self, table_name)
        return (
            self._count(
                "SELECT count(*) FROM INFORMATION_SCHEMA.TABLES "
                "WHERE table_schema = ? AND table_name = ?",
                (database, table),
            )
            > 0
        )

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Tell whether the table has the column."""
        database, table = current_database_and_table(self, table_name)
        return (
            self._count(
                "SELECT count(*) FROM INFORMATION_SCHEMA.COLUMNS "
                "WHERE table_schema = ? AND table_name = ? AND column_name = ?",
                (database, table, column_name),
            )
            > 0
        )

    def modify_column(self, table_name: str, column_name: str, typ: str) -> None:
        """Change the type of a column."""
        self._execute(f"ALTER TABLE {table_name} ALTER COLUMN {column_name} TYPE {typ}")

    def current_database(self) -> str:
        """Return the name of the current database, or an empty string."""
        try:
            row = self._query_row("SELECT DATABASE()")
        except Exception:
            return ""
        if not row or row[0] is None:
            return ""
        return str(row[0])

    def limit_and_offset_sql(self, limit: Any, offset: Any) -> str:
        """Return the LIMIT/OFFSET clause; negative values are left out."""
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

    def select_from_dummy_table(self) -> str:
        """Return the FROM clause needed to select bare values."""
        return ""

    def last_insert_id_output_interstitial(
        self, table_name: str, column_name: str, columns: Sequence[str]
    ) -> str:
        """Return the clause placed between columns and VALUES to get the new id."""
        return ""

    def last_insert_id_returning_suffix(self, table_name: str, column_name: str) -> str:
        """Return the suffix appended to an INSERT to get the new id."""
        return ""

    def default_value_str(self) -> str:
        """Return the clause used to insert a row of default values."""
        return "DEFAULT VALUES"

    def build_key_name(self, kind: str, table_name: str, *args: str) -> str:
        """Build a valid key name for the given table and fields."""
        return build_key_name(kind, table_name, *args)

    def normalize_index_and_column(self, index_name: str, column_name: str) -> tuple[str, str]:
        """Return the index and column names unchanged."""
        return index_name, column_name


register_dialect("common", CommonDialect)