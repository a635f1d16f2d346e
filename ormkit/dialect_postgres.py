"""The PostgreSQL dialect."""

from __future__ import annotations

import uuid
from typing import Any, Sequence

from .dialect import (
    ColumnSpec,
    CommonDialect,
    _type_label,
    _value_kind,
    _with_additional,
    parse_field_for_dialect,
    register_dialect,
)


def _type_name(value_type: Any) -> str:
    return getattr(value_type, "__name__", "")


def is_uuid(value_type: Any) -> bool:
    """Tell whether ``value_type`` holds a UUID.

    That is :class:`uuid.UUID` itself, or a bytes-like type named ``uuid`` or
    ``guid`` in any letter case.
    """
    if not isinstance(value_type, type):
        return False
    if issubclass(value_type, uuid.UUID):
        return True
    return issubclass(value_type, (bytes, bytearray)) and _type_name(value_type).lower() in (
        "uuid",
        "guid",
    )


def is_json(value_type: Any) -> bool:
    """Tell whether ``value_type`` is a raw JSON byte type.

    A bytes-like type qualifies when it is named ``RawMessage`` or sets the
    class attribute ``raw_json`` to true.
    """
    if not isinstance(value_type, type) or not issubclass(value_type, (bytes, bytearray)):
        return False
    return _type_name(value_type) == "RawMessage" or bool(getattr(value_type, "raw_json", False))


class PostgresDialect(CommonDialect):
    """Dialect for PostgreSQL databases."""

    name = "postgres"

    def bind_var(self, i: int) -> str:
        """Return the numbered placeholder for the ``i``-th bound value."""
        return f"${i}"

    def data_type_of(self, field: ColumnSpec) -> str:
        """Return the PostgreSQL column type for ``field``."""
        value_type, sql_type, size, additional = parse_field_for_dialect(field, self)
        kind = _value_kind(value_type)

        if not sql_type:
            if kind == "bool":
                sql_type = "boolean"
            elif kind == "int":
                big = field.bits == 64 or (field.unsigned and field.bits == 32)
                if self._field_can_auto_increment(field):
                    field.tag_settings["AUTO_INCREMENT"] = "AUTO_INCREMENT"
                    sql_type = "bigserial" if big else "serial"
                else:
                    sql_type = "bigint" if big else "integer"
            elif kind == "float":
                sql_type = "numeric"
            elif kind == "string":
                if "SIZE" not in field.tag_settings:
                    size = 0
                sql_type = f"varchar({size})" if 0 < size < 65532 else "text"
            elif kind == "time":
                sql_type = "timestamp with time zone"
            elif kind == "map":
                if _type_name(value_type) == "Hstore":
                    sql_type = "hstore"
            elif kind == "bytes":
                sql_type = "bytea"
                if is_uuid(value_type):
                    sql_type = "uuid"
                if is_json(value_type):
                    sql_type = "jsonb"
            elif kind == "struct" and is_uuid(value_type):
                sql_type = "uuid"

        if not sql_type:
            raise TypeError(
                f"invalid sql type {_type_label(value_type)} ({kind}) for postgres"
            )
        return _with_additional(sql_type, additional)

    def _exists(self, sql: str, params: Sequence[Any]) -> bool:
        return self._count(sql, params) > 0

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Tell whether ``table_name`` has the index ``index_name``."""
        return self._exists(
            "SELECT count(*) FROM pg_indexes WHERE tablename = $1 AND indexname = $2 "
            "AND schemaname = CURRENT_SCHEMA()",
            (table_name, index_name),
        )

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        """Tell whether the foreign key exists on the table."""
        return self._exists(
            "SELECT count(con.conname) FROM pg_constraint con "
            "WHERE $1::regclass::oid = con.conrelid AND con.conname = $2 "
            "AND con.contype='f'",
            (table_name, foreign_key_name),
        )

    def has_table(self, table_name: str) -> bool:
        """Tell whether the table exists in the current schema."""
        return self._exists(
            "SELECT count(*) FROM INFORMATION_SCHEMA.tables WHERE table_name = $1 "
            "AND table_type = 'BASE TABLE' AND table_schema = CURRENT_SCHEMA()",
            (table_name,),
        )

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Tell whether the table has the column."""
        return self._exists(
            "SELECT count(*) FROM INFORMATION_SCHEMA.columns WHERE table_name = $1 "
            "AND column_name = $2 AND table_schema = CURRENT_SCHEMA()",
            (table_name, column_name),
        )

    def current_database(self) -> str:
        """Return the name of the current database, or an empty string."""
        try:
            row = self._query_row("SELECT CURRENT_DATABASE()")
        except Exception:
            return ""
        if not row or row[0] is None:
            return ""
        return str(row[0])

    def last_insert_id_output_interstitial(
        self, table_name: str, column_name: str, columns: Sequence[str]
    ) -> str:
        """Return the clause between columns and VALUES; not used here."""
        return ""

    def last_insert_id_returning_suffix(self, table_name: str, column_name: str) -> str:
        """Return the RETURNING clause that yields the new id."""
        return f"RETURNING {table_name}.{column_name}"

    def supports_last_insert_id(self) -> bool:
        """Tell whether the driver reports the last inserted id."""
        return False


register_dialect("postgres", PostgresDialect)
register_dialect("cloudsqlpostgres", PostgresDialect)