# ormkit

This package holds the pieces that an SQL object mapper is built on. Each one can be used by itself.

| Module | What it holds |
| --- | --- |
| `ormkit.callback` | `Callback` and `CallbackProcessor`: named, ordered steps for create, update, delete, query and row query |
| `ormkit.dialect` | `ColumnSpec`, `CommonDialect`, the dialect registry (`register_dialect`, `get_dialect`, `new_dialect`) and helpers such as `build_key_name` and `current_database_and_table` |
| `ormkit.dialect_sqlite` | `SQLite3Dialect`, registered as `sqlite3` |
| `ormkit.dialect_mysql` | `MySQLDialect`, registered as `mysql` |
| `ormkit.dialect_postgres` | `PostgresDialect`, registered as `postgres` and `cloudsqlpostgres`, and the helpers `is_uuid` and `is_json` |
| `ormkit.dialect_mssql` | `MSSQLDialect`, registered as `mssql` |
| `ormkit.errors` | `Errors`, a collection of errors, plus `OrmError` and the exceptions derived from it, and `is_record_not_found_error` |
| `ormkit.logger` | `format_log`, `Logger`, `NopLogger` and `is_printable` |
| `ormkit.jsontypes` | `JSON` and `Jsonb`, which hold raw JSON documents as column values |

The package has no dependencies outside the standard library.

## Install

```
pip install ormkit
```

To get the test tools as well, install the `test` extra:

```
pip install "ormkit[test]"
```

## Ordering callbacks

A `Callback` keeps one ordered list of handlers for each kind of operation:

- `creates`
- `updates`
- `deletes`
- `queries`
- `row_queries`

Start a registration with `create()`, `update()`, `delete()`, `query()` or `row_query()`. You can then place the handler with `before(name)` and `after(name)`. Finish the registration with one of these calls:

- `register(name, fn)`
- `replace(name, fn)`
- `remove(name)`

```python
from ormkit.callback import Callback

callbacks = Callback()
callbacks.create().register("begin", lambda scope: ...)
callbacks.create().register("insert", lambda scope: ...)
callbacks.create().before("insert").register("validate", lambda scope: ...)
callbacks.create().replace("insert", lambda scope: ...)
callbacks.create().remove("validate")

step = callbacks.create().get("insert")   # the current handler, or None
callbacks.creates                         # handlers in their resolved order
```

Some cases have their own rules:

- **Row query without a position.** If you register a row query callback without `before()` or `after()`, it is placed before `orm:row_query`. The only exception is when the callback is `orm:row_query` itself.
- **Messages.** Registrations, replacements, removals and duplicate names are reported to the registry's logger. That logger is a `NopLogger` unless you pass another one.
- **Sorting on its own.** `sort_processors` does the ordering, and you can call it directly.
- **A shared default.** `ormkit.callback.default_callback` is a shared, empty registry.

## Dialects

A dialect registers itself when its module is imported. `new_dialect(name, db)` builds the dialect registered under `name` and binds it to a DB-API connection, meaning any object with `cursor()`. If the name is unknown, it prints a notice and returns a `CommonDialect`.

```python
import ormkit.dialect_postgres  # registers "postgres" and "cloudsqlpostgres"
from ormkit.dialect import ColumnSpec, new_dialect

dialect = new_dialect("postgres", connection)
dialect.bind_var(1)                     # "$1"
dialect.quote("users")                  # '"users"'
dialect.limit_and_offset_sql(10, 20)    # " LIMIT 10 OFFSET 20"
dialect.data_type_of(ColumnSpec("id", int, is_primary_key=True, bits=64))  # "bigserial"
```

`ColumnSpec` describes a field in these terms:

- its Python value type;
- its integer width (`bits`) and signedness (`unsigned`);
- whether it is a primary key;
- its tag settings, such as `SIZE`, `TYPE`, `NOT NULL`, `UNIQUE`, `DEFAULT`, `COMMENT`, `AUTO_INCREMENT` and `PRECISION`. The keys are stored in upper case.

`data_type_of` turns a `ColumnSpec` into the column type for that dialect. It raises `TypeError` when no type fits.

Each dialect also gives:

- the placeholders for bound values;
- identifier quoting;
- the `LIMIT`/`OFFSET` clause, or `OFFSET … FETCH` on SQL Server;
- the clauses for getting the last inserted id;
- the `INSERT` clause for a row of default values;
- key names. MySQL hashes any key name longer than 64 characters.
- index and column normalisation. MySQL moves a prefix length such as `name(10)` from the index onto the column.
- schema checks that run queries on the bound connection: `has_table`, `has_column`, `has_index`, `has_foreign_key` and `current_database`;
- statements: `remove_index` and `modify_column`.

A limit or offset that is not an integer raises `ValueError`.

To add a dialect of your own, call `register_dialect(name, dialect_class)`. The usual way is to subclass `CommonDialect`.

## Errors

```python
from ormkit.errors import Errors, RecordNotFoundError, is_record_not_found_error

errs = Errors([ValueError("First"), ValueError("Second")])
errs = errs.add(ValueError("Third"), errs)   # nested collections are flattened
str(errs)                                    # "First; Second; Third"

is_record_not_found_error(Errors([RecordNotFoundError()]))   # True
```

`Errors.add` returns a new collection. It does not change the one it is called on. It skips `None` and skips any error object that is already present.

## Logging

`format_log(level, source, *rest)` builds the list of message parts that `Logger.print` writes to its stream (standard output by default).

For the `sql` level, `rest` holds these values in order:

1. the duration;
2. the SQL text;
3. the bound values;
4. the row count.

The bound values are written into the statement, both for `?` placeholders and for `$n` placeholders.

```python
import io
from datetime import timedelta
from ormkit.logger import Logger

out = io.StringIO()
Logger(out).print("sql", "app.py:10", timedelta(milliseconds=3),
                  "SELECT * FROM users WHERE id = ?", [1], 1)
```

## JSON column values

`JSON` and `Jsonb` store their document as bytes in `raw`. `value()` returns those bytes, or `None` when the document is empty.

`scan(value)` loads a document read from the database:

- `JSON` expects a `str`.
- `Jsonb` expects bytes.

A value of the wrong type raises `TypeError`. Invalid JSON raises `ValueError`.

## What this package does not do

This package is not a full object mapper. It has no:

- models or mapping of classes to tables;
- query builder;
- sessions or transactions;
- associations or preloading;
- migrations.

It runs no SQL of its own apart from the schema checks and statements of the dialects listed above. A `Callback` stores and orders handlers, but it never calls them.

## Running the tests

```
pytest
```