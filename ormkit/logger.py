"""Formatting and printing of log lines, including SQL statements with their values."""

from __future__ import annotations

import re
import sys
from datetime import datetime, timedelta
from typing import Any, TextIO

_SQL_PLACEHOLDER = re.compile(r"\?")
_NUMERIC_PLACEHOLDER = re.compile(r"\$\d+")
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_ZERO_TIME = "0000-00-00 00:00:00"


def is_printable(s: str) -> bool:
    """Tell whether every character of ``s`` is printable."""
    return s.isprintable()


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def _plain(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _format_value(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, datetime):
        if value.replace(tzinfo=None) == datetime.min:
            return f"'{_ZERO_TIME}'"
        return f"'{value.strftime(_TIME_FORMAT)}'"
    if isinstance(value, (bytes, bytearray, memoryview)):
        text = bytes(value).decode("utf-8", errors="replace")
        return f"'{text}'" if is_printable(text) else "'<binary>'"
    valuer = getattr(value, "value", None)
    if callable(valuer):
        try:
            produced = valuer()
        except Exception:
            return "NULL"
        return "NULL" if produced is None else f"'{_plain(produced)}'"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    return f"'{value}'"


def _duration_ms(duration: Any) -> float:
    if isinstance(duration, timedelta):
        return (duration // timedelta(microseconds=10)) / 100.0
    return int(float(duration) * 100_000) / 100.0


def _render_sql(sql: str, formatted: list[str]) -> str:
    if _NUMERIC_PLACEHOLDER.search(sql):
        for position, value in enumerate(formatted, start=1):
            pattern = re.compile(rf"\${position}([^\d]|$)")
            sql = pattern.sub(lambda m, v=value: v + m.group(1), sql)
        return sql
    pieces = _SQL_PLACEHOLDER.split(sql)
    parts: list[str] = []
    for position, piece in enumerate(pieces):
        parts.append(piece)
        if position < len(formatted):
            parts.append(formatted[position])
    return "".join(parts)


def format_log(*args: Any) -> list[Any]:
    """Turn log values into the list of message parts to print.

    The first value is the level and the second the source. For the ``sql``
    level the rest are: duration, SQL text, bound values and row count.
    """
    if len(args) <= 1:
        return []

    level, source_value = args[0], args[1]
    current_time = f"\n\033[33m[{datetime.now().strftime(_TIME_FORMAT)}]\033[0m"
    source = f"\033[35m({source_value})\033[0m"
    messages: list[Any] = [source, current_time]

    if len(args) == 2:
        current_time = current_time[1:]
        source = f"\033[35m{source_value}\033[0m"
        messages = [current_time, source]

    if level == "sql":
        messages.append(f" \033[36;1m[{_duration_ms(args[2]):.2f}ms]\033[0m ")
        formatted = [_format_value(value) for value in args[4]]
        messages.append(_render_sql(args[3], formatted))
        messages.append(
            f" \n\033[36;31m[{int(args[5])} rows affected or returned ]\033[0m "
        )
    else:
        messages.append("\033[31;1m")
        messages.extend(args[2:])
        messages.append("\033[0m")
    return messages


class Logger:
    """Writes formatted log lines to a text stream."""

    def __init__(self, stream: TextIO | None = None, prefix: str = "\r\n") -> None:
        self.stream = stream
        self.prefix = prefix

    def print(self, *args: Any) -> None:
        """Format ``args`` and write them as one line."""
        stream = self.stream if self.stream is not None else sys.stdout
        line = " ".join(str(part) for part in format_log(*args))
        stream.write(f"{self.prefix}{line}\n")


class NopLogger:
    """A logger that writes nothing; it only counts what it discards."""

    def __init__(self) -> None:
        self.discarded = 0

    def print(self, *args: Any) -> None:
        """Discard the log values, counting the discarded call."""
        self.discarded += 1