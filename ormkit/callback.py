"""Registry of ordered callbacks for create, update, delete and query operations."""

from __future__ import annotations

import traceback
from typing import Any, Callable, Optional

from .logger import NopLogger

CallbackFunc = Callable[[Any], Any]

ROW_QUERY_CALLBACK = "orm:row_query"

_KINDS = ("create", "update", "delete", "query", "row_query")


def _caller_location() -> str:
    for frame in reversed(traceback.extract_stack()):
        if frame.filename != __file__:
            return f"{frame.filename}:{frame.lineno}"
    return ""


def _rindex(items: list[str], item: str) -> int:
    try:
        return len(items) - 1 - items[::-1].index(item)
    except ValueError:
        return -1


class CallbackProcessor:
    """Describes one registration, replacement or removal of a callback."""

    def __init__(self, parent: Callback, kind: str, logger: Any) -> None:
        self.parent = parent
        self.kind = kind
        self.logger = logger
        self.name = ""
        self.before_name = ""
        self.after_name = ""
        self.is_replace = False
        self.is_remove = False
        self.handler: Optional[CallbackFunc] = None

    def after(self, callback_name: str) -> CallbackProcessor:
        """Place the callback after ``callback_name``."""
        self.after_name = callback_name
        return self

    def before(self, callback_name: str) -> CallbackProcessor:
        """Place the callback before ``callback_name``."""
        self.before_name = callback_name
        return self

    def _commit(self) -> None:
        self.parent.processors.append(self)
        self.parent._reorder()

    def register(self, callback_name: str, callback: CallbackFunc) -> None:
        """Register ``callback`` under ``callback_name``."""
        if (
            self.kind == "row_query"
            and not self.before_name
            and not self.after_name
            and callback_name != ROW_QUERY_CALLBACK
        ):
            self.logger.print(
                "info",
                f"Registering RowQuery callback {callback_name} without specify order "
                f"with before(), after(), applying before('{ROW_QUERY_CALLBACK}') "
                "by default for compatibility...",
            )
            self.before_name = ROW_QUERY_CALLBACK

        self.logger.print(
            "info",
            f"[info] registering callback `{callback_name}` from {_caller_location()}",
        )
        self.name = callback_name
        self.handler = callback
        self._commit()

    def remove(self, callback_name: str) -> None:
        """Remove the callback registered under ``callback_name``."""
        self.logger.print(
            "info",
            f"[info] removing callback `{callback_name}` from {_caller_location()}",
        )
        self.name = callback_name
        self.is_remove = True
        self._commit()

    def replace(self, callback_name: str, callback: CallbackFunc) -> None:
        """Replace the callback registered under ``callback_name``."""
        self.logger.print(
            "info",
            f"[info] replacing callback `{callback_name}` from {_caller_location()}",
        )
        self.name = callback_name
        self.handler = callback
        self.is_replace = True
        self._commit()

    def get(self, callback_name: str) -> Optional[CallbackFunc]:
        """Return the callback currently registered under ``callback_name``, or None."""
        found: Optional[CallbackFunc] = None
        for processor in self.parent.processors:
            if processor.name == callback_name and processor.kind == self.kind:
                found = None if processor.is_remove else processor.handler
        return found


def sort_processors(processors: list[CallbackProcessor]) -> list[CallbackFunc]:
    """Order processors by their before/after constraints and return their handlers.

    Removed callbacks are left out and a replacement takes the place of the
    callback it replaces.
    """
    all_names: list[str] = []
    sorted_names: list[str] = []

    for processor in processors:
        if _rindex(all_names, processor.name) > -1 and not (
            processor.is_replace or processor.is_remove
        ):
            processor.logger.print(
                "warning",
                f"[warning] duplicated callback `{processor.name}` from {_caller_location()}",
            )
        all_names.append(processor.name)

    def place(current: CallbackProcessor) -> None:
        if _rindex(sorted_names, current.name) != -1:
            return

        if current.before_name:
            index = _rindex(sorted_names, current.before_name)
            if index != -1:
                sorted_names.insert(index, current.name)
            else:
                index = _rindex(all_names, current.before_name)
                if index != -1:
                    sorted_names.append(current.name)
                    place(processors[index])

        if current.after_name:
            index = _rindex(sorted_names, current.after_name)
            if index != -1:
                sorted_names.insert(index + 1, current.name)
            else:
                index = _rindex(all_names, current.after_name)
                if index != -1:
                    target = processors[index]
                    if not target.before_name:
                        target.before_name = current.name
                    place(target)

        if _rindex(sorted_names, current.name) == -1:
            sorted_names.append(current.name)

    for processor in processors:
        place(processor)

    handlers: list[CallbackFunc] = []
    for name in sorted_names:
        processor = processors[_rindex(all_names, name)]
        if not processor.is_remove and processor.handler is not None:
            handlers.append(processor.handler)
    return handlers


class Callback:
    """Holds all registered callbacks, grouped and ordered per operation."""

    def __init__(self, logger: Any = None) -> None:
        self.logger = logger if logger is not None else NopLogger()
        self.creates: list[CallbackFunc] = []
        self.updates: list[CallbackFunc] = []
        self.deletes: list[CallbackFunc] = []
        self.queries: list[CallbackFunc] = []
        self.row_queries: list[CallbackFunc] = []
        self.processors: list[CallbackProcessor] = []

    def clone(self, logger: Any) -> Callback:
        """Return a copy of this registry that logs to ``logger``."""
        copy = Callback(logger)
        copy.creates = list(self.creates)
        copy.updates = list(self.updates)
        copy.deletes = list(self.deletes)
        copy.queries = list(self.queries)
        copy.row_queries = list(self.row_queries)
        copy.processors = list(self.processors)
        return copy

    def _processor(self, kind: str) -> CallbackProcessor:
        return CallbackProcessor(self, kind, self.logger)

    def create(self) -> CallbackProcessor:
        """Start a registration for create callbacks."""
        return self._processor("create")

    def update(self) -> CallbackProcessor:
        """Start a registration for update callbacks."""
        return self._processor("update")

    def delete(self) -> CallbackProcessor:
        """Start a registration for delete callbacks."""
        return self._processor("delete")

    def query(self) -> CallbackProcessor:
        """Start a registration for query callbacks."""
        return self._processor("query")

    def row_query(self) -> CallbackProcessor:
        """Start a registration for row query callbacks."""
        return self._processor("row_query")

    def _reorder(self) -> None:
        grouped: dict[str, list[CallbackProcessor]] = {kind: [] for kind in _KINDS}
        for processor in self.processors:
            if processor.name and processor.kind in grouped:
                grouped[processor.kind].append(processor)
        self.creates = sort_processors(grouped["create"])
        self.updates = sort_processors(grouped["update"])
        self.deletes = sort_processors(grouped["delete"])
        self.queries = sort_processors(grouped["query"])
        self.row_queries = sort_processors(grouped["row_query"])


default_callback = Callback(NopLogger())