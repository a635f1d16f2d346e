"""Error types raised by the ORM and a collection type that gathers several of them."""

from __future__ import annotations

from typing import Iterable, Iterator


class OrmError(Exception):
    """Base class for errors raised by the ORM."""


class RecordNotFoundError(OrmError):
    """A query with a single destination matched no row."""

    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)


class InvalidSQLError(OrmError):
    """A query was attempted with invalid SQL."""

    def __init__(self, message: str = "invalid SQL") -> None:
        super().__init__(message)


class InvalidTransactionError(OrmError):
    """Commit or rollback was requested without a transaction."""

    def __init__(self, message: str = "no valid transaction") -> None:
        super().__init__(message)


class CantStartTransactionError(OrmError):
    """A transaction could not be started."""

    def __init__(self, message: str = "can't start transaction") -> None:
        super().__init__(message)


class UnaddressableError(OrmError):
    """A value that cannot be written to was used as a destination."""

    def __init__(self, message: str = "using unaddressable value") -> None:
        super().__init__(message)


class Errors(OrmError):
    """An ordered collection of errors that is itself an error."""

    def __init__(self, errors: Iterable[BaseException] | None = None) -> None:
        self._errors: list[BaseException] = list(errors or ())
        super().__init__(*self._errors)

    def get_errors(self) -> list[BaseException]:
        """Return the collected errors as a list."""
        return list(self._errors)

    def add(self, *args: BaseException | None) -> Errors:
        """Return a new collection with the given errors appended.

        ``None`` entries are skipped, nested collections are flattened and an
        error that is already present is not added a second time.
        """
        collected = list(self._errors)

        def extend(candidates: Iterable[BaseException | None]) -> None:
            for err in candidates:
                if err is None:
                    continue
                if isinstance(err, Errors):
                    extend(err.get_errors())
                elif not any(err is existing for existing in collected):
                    collected.append(err)

        extend(args)
        return Errors(collected)

    def __iter__(self) -> Iterator[BaseException]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __str__(self) -> str:
        return "; ".join(str(err) for err in self._errors)


def is_record_not_found_error(err: BaseException | None) -> bool:
    """Tell whether ``err`` is, or contains, a record-not-found error."""
    if isinstance(err, Errors):
        return any(isinstance(e, RecordNotFoundError) for e in err)
    return isinstance(err, RecordNotFoundError)