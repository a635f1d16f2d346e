import pytest

from ormkit.errors import (
    CantStartTransactionError,
    Errors,
    InvalidSQLError,
    InvalidTransactionError,
    OrmError,
    RecordNotFoundError,
    UnaddressableError,
    is_record_not_found_error,
)


def test_errors_can_be_used_outside_orm():
    errs = [Exception("First"), Exception("Second")]
    g_errs = Errors(errs)
    g_errs = g_errs.add(Exception("Third"))
    g_errs = g_errs.add(g_errs)
    assert str(g_errs) == "First; Second; Third"


def test_add_skips_none_and_duplicates():
    first = Exception("First")
    errs = Errors().add(first, None, first)
    assert errs.get_errors() == [first]


def test_add_returns_new_collection():
    base = Errors([Exception("a")])
    extended = base.add(Exception("b"))
    assert len(base) == 1
    assert len(extended) == 2


def test_add_flattens_nested_collections():
    a, b, c = Exception("a"), Exception("b"), Exception("c")
    nested = Errors([b, c])
    result = Errors([a]).add(nested)
    assert result.get_errors() == [a, b, c]


def test_errors_can_be_raised_and_caught():
    x, y = ValueError("x"), ValueError("y")
    errs = Errors().add(x, y)
    with pytest.raises(OrmError) as info:
        raise errs
    assert info.value.get_errors() == [x, y]
    assert str(info.value) == "x; y"


@pytest.mark.parametrize(
    "error_class, message",
    [
        (RecordNotFoundError, "record not found"),
        (InvalidSQLError, "invalid SQL"),
        (InvalidTransactionError, "no valid transaction"),
        (CantStartTransactionError, "can't start transaction"),
        (UnaddressableError, "using unaddressable value"),
    ],
)
def test_default_messages(error_class, message):
    assert str(error_class()) == message


def test_is_record_not_found_error_direct():
    assert is_record_not_found_error(RecordNotFoundError()) is True
    assert is_record_not_found_error(InvalidSQLError()) is False
    assert is_record_not_found_error(None) is False


def test_is_record_not_found_error_inside_collection():
    errs = Errors().add(InvalidSQLError(), RecordNotFoundError())
    assert is_record_not_found_error(errs) is True
    assert is_record_not_found_error(Errors([InvalidSQLError()])) is False