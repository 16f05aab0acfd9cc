import grpc
import pytest

from xkit.errors import (
    Code,
    GrpcStatusError,
    Message,
    Op,
    XError,
    e,
    error_code,
    error_message,
    grpc_error,
)


@pytest.mark.parametrize(
    "code, text",
    [
        (Code.OTHER, "other error"),
        (Code.INTERNAL, "internal error"),
        (Code.INVALID, "invalid error"),
        (Code.NOT_FOUND, "item not found"),
        (Code.EXISTS, "item already exists"),
        (Code.EXPIRED, "item has expired"),
    ],
)
def test_code_descriptions(code, text):
    assert str(code) == text


@pytest.mark.parametrize(
    "code, status",
    [
        (Code.OTHER, grpc.StatusCode.UNKNOWN),
        (Code.INTERNAL, grpc.StatusCode.INTERNAL),
        (Code.INVALID, grpc.StatusCode.INVALID_ARGUMENT),
        (Code.NOT_FOUND, grpc.StatusCode.NOT_FOUND),
        (Code.EXISTS, grpc.StatusCode.ALREADY_EXISTS),
        (Code.EXPIRED, grpc.StatusCode.DEADLINE_EXCEEDED),
    ],
)
def test_grpc_code_mapping(code, status):
    assert code.grpc_code() == status


def test_e_sets_fields():
    err = e(Op("users.find"), Code.NOT_FOUND, Message("no such user"))
    assert err.op == "users.find"
    assert err.code == Code.NOT_FOUND
    assert err.message == "no such user"
    assert err.err is None


def test_str_includes_parts_in_order():
    cause = ValueError("boom")
    text = str(e(Op("users.find"), Code.NOT_FOUND, Message("no such user"), cause))
    assert text.startswith("users.find: <item not found> no such user")
    assert text.endswith("\n\t\tboom")


def test_str_omits_other_code():
    text = str(e(Message("plain")))
    assert text == "plain"


def test_inner_code_is_pulled_up():
    inner = e(Code.NOT_FOUND, Message("inner"))
    outer = e(Op("outer"), inner)
    assert outer.code == Code.NOT_FOUND
    assert outer.err.code == Code.OTHER
    assert inner.code == Code.NOT_FOUND
    assert outer.err is not inner


def test_duplicate_code_is_suppressed():
    outer = e(Code.INVALID, e(Code.INVALID, Message("x")))
    assert outer.code == Code.INVALID
    assert outer.err.code == Code.OTHER
    assert str(outer).count("<invalid error>") == 1


def test_different_codes_are_kept():
    outer = e(Code.INVALID, e(Code.EXPIRED))
    assert outer.code == Code.INVALID
    assert outer.err.code == Code.EXPIRED


def test_e_without_arguments():
    with pytest.raises(ValueError):
        e()


@pytest.mark.parametrize("bad", ["plain string", 42, None])
def test_e_rejects_unknown_types(bad):
    with pytest.raises(TypeError):
        e(Op("op"), bad)


def test_error_code():
    assert error_code(None) == Code.OTHER
    assert error_code(ValueError("x")) == Code.INTERNAL
    assert error_code(e(Message("no code"))) == Code.INTERNAL
    assert error_code(e(Op("a"), e(Op("b"), e(Code.EXISTS)))) == Code.EXISTS


def test_error_message():
    assert error_message(None) == ""
    assert error_message(e(Op("a"), e(Message("deep")))) == "deep"
    assert error_message(e(Message("top"), e(Message("deep")))) == "top"
    assert error_message(RuntimeError("raw")) == (
        "An internal error has occurred. Please contact technical support."
    )


def test_xerror_is_raisable():
    err = e(Code.EXPIRED, Message("late"))
    assert isinstance(err, XError)
    assert str(err) == "<item has expired> late"
    with pytest.raises(XError) as info:
        raise err
    assert info.value is err
    assert info.value.code == Code.EXPIRED
    assert error_message(info.value) == "late"


def test_grpc_error():
    status = grpc_error(e(Op("op"), Code.NOT_FOUND, Message("missing")))
    assert isinstance(status, GrpcStatusError)
    assert status.code() == grpc.StatusCode.NOT_FOUND
    assert status.details() == "missing"
    assert "NotFound" in str(status)


def test_grpc_error_for_foreign_exception():
    status = grpc_error(KeyError("k"))
    assert status.code() == grpc.StatusCode.INTERNAL
    assert status.details() == (
        "An internal error has occurred. Please contact technical support."
    )