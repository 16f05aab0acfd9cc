"""Domain errors carrying an operation, a code and a human-readable message."""

from __future__ import annotations

import copy
from enum import IntEnum

import grpc

from xkit import log


class Op(str):
    """A logical operation name."""


class Message(str):
    """A human-readable message."""


class Code(IntEnum):
    """A machine-readable error code."""

    OTHER = 0
    INTERNAL = 1
    INVALID = 2
    NOT_FOUND = 3
    EXISTS = 4
    EXPIRED = 5

    def __str__(self) -> str:
        return _DESCRIPTIONS.get(self, "unknown error code")

    def grpc_code(self) -> grpc.StatusCode:
        """Return the gRPC status code matching this code."""
        return _GRPC_CODES.get(self, grpc.StatusCode.UNKNOWN)


_DESCRIPTIONS = {
    Code.OTHER: "other error",
    Code.INTERNAL: "internal error",
    Code.INVALID: "invalid error",
    Code.NOT_FOUND: "item not found",
    Code.EXISTS: "item already exists",
    Code.EXPIRED: "item has expired",
}

_GRPC_CODES = {
    Code.OTHER: grpc.StatusCode.UNKNOWN,
    Code.INTERNAL: grpc.StatusCode.INTERNAL,
    Code.INVALID: grpc.StatusCode.INVALID_ARGUMENT,
    Code.NOT_FOUND: grpc.StatusCode.NOT_FOUND,
    Code.EXISTS: grpc.StatusCode.ALREADY_EXISTS,
    Code.EXPIRED: grpc.StatusCode.DEADLINE_EXCEEDED,
}

_GENERIC_MESSAGE = Message("An internal error has occurred. Please contact technical support.")


class XError(Exception):
    """An error that may wrap another and carries a code, message and operation."""

    def __init__(
        self,
        code: Code = Code.OTHER,
        message: Message = Message(""),
        op: Op = Op(""),
        err: BaseException | None = None,
    ) -> None:
        super().__init__()
        self.code = code
        self.message = message
        self.op = op
        self.err = err

    def __str__(self) -> str:
        parts = []
        if self.op:
            parts.append(f"{self.op}: ")
        if self.code != Code.OTHER:
            parts.append(f"<{self.code}> ")
        if self.message:
            parts.append(str(self.message))
        if self.err is not None:
            parts.append(f"\n\t\t{self.err}")
        return "".join(parts)


class GrpcStatusError(grpc.RpcError):
    """An error carrying a gRPC status code and description."""

    def __init__(self, status_code: grpc.StatusCode, message: str) -> None:
        super().__init__(message)
        self._status_code = status_code
        self._message = message

    def code(self) -> grpc.StatusCode:
        return self._status_code

    def details(self) -> str:
        return self._message

    def __str__(self) -> str:
        name = "".join(part.capitalize() for part in self._status_code.name.split("_"))
        return f"rpc error: code = {name} desc = {self._message}"


def e(*args) -> XError:
    """Build an XError from operations, messages, codes and wrapped errors.

    Later arguments of the same kind override earlier ones. When the wrapped
    error is itself an XError, its code is pulled up and duplicates are removed.
    """
    if not args:
        raise ValueError("call to e with no arguments")

    err = XError()
    for arg in args:
        if isinstance(arg, Op):
            err.op = arg
        elif isinstance(arg, Message):
            err.message = arg
        elif isinstance(arg, Code):
            err.code = arg
        elif isinstance(arg, XError):
            err.err = copy.copy(arg)
        elif isinstance(arg, BaseException):
            err.err = arg
        else:
            log.errorf("errors.e: bad call: %r", args)
            raise TypeError(f"unknown type {type(arg).__name__}, value {arg!r} in error call")

    prev = err.err
    if not isinstance(prev, XError):
        return err

    if prev.code == err.code:
        prev.code = Code.OTHER
    if err.code == Code.OTHER:
        err.code = prev.code
        prev.code = Code.OTHER
    return err


def error_code(err: BaseException | None) -> Code:
    """Return the code of the outermost coded error, or INTERNAL if there is none."""
    if err is None:
        return Code.OTHER
    while isinstance(err, XError):
        if err.code != Code.OTHER:
            return err.code
        if err.err is None:
            break
        err = err.err
    return Code.INTERNAL


def error_message(err: BaseException | None) -> Message:
    """Return the outermost human-readable message, or a generic one."""
    if err is None:
        return Message("")
    while isinstance(err, XError):
        if err.message:
            return err.message
        if err.err is None:
            break
        err = err.err
    return _GENERIC_MESSAGE


def grpc_error(err: BaseException) -> GrpcStatusError:
    """Log the error and convert it to a gRPC status error."""
    code = error_code(err)
    log.error_string(str(err))
    return GrpcStatusError(code.grpc_code(), str(error_message(err)))