"""Errors raised by the SPDK JSON-RPC client and the app supervisor."""

from __future__ import annotations

import re

# Canonical string form of a structured Engine error.
_JSON_ERROR_RE = re.compile(r"^code: (-?\d+) msg: (.*)$", re.DOTALL)


class SpdkError(Exception):
    """Base class for everything this package raises."""


class TransportError(SpdkError):
    """The connection failed; every pending call on the client fails with it."""


class ConnectionClosedError(TransportError):
    """The client was closed or the Engine hung up."""

    def __init__(self, message: str = "connection is shut down") -> None:
        super().__init__(message)


class ProtocolError(TransportError):
    """The Engine sent something that is not a valid response envelope."""


class EngineError(SpdkError):
    """The Engine answered with an ``error`` member.

    ``code`` is None when the Engine sent a plain string instead of a
    ``{code, message}`` object.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        self.code = code
        self.message = message
        super().__init__(format_json_error(code, message) if code is not None else message)


class ValidationError(SpdkError, ValueError):
    """A method binding refused its arguments before anything was sent."""

    def __init__(self, detail: str = "") -> None:
        message = "invalid parameters"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AppError(SpdkError):
    """The supervisor could not start or stop the Engine."""


class AppNotConfiguredError(AppError):
    def __init__(self) -> None:
        super().__init__("SPDK application binary is not configured")


class AppExitedError(AppError):
    def __init__(self, returncode: int | None = None) -> None:
        message = "engine exited before socket appeared"
        if returncode is not None:
            message = f"{message} (exit code {returncode})"
        super().__init__(message)
        self.returncode = returncode


class AppTimeoutError(AppError):
    def __init__(self, socket_path: str) -> None:
        super().__init__(f"timed out waiting for socket {socket_path}")
        self.socket_path = socket_path


class AppPermissionError(AppError):
    """Relaxing the control socket permissions failed."""


def format_json_error(code: int, message: str) -> str:
    return f"code: {code} msg: {message}"


def parse_json_error(text: str) -> tuple[int, str] | None:
    """Parse ``"code: N msg: M"`` back into ``(N, M)``."""
    m = _JSON_ERROR_RE.match(text)
    if m is None:
        return None
    return int(m.group(1)), m.group(2)


def is_json_error(err: BaseException, code: int = 0) -> bool:
    """Check that ``err`` is a structured Engine error with the given code.

    Use ``code == 0`` to match any structured Engine error. Errors that only
    carry the ``"code: N msg: M"`` text, such as a re-raised message, are
    matched by parsing it.
    """
    if isinstance(err, EngineError) and err.code is not None:
        err_code = err.code
    else:
        parsed = parse_json_error(str(err))
        if parsed is None:
            return False
        err_code = parsed[0]
    return code == 0 or err_code == code
