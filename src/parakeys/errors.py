"""Full error hierarchy for parakeys.

Every public error class inherits from ParakeysError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    MALFORMED_INPUT = "MALFORMED_INPUT"
    CONSISTENCY_ERROR = "CONSISTENCY_ERROR"
    KEY_SPACE_EXHAUSTED = "KEY_SPACE_EXHAUSTED"
    STORE_ERROR = "STORE_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class ParakeysError(Exception):
    """Base exception for all parakeys errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class ParakeysMalformedInputError(ParakeysError):
    """The previous snapshot, the retained keys or the namespace cannot be
    used.  Raised before any reconciliation work starts.

    Context keys: ``key``, ``namespace``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.MALFORMED_INPUT,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Reconciliation errors
# ---------------------------------------------------------------------------

class ParakeysConsistencyError(ParakeysError):
    """The edit script does not line up with the stored paragraphs.

    This points at a bug in the diff integration rather than at the caller.
    The run is aborted and no partial snapshot is returned.

    Context keys: ``key``, ``expected``, ``actual``, ``span_index``.
    """

    def __init__(
        self,
        message: str = "Reconciliation is inconsistent",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.CONSISTENCY_ERROR,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class ParakeysKeySpaceError(ParakeysConsistencyError):
    """No key exists strictly between the two bracket keys, so a new
    paragraph cannot be positioned.

    Context keys: ``prev``, ``next``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.KEY_SPACE_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class ParakeysStoreError(ParakeysError):
    """Reading or writing the persisted state of a document failed.

    Context keys: ``path``, ``operation``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STORE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
