"""Card engine error types."""

from __future__ import annotations

from enum import Enum


class CardEngineErrorCode(Enum):
    """Error classification codes."""

    TRANSPORT = "transport"
    AUTH_FAILED = "auth_failed"
    NOT_FOUND = "not_found"
    UNREGISTERED_TYPE = "unregistered_type"
    SYMBOL_LIMIT = "symbol_limit"


# Codes the workspace reports to the end user; everything else is
# recovered locally and only logged.
USER_VISIBLE_CODES = frozenset({
    CardEngineErrorCode.TRANSPORT,
    CardEngineErrorCode.AUTH_FAILED,
    CardEngineErrorCode.SYMBOL_LIMIT,
})


class CardEngineError(Exception):
    """Card engine exception with error code and visibility flag.

    Attributes:
        message: Human-readable error description.
        code: Structured error code for programmatic handling.
        user_visible: Whether the workspace should surface this to the user.
    """

    def __init__(
        self,
        message: str,
        code: CardEngineErrorCode = CardEngineErrorCode.TRANSPORT,
        user_visible: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.user_visible = (
            code in USER_VISIBLE_CODES if user_visible is None else user_visible
        )
