from __future__ import annotations


class AuthorizationError(Exception):
    """Raised when the acting principal does not hold a permitted role.

    The message stays generic and never names the missing role.
    """

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)
