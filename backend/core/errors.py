# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Typed application errors.

Service code raises these; a single exception handler registered in
``main.py`` turns them into ``{"detail": ..., "code": ...}`` responses.
Messages are caller-safe – they never reveal which of several checks failed.
"""


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# -- 400 -------------------------------------------------------------------


class InvalidRequest(AppError):
    status_code = 400
    code = "BAD_REQUEST"
    message = "Bad request"


class ResetTokenInvalid(AppError):
    """Unknown, expired and already-used tokens all look the same."""

    status_code = 400
    code = "RESET_TOKEN_INVALID"
    message = "Invalid or expired token"


# -- 401 -------------------------------------------------------------------


class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Not authenticated"


class TokenError(Unauthorized):
    message = "Invalid or expired token"


class TokenInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class InvalidCredentials(AppError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class NotVerified(AppError):
    status_code = 401
    code = "EMAIL_NOT_VERIFIED"
    message = "Email address has not been verified"


# -- 403 / 404 / 409 -------------------------------------------------------


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Admin access required"


class UserNotFound(AppError):
    status_code = 404
    code = "USER_NOT_FOUND"
    message = "User not found"


class EmailAlreadyExists(AppError):
    status_code = 409
    code = "EMAIL_EXISTS"
    message = "Email already exists"


class UsernameAlreadyExists(AppError):
    status_code = 409
    code = "USERNAME_EXISTS"
    message = "Username already exists"


# -- 500 -------------------------------------------------------------------


class HashError(AppError):
    code = "HASH_ERROR"
    message = "Password hash error"


class TokenSignError(AppError):
    code = "TOKEN_SIGN_ERROR"
    message = "Token sign error"
