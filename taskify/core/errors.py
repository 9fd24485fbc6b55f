"""Authorization and token-lifecycle errors, each mapped to one HTTP status."""

from fastapi import status


class AuthError(Exception):
    """
    Base for every failure raised by the authorization core.

    message is safe to return to the caller; cause (if any) is only logged.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "internal server error"
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None, cause: Exception | None = None) -> None:
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(self.message)


class Unauthorized(AuthError):
    """No credentials, or credentials that could not be verified."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "unauthorized"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentials(Unauthorized):
    default_message = "invalid username or password"


class InvalidToken(Unauthorized):
    default_message = "invalid token"


class ExpiredToken(Unauthorized):
    default_message = "token has expired"


class InvalidRefreshToken(Unauthorized):
    default_message = "invalid refresh token"


class RefreshTokenExpired(Unauthorized):
    default_message = "refresh token expired"


class Forbidden(AuthError):
    """Authenticated, but the claims do not allow the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "forbidden"


class NotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not found"


class BadRequest(AuthError):
    """Malformed identifier or parameter."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "bad request"


class Conflict(AuthError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "conflict"


class TokenIssuanceFailed(AuthError):
    default_message = "failed to generate tokens"
