"""
Domain Errors

Every use case returns ``Result[T, Error]``. The API layer maps the error code
to an HTTP status; internal codes never leave the server with their message.
"""


class Error:
    """Business error carried in the Err branch of a Result"""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message

    def __eq__(self, other) -> bool:
        if not isinstance(other, Error):
            return NotImplemented
        return self.code == other.code and self.message == other.message

    def __repr__(self) -> str:
        return f"Error(code={self.code!r}, message={self.message!r})"


class ConfigurationError(Exception):
    """Raised at startup when security material is missing or malformed"""


class ErrorCode:
    # Session cookie
    MISSING_SESSION_COOKIE = "MISSING_SESSION_COOKIE"
    INVALID_SESSION_TOKEN = "INVALID_SESSION_TOKEN"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_SESSION = "INVALID_SESSION"

    # Access cookie
    MISSING_ACCESS_TOKEN = "MISSING_ACCESS_TOKEN"
    INVALID_ACCESS_TOKEN = "INVALID_ACCESS_TOKEN"

    # Session lifecycle
    SESSION_MISMATCH = "SESSION_MISMATCH"
    NEED_REAUTH = "NEED_REAUTH"
    DID_LOGOUT = "DID_LOGOUT"

    # Credentials
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_ALREADY_EXISTS = "EMAIL_ALREADY_EXISTS"
    NICKNAME_ALREADY_EXISTS = "NICKNAME_ALREADY_EXISTS"

    # Two-factor
    TWO_FACTOR_REQUIRED = "TWO_FACTOR_REQUIRED"
    TWO_FACTOR_INVALID = "TWO_FACTOR_INVALID"
    TWO_FACTOR_NOT_ENABLED = "TWO_FACTOR_NOT_ENABLED"
    TWO_FACTOR_ALREADY_ENABLED = "TWO_FACTOR_ALREADY_ENABLED"
    TWO_FACTOR_NOT_STARTED = "TWO_FACTOR_NOT_STARTED"
    TWO_FACTOR_RACED = "TWO_FACTOR_RACED"
    TWO_FACTOR_INTERNAL = "TWO_FACTOR_INTERNAL"


def invalid_credentials() -> Error:
    return Error(ErrorCode.INVALID_CREDENTIALS, "Invalid credentials")


def session_mismatch() -> Error:
    return Error(ErrorCode.SESSION_MISMATCH, "Session mismatch")


def need_reauth() -> Error:
    return Error(ErrorCode.NEED_REAUTH, "Reauthentication required")


def two_factor_internal(detail: str) -> Error:
    return Error(ErrorCode.TWO_FACTOR_INTERNAL, f"Internal 2fa error: {detail}")
