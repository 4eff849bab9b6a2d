from fastapi import status

from authcore.domain.errors import Error, ErrorCode


class ClientError(Exception):
    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        clear_cookies: bool = False,
    ):
        self.base_error = base_error
        self.status_code = status_code
        self.clear_cookies = clear_cookies
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


STATUS_BY_CODE = {
    ErrorCode.MISSING_SESSION_COOKIE: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_SESSION: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.MISSING_ACCESS_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_ACCESS_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.SESSION_MISMATCH: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.NEED_REAUTH: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.DID_LOGOUT: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TWO_FACTOR_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TWO_FACTOR_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TWO_FACTOR_NOT_ENABLED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TWO_FACTOR_NOT_STARTED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TWO_FACTOR_ALREADY_ENABLED: status.HTTP_409_CONFLICT,
    ErrorCode.TWO_FACTOR_RACED: status.HTTP_409_CONFLICT,
    ErrorCode.EMAIL_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.NICKNAME_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
}

# Decode failures and unknown sessions look the same to clients
SESSION_COOKIE_FAILURES = (ErrorCode.INVALID_SESSION_TOKEN, ErrorCode.SESSION_NOT_FOUND)


def to_http_error(error: Error) -> Exception:
    """Map a use case error to the exception the app's handlers render"""
    if error.code in SESSION_COOKIE_FAILURES:
        return ClientError(
            Error(ErrorCode.INVALID_SESSION, "Invalid session"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    status_code = STATUS_BY_CODE.get(error.code)
    if status_code is None:
        return ServerError(error)
    return ClientError(
        error, status_code=status_code, clear_cookies=error.code == ErrorCode.DID_LOGOUT
    )
