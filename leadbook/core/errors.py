"""Domain exceptions raised by the service layer.

Every exception carries the HTTP status it maps to; ``leadbook.main`` turns
them into ``{"detail": message}`` responses.
"""


class LeadbookError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LeadbookError):
    """Bad or missing input."""

    status_code = 400


class AuthenticationError(LeadbookError):
    status_code = 401


class ForbiddenError(LeadbookError):
    status_code = 403


class NotFoundError(LeadbookError):
    status_code = 404


class ConflictError(LeadbookError):
    status_code = 409


class TooManyAttemptsError(LeadbookError):
    """OTP attempts exhausted; only a freshly issued OTP unlocks the account."""

    status_code = 429


class UpstreamServiceError(LeadbookError):
    """Email transport or reCAPTCHA verification failed."""

    status_code = 502
