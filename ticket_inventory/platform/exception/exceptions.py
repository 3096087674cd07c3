class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    code = 'error'

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    code = 'domain_error'

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class AuthenticationError(CustomBaseError):
    code = 'unauthenticated'

    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class ForbiddenError(CustomBaseError):
    code = 'forbidden'

    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    code = 'not_found'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    code = 'conflict'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class InvariantViolationError(CustomBaseError):
    """A command would break a counter invariant; rejected, never clamped."""

    code = 'invariant_violation'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class UpstreamUnavailableError(CustomBaseError):
    code = 'upstream_unavailable'

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)


class MessagePublishError(CustomBaseError):
    """Raised by the MQ client once every publish attempt failed. Retryable."""

    code = 'message_publish_failed'

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)


class UnprocessableMessageError(CustomBaseError):
    """An inbound message that can never be handled (malformed payload). Goes straight to DLQ."""

    code = 'unprocessable_message'

    def __init__(self, message: str) -> None:
        super().__init__(message, 422)
