# lineserver/core/errors.py


class RelayError(Exception):
    """Base for every rejected relay operation. State is never mutated on raise."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(RelayError):
    status_code = 400


class Unauthorized(RelayError):
    status_code = 403


class CapacityExceeded(RelayError):
    status_code = 503

    def __init__(self, message: str = "Server capacity reached"):
        super().__init__(message)


class TooManyRequests(RelayError):
    status_code = 429

    def __init__(self, retry_after: int, message: str = "Too many requests. Please try again later."):
        super().__init__(message)
        self.retry_after = retry_after
