from __future__ import annotations


class HealthcareClientError(RuntimeError):
    """Base class for failures raised by the client."""


class ApiError(HealthcareClientError):
    """Raised for a non-2xx response other than 401.

    The message is the response body text; `status_code` and `url` identify
    the failing call.
    """

    def __init__(self, message: str, *, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class CanceledError(Exception):
    """Raised in place of an outcome the caller stopped caring about.

    Not a HealthcareClientError: cancellation is not a failure of the call.
    """

    is_canceled = True
