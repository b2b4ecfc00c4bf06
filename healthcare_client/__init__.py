"""Async client for the Cloud Resource Manager and Healthcare DICOM APIs.

Exposes the client, the auth providers and the cancellation helpers so callers
can `from healthcare_client import HealthcareClient`.
"""
from importlib.metadata import PackageNotFoundError, version

from .auth import AuthProvider, GoogleAuth, StaticTokenAuth
from .cancel import Cancelable, CancelToken, make_cancelable
from .client import HealthcareClient
from .errors import ApiError, CanceledError, HealthcareClientError
from .fetch import authenticated_fetch

try:  # Resolves once the distribution is installed.
    __version__ = version("healthcare-dicom-client")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "ApiError",
    "AuthProvider",
    "CancelToken",
    "Cancelable",
    "CanceledError",
    "GoogleAuth",
    "HealthcareClient",
    "HealthcareClientError",
    "StaticTokenAuth",
    "authenticated_fetch",
    "make_cancelable",
]
