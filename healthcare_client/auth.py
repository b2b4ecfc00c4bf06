"""Auth providers: where bearer tokens come from and what sign-in means.

The client only relies on the two-method `AuthProvider` protocol, so tests and
embedding applications can pass their own object.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

import google.auth
import google.auth.transport.requests
from google.auth.exceptions import GoogleAuthError

from .logging_conf import get_logger

__all__ = ["AuthProvider", "StaticTokenAuth", "GoogleAuth", "CLOUD_PLATFORM_SCOPE"]

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

logger = get_logger("healthcare_client.auth")


@runtime_checkable
class AuthProvider(Protocol):
    def get_access_token(self) -> str | None: ...

    def sign_in(self) -> None: ...


class StaticTokenAuth:
    """A fixed bearer token, e.g. the output of `gcloud auth print-access-token`.

    There is no interactive flow to start, so sign_in() only records that one
    was requested; `sign_in_requests` lets the CLI report it.
    """

    def __init__(self, token: str | None) -> None:
        self._token = token or None
        self.sign_in_requests = 0

    def get_access_token(self) -> str | None:
        return self._token

    def sign_in(self) -> None:
        self.sign_in_requests += 1
        logger.warning(
            "auth.sign_in_required",
            extra={"event": "sign_in_required", "provider": "static"},
        )


class GoogleAuth:
    """Application Default Credentials with the cloud-platform scope.

    Credentials are resolved lazily. A token is only handed out while the
    credentials are valid; sign_in() refreshes them so the next call can
    proceed.
    """

    def __init__(self, scopes: list[str] | None = None) -> None:
        self._scopes = scopes or [CLOUD_PLATFORM_SCOPE]
        self._credentials = None

    def _load(self):
        if self._credentials is None:
            self._credentials, project = google.auth.default(scopes=self._scopes)
            logger.info(
                "auth.credentials_loaded",
                extra={"event": "credentials_loaded", "project": project},
            )
        return self._credentials

    def get_access_token(self) -> str | None:
        credentials = self._load()
        if not credentials.valid:
            return None
        return credentials.token

    def sign_in(self) -> None:
        credentials = self._load()
        try:
            credentials.refresh(google.auth.transport.requests.Request())
        except GoogleAuthError as e:
            logger.error(
                "auth.refresh_failed",
                extra={"event": "refresh_failed", "error": str(e)},
            )
            raise
        logger.info("auth.refreshed", extra={"event": "refreshed"})
