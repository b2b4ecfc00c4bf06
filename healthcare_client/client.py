from __future__ import annotations

from typing import Any

import httpx

from .auth import AuthProvider
from .config import DEFAULT_HEALTHCARE_BASE_URL, DEFAULT_RESOURCE_MANAGER_BASE_URL, Settings
from .fetch import authenticated_fetch
from .logging_conf import get_logger
from .paths import (
    dataset_path,
    dicomweb_path,
    location_path,
    trailing_segment,
)

__all__ = ["HealthcareClient", "DICOM_ACCEPT"]

DICOM_ACCEPT = "application/dicom; transfer-syntax=*"
DICOM_JSON_ACCEPT = "application/dicom+json"

logger = get_logger("healthcare_client.client")


class HealthcareClient:
    """Lists the project → location → dataset → DICOM store → study → series
    → instance hierarchy and downloads DICOM instances.

    Every call goes through `authenticated_fetch`; a call abandoned for
    sign-in returns None, so callers must tolerate that result.

    The HTTP client is closed on `aclose()` only when this object created it.
    """

    def __init__(
        self,
        auth: AuthProvider,
        *,
        http: httpx.AsyncClient | None = None,
        healthcare_base_url: str = DEFAULT_HEALTHCARE_BASE_URL,
        resource_manager_base_url: str = DEFAULT_RESOURCE_MANAGER_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self.auth = auth
        self.healthcare_base_url = healthcare_base_url.rstrip("/")
        self.resource_manager_base_url = resource_manager_base_url.rstrip("/")
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls, settings: Settings, auth: AuthProvider, *, http: httpx.AsyncClient | None = None
    ) -> HealthcareClient:
        return cls(
            auth,
            http=http,
            healthcare_base_url=settings.healthcare_base_url,
            resource_manager_base_url=settings.resource_manager_base_url,
            timeout=settings.http_timeout,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> HealthcareClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------
    # Internals
    # ------------------------

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any | None:
        response = await authenticated_fetch(
            self.http, self.auth, url, headers=headers, params=params
        )
        if response is None:
            return None
        # DICOMweb searches answer an empty body (204) when nothing matches.
        if not response.content:
            return {}
        return response.json()

    async def _search_dicomweb(self, path: str) -> list[dict] | None:
        url = f"{self.healthcare_base_url}/v1/{path}"
        data = await self._get_json(url, headers={"Accept": DICOM_JSON_ACCEPT})
        if data is None:
            return None
        return data or []

    # ------------------------
    # Resource Manager
    # ------------------------

    async def fetch_projects(self, search_query: str | None = None) -> list[str] | None:
        """Return the ids of every project visible to the caller.

        Follows `nextPageToken` until the last page and concatenates the ids
        in page order. `search_query` keeps projects whose id starts with it.
        A failing page raises and discards the pages already read.
        """
        url = f"{self.resource_manager_base_url}/v1/projects"
        project_ids: list[str] = []
        page_token: str | None = None
        pages = 0
        while True:
            params: dict[str, str] = {}
            if search_query:
                params["filter"] = f"id:{search_query}*"
            if page_token:
                params["pageToken"] = page_token

            data = await self._get_json(url, params=params or None)
            if data is None:
                return None
            pages += 1
            project_ids.extend(p["projectId"] for p in data.get("projects", []))
            logger.debug(
                "projects.page",
                extra={"event": "projects_page", "page": pages, "total": len(project_ids)},
            )

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.info(
            "projects.listed",
            extra={"event": "projects_listed", "pages": pages, "count": len(project_ids)},
        )
        return project_ids

    # ------------------------
    # Healthcare API
    # ------------------------

    async def fetch_locations(self, project_id: str) -> list[str] | None:
        """Return the location ids available to a project."""
        url = f"{self.healthcare_base_url}/v1beta1/{location_path(project_id)}/locations"
        data = await self._get_json(url)
        if data is None:
            return None
        return [loc["locationId"] for loc in data.get("locations", [])]

    async def fetch_datasets(self, project_id: str, location: str) -> list[str] | None:
        """Return the dataset ids in a project location.

        Only the first page is read, so listings past the server's default
        page size are truncated.
        """
        url = f"{self.healthcare_base_url}/v1/{location_path(project_id, location)}/datasets"
        data = await self._get_json(url)
        if data is None:
            return None
        return [trailing_segment(ds["name"]) for ds in data.get("datasets", [])]

    async def fetch_dicom_stores(
        self, project_id: str, location: str, dataset: str
    ) -> list[str] | None:
        """Return the DICOM store ids in a dataset (first page only, like datasets)."""
        url = (
            f"{self.healthcare_base_url}/v1/"
            f"{dataset_path(project_id, location, dataset)}/dicomStores"
        )
        data = await self._get_json(url)
        if data is None:
            return None
        return [trailing_segment(st["name"]) for st in data.get("dicomStores", [])]

    async def fetch_studies(
        self, project_id: str, location: str, dataset: str, dicom_store: str
    ) -> list[dict] | None:
        """Return the DICOM JSON study records of a store."""
        path = dicomweb_path(project_id, location, dataset, dicom_store, "studies")
        return await self._search_dicomweb(path)

    async def fetch_series(
        self,
        project_id: str,
        location: str,
        dataset: str,
        dicom_store: str,
        study_uid: str,
    ) -> list[dict] | None:
        """Return the DICOM JSON series records of a study."""
        path = dicomweb_path(
            project_id, location, dataset, dicom_store, "studies", study_uid, "series"
        )
        return await self._search_dicomweb(path)

    async def fetch_instances(
        self,
        project_id: str,
        location: str,
        dataset: str,
        dicom_store: str,
        study_uid: str,
        series_uid: str,
    ) -> list[dict] | None:
        """Return the DICOM JSON instance records of a series."""
        path = dicomweb_path(
            project_id,
            location,
            dataset,
            dicom_store,
            "studies",
            study_uid,
            "series",
            series_uid,
            "instances",
        )
        return await self._search_dicomweb(path)

    # ------------------------
    # Binary
    # ------------------------

    def dicom_instance_url(
        self,
        project_id: str,
        location: str,
        dataset: str,
        dicom_store: str,
        study_uid: str,
        series_uid: str,
        instance_uid: str,
    ) -> str:
        """Return the WADO-RS URL of a single instance."""
        path = dicomweb_path(
            project_id,
            location,
            dataset,
            dicom_store,
            "studies",
            study_uid,
            "series",
            series_uid,
            "instances",
            instance_uid,
        )
        return f"{self.healthcare_base_url}/v1/{path}"

    async def fetch_dicom_file(self, url: str) -> bytes | None:
        """Download a DICOM P10 file as raw bytes, read fully into memory."""
        response = await authenticated_fetch(
            self.http, self.auth, url, headers={"Accept": DICOM_ACCEPT}
        )
        if response is None:
            return None
        data = response.content
        logger.info(
            "dicom.downloaded",
            extra={"event": "dicom_downloaded", "url": url, "size": len(data)},
        )
        return data

