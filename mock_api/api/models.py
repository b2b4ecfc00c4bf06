from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class ProjectOut(BaseModel):
    """A project as Resource Manager v1 lists it."""
    projectId: str
    name: str
    lifecycleState: str = "ACTIVE"


class ProjectsPage(BaseModel):
    """One page of projects; nextPageToken is absent on the last page."""
    projects: Optional[list[ProjectOut]] = None
    nextPageToken: Optional[str] = None


class LocationOut(BaseModel):
    name: str
    locationId: str


class LocationsResponse(BaseModel):
    locations: Optional[list[LocationOut]] = None


class NamedResource(BaseModel):
    """Datasets and DICOM stores only need their full resource name."""
    name: str


class DatasetsResponse(BaseModel):
    datasets: Optional[list[NamedResource]] = None


class DicomStoresResponse(BaseModel):
    dicomStores: Optional[list[NamedResource]] = None
