from __future__ import annotations

from urllib.parse import quote

__all__ = [
    "escape_segment",
    "location_path",
    "dataset_path",
    "dicom_store_path",
    "dicomweb_path",
    "trailing_segment",
]


def escape_segment(value: str) -> str:
    """URL-escape one path segment, including any '/' it contains."""
    return quote(str(value), safe="")


def location_path(project_id: str, location: str | None = None) -> str:
    """Return `projects/{p}` or `projects/{p}/locations/{l}`."""
    path = f"projects/{escape_segment(project_id)}"
    if location is None:
        return path
    return f"{path}/locations/{escape_segment(location)}"


def dataset_path(project_id: str, location: str, dataset: str) -> str:
    return f"{location_path(project_id, location)}/datasets/{escape_segment(dataset)}"


def dicom_store_path(project_id: str, location: str, dataset: str, dicom_store: str) -> str:
    return (
        f"{dataset_path(project_id, location, dataset)}"
        f"/dicomStores/{escape_segment(dicom_store)}"
    )


def dicomweb_path(
    project_id: str,
    location: str,
    dataset: str,
    dicom_store: str,
    *segments: str,
) -> str:
    """Build a DICOMweb path under a store.

    `segments` alternate between collection names and UIDs, e.g.
    ("studies", study_uid, "series"). Every segment is escaped; collection
    names come through unchanged.
    """
    parts = [dicom_store_path(project_id, location, dataset, dicom_store), "dicomWeb"]
    parts.extend(escape_segment(s) for s in segments)
    return "/".join(parts)


def trailing_segment(name: str) -> str:
    """Return everything after the last '/' of a resource name.

    `projects/x/locations/y/datasets/z` -> `z`. A name without '/' is
    returned as-is.
    """
    return name.rsplit("/", 1)[-1]
