from __future__ import annotations

from dataclasses import dataclass, field

from healthcare_client.logging_conf import get_logger

from .page_tokens import decode_page_token, encode_page_token

logger = get_logger("mock_api.store")

__all__ = [
    "Instance",
    "Series",
    "Study",
    "DicomStore",
    "Catalog",
    "NotFound",
    "default_catalog",
    "dicom_json",
]

# DICOM tags used in the JSON records (group+element, upper-case hex).
STUDY_INSTANCE_UID = "0020000D"
SERIES_INSTANCE_UID = "0020000E"
SOP_INSTANCE_UID = "00080018"
PATIENT_NAME = "00100010"
MODALITY = "00080060"

# Preamble + "DICM" magic; the client never looks inside, the tests only compare bytes.
_P10_PREFIX = b"\x00" * 128 + b"DICM"


class NotFound(LookupError):
    """Raised when a path names a resource the catalog does not hold."""


@dataclass
class Instance:
    uid: str
    data: bytes


@dataclass
class Series:
    uid: str
    modality: str = "CT"
    instances: list[Instance] = field(default_factory=list)


@dataclass
class Study:
    uid: str
    patient_name: str = ""
    series: list[Series] = field(default_factory=list)


@dataclass
class DicomStore:
    studies: list[Study] = field(default_factory=list)


def _element(vr: str, value: object) -> dict:
    if vr == "PN":
        return {"vr": vr, "Value": [{"Alphabetic": value}]}
    return {"vr": vr, "Value": [value]}


def dicom_json(
    study: Study, series: Series | None = None, instance: Instance | None = None
) -> dict:
    """Build the DICOM JSON record QIDO-RS would return for this level."""
    record = {STUDY_INSTANCE_UID: _element("UI", study.uid)}
    if study.patient_name:
        record[PATIENT_NAME] = _element("PN", study.patient_name)
    if series is not None:
        record[SERIES_INSTANCE_UID] = _element("UI", series.uid)
        record[MODALITY] = _element("CS", series.modality)
    if instance is not None:
        record[SOP_INSTANCE_UID] = _element("UI", instance.uid)
    return record


@dataclass
class Catalog:
    """Everything the fake API can list, keyed by hierarchy.

    `page_size` only applies to project listing; datasets and DICOM stores
    are truncated to `page_size` like the real API's default page.
    """

    projects: list[str] = field(default_factory=list)
    locations: dict[str, list[str]] = field(default_factory=dict)
    datasets: dict[tuple[str, str], list[str]] = field(default_factory=dict)
    stores: dict[tuple[str, str, str, str], DicomStore] = field(default_factory=dict)
    page_size: int = 100

    # ------------------------
    # Resource Manager
    # ------------------------

    def list_projects(self, *, page_token: str | None, filter_: str | None) -> dict:
        """Return one page of projects in Resource Manager v1 shape.

        Raises PageTokenError for a bad token and ValueError for a filter
        other than `id:<prefix>*`.
        """
        ids = self.projects
        if filter_:
            ids = [p for p in ids if p.startswith(_parse_id_filter(filter_))]
        offset = decode_page_token(page_token, filter_=filter_) if page_token else 0
        page = ids[offset : offset + self.page_size]
        out: dict = {}
        if page:
            out["projects"] = [
                {"projectId": p, "name": p, "lifecycleState": "ACTIVE"} for p in page
            ]
        if offset + self.page_size < len(ids):
            out["nextPageToken"] = encode_page_token(
                offset=offset + self.page_size, filter_=filter_
            )
        logger.info(
            "projects.page",
            extra={"event": "projects_page", "offset": offset, "count": len(page)},
        )
        return out

    # ------------------------
    # Healthcare API
    # ------------------------

    def list_locations(self, project: str) -> dict:
        if project not in self.projects:
            raise NotFound(f"project {project} not found")
        locs = self.locations.get(project, [])
        if not locs:
            return {}
        return {
            "locations": [
                {"name": f"projects/{project}/locations/{loc}", "locationId": loc}
                for loc in locs
            ]
        }

    def list_datasets(self, project: str, location: str) -> dict:
        if location not in self.locations.get(project, []):
            raise NotFound(f"location projects/{project}/locations/{location} not found")
        names = self.datasets.get((project, location), [])[: self.page_size]
        if not names:
            return {}
        return {
            "datasets": [
                {"name": f"projects/{project}/locations/{location}/datasets/{d}"}
                for d in names
            ]
        }

    def list_dicom_stores(self, project: str, location: str, dataset: str) -> dict:
        if dataset not in self.datasets.get((project, location), []):
            raise NotFound(f"dataset {dataset} not found")
        parent = f"projects/{project}/locations/{location}/datasets/{dataset}"
        names = [
            key[3] for key in self.stores if key[:3] == (project, location, dataset)
        ][: self.page_size]
        if not names:
            return {}
        return {"dicomStores": [{"name": f"{parent}/dicomStores/{s}"} for s in names]}

    def store(self, project: str, location: str, dataset: str, store: str) -> DicomStore:
        try:
            return self.stores[(project, location, dataset, store)]
        except KeyError:
            raise NotFound(f"dicomStore {store} not found") from None

    def study(self, store: DicomStore, study_uid: str) -> Study:
        for study in store.studies:
            if study.uid == study_uid:
                return study
        raise NotFound(f"study {study_uid} not found")

    def series(self, study: Study, series_uid: str) -> Series:
        for series in study.series:
            if series.uid == series_uid:
                return series
        raise NotFound(f"series {series_uid} not found")

    def instance(self, series: Series, instance_uid: str) -> Instance:
        for instance in series.instances:
            if instance.uid == instance_uid:
                return instance
        raise NotFound(f"instance {instance_uid} not found")


def _parse_id_filter(filter_: str) -> str:
    """Return the prefix of an `id:<prefix>*` filter."""
    key, sep, value = filter_.partition(":")
    if key.strip() != "id" or not sep or not value.endswith("*"):
        raise ValueError(f"unsupported filter: {filter_}")
    return value[:-1]


def default_catalog() -> Catalog:
    """A small catalog for local runs: three projects, one populated store."""
    ct = Series(
        uid="1.2.840.1.2",
        modality="CT",
        instances=[
            Instance(uid="1.2.840.1.2.1", data=_P10_PREFIX + b"slice-1"),
            Instance(uid="1.2.840.1.2.2", data=_P10_PREFIX + b"slice-2"),
        ],
    )
    mr = Series(
        uid="1.2.840.1.3",
        modality="MR",
        instances=[Instance(uid="1.2.840.1.3.1", data=_P10_PREFIX + b"mr-1")],
    )
    study = Study(uid="1.2.840.1", patient_name="Doe^Jane", series=[ct, mr])
    return Catalog(
        projects=["demo-imaging", "demo-research", "sandbox"],
        locations={"demo-imaging": ["us-central1", "europe-west4"]},
        datasets={("demo-imaging", "us-central1"): ["radiology", "empty"]},
        stores={
            ("demo-imaging", "us-central1", "radiology", "ct-store"): DicomStore(studies=[study]),
            ("demo-imaging", "us-central1", "radiology", "scratch"): DicomStore(),
        },
    )
