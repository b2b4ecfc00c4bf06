from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse

from healthcare_client.logging_conf import get_logger

from ..page_tokens import PageTokenError
from ..store import Catalog, DicomStore, NotFound, dicom_json
from .models import DatasetsResponse, DicomStoresResponse, LocationsResponse, ProjectsPage

logger = get_logger("mock_api.api")

DICOM_JSON = "application/dicom+json"


def require_bearer(request: Request) -> None:
    """Reject requests whose bearer token differs from the configured one."""
    expected = f"Bearer {request.app.state.access_token}"
    if request.headers.get("Authorization") != expected:
        logger.info(
            "auth.rejected",
            extra={"event": "auth_rejected", "path": request.url.path},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error_code": "unauthenticated", "error_message": "invalid credentials"},
        )


def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog


router = APIRouter(dependencies=[Depends(require_bearer)])

_STORE_PREFIX = "/v1/projects/{project}/locations/{location}/datasets/{dataset}/dicomStores/{store}"


def _not_found(e: NotFound) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error_code": "not_found", "error_message": str(e)},
    )


def _dicom_store(
    project: str, location: str, dataset: str, store: str, catalog: Catalog
) -> DicomStore:
    try:
        return catalog.store(project, location, dataset, store)
    except NotFound as e:
        raise _not_found(e)


def _dicom_json_response(records: list[dict]) -> Response:
    """QIDO-RS answers 204 with no body when nothing matches."""
    if not records:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return JSONResponse(content=records, media_type=DICOM_JSON)


@router.get(
    "/v1/projects",
    response_model=ProjectsPage,
    response_model_exclude_none=True,
    summary="List projects (Resource Manager v1)",
)
async def list_projects(
    pageToken: str | None = Query(None),
    filter: str | None = Query(None, description='Only "id:<prefix>*" is understood'),
    catalog: Catalog = Depends(get_catalog),
) -> dict:
    try:
        return catalog.list_projects(page_token=pageToken, filter_=filter)
    except PageTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error_code": e.code, "error_message": str(e)},
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error_code": "invalid_filter", "error_message": str(e)},
        )


@router.get(
    "/v1beta1/projects/{project}/locations",
    response_model=LocationsResponse,
    response_model_exclude_none=True,
)
async def list_locations(project: str, catalog: Catalog = Depends(get_catalog)) -> dict:
    try:
        return catalog.list_locations(project)
    except NotFound as e:
        raise _not_found(e)


@router.get(
    "/v1/projects/{project}/locations/{location}/datasets",
    response_model=DatasetsResponse,
    response_model_exclude_none=True,
)
async def list_datasets(
    project: str, location: str, catalog: Catalog = Depends(get_catalog)
) -> dict:
    try:
        return catalog.list_datasets(project, location)
    except NotFound as e:
        raise _not_found(e)


@router.get(
    "/v1/projects/{project}/locations/{location}/datasets/{dataset}/dicomStores",
    response_model=DicomStoresResponse,
    response_model_exclude_none=True,
)
async def list_dicom_stores(
    project: str, location: str, dataset: str, catalog: Catalog = Depends(get_catalog)
) -> dict:
    try:
        return catalog.list_dicom_stores(project, location, dataset)
    except NotFound as e:
        raise _not_found(e)


@router.get(f"{_STORE_PREFIX}/dicomWeb/studies")
async def search_studies(
    project: str,
    location: str,
    dataset: str,
    store: str,
    catalog: Catalog = Depends(get_catalog),
):
    dicom_store = _dicom_store(project, location, dataset, store, catalog)
    return _dicom_json_response([dicom_json(st) for st in dicom_store.studies])


@router.get(f"{_STORE_PREFIX}/dicomWeb/studies/{{study}}/series")
async def search_series(
    project: str,
    location: str,
    dataset: str,
    store: str,
    study: str,
    catalog: Catalog = Depends(get_catalog),
):
    dicom_store = _dicom_store(project, location, dataset, store, catalog)
    try:
        st = catalog.study(dicom_store, study)
    except NotFound as e:
        raise _not_found(e)
    return _dicom_json_response([dicom_json(st, se) for se in st.series])


@router.get(f"{_STORE_PREFIX}/dicomWeb/studies/{{study}}/series/{{series}}/instances")
async def search_instances(
    project: str,
    location: str,
    dataset: str,
    store: str,
    study: str,
    series: str,
    catalog: Catalog = Depends(get_catalog),
):
    dicom_store = _dicom_store(project, location, dataset, store, catalog)
    try:
        st = catalog.study(dicom_store, study)
        se = catalog.series(st, series)
    except NotFound as e:
        raise _not_found(e)
    return _dicom_json_response([dicom_json(st, se, inst) for inst in se.instances])


@router.get(f"{_STORE_PREFIX}/dicomWeb/studies/{{study}}/series/{{series}}/instances/{{instance}}")
async def retrieve_instance(
    request: Request,
    project: str,
    location: str,
    dataset: str,
    store: str,
    study: str,
    series: str,
    instance: str,
    catalog: Catalog = Depends(get_catalog),
) -> Response:
    """WADO-RS retrieval of one instance as a bare P10 payload."""
    accept = request.headers.get("Accept", "")
    if not accept.startswith("application/dicom"):
        raise HTTPException(
            status_code=status.HTTP_406_NOT_ACCEPTABLE,
            detail={
                "error_code": "not_acceptable",
                "error_message": "only application/dicom is served",
            },
        )
    dicom_store = _dicom_store(project, location, dataset, store, catalog)
    try:
        inst = catalog.instance(catalog.series(catalog.study(dicom_store, study), series), instance)
    except NotFound as e:
        raise _not_found(e)
    return Response(content=inst.data, media_type="application/dicom")
