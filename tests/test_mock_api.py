"""End-to-end: HealthcareClient against the in-memory fake API."""
from __future__ import annotations

import logging

import httpx
import pytest

from healthcare_client import ApiError, HealthcareClient
from mock_api.page_tokens import PageTokenError, decode_page_token, encode_page_token
from mock_api.store import SERIES_INSTANCE_UID, SOP_INSTANCE_UID, STUDY_INSTANCE_UID

from .conftest import BASE, TOKEN, FakeAuth


async def test_walks_the_whole_hierarchy(client: HealthcareClient) -> None:
    assert await client.fetch_projects() == ["alpha-1", "alpha-2", "beta-1", "beta-2", "gamma"]
    assert await client.fetch_locations("alpha-1") == ["us-central1", "europe-west4"]
    # page_size=2 truncates datasets to the first page
    assert await client.fetch_datasets("alpha-1", "us-central1") == ["ds-a", "ds-b"]
    assert await client.fetch_dicom_stores("alpha-1", "us-central1", "ds-a") == [
        "store-1",
        "store-empty",
    ]

    studies = await client.fetch_studies("alpha-1", "us-central1", "ds-a", "store-1")
    assert [s[STUDY_INSTANCE_UID]["Value"][0] for s in studies] == ["1.2.3"]

    series = await client.fetch_series("alpha-1", "us-central1", "ds-a", "store-1", "1.2.3")
    assert [s[SERIES_INSTANCE_UID]["Value"][0] for s in series] == ["1.2.3.4"]

    instances = await client.fetch_instances(
        "alpha-1", "us-central1", "ds-a", "store-1", "1.2.3", "1.2.3.4"
    )
    assert [i[SOP_INSTANCE_UID]["Value"][0] for i in instances] == ["1.2.3.4.1", "1.2.3.4.2"]

    url = client.dicom_instance_url(
        "alpha-1", "us-central1", "ds-a", "store-1", "1.2.3", "1.2.3.4", "1.2.3.4.2"
    )
    assert await client.fetch_dicom_file(url) == b"\x00" * 128 + b"DICMsecond"


async def test_project_search_pages_through_filtered_ids(client: HealthcareClient) -> None:
    assert await client.fetch_projects("beta") == ["beta-1", "beta-2"]
    assert await client.fetch_projects("alpha") == ["alpha-1", "alpha-2"]
    assert await client.fetch_projects("nothing") == []


async def test_empty_store_lists_no_studies(client: HealthcareClient) -> None:
    assert await client.fetch_studies("alpha-1", "us-central1", "ds-a", "store-empty") == []


async def test_project_without_locations(client: HealthcareClient) -> None:
    assert await client.fetch_locations("gamma") == []


async def test_unknown_resource_raises_with_body(client: HealthcareClient) -> None:
    with pytest.raises(ApiError) as excinfo:
        await client.fetch_studies("alpha-1", "us-central1", "ds-a", "missing")
    assert excinfo.value.status_code == 404
    assert "dicomStore missing not found" in str(excinfo.value)


async def test_wrong_token_triggers_sign_in(api_app) -> None:
    auth = FakeAuth("not-the-token")
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=api_app)) as http:
        client = HealthcareClient(
            auth, http=http, healthcare_base_url=BASE, resource_manager_base_url=BASE
        )
        assert await client.fetch_projects() is None
        assert await client.fetch_locations("alpha-1") is None
    assert auth.sign_in_calls == 2


async def test_health_needs_no_token(api_app) -> None:
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=api_app), base_url=BASE) as http:
        r = await http.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert "X-Request-ID" in r.headers


async def test_download_requires_dicom_accept(api_app) -> None:
    path = (
        "/v1/projects/alpha-1/locations/us-central1/datasets/ds-a/dicomStores/store-1"
        "/dicomWeb/studies/1.2.3/series/1.2.3.4/instances/1.2.3.4.1"
    )
    headers = {"Authorization": f"Bearer {TOKEN}", "Accept": "application/json"}
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=api_app), base_url=BASE) as http:
        r = await http.get(path, headers=headers)
    assert r.status_code == 406


async def test_bad_page_token_is_rejected(api_app) -> None:
    headers = {"Authorization": f"Bearer {TOKEN}"}
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=api_app), base_url=BASE) as http:
        r = await http.get("/v1/projects", params={"pageToken": "%%%"}, headers=headers)
    assert r.status_code == 400


def test_page_token_is_bound_to_its_filter() -> None:
    token = encode_page_token(offset=4, filter_="id:a*")
    assert decode_page_token(token, filter_="id:a*") == 4
    with pytest.raises(PageTokenError):
        decode_page_token(token, filter_="id:b*")
    with pytest.raises(PageTokenError):
        decode_page_token("not base64 at all!", filter_=None)


async def test_lifespan_logs_startup_and_shutdown(api_app, caplog) -> None:
    caplog.set_level(logging.INFO, logger="mock_api")
    async with api_app.router.lifespan_context(api_app):
        pass
    events = [r.event for r in caplog.records if r.name == "mock_api"]
    assert events == ["startup", "shutdown"]
    startup = next(r for r in caplog.records if getattr(r, "event", None) == "startup")
    assert startup.projects == 5
    assert startup.stores == 2
