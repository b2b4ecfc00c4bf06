from __future__ import annotations

import httpx
import pytest

from healthcare_client import HealthcareClient
from mock_api.main import create_app
from mock_api.store import Catalog, DicomStore, Instance, Series, Study

TOKEN = "test-token"
BASE = "http://fake.test"


class FakeAuth:
    """AuthProvider double that counts sign-in requests."""

    def __init__(self, token: str | None = TOKEN) -> None:
        self.token = token
        self.sign_in_calls = 0

    def get_access_token(self) -> str | None:
        return self.token

    def sign_in(self) -> None:
        self.sign_in_calls += 1


@pytest.fixture
def auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture
def catalog() -> Catalog:
    series = Series(
        uid="1.2.3.4",
        modality="MR",
        instances=[
            Instance(uid="1.2.3.4.1", data=b"\x00" * 128 + b"DICMfirst"),
            Instance(uid="1.2.3.4.2", data=b"\x00" * 128 + b"DICMsecond"),
        ],
    )
    study = Study(uid="1.2.3", patient_name="Roe^Richard", series=[series])
    return Catalog(
        projects=["alpha-1", "alpha-2", "beta-1", "beta-2", "gamma"],
        locations={"alpha-1": ["us-central1", "europe-west4"]},
        datasets={("alpha-1", "us-central1"): ["ds-a", "ds-b", "ds-c"]},
        stores={
            ("alpha-1", "us-central1", "ds-a", "store-1"): DicomStore(studies=[study]),
            ("alpha-1", "us-central1", "ds-a", "store-empty"): DicomStore(),
        },
        page_size=2,
    )


@pytest.fixture
def api_app(catalog: Catalog):
    return create_app(catalog, access_token=TOKEN)


@pytest.fixture
async def client(api_app, auth: FakeAuth):
    transport = httpx.ASGITransport(app=api_app)
    async with httpx.AsyncClient(transport=transport) as http:
        yield HealthcareClient(
            auth,
            http=http,
            healthcare_base_url=BASE,
            resource_manager_base_url=BASE,
        )


def mock_client(handler) -> httpx.AsyncClient:
    """An AsyncClient whose requests are answered by `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
