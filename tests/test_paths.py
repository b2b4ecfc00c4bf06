from __future__ import annotations

import pytest

from healthcare_client.paths import (
    dataset_path,
    dicom_store_path,
    dicomweb_path,
    escape_segment,
    location_path,
    trailing_segment,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("projects/x/locations/y/datasets/z", "z"),
        ("projects/x/locations/y/datasets/z/dicomStores/store-1", "store-1"),
        ("bare", "bare"),
        ("trailing/", ""),
    ],
)
def test_trailing_segment(name: str, expected: str) -> None:
    assert trailing_segment(name) == expected


def test_hierarchy_paths() -> None:
    assert location_path("p") == "projects/p"
    assert location_path("p", "l") == "projects/p/locations/l"
    assert dataset_path("p", "l", "d") == "projects/p/locations/l/datasets/d"
    assert dicom_store_path("p", "l", "d", "s") == "projects/p/locations/l/datasets/d/dicomStores/s"
    assert dicomweb_path("p", "l", "d", "s", "studies", "1.2", "series") == (
        "projects/p/locations/l/datasets/d/dicomStores/s/dicomWeb/studies/1.2/series"
    )


def test_segments_are_escaped() -> None:
    assert escape_segment("a/b c?") == "a%2Fb%20c%3F"
    assert dataset_path("p", "l", "d/../x") == "projects/p/locations/l/datasets/d%2F..%2Fx"
