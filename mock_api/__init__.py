"""In-memory fake of the Resource Manager and Healthcare APIs.

Serves the endpoints the client consumes so the client can be exercised end
to end without Google credentials: `uvicorn mock_api.main:app --port 8000`.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("healthcare-dicom-client")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
