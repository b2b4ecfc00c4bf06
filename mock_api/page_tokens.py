"""Opaque page tokens for the fake Resource Manager listing.

A token is base64url(JSON) of the next offset and the filter it was issued
for, so a token can't be replayed against a different filter.
"""
from __future__ import annotations

import base64
import json

from pydantic import BaseModel, Field, ValidationError

__all__ = ["PageTokenError", "PageCursor", "encode_page_token", "decode_page_token"]


class PageTokenError(ValueError):
    code: str = "invalid_page_token"


class PageCursor(BaseModel):
    off: int = Field(..., ge=0)  # index of the first item on the next page
    flt: str = ""  # filter the listing was started with


def encode_page_token(*, offset: int, filter_: str | None) -> str:
    cursor = PageCursor(off=offset, flt=filter_ or "")
    raw = json.dumps(cursor.model_dump(), separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_page_token(token: str, *, filter_: str | None) -> int:
    """Return the offset encoded in `token`.

    Raises PageTokenError if the token is malformed or was issued for another
    filter.
    """
    try:
        data = json.loads(base64.urlsafe_b64decode(token.encode("ascii")))
        cursor = PageCursor(**data)
    except (ValueError, TypeError, ValidationError) as e:
        raise PageTokenError("page token is malformed") from e
    if cursor.flt != (filter_ or ""):
        raise PageTokenError("page token was issued for a different filter")
    return cursor.off
