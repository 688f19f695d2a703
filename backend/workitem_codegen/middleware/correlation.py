"""Correlation id handling for webhook requests.

Every response carries ``X-Request-ID``; the id is echoed from the request
when the caller supplies a usable one, otherwise a fresh UUID is issued.
Pipeline runs started from a webhook log under the same id.
"""

import re
import uuid

from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI

REQUEST_ID_HEADER = "X-Request-ID"
# Service hook deliveries use GUIDs; relays may add their own prefixes.
_REQUEST_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def is_valid_request_id(value: str) -> bool:
    return bool(_REQUEST_ID.fullmatch(value))


def setup_correlation_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name=REQUEST_ID_HEADER,
        generator=lambda: str(uuid.uuid4()),
        validator=is_valid_request_id,
        transformer=lambda a: a,
    )


def get_correlation_id() -> str | None:
    """Return the current request's correlation id, or None outside a request."""
    try:
        return correlation_id.get()
    except LookupError:
        return None


__all__ = ["REQUEST_ID_HEADER", "is_valid_request_id", "setup_correlation_middleware", "get_correlation_id"]
