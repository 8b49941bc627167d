"""Cross-origin access for editors and readers served from other origins.

``cors_middleware`` answers every ``OPTIONS`` preflight itself with 204 and
the allowed methods and headers, and stamps
``Access-Control-Allow-Origin: *`` on every other response, including the
SSE stream.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chirp import Request
    from chirp.middleware.protocol import Next

ALLOW_ORIGIN = ("Access-Control-Allow-Origin", "*")

PREFLIGHT_HEADERS: tuple[tuple[str, str], ...] = (
    ALLOW_ORIGIN,
    ("Access-Control-Allow-Methods", "GET,POST,OPTIONS"),
    ("Access-Control-Allow-Headers", "Content-Type"),
)


def with_header(response: Any, name: str, value: str) -> Any:
    """Return *response* with one extra header.

    Plain responses expose ``with_header``; streaming responses are frozen
    dataclasses carrying a ``headers`` field.  Anything else is returned
    unchanged.
    """
    if hasattr(response, "with_header"):
        return response.with_header(name, value)
    if is_dataclass(response) and "headers" in {f.name for f in fields(response)}:
        headers = response.headers
        if isinstance(headers, dict):
            return replace(response, headers={**headers, name: value})
        return replace(response, headers=(*(headers or ()), (name, value)))
    return response


def preflight_response() -> Any:
    """The 204 answer to an ``OPTIONS`` preflight."""
    from chirp.http.response import Response

    response: Any = Response(body="", status=204)
    for name, value in PREFLIGHT_HEADERS:
        response = with_header(response, name, value)
    return response


async def cors_middleware(request: Request, next: Next) -> Any:
    """Chirp middleware that opens every endpoint to any origin."""
    if request.method == "OPTIONS":
        return preflight_response()
    response = await next(request)
    return with_header(response, *ALLOW_ORIGIN)
