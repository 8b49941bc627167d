"""Writer payload normalization for ``POST /save``.

Turns a raw request body into the document text handed to the reconciler:

- ``application/json``: ``{"content": "..."}``; a non-string ``content``
  (or a body that is not an object) becomes ``""``; invalid JSON is rejected.
- ``text/plain``: the body verbatim.
- anything else: JSON is tried first, falling back to the raw body.

The core only ever receives a ``str``.
"""

from __future__ import annotations

import json

from padsync._errors import PayloadError

DEFAULT_MAX_BODY_BYTES = 5 * 1024 * 1024


def _content_field(parsed: object) -> str | None:
    """Return ``parsed["content"]`` when it is a string, else None."""
    if isinstance(parsed, dict):
        value = parsed.get("content")
        if isinstance(value, str):
            return value
    return None


def parse_save_payload(
    body: bytes | str,
    content_type: str = "",
    *,
    max_bytes: int = DEFAULT_MAX_BODY_BYTES,
) -> str:
    """Normalize a ``/save`` request body into document text.

    Args:
        body: Raw request body.
        content_type: Value of the ``Content-Type`` header (may be empty).
        max_bytes: Largest accepted body.

    Raises:
        PayloadError: Body too large, not UTF-8, or invalid JSON under a
            JSON content type.

    """
    raw = body.encode("utf-8") if isinstance(body, str) else body
    if len(raw) > max_bytes:
        msg = f"payload too large: {len(raw)} bytes (limit {max_bytes})"
        raise PayloadError(msg)

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = f"payload is not valid UTF-8: {exc}"
        raise PayloadError(msg) from exc

    ctype = content_type.lower()

    if "application/json" in ctype:
        try:
            parsed = json.loads(text or "{}")
        except json.JSONDecodeError as exc:
            msg = f"invalid JSON payload: {exc}"
            raise PayloadError(msg) from exc
        return _content_field(parsed) or ""

    if "text/plain" in ctype:
        return text

    try:
        parsed = json.loads(text or "{}")
    except json.JSONDecodeError:
        return text
    content = _content_field(parsed)
    return content if content is not None else text
