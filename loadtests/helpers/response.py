"""Response error extraction for load test observability.

Parses logistics API error responses into human-readable messages. Every
failure has the shape ``{"success": false, "error": {"kind": ..., "message": ...}}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a compact error message for Locust failure messages and log lines."""
    try:
        body = response.json()
    except ValueError:
        # Not JSON, return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return f"{error.get('kind', 'unknown')}: {error.get('message', '')}"
    if error:
        return str(error)

    # Unknown shape: stringify and truncate
    return str(body)[:300]


def response_data(response: Response):
    """The ``data`` member of a successful response."""
    return response.json()["data"]
