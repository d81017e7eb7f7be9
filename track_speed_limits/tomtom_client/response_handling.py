"""Shared HTTP response helpers for TomTom API interactions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..errors import ProviderAPIError, ProviderResponseError

__all__ = [
    "decode_json",
    "ensure_success",
    "extract_error",
]


def ensure_success(response: requests.Response, context: str) -> None:
    """Raise :class:`ProviderAPIError` for any non-2xx status."""

    status = response.status_code
    if 200 <= status < 300:
        return
    detail = extract_error(response)
    message = f"{context} request failed (status {status})"
    if detail:
        message = f"{message} | {detail}"
    raise ProviderAPIError(message, status_code=status)


def decode_json(response: requests.Response, context: str) -> Any:
    """Return the decoded body or raise :class:`ProviderResponseError`."""

    try:
        return response.json()
    except ValueError as exc:
        # requests.JSONDecodeError subclasses ValueError.
        raise ProviderResponseError(
            f"{context} returned a body that is not JSON: {exc}",
            status_code=response.status_code,
        ) from exc


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return compact string with TomTom error info (code + message) if present."""

    if resp is None:
        return None
    data = _safe_json(resp)
    if data is None:
        return _extract_error_text(resp)
    if not isinstance(data, dict):
        return None
    parts = _collect_error_parts(data)
    return " | ".join(parts) if parts else None


def _safe_json(resp: requests.Response) -> Optional[Any]:
    """Safely parse JSON; return None if parsing fails."""

    try:
        return resp.json()
    except ValueError as exc:  # pragma: no cover - logging path
        logging.debug(
            "Failed to decode JSON from %s: %s", getattr(resp, "url", "?"), exc
        )
        return None


def _extract_error_text(resp: requests.Response) -> Optional[str]:
    """Best-effort plain-text extraction when JSON parsing fails."""

    text = getattr(resp, "text", "")
    if not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    return (trimmed[:297] + "...") if len(trimmed) > 300 else trimmed


def _collect_error_parts(data: Dict[str, Any]) -> List[str]:
    """Build error snippets from TomTom's ``detailedError``/``errorText`` shapes."""

    parts: List[str] = []
    detailed = data.get("detailedError")
    if isinstance(detailed, dict):
        code = detailed.get("code")
        message = detailed.get("message")
        if code:
            parts.append(str(code))
        if message:
            parts.append(str(message))
    for field in ("errorText", "message"):
        value = data.get(field)
        if value and str(value) not in parts:
            parts.append(str(value))
    return parts
