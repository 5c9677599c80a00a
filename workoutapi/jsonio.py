"""JSON responses and URL id parameters."""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Mapping

from werkzeug.wrappers import Response

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_ID_PATTERN = re.compile(r"[+-]?[0-9]+")

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class InvalidIDError(ValueError):
    """Raised when a URL id parameter is missing or not an integer."""


def _default(obj: Any) -> Any:
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


def write_json(status: int, data: Mapping[str, Any]) -> Response:
    """Build a JSON response with one-space indentation and a trailing newline."""
    body = json.dumps(dict(sorted(data.items())), indent=1, default=_default, ensure_ascii=False)
    for char, escaped in _ESCAPES.items():
        body = body.replace(char, escaped)
    return Response(body + "\n", status=status, content_type="application/json")


def read_id_param(params: Mapping[str, str]) -> int:
    """Parse the ``id`` route parameter as a signed 64-bit integer."""
    raw = params.get("id", "")
    if not raw:
        raise InvalidIDError("invalid id parameter")
    if not _ID_PATTERN.fullmatch(raw):
        raise InvalidIDError("invalid id parameter type")
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise InvalidIDError("invalid id parameter type")
    return value