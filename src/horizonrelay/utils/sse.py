from __future__ import annotations

import json
from typing import Any

SSE_DATA_PREFIX = "data: "
SSE_RECORD_SEPARATOR = "\n\n"
SSE_DONE_PAYLOAD = "[DONE]"


def format_sse_data(payload: str) -> str:
    return f"{SSE_DATA_PREFIX}{payload}{SSE_RECORD_SEPARATOR}"


def format_sse_chunk(data: Any) -> str:
    return format_sse_data(canonical_json(data))


def format_sse_done() -> str:
    return format_sse_data(SSE_DONE_PAYLOAD)


def format_sse_error(message: str) -> str:
    return format_sse_chunk({"error": message})


def canonical_json(data: Any) -> str:
    """Serialize compactly, keeping non-ASCII characters as-is.

    Raises ValueError for non-finite floats, which have no JSON form.
    """
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_json_strict(payload: str) -> Any:
    """Parse JSON, rejecting the NaN/Infinity extensions json.loads allows."""
    return json.loads(payload, parse_constant=_reject_constant)
