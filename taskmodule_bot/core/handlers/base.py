from __future__ import annotations

from typing import Any

from taskmodule_bot.errors import DecodeError
from taskmodule_bot.schemas import FetchValue, SearchQuery


def ensure_object(payload: Any, kind: str) -> dict:
    """Raise DecodeError unless the invoke value is a JSON object."""
    if not isinstance(payload, dict):
        raise DecodeError(f"expected an object for {kind} value, got '{type(payload).__name__}'")
    return payload


def decode_fetch_value(payload: Any) -> FetchValue:
    """Read the panel id from ``value.data``.

    ``data`` is either the id itself or a card-action object carrying it
    under its own ``data`` key.
    """
    data = ensure_object(payload, "fetch").get("data")
    if isinstance(data, dict):
        data = data.get("data")
    if data is not None and not isinstance(data, str):
        raise DecodeError(f"panel id must be a string, got '{type(data).__name__}'")
    return FetchValue(panel_id=data)


def decode_search_query(payload: Any) -> SearchQuery:
    query_text = ensure_object(payload, "search").get("queryText")
    if not isinstance(query_text, str):
        raise DecodeError("search value needs a string 'queryText'")
    return SearchQuery(query_text=query_text)
