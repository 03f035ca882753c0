from __future__ import annotations

from taskmodule_bot.core.invoke_registry import InvokeContext
from taskmodule_bot.schemas import InvokeRequest, InvokeResponseEnvelope

from .base import decode_search_query


def handle(request: InvokeRequest, context: InvokeContext) -> InvokeResponseEnvelope:
    query = decode_search_query(request.raw_payload)
    result = context.search.search(query, context.cancel)
    return InvokeResponseEnvelope(
        status_code=result.status_code,
        body=result.body.model_dump(exclude_none=True),
    )
