from __future__ import annotations

from taskmodule_bot.core.invoke_registry import InvokeContext
from taskmodule_bot.schemas import InvokeRequest, InvokeResponseEnvelope
from taskmodule_bot.utils.response import invoke_ok

from .base import decode_fetch_value


def handle(request: InvokeRequest, context: InvokeContext) -> InvokeResponseEnvelope:
    fetch_value = decode_fetch_value(request.raw_payload)
    return invoke_ok(context.resolver.resolve(fetch_value).to_wire())
