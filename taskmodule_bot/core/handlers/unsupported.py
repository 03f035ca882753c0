from __future__ import annotations

from taskmodule_bot.core.invoke_registry import InvokeContext
from taskmodule_bot.schemas import InvokeRequest, InvokeResponseEnvelope
from taskmodule_bot.utils.response import invoke_failure


def handle(request: InvokeRequest, context: InvokeContext) -> InvokeResponseEnvelope:
    return invoke_failure("unsupported", 501, name=request.name)
