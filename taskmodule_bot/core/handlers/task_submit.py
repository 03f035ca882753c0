from __future__ import annotations

from taskmodule_bot.core.invoke_registry import InvokeContext
from taskmodule_bot.schemas import InvokeRequest, InvokeResponseEnvelope
from taskmodule_bot.services.cards import message_activity
from taskmodule_bot.utils.response import invoke_ok


def handle(request: InvokeRequest, context: InvokeContext) -> InvokeResponseEnvelope:
    ack = context.resolver.resolve_submit(request.raw_payload)
    context.turn_context.send_activity(message_activity(text=ack.text))
    return invoke_ok("")
