from __future__ import annotations

from typing import Any

from taskmodule_bot.schemas import InvokeResponseEnvelope


def invoke_ok(body: Any = None) -> InvokeResponseEnvelope:
    return InvokeResponseEnvelope(status_code=200, body=body)


def invoke_failure(error: str, code: int = 400, **details: Any) -> InvokeResponseEnvelope:
    body = {"error": error}
    if details:
        body.update({k: v for k, v in details.items() if v is not None})
    return InvokeResponseEnvelope(status_code=code, body=body)
