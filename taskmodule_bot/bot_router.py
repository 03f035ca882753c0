from __future__ import annotations

import asyncio
import logging
import threading

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from taskmodule_bot.core.dispatcher import InvokeDispatcher
from taskmodule_bot.errors import ConnectorError, DecodeError
from taskmodule_bot.schemas import Activity
from taskmodule_bot.services.cards import message_activity, panel_options_card, to_attachment
from taskmodule_bot.utils.response import invoke_failure

logger = logging.getLogger("bot_router")
router = APIRouter(prefix="/api", tags=["bot"])

DISCONNECT_POLL_S = 0.25


async def _cancel_on_disconnect(request: Request, cancel: threading.Event) -> None:
    """Set ``cancel`` once the caller drops the connection."""
    while not cancel.is_set():
        if await request.is_disconnected():
            logger.info("Caller disconnected, cancelling invoke")
            cancel.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_S)


async def _handle_invoke(request: Request, activity: Activity, dispatcher: InvokeDispatcher, turn_context) -> Response:
    invoke = dispatcher.to_request(activity)
    cancel = threading.Event()
    watcher = asyncio.create_task(_cancel_on_disconnect(request, cancel))
    try:
        envelope = await run_in_threadpool(dispatcher.dispatch, invoke, turn_context, cancel)
    except DecodeError as de:
        logger.error(f"Invoke {activity.name!r} payload rejected: {de}")
        envelope = invoke_failure("bad_request", 400, detail=str(de))
    finally:
        cancel.set()
        watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)
    if envelope.status_code == 204:
        return Response(status_code=204)
    return JSONResponse(status_code=envelope.status_code, content=envelope.to_wire()["body"])


@router.post("/messages")
async def messages(activity: Activity, request: Request):
    dispatcher: InvokeDispatcher = request.app.state.dispatcher
    turn_context = request.app.state.turn_context_factory(activity)

    try:
        if activity.type == "invoke":
            request.state.activity_label = f"invoke:{activity.name}"
            return await _handle_invoke(request, activity, dispatcher, turn_context)

        if activity.type == "message":
            request.state.activity_label = "message"
            card = panel_options_card(dispatcher.resolver.catalog)
            reply = message_activity(attachments=[to_attachment(card)])
            await run_in_threadpool(turn_context.send_activity, reply)
            return {}

        request.state.activity_label = activity.type
        logger.info(f"Ignoring activity of type {activity.type!r}")
        return {}

    except ConnectorError as ce:
        logger.error(f"Reply delivery failed: {ce}")
        raise HTTPException(status_code=502, detail=str(ce))
    except Exception:
        logger.exception("Activity handling error")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/healthz")
async def healthz(request: Request):
    meta = request.app.state.settings.meta
    return {"status": "ok", "environment": meta.environment, "version": meta.version}
