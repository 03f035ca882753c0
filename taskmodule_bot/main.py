import logging
from typing import Callable, Optional

import requests
from fastapi import FastAPI

from taskmodule_bot.bot_router import router as bot_router
from taskmodule_bot.config import Settings, build_cors, configure_logging, get_settings
from taskmodule_bot.core.dispatcher import InvokeDispatcher
from taskmodule_bot.middleware.request_id import RequestIDMiddleware
from taskmodule_bot.middleware.timing import TimingMiddleware
from taskmodule_bot.schemas import Activity
from taskmodule_bot.services.turn_context import ConnectorTurnContext, TurnContext

logger = logging.getLogger("main_app")


def connector_factory(settings: Settings) -> Callable[[Activity], TurnContext]:
    # One session shared by every reply for connection reuse
    session = requests.Session()

    def make(activity: Activity) -> TurnContext:
        return ConnectorTurnContext(activity, timeout=settings.connector.timeout, session=session)

    return make


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------
def create_app(
    settings: Optional[Settings] = None,
    dispatcher: Optional[InvokeDispatcher] = None,
    turn_context_factory: Optional[Callable[[Activity], TurnContext]] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title=settings.meta.app_name, version=settings.meta.version)
    app = build_cors(settings)(app)
    app.add_middleware(TimingMiddleware, slow_ms=settings.logging.slow_request_threshold_ms)
    app.add_middleware(RequestIDMiddleware)

    # Catalog and card are loaded once here and shared read-only by all requests
    app.state.settings = settings
    app.state.dispatcher = dispatcher or InvokeDispatcher.from_settings(settings)
    app.state.turn_context_factory = turn_context_factory or connector_factory(settings)

    app.include_router(bot_router)
    logger.info(
        f"{settings.meta.app_name} ready (env={settings.meta.environment}, "
        f"panels={settings.panels.base_url}, registry={settings.registry.search_url})"
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    cfg = get_settings().fastapi
    uvicorn.run("taskmodule_bot.main:app", host=cfg.host, port=cfg.port, reload=cfg.reload, workers=cfg.workers)
