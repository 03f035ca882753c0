"""
Invoke dispatcher: classifies an incoming invoke activity by name and hands it
to the handler registered for that kind.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from taskmodule_bot.config import Settings
from taskmodule_bot.core.handlers import package_search, task_fetch, task_submit, unsupported
from taskmodule_bot.core.invoke_registry import InvokeContext, InvokeRegistry, classify
from taskmodule_bot.schemas import Activity, InvokeKind, InvokeRequest, InvokeResponseEnvelope
from taskmodule_bot.services.panel_catalog import PanelCatalog
from taskmodule_bot.services.panel_resolver import PanelResolver
from taskmodule_bot.services.registry_search import SearchProxy
from taskmodule_bot.services.turn_context import TurnContext

logger = logging.getLogger("invoke_dispatcher")


def default_registry() -> InvokeRegistry:
    registry = InvokeRegistry()
    registry.register(InvokeKind.FETCH, task_fetch.handle)
    registry.register(InvokeKind.SUBMIT, task_submit.handle)
    registry.register(InvokeKind.SEARCH, package_search.handle)
    registry.register(InvokeKind.UNSUPPORTED, unsupported.handle)
    return registry


class InvokeDispatcher:
    def __init__(
        self,
        resolver: PanelResolver,
        search: SearchProxy,
        registry: Optional[InvokeRegistry] = None,
    ) -> None:
        self.resolver = resolver
        self.search = search
        self.registry = registry or default_registry()

    @classmethod
    def from_settings(cls, settings: Settings) -> "InvokeDispatcher":
        catalog = PanelCatalog.from_settings(settings.panels)
        return cls(PanelResolver(catalog), SearchProxy(settings.registry))

    @staticmethod
    def to_request(activity: Activity) -> InvokeRequest:
        return InvokeRequest(kind=classify(activity.name), name=activity.name, raw_payload=activity.value)

    def dispatch(
        self,
        request: InvokeRequest,
        turn_context: TurnContext,
        cancel: Optional[threading.Event] = None,
    ) -> InvokeResponseEnvelope:
        """Run the flow for ``request.kind``; DecodeError propagates to the caller."""
        logger.info(f"Invoke: name={request.name!r} kind={request.kind.value}")
        if not self.registry.has(request.kind):
            logger.warning(f"No handler for invoke kind {request.kind.value!r}, answering as unsupported")
            request = request.model_copy(update={"kind": InvokeKind.UNSUPPORTED})
        context = InvokeContext(
            resolver=self.resolver,
            search=self.search,
            turn_context=turn_context,
            cancel=cancel,
        )
        envelope = self.registry.dispatch(request, context)
        logger.info(f"Invoke {request.kind.value} answered with status {envelope.status_code}")
        return envelope
