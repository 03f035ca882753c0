"""
Invoke registry: maps each invoke kind to the handler that answers it.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from taskmodule_bot.schemas import InvokeKind, InvokeRequest, InvokeResponseEnvelope
from taskmodule_bot.services.panel_resolver import PanelResolver
from taskmodule_bot.services.registry_search import SearchProxy
from taskmodule_bot.services.turn_context import TurnContext

# Activity names as sent by the platform
INVOKE_NAMES: Dict[str, InvokeKind] = {
    "task/fetch": InvokeKind.FETCH,
    "task/submit": InvokeKind.SUBMIT,
    "application/search": InvokeKind.SEARCH,
}


def classify(name: Optional[str]) -> InvokeKind:
    return INVOKE_NAMES.get(name or "", InvokeKind.UNSUPPORTED)


@dataclass
class InvokeContext:
    resolver: PanelResolver
    search: SearchProxy
    turn_context: TurnContext
    cancel: Optional[threading.Event] = None


HandlerFunc = Callable[[InvokeRequest, InvokeContext], InvokeResponseEnvelope]


class InvokeRegistry:
    def __init__(self) -> None:
        self._handlers: Dict[InvokeKind, HandlerFunc] = {}

    def register(self, kind: InvokeKind, handler: HandlerFunc) -> None:
        self._handlers[kind] = handler

    def has(self, kind: InvokeKind) -> bool:
        return kind in self._handlers

    def dispatch(self, request: InvokeRequest, context: InvokeContext) -> InvokeResponseEnvelope:
        if request.kind not in self._handlers:
            raise ValueError(f"No handler registered for invoke kind '{request.kind.value}'")
        return self._handlers[request.kind](request, context)
