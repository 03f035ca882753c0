"""
Card rendering helpers: wrap card documents as message attachments and build
the panel options card shown in reply to chat messages.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from taskmodule_bot.schemas import PanelDescriptor

ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"


def to_attachment(card: Dict[str, Any]) -> Dict[str, Any]:
    return {"contentType": ADAPTIVE_CARD_CONTENT_TYPE, "content": card}


def panel_options_card(panels: Iterable[PanelDescriptor]) -> Dict[str, Any]:
    """One submit action per panel; clicking it sends a task/fetch for that panel id."""
    return {
        "$schema": "http://adaptivecards.io/schemas/adaptive-card.json",
        "type": "AdaptiveCard",
        "version": "1.2",
        "body": [
            {
                "type": "TextBlock",
                "text": "Task Module Invocation from Adaptive Card",
                "weight": "bolder",
                "size": "large",
            }
        ],
        "actions": [
            {
                "type": "Action.Submit",
                "title": p.button_title,
                "data": {"msteams": {"type": "task/fetch"}, "data": p.id.value},
            }
            for p in panels
        ],
    }


def message_activity(text: Optional[str] = None, attachments=None) -> Dict[str, Any]:
    activity: Dict[str, Any] = {"type": "message"}
    if text is not None:
        activity["text"] = text
    if attachments:
        activity["attachments"] = list(attachments)
    return activity
