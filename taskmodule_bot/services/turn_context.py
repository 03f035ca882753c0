from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import requests

from taskmodule_bot.errors import ConnectorError
from taskmodule_bot.schemas import Activity

logger = logging.getLogger("turn_context")


class TurnContext(Protocol):
    activity: Activity

    def send_activity(self, reply: Dict[str, Any]) -> None: ...


def _reply_addressing(activity: Activity) -> Dict[str, Any]:
    """Fields that route a reply back into the conversation it answers."""
    out: Dict[str, Any] = {
        "conversation": activity.conversation,
        "from": activity.recipient,
        "recipient": activity.from_,
    }
    if activity.id:
        out["replyToId"] = activity.id
    if activity.channel_id:
        out["channelId"] = activity.channel_id
    return out


class ConnectorTurnContext:
    """Sends replies by POSTing them to the conversation's connector service."""

    def __init__(self, activity: Activity, *, timeout: float = 15.0, session: Optional[requests.Session] = None) -> None:
        self.activity = activity
        self.timeout = timeout
        self.session = session or requests.Session()

    def send_activity(self, reply: Dict[str, Any]) -> None:
        service_url = (self.activity.service_url or "").rstrip("/")
        conversation_id = self.activity.conversation.get("id")
        if not service_url or not conversation_id:
            raise ConnectorError("activity has no serviceUrl or conversation id to reply to")

        url = f"{service_url}/v3/conversations/{conversation_id}/activities"
        if self.activity.id:
            url += f"/{self.activity.id}"
        payload = {**_reply_addressing(self.activity), **reply}

        logger.info(f"[POST] Sending {reply.get('type', 'message')} activity to: {url}")
        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ConnectorError(f"Failed to send activity: {exc}") from exc
        if not resp.ok:
            logger.error(f"Send activity failed: {resp.status_code} {resp.text[:200]}")
            raise ConnectorError(f"Failed to send activity: {resp.status_code}")

