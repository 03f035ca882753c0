import json
import logging
from typing import Any

from taskmodule_bot.schemas import (
    FetchValue,
    PanelOpenResponse,
    SubmitAck,
    TaskContinue,
    TaskInfo,
)
from taskmodule_bot.services.cards import to_attachment
from taskmodule_bot.services.panel_catalog import PanelCatalog

logger = logging.getLogger("panel_resolver")

SUBMIT_ACK_PREFIX = "Panel submitted with value: "


class PanelResolver:
    def __init__(self, catalog: PanelCatalog) -> None:
        self.catalog = catalog

    def resolve(self, fetch_value: FetchValue) -> PanelOpenResponse:
        """Turn a requested panel id into the task info used to open it.

        Unknown or missing ids give an empty task info rather than an error.
        """
        descriptor = self.catalog.lookup(fetch_value.panel_id)
        if descriptor is None:
            logger.info(f"No panel for id {fetch_value.panel_id!r}, returning empty task info")
            return PanelOpenResponse()

        info = TaskInfo(title=descriptor.title, width=descriptor.width, height=descriptor.height)
        if descriptor.url is not None:
            info.url = info.fallback_url = descriptor.url
        else:
            info.card = to_attachment(descriptor.card)
        return PanelOpenResponse(task=TaskContinue(value=info))

    def resolve_submit(self, payload: Any) -> SubmitAck:
        # Submitted fields are echoed back unvalidated
        return SubmitAck(text=SUBMIT_ACK_PREFIX + json.dumps(payload, default=str))
