import json
import logging
from typing import Dict, Iterator, List, Optional

from taskmodule_bot.schemas import PanelDescriptor, PanelId

logger = logging.getLogger("panel_catalog")

# -----------------------------------------------------------------------------
# Static panel table: id -> display settings
# -----------------------------------------------------------------------------
PANEL_SETTINGS = [
    {"id": PanelId.YOUTUBE, "title": "YouTube", "button_title": "YouTube", "width": 1000, "height": 700},
    {"id": PanelId.CUSTOM_FORM, "title": "Custom Form", "button_title": "Custom Form", "width": 510, "height": 450},
    {"id": PanelId.ADAPTIVE_CARD, "title": "Adaptive Card: Inputs", "button_title": "Adaptive Card", "width": 400, "height": 200},
]

# Panels rendered from an inline card; all others are hosted pages
CARD_PANELS = frozenset({PanelId.ADAPTIVE_CARD})


def load_card(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        card = json.load(f)
    if not isinstance(card, dict):
        raise ValueError(f"Adaptive card at {path} must be a JSON object")
    return card


class PanelCatalog:
    """Read-only lookup of panel descriptors, built once at startup."""

    def __init__(self, descriptors: List[PanelDescriptor]) -> None:
        entries: Dict[str, PanelDescriptor] = {}
        for d in descriptors:
            if d.id.value in entries:
                raise ValueError(f"Duplicate panel id '{d.id.value}'")
            entries[d.id.value] = d
        self._entries = entries

    @classmethod
    def build(cls, base_url: str, card: dict) -> "PanelCatalog":
        descriptors = []
        for row in PANEL_SETTINGS:
            if row["id"] in CARD_PANELS:
                descriptors.append(PanelDescriptor(**row, card=card))
            else:
                descriptors.append(PanelDescriptor(**row, url=base_url + row["id"].value))
        logger.info(f"Panel catalog ready: {[d.id.value for d in descriptors]}")
        return cls(descriptors)

    @classmethod
    def from_settings(cls, panels) -> "PanelCatalog":
        return cls.build(panels.base_url, load_card(panels.card_path))

    def lookup(self, panel_id: Optional[str]) -> Optional[PanelDescriptor]:
        if panel_id is None:
            return None
        return self._entries.get(panel_id)

    def __iter__(self) -> Iterator[PanelDescriptor]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
