from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

SEARCH_RESPONSE_TYPE = "searchResponse"


class PanelId(str, Enum):
    YOUTUBE = "youtube"
    CUSTOM_FORM = "customform"
    ADAPTIVE_CARD = "adaptivecard"


class PanelDescriptor(BaseModel):
    """Static metadata needed to open a panel.

    Exactly one of ``url`` and ``card`` is set.
    """

    model_config = ConfigDict(frozen=True)

    id: PanelId
    title: str
    width: int
    height: int
    button_title: str
    url: Optional[str] = None
    card: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _check_one_content(self):
        if (self.url is None) == (self.card is None):
            raise ValueError(f"Panel '{self.id.value}' needs exactly one of url or card")
        return self


# -----------------------------------------------------------------------------
# Panel responses
# -----------------------------------------------------------------------------
class TaskInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    url: Optional[str] = None
    fallback_url: Optional[str] = Field(default=None, alias="fallbackUrl")
    card: Optional[Dict[str, Any]] = None


class TaskContinue(BaseModel):
    type: Literal["continue"] = "continue"
    value: TaskInfo = Field(default_factory=TaskInfo)


class PanelOpenResponse(BaseModel):
    task: TaskContinue = Field(default_factory=TaskContinue)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class SubmitAck(BaseModel):
    text: str


# -----------------------------------------------------------------------------
# Invoke requests
# -----------------------------------------------------------------------------
class InvokeKind(str, Enum):
    FETCH = "fetch"
    SUBMIT = "submit"
    SEARCH = "search"
    UNSUPPORTED = "unsupported"


class InvokeRequest(BaseModel):
    kind: InvokeKind
    name: Optional[str] = None
    raw_payload: Any = None


class FetchValue(BaseModel):
    panel_id: Optional[str] = None


class SearchQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query_text: str = Field(alias="queryText")


# -----------------------------------------------------------------------------
# Search responses
# -----------------------------------------------------------------------------
class SearchResultItem(BaseModel):
    id: str
    description: str = ""


class SearchResult(BaseModel):
    title: str
    value: str


class SearchResponseBody(BaseModel):
    type: str = SEARCH_RESPONSE_TYPE
    results: Optional[List[SearchResult]] = None


class SearchResponseEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_code: Literal[200, 204] = Field(alias="statusCode")
    body: SearchResponseBody = Field(default_factory=SearchResponseBody)

    @model_validator(mode="after")
    def _results_iff_ok(self):
        if (self.status_code == 200) != (self.body.results is not None):
            raise ValueError("results must be present exactly when statusCode is 200")
        return self

    @classmethod
    def empty(cls) -> "SearchResponseEnvelope":
        return cls(status_code=204)

    @classmethod
    def found(cls, results: List[SearchResult]) -> "SearchResponseEnvelope":
        return cls(status_code=200, body=SearchResponseBody(results=results))


class InvokeResponseEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    body: Any = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# -----------------------------------------------------------------------------
# Incoming platform activity
# -----------------------------------------------------------------------------
class Activity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str
    id: Optional[str] = None
    name: Optional[str] = None
    value: Any = None
    text: Optional[str] = None
    channel_id: Optional[str] = Field(default=None, alias="channelId")
    service_url: Optional[str] = Field(default=None, alias="serviceUrl")
    conversation: Dict[str, Any] = Field(default_factory=dict)
    from_: Dict[str, Any] = Field(default_factory=dict, alias="from")
    recipient: Dict[str, Any] = Field(default_factory=dict)
