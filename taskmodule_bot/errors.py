from __future__ import annotations


class BotError(Exception):
    """Base class for errors raised while handling an activity."""


class DecodeError(BotError, ValueError):
    """Invoke payload does not match the shape expected for its kind."""


class UpstreamUnavailable(BotError, RuntimeError):
    """The package registry could not be reached or did not answer in time."""


class SearchCancelled(UpstreamUnavailable):
    """The caller went away while the registry call was in flight."""


class ConnectorError(BotError, RuntimeError):
    """An outgoing activity could not be delivered to the conversation."""
