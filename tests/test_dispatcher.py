"""
Tests for InvokeDispatcher: classification, routing and envelopes.
"""

import json

import pytest

from taskmodule_bot.core.dispatcher import InvokeDispatcher
from taskmodule_bot.core.handlers import unsupported
from taskmodule_bot.core.invoke_registry import InvokeRegistry, classify
from taskmodule_bot.errors import DecodeError
from taskmodule_bot.schemas import Activity, InvokeKind, InvokeRequest
from taskmodule_bot.services.panel_resolver import SUBMIT_ACK_PREFIX

from conftest import BASE_URL, fake_response, registry_session


def invoke(name, value):
    return InvokeDispatcher.to_request(Activity(type="invoke", name=name, value=value))


class TestClassify:
    @pytest.mark.parametrize(
        "name, kind",
        [
            ("task/fetch", InvokeKind.FETCH),
            ("task/submit", InvokeKind.SUBMIT),
            ("application/search", InvokeKind.SEARCH),
            ("composeExtension/query", InvokeKind.UNSUPPORTED),
            ("", InvokeKind.UNSUPPORTED),
            (None, InvokeKind.UNSUPPORTED),
        ],
    )
    def test_names(self, name, kind):
        assert classify(name) == kind

    def test_request_keeps_name_and_payload(self):
        request = invoke("task/fetch", {"data": "youtube"})
        assert request.kind == InvokeKind.FETCH
        assert request.name == "task/fetch"
        assert request.raw_payload == {"data": "youtube"}


class TestFetch:
    def test_panel_id_string(self, make_dispatcher, turn_context):
        envelope = make_dispatcher().dispatch(invoke("task/fetch", {"data": "youtube"}), turn_context)
        assert envelope.status_code == 200
        assert envelope.body["task"]["value"]["url"] == BASE_URL + "youtube"

    def test_card_action_shape(self, make_dispatcher, turn_context):
        value = {"data": {"msteams": {"type": "task/fetch"}, "data": "customform"}, "context": {"theme": "dark"}}
        envelope = make_dispatcher().dispatch(invoke("task/fetch", value), turn_context)
        assert envelope.body["task"]["value"]["title"] == "Custom Form"

    def test_unknown_panel_is_empty(self, make_dispatcher, turn_context):
        envelope = make_dispatcher().dispatch(invoke("task/fetch", {"data": "nope"}), turn_context)
        assert envelope.status_code == 200
        assert envelope.body == {"task": {"type": "continue", "value": {}}}

    def test_missing_data_is_empty(self, make_dispatcher, turn_context):
        envelope = make_dispatcher().dispatch(invoke("task/fetch", {}), turn_context)
        assert envelope.body == {"task": {"type": "continue", "value": {}}}

    @pytest.mark.parametrize("value", ["youtube", None, ["youtube"], 3])
    def test_non_object_payload_raises(self, make_dispatcher, turn_context, value):
        with pytest.raises(DecodeError):
            make_dispatcher().dispatch(invoke("task/fetch", value), turn_context)

    def test_non_string_panel_id_raises(self, make_dispatcher, turn_context):
        with pytest.raises(DecodeError):
            make_dispatcher().dispatch(invoke("task/fetch", {"data": 42}), turn_context)

    def test_fetch_sends_nothing(self, make_dispatcher, turn_context):
        make_dispatcher().dispatch(invoke("task/fetch", {"data": "youtube"}), turn_context)
        assert turn_context.sent == []


class TestSubmit:
    def test_acknowledges_once(self, make_dispatcher, turn_context):
        envelope = make_dispatcher().dispatch(invoke("task/submit", {"a": 1}), turn_context)

        assert envelope.status_code == 200
        assert envelope.body == ""
        assert len(turn_context.sent) == 1
        message = turn_context.sent[0]
        assert message["type"] == "message"
        assert message["text"].startswith(SUBMIT_ACK_PREFIX)
        assert json.dumps({"a": 1}) in message["text"]

    def test_any_payload_accepted(self, make_dispatcher, turn_context):
        envelope = make_dispatcher().dispatch(invoke("task/submit", "plain"), turn_context)
        assert envelope.body == ""
        assert len(turn_context.sent) == 1


class TestSearch:
    def test_results_envelope(self, make_dispatcher, turn_context):
        session = registry_session(fake_response({"data": [{"id": "Newtonsoft.Json", "description": "Json.NET"}]}))
        envelope = make_dispatcher(session).dispatch(
            invoke("application/search", {"queryText": "Newtonsoft.Json", "dataset": "npmpackages"}),
            turn_context,
        )
        assert envelope.status_code == 200
        assert envelope.body == {
            "type": "searchResponse",
            "results": [{"title": "Newtonsoft.Json", "value": "Newtonsoft.Json - Json.NET"}],
        }

    def test_empty_envelope(self, make_dispatcher, turn_context):
        session = registry_session(fake_response(b"oops"))
        envelope = make_dispatcher(session).dispatch(invoke("application/search", {"queryText": "x"}), turn_context)
        assert envelope.status_code == 204
        assert envelope.body == {"type": "searchResponse"}

    @pytest.mark.parametrize("value", ["x", {}, {"queryText": 5}])
    def test_bad_query_raises(self, make_dispatcher, turn_context, value):
        with pytest.raises(DecodeError):
            make_dispatcher().dispatch(invoke("application/search", value), turn_context)


class TestUnsupported:
    def test_explicit_envelope(self, make_dispatcher, turn_context):
        envelope = make_dispatcher().dispatch(invoke("composeExtension/query", {"data": "youtube"}), turn_context)
        assert envelope.status_code == 501
        assert envelope.body == {"error": "unsupported", "name": "composeExtension/query"}
        assert turn_context.sent == []


class TestRegistry:
    def test_missing_handler(self, resolver, make_search, turn_context):
        dispatcher = InvokeDispatcher(resolver, make_search(registry_session()), registry=InvokeRegistry())
        with pytest.raises(ValueError, match="No handler"):
            dispatcher.dispatch(InvokeRequest(kind=InvokeKind.FETCH), turn_context)

    def test_default_registry_is_total(self, make_dispatcher):
        registry = make_dispatcher().registry
        assert all(registry.has(kind) for kind in InvokeKind)

    def test_kind_without_handler_answers_unsupported(self, resolver, make_search, turn_context):
        registry = InvokeRegistry()
        registry.register(InvokeKind.UNSUPPORTED, unsupported.handle)
        dispatcher = InvokeDispatcher(resolver, make_search(registry_session()), registry=registry)
        envelope = dispatcher.dispatch(invoke("task/fetch", {"data": "youtube"}), turn_context)
        assert envelope.status_code == 501
        assert envelope.body == {"error": "unsupported", "name": "task/fetch"}
