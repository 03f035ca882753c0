"""
Shared test fixtures for the task-module bot test suite.

The adaptive card is a real JSON file on disk; only the HTTP session of the
registry search is replaced with a mock.
"""

import json
import socket
import threading
from unittest.mock import MagicMock

import pytest

from taskmodule_bot.config import PanelConfig, RegistryConfig, Settings
from taskmodule_bot.core.dispatcher import InvokeDispatcher
from taskmodule_bot.schemas import Activity
from taskmodule_bot.services.panel_catalog import PanelCatalog
from taskmodule_bot.services.panel_resolver import PanelResolver
from taskmodule_bot.services.registry_search import SearchProxy

BASE_URL = "https://bot.example.com/"

CARD = {
    "type": "AdaptiveCard",
    "version": "1.2",
    "body": [{"type": "Input.Text", "id": "usertext"}],
    "actions": [{"type": "Action.Submit", "title": "Submit"}],
}


def fake_response(body=b"", status_code=200, chunk_size=None):
    """A streamed requests response yielding ``body`` in one or more chunks."""
    resp = MagicMock()
    resp.status_code = status_code
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode()
    if chunk_size:
        chunks = [body[i:i + chunk_size] for i in range(0, len(body), chunk_size)]
    else:
        chunks = [body] if body else []
    resp.iter_content.return_value = iter(chunks)
    return resp


def registry_session(response=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return session


@pytest.fixture
def card_path(tmp_path):
    """Write the adaptive card used by the card panel to a real file."""
    path = tmp_path / "adaptive_card.json"
    path.write_text(json.dumps(CARD))
    return path


@pytest.fixture
def settings(card_path):
    return Settings(
        panels=PanelConfig(base_url=BASE_URL, card_path=str(card_path)),
        registry=RegistryConfig(search_url="https://registry.example.com/query"),
    )


@pytest.fixture
def catalog(settings):
    return PanelCatalog.from_settings(settings.panels)


@pytest.fixture
def resolver(catalog):
    return PanelResolver(catalog)


@pytest.fixture
def make_search(settings):
    def make(session):
        return SearchProxy(settings.registry, session=session)

    return make


@pytest.fixture
def make_dispatcher(resolver, make_search):
    def make(session=None):
        return InvokeDispatcher(resolver, make_search(session or registry_session(fake_response({"data": []}))))

    return make


@pytest.fixture
def turn_context():
    return RecordingTurnContext(Activity(type="invoke"))


# -----------------------------------------------------------------------------
# Local registry servers that stall in different ways
# -----------------------------------------------------------------------------
STALL_HEADERS = (
    b"HTTP/1.1 200 OK\r\n"
    b"Content-Type: application/json\r\n"
    b"Content-Length: 100\r\n"
    b"\r\n"
)


def trickle_body(conn, stop):
    """Announce 100 bytes, then send one every 0.2s."""
    conn.sendall(STALL_HEADERS)
    for _ in range(100):
        if stop.wait(0.2):
            return
        conn.sendall(b" ")


def never_answer(conn, stop):
    stop.wait(10)


def headers_then_silence(conn, stop):
    conn.sendall(STALL_HEADERS)
    stop.wait(10)


def _read_request(conn):
    data = b""
    while b"\r\n\r\n" not in data:
        part = conn.recv(4096)
        if not part:
            break
        data += part


def _serve_connection(behaviour, conn, stop):
    with conn:
        try:
            _read_request(conn)
            behaviour(conn, stop)
        except OSError:
            # Client gave up and closed its end
            pass


@pytest.fixture
def stalling_registry():
    """Start a local HTTP server running ``behaviour(conn, stop)`` per connection; return its url."""
    stop = threading.Event()
    listeners = []

    def start(behaviour):
        srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        srv.bind(("127.0.0.1", 0))
        srv.listen(5)
        srv.settimeout(0.1)
        listeners.append(srv)

        def accept_loop():
            while not stop.is_set():
                try:
                    conn, _ = srv.accept()
                except socket.timeout:
                    continue
                except OSError:
                    return
                conn.settimeout(None)
                threading.Thread(target=_serve_connection, args=(behaviour, conn, stop), daemon=True).start()

        threading.Thread(target=accept_loop, daemon=True).start()
        return f"http://127.0.0.1:{srv.getsockname()[1]}/query"

    yield start

    stop.set()
    for srv in listeners:
        srv.close()


# -----------------------------------------------------------------------------
# Turn context that records replies instead of sending them
# -----------------------------------------------------------------------------
class RecordingTurnContext:
    def __init__(self, activity):
        self.activity = activity
        self.sent = []

    def send_activity(self, reply):
        self.sent.append(reply)
