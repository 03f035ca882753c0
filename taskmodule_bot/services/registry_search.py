import json
import logging
import socket
import threading
import time
from typing import List, Optional

import requests

from taskmodule_bot.errors import SearchCancelled, UpstreamUnavailable
from taskmodule_bot.schemas import (
    SearchQuery,
    SearchResponseEnvelope,
    SearchResult,
    SearchResultItem,
)

logger = logging.getLogger("registry_search")

CHUNK_SIZE = 8192
WAIT_STEP_S = 0.05


def _new_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    return session


class SearchProxy:
    """Live package search against an external registry query endpoint."""

    def __init__(self, registry, session: Optional[requests.Session] = None) -> None:
        self.search_url = registry.search_url
        self.prerelease = registry.prerelease
        self.timeouts = registry.timeouts
        self.session = session or _new_session()

    def search(self, query: SearchQuery, cancel: Optional[threading.Event] = None) -> SearchResponseEnvelope:
        try:
            raw = self._fetch(query.query_text, cancel)
        except SearchCancelled:
            logger.info(f"Search for {query.query_text!r} cancelled by caller")
            return SearchResponseEnvelope.empty()
        except UpstreamUnavailable as exc:
            logger.warning(f"Registry unavailable for {query.query_text!r}: {exc}")
            return SearchResponseEnvelope.empty()

        items = parse_items(raw)
        if items is None:
            logger.warning(f"Unparseable registry response for {query.query_text!r}")
            return SearchResponseEnvelope.empty()

        results = [SearchResult(title=i.id, value=f"{i.id} - {i.description}") for i in items]
        logger.info(f"Registry returned {len(results)} result(s) for {query.query_text!r}")
        return SearchResponseEnvelope.found(results)

    # -------------------------------------------------------------------------
    # Outbound call
    # -------------------------------------------------------------------------
    def _fetch(self, query_text: str, cancel: Optional[threading.Event]) -> bytes:
        """GET the registry query endpoint, bounded by the overall deadline and the cancel event.

        The blocking call runs on a worker thread; this thread only waits, so a
        trickling or silent upstream cannot hold the request past the deadline.
        """
        if cancel is not None and cancel.is_set():
            raise SearchCancelled("cancelled before request")

        call = _RegistryCall()
        worker = threading.Thread(
            target=self._run,
            args=(call, query_text, cancel),
            name="registry-search",
            daemon=True,
        )
        deadline = time.monotonic() + self.timeouts.total
        worker.start()

        while not call.done.wait(WAIT_STEP_S):
            if cancel is not None and cancel.is_set():
                call.abort()
                raise SearchCancelled("cancelled while waiting for registry")
            if time.monotonic() >= deadline:
                call.abort()
                raise UpstreamUnavailable(f"no complete response within {self.timeouts.total}s")

        if call.error is not None:
            raise call.error
        return call.body

    def _run(self, call: "_RegistryCall", query_text: str, cancel: Optional[threading.Event]) -> None:
        params = {"q": f"id:{query_text}", "prerelease": "true" if self.prerelease else "false"}
        logger.info(f"[GET] Searching registry: {self.search_url} q={params['q']}")
        try:
            try:
                resp = self.session.get(
                    self.search_url,
                    params=params,
                    timeout=(self.timeouts.connect, self.timeouts.read),
                    stream=True,
                )
            except requests.RequestException as exc:
                call.error = UpstreamUnavailable(str(exc))
                return

            call.resp = resp
            try:
                if call.abandoned.is_set():
                    raise SearchCancelled("abandoned before reading response")
                if resp.status_code != 200:
                    raise UpstreamUnavailable(f"registry answered {resp.status_code}")
                chunks = []
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if call.abandoned.is_set() or (cancel is not None and cancel.is_set()):
                        raise SearchCancelled("cancelled while reading response")
                    chunks.append(chunk)
                call.body = b"".join(chunks)
            except UpstreamUnavailable as exc:
                call.error = exc
            except requests.RequestException as exc:
                call.error = UpstreamUnavailable(str(exc))
            finally:
                resp.close()
        finally:
            call.done.set()


class _RegistryCall:
    """Hand-off between the waiting request thread and the registry worker."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.abandoned = threading.Event()
        self.resp: Optional[requests.Response] = None
        self.body: bytes = b""
        self.error: Optional[UpstreamUnavailable] = None

    def abort(self) -> None:
        """Give up on the call and unblock a worker stuck reading the body."""
        self.abandoned.set()
        resp = self.resp
        if resp is None:
            # Still waiting for headers; the worker exits at the read timeout
            return
        sock = getattr(getattr(resp.raw, "connection", None), "sock", None)
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already closed by the worker
            logger.debug("Registry socket already closed")


def parse_items(raw: bytes) -> Optional[List[SearchResultItem]]:
    """Extract ``data[].{id, description}`` rows, or None when the body is unusable."""
    try:
        doc = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(doc, dict):
        return None
    rows = doc.get("data")
    if not isinstance(rows, list):
        return None

    items = []
    for row in rows:
        if not isinstance(row, dict) or not row.get("id"):
            continue
        items.append(SearchResultItem(id=str(row["id"]), description=str(row.get("description") or "")))
    return items
