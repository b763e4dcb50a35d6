"""Fakes shared by the test modules."""

from __future__ import annotations

import json
import threading
import time
from typing import Any, Dict, List, Optional

from dashboard.database import init_db, make_engine, make_session_factory
from shared.errors import DownstreamActionFailed, SourceUnavailable
from shared.servers import ServerDescriptor
from sources.models import ResourceSnapshot, SourceResult, TelemetryPlayer, TelemetrySnapshot

PANEL_URL = "http://panel.test"


def make_server(server_id: str, panel_identifier: Optional[str] = "auto", **kwargs) -> ServerDescriptor:
    if panel_identifier == "auto":
        panel_identifier = f"{server_id}-uuid"
    return ServerDescriptor(
        id=server_id,
        name=kwargs.pop("name", server_id.upper()),
        telemetry_endpoint=kwargs.pop("telemetry_endpoint", f"http://{server_id}.test/telemetry"),
        panel_identifier=panel_identifier,
        **kwargs,
    )


def make_servers(*server_ids: str) -> List[ServerDescriptor]:
    return [make_server(server_id) for server_id in server_ids]


def memory_session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    return make_session_factory(engine)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None,
                 content_type: str = "application/json", chunk_delay: float = 0.0):
        self.status_code = status_code
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.headers = {"content-type": content_type}
        self.encoding = "utf-8"
        self.chunk_delay = chunk_delay
        self.closed = False

    def iter_content(self, chunk_size=1):
        data = self.text.encode("utf-8")
        for start in range(0, len(data), chunk_size):
            if self.chunk_delay:
                time.sleep(self.chunk_delay)
            yield data[start:start + chunk_size]

    def close(self):
        self.closed = True

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")


class FakeSession:
    """requests.Session stand-in routing (method, url) to canned answers"""

    def __init__(self, routes: Optional[Dict[tuple, Any]] = None):
        self.routes = dict(routes or {})
        self.calls: List[dict] = []
        self._lock = threading.Lock()

    def request(self, method, url, headers=None, json=None, timeout=None, stream=False):
        with self._lock:
            self.calls.append({"method": method, "url": url, "headers": headers, "json": json, "timeout": timeout,
                               "stream": stream})
        answer = self.routes.get((method, url))
        if answer is None:
            return FakeResponse(404, {"error": "not found"})
        if isinstance(answer, Exception):
            raise answer
        return answer

    def post(self, url, json=None, timeout=None):
        return self.request("POST", url, json=json, timeout=timeout)

    def close(self):
        pass

    def calls_to(self, url: str) -> List[dict]:
        return [call for call in self.calls if call["url"] == url]


class FakeClock:
    """Millisecond clock advanced by hand"""

    def __init__(self, start_ms: float = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float):
        self.now += ms


def telemetry(players=(), tps: float = 20.0, mspt: float = 10.0) -> TelemetrySnapshot:
    return TelemetrySnapshot(tps=tps, mspt=mspt, players=[TelemetryPlayer(name=name) for name in players])


def resources(state: str = "running", uptime: Optional[float] = 0, **kwargs) -> ResourceSnapshot:
    return ResourceSnapshot(state=state, reported_uptime_ms=uptime, **kwargs)


class FakeTelemetryClient:
    def __init__(self, results: Optional[Dict[str, SourceResult]] = None):
        self.results = dict(results or {})
        self.calls: List[str] = []
        self.closed = False

    def fetch(self, server, force_refresh=False):
        self.calls.append(server.id)
        return self.results.get(server.id, SourceResult.success(telemetry()))

    def close(self):
        self.closed = True


class FakePanelClient:
    """Panel client fake: queued resource results and recorded power signals"""

    def __init__(self, results: Optional[Dict[str, List[SourceResult]]] = None, power_error: Optional[Exception] = None):
        self.results = {key: list(value) for key, value in (results or {}).items()}
        self.fetch_calls: List[tuple] = []
        self.power_calls: List[tuple] = []
        self.power_error = power_error
        self._lock = threading.Lock()
        self.closed = False

    def push(self, server_id: str, result: SourceResult):
        self.results.setdefault(server_id, []).append(result)

    def fetch(self, server, force_refresh=False, token=None):
        with self._lock:
            self.fetch_calls.append((server.id, force_refresh, token))
            queue = self.results.get(server.id)
            if not queue:
                return SourceResult.success(resources())
            return queue.pop(0) if len(queue) > 1 else queue[0]

    def send_power_signal(self, server, action, token):
        self.power_calls.append((server.id, action.value, token))
        if self.power_error is not None:
            raise self.power_error

    def console_url(self, server):
        return f"{PANEL_URL}/server/{server.panel_identifier}"

    def close(self):
        self.closed = True


class RecordingAudit:
    """Synchronous audit dispatcher"""

    def __init__(self):
        self.events = []

    def dispatch(self, event):
        self.events.append(event)

    def shutdown(self, wait=True):
        pass


def unavailable(message: str = "HTTP 502") -> SourceResult:
    return SourceResult.failure(SourceUnavailable(message))


def downstream_failure(message: str = "HTTP 500") -> DownstreamActionFailed:
    return DownstreamActionFailed(message)
