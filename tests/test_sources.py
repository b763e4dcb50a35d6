import unittest

import requests

from shared.custom_ids import PowerAction
from shared.errors import DownstreamActionFailed, MalformedPayload, NoCredential, SourceUnavailable
from sources.http import CHUNK_SIZE, request_json
from sources.models import MIB, to_number
from sources.panel import PanelClient
from sources.telemetry import TelemetryClient
from tests.helpers import PANEL_URL, FakeResponse, FakeSession, make_server

TELEMETRY_URL = "http://smp.test/telemetry"
RESOURCES_URL = f"{PANEL_URL}/api/client/servers/smp-uuid/resources"
DETAIL_URL = f"{PANEL_URL}/api/client/servers/smp-uuid"
POWER_URL = f"{PANEL_URL}/api/client/servers/smp-uuid/power"

RESOURCES_PAYLOAD = {
    "attributes": {
        "current_state": "running",
        "resources": {
            "cpu_absolute": 37.5,
            "memory_bytes": 1073741824,
            "memory_limit_bytes": 2147483648,
            "disk_bytes": 524288000,
            "network_rx_bytes": 1000,
            "network_tx_bytes": 2000,
            "uptime": 60000,
        },
    }
}

DETAIL_PAYLOAD = {"attributes": {"limits": {"cpu": 200, "memory": 4096, "disk": 10240}}}


class RequestJsonTests(unittest.TestCase):
    def test_empty_body(self):
        session = FakeSession({("POST", "http://x.test"): FakeResponse(204)})
        self.assertIsNone(request_json(session, "POST", "http://x.test", timeout=1))

    def test_text_body(self):
        session = FakeSession({("GET", "http://x.test"): FakeResponse(200, text="ok", content_type="text/plain")})
        self.assertEqual(request_json(session, "GET", "http://x.test", timeout=1), "ok")

    def test_non_2xx(self):
        session = FakeSession({("GET", "http://x.test"): FakeResponse(503, {"error": "down"})})
        with self.assertRaises(SourceUnavailable) as ctx:
            request_json(session, "GET", "http://x.test", timeout=1)
        self.assertEqual(ctx.exception.status_code, 503)

    def test_bad_json(self):
        session = FakeSession({("GET", "http://x.test"): FakeResponse(200, text="{oops")})
        with self.assertRaises(MalformedPayload):
            request_json(session, "GET", "http://x.test", timeout=1)

    def test_streams_body_and_closes(self):
        response = FakeResponse(200, {"tps": 20})
        session = FakeSession({("GET", "http://x.test"): response})
        self.assertEqual(request_json(session, "GET", "http://x.test", timeout=1), {"tps": 20})
        self.assertTrue(session.calls[0]["stream"])
        self.assertTrue(response.closed)

    def test_trickling_body_hits_total_deadline(self):
        # Each chunk arrives well inside a per-read timeout, the whole body does not
        response = FakeResponse(200, text="x" * (CHUNK_SIZE * 6), content_type="text/plain", chunk_delay=0.05)
        session = FakeSession({("GET", "http://x.test"): response})
        with self.assertRaises(SourceUnavailable) as ctx:
            request_json(session, "GET", "http://x.test", timeout=0.1)
        self.assertIn("timed out", str(ctx.exception))
        self.assertTrue(response.closed)


class TelemetryClientTests(unittest.TestCase):
    def setUp(self):
        self.server = make_server("smp")

    def fetch(self, answer):
        session = FakeSession({("GET", TELEMETRY_URL): answer})
        return TelemetryClient(session=session, timeout_seconds=2).fetch(self.server), session

    def test_success(self):
        result, session = self.fetch(FakeResponse(200, {
            "tps": 19.8, "mspt": 12.3, "players": [{"name": "Steve"}, {"name": "Alex", "uuid": "x"}],
        }))
        self.assertTrue(result.ok)
        self.assertEqual(result.data.player_names, ["Steve", "Alex"])
        self.assertEqual(session.calls[0]["timeout"], 2)

    def test_http_error(self):
        result, _ = self.fetch(FakeResponse(500, {"error": "boom"}))
        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, SourceUnavailable)
        self.assertIn("500", str(result.error))

    def test_timeout(self):
        result, _ = self.fetch(requests.exceptions.Timeout("slow"))
        self.assertIsInstance(result.error, SourceUnavailable)
        self.assertIn("timed out", str(result.error))

    def test_connection_error(self):
        result, _ = self.fetch(requests.exceptions.ConnectionError("refused"))
        self.assertIsInstance(result.error, SourceUnavailable)

    def test_malformed(self):
        result, _ = self.fetch(FakeResponse(200, {"tps": "fast"}))
        self.assertIsInstance(result.error, MalformedPayload)

    def test_non_object(self):
        result, _ = self.fetch(FakeResponse(200, [1, 2, 3]))
        self.assertIsInstance(result.error, MalformedPayload)


class PanelClientTests(unittest.TestCase):
    def setUp(self):
        self.server = make_server("smp")

    def client(self, routes, default_token="default-token"):
        session = FakeSession(routes)
        return PanelClient(base_url=PANEL_URL + "/", default_token=default_token, session=session,
                           timeout_seconds=2), session

    def test_fetch_merges_limits(self):
        client, session = self.client({
            ("GET", RESOURCES_URL): FakeResponse(200, RESOURCES_PAYLOAD),
            ("GET", DETAIL_URL): FakeResponse(200, DETAIL_PAYLOAD),
        })
        result = client.fetch(self.server)

        self.assertTrue(result.ok)
        snapshot = result.data
        self.assertEqual(snapshot.state, "running")
        self.assertEqual(snapshot.cpu_used, 37.5)
        self.assertEqual(snapshot.cpu_limit, 200)
        self.assertEqual(snapshot.mem_limit, 4096 * MIB)
        self.assertEqual(snapshot.disk_limit, 10240 * MIB)
        self.assertEqual(snapshot.reported_uptime_ms, 60000)
        self.assertIsNone(snapshot.uptime_ms)
        self.assertEqual(session.calls[0]["headers"]["Authorization"], "Bearer default-token")

    def test_fetch_keeps_embedded_limits_without_detail_limits(self):
        client, _ = self.client({
            ("GET", RESOURCES_URL): FakeResponse(200, RESOURCES_PAYLOAD),
            ("GET", DETAIL_URL): FakeResponse(200, {"attributes": {"limits": {}}}),
        })
        snapshot = client.fetch(self.server).data
        self.assertEqual(snapshot.mem_limit, 2147483648)
        self.assertIsNone(snapshot.disk_limit)

    def test_fetch_uses_user_token(self):
        client, session = self.client({
            ("GET", RESOURCES_URL): FakeResponse(200, RESOURCES_PAYLOAD),
            ("GET", DETAIL_URL): FakeResponse(200, DETAIL_PAYLOAD),
        })
        client.fetch(self.server, token="user-token")
        self.assertTrue(all(call["headers"]["Authorization"] == "Bearer user-token" for call in session.calls))

    def test_fetch_fails_when_detail_fails(self):
        client, _ = self.client({
            ("GET", RESOURCES_URL): FakeResponse(200, RESOURCES_PAYLOAD),
            ("GET", DETAIL_URL): FakeResponse(502, {}),
        })
        result = client.fetch(self.server)
        self.assertIsInstance(result.error, SourceUnavailable)

    def test_fetch_malformed(self):
        client, _ = self.client({
            ("GET", RESOURCES_URL): FakeResponse(200, {"data": []}),
            ("GET", DETAIL_URL): FakeResponse(200, DETAIL_PAYLOAD),
        })
        self.assertIsInstance(client.fetch(self.server).error, MalformedPayload)

    def test_fetch_with_oversized_numbers(self):
        payload = {"attributes": {"current_state": "running", "resources": {
            "memory_bytes": 10 ** 400, "cpu_absolute": 12.5,
        }}}
        client, _ = self.client({
            ("GET", RESOURCES_URL): FakeResponse(200, payload),
            ("GET", DETAIL_URL): FakeResponse(200, {"attributes": {"limits": {"memory": 10 ** 400}}}),
        })

        result = client.fetch(self.server)

        self.assertTrue(result.ok)
        self.assertIsNone(result.data.mem_used)
        self.assertIsNone(result.data.mem_limit)
        self.assertEqual(result.data.cpu_used, 12.5)

    def test_fetch_without_identifier_or_token(self):
        client, session = self.client({}, default_token="")
        self.assertIsInstance(client.fetch(make_server("lobby", panel_identifier=None)).error, SourceUnavailable)
        self.assertIsInstance(client.fetch(self.server).error, SourceUnavailable)
        self.assertEqual(session.calls, [])

    def test_console_url(self):
        client, _ = self.client({})
        self.assertEqual(client.console_url(self.server), f"{PANEL_URL}/server/smp-uuid")

    def test_power_signal(self):
        client, session = self.client({("POST", POWER_URL): FakeResponse(204)})
        client.send_power_signal(self.server, PowerAction.RESTART, "user-token")
        call = session.calls_to(POWER_URL)[0]
        self.assertEqual(call["json"], {"signal": "restart"})
        self.assertEqual(call["headers"]["Authorization"], "Bearer user-token")

    def test_power_signal_failure(self):
        client, _ = self.client({("POST", POWER_URL): FakeResponse(409, {"errors": []})})
        with self.assertRaises(DownstreamActionFailed) as ctx:
            client.send_power_signal(self.server, PowerAction.STOP, "user-token")
        self.assertIn("409", str(ctx.exception))

    def test_power_signal_timeout(self):
        client, _ = self.client({("POST", POWER_URL): requests.exceptions.Timeout("slow")})
        with self.assertRaises(DownstreamActionFailed):
            client.send_power_signal(self.server, PowerAction.KILL, "user-token")

    def test_power_signal_requires_token(self):
        client, session = self.client({})
        with self.assertRaises(NoCredential):
            client.send_power_signal(self.server, PowerAction.START, None)
        self.assertEqual(session.calls, [])

    def test_console_is_not_a_signal(self):
        client, _ = self.client({})
        with self.assertRaises(ValueError):
            client.send_power_signal(self.server, PowerAction.CONSOLE, "user-token")


class ToNumberTests(unittest.TestCase):
    def test_coercion(self):
        self.assertEqual(to_number("12.5"), 12.5)
        self.assertIsNone(to_number(None))
        self.assertIsNone(to_number(True))
        self.assertIsNone(to_number("abc"))
        self.assertIsNone(to_number(float("nan")))
        self.assertIsNone(to_number(10 ** 400))


if __name__ == "__main__":
    unittest.main()
