import unittest

from fastapi.testclient import TestClient

from actions.audit import AuditEvent
from control.context import build_context
from control.service import create_app
from shared.credentials import CredentialResolver
from sources.models import SourceResult
from tests.helpers import (
    FakeClock,
    FakePanelClient,
    FakeTelemetryClient,
    RecordingAudit,
    make_server,
    make_servers,
    memory_session_factory,
    resources,
    telemetry,
    unavailable,
)


class ControlApiTests(unittest.TestCase):
    def setUp(self):
        self.servers = make_servers("smp", "creative") + [make_server("lobby", panel_identifier=None)]
        self.telemetry = FakeTelemetryClient({
            "smp": SourceResult.success(telemetry(["Steve", "Alex"])),
            "creative": unavailable("Request timed out"),
        })
        self.panel = FakePanelClient({"smp": [SourceResult.success(resources("running", uptime=65_000))]})
        self.audit = RecordingAudit()
        self.context = build_context(
            self.servers,
            memory_session_factory(),
            telemetry_client=self.telemetry,
            panel_client=self.panel,
            credentials=CredentialResolver({"alice": "alice-token"}, default_token="poll-token"),
            audit=self.audit,
            cache_ttl_seconds=10,
            refresh_interval_seconds=60,
            clock=FakeClock(),
        )
        self.client = TestClient(create_app(self.context, start_refresher=False))

    def open_dashboard(self, instance_id="msg-1"):
        response = self.client.post("/dashboards", json={"instance_id": instance_id, "actor_id": "alice"})
        self.assertEqual(response.status_code, 200)
        return response.json()

    def test_root(self):
        response = self.client.get("/")
        self.assertEqual(response.json()["servers"], ["smp", "creative", "lobby"])

    def test_status(self):
        servers = {entry["id"]: entry for entry in self.client.get("/status").json()["servers"]}

        self.assertEqual(servers["smp"]["telemetry"]["players"], [{"name": "Steve"}, {"name": "Alex"}])
        self.assertEqual(servers["smp"]["resources"]["uptime_ms"], 65_000)
        self.assertEqual(servers["creative"]["telemetry_error"], "Request timed out")
        self.assertFalse(servers["lobby"]["resources_applicable"])

    def test_clear_cache(self):
        self.client.get("/status")
        self.assertEqual(self.client.delete("/status/cache").json(), {"status": "cleared"})
        self.client.get("/status")
        self.assertEqual(len([call for call in self.panel.fetch_calls if call[0] == "smp"]), 2)

    def test_open_and_select(self):
        opened = self.open_dashboard()
        self.assertIsNone(opened["state"]["selected_server_id"])
        self.assertEqual(len(opened["cards"]), 3)

        selected = self.client.post("/dashboards/msg-1/select", json={"server_id": "smp", "actor_id": "alice"}).json()
        self.assertEqual(selected["state"], {"selected_server_id": "smp", "server_views": {"smp": "status"}})
        self.assertTrue(selected["cards"][0]["selected"])
        self.assertIn(("smp", True, "alice-token"), self.panel.fetch_calls)

        latest = self.client.get("/dashboards/msg-1/latest").json()
        self.assertEqual(latest["state"]["selected_server_id"], "smp")

    def test_latest_unknown(self):
        self.assertEqual(self.client.get("/dashboards/nope/latest").status_code, 404)

    def test_view_requires_selection(self):
        self.open_dashboard()
        body = self.client.post("/dashboards/msg-1/view", json={"view": "players"}).json()
        self.assertEqual(body["reason"], "no_selection")

    def test_view_switch(self):
        self.open_dashboard()
        self.client.post("/dashboards/msg-1/select", json={"server_id": "smp"})
        body = self.client.post("/dashboards/msg-1/view", json={"view": "players"}).json()
        self.assertEqual(body["state"]["server_views"], {"smp": "players"})
        self.assertIn("Online (2)", body["cards"][0]["description"])

    def test_invalid_view_rejected(self):
        response = self.client.post("/dashboards/msg-1/view", json={"view": "graphs"})
        self.assertEqual(response.status_code, 422)

    def test_select_from_widget_snapshot_after_restart(self):
        snapshot = [
            {"components": [{"type": "select", "custom_id": "fleet:select",
                             "options": [{"value": "smp"}, {"value": "creative", "default": True}]}]},
            {"components": [{"type": "button", "custom_id": "fleet:view:players", "disabled": True}]},
        ]
        body = self.client.post("/dashboards/cold/actions/console",
                                json={"actor_id": "alice", "widget_snapshot": snapshot}).json()
        self.assertEqual(body["stage"], "completed")
        self.assertEqual(body["server_id"], "creative")
        self.assertEqual(self.context.state_model.index.get("cold").selected_server_id, "creative")

    def test_restart_with_confirmation(self):
        self.open_dashboard()
        self.client.post("/dashboards/msg-1/select", json={"server_id": "smp"})

        pending = self.client.post("/dashboards/msg-1/actions/restart", json={"actor_id": "alice"}).json()
        self.assertEqual(pending["stage"], "awaiting_confirmation")

        retry = self.client.post("/confirmations", json={"token": pending["token"], "text": "restar", "actor_id": "alice"})
        self.assertEqual(retry.json()["stage"], "awaiting_confirmation")
        self.assertEqual(self.panel.power_calls, [])

        done = self.client.post("/confirmations", json={"token": pending["token"], "text": "Restart", "actor_id": "alice"})
        body = done.json()
        self.assertEqual(body["stage"], "completed")
        self.assertEqual(body["dashboard"]["instance_id"], "msg-1")
        self.assertEqual(self.panel.power_calls, [("smp", "restart", "alice-token")])
        self.assertEqual(len(self.audit.events), 1)

    def test_unknown_action_rejected(self):
        response = self.client.post("/dashboards/msg-1/actions/explode", json={})
        self.assertEqual(response.status_code, 422)

    def test_configure_dashboard(self):
        self.assertEqual(self.client.get("/config/dashboard").status_code, 404)
        self.context.refresher.enabled = False

        response = self.client.put("/config/dashboard", json={
            "guild_id": "g1", "channel_id": "c1", "message_id": "m1", "configured_by": "alice",
        })
        self.assertEqual(response.json()["status"], "configured")
        self.assertTrue(self.context.refresher.enabled)

        config = self.client.get("/config/dashboard").json()
        self.assertEqual(config["message_id"], "m1")
        self.assertTrue(config["refresher_enabled"])

        self.assertTrue(self.context.refresher.tick())
        self.assertEqual(self.context.board.latest("m1").instance_id, "m1")

        self.client.delete("/config/dashboard")
        self.assertEqual(self.client.get("/config/dashboard").status_code, 404)
        self.assertNotIn("m1", self.context.state_model.index)
        self.assertIsNone(self.context.state_model.session_store.load("m1"))

    def test_shutdown_closes_clients(self):
        with TestClient(create_app(self.context, start_refresher=False)) as client:
            self.assertEqual(client.get("/").status_code, 200)

        self.assertTrue(self.telemetry.closed)
        self.assertTrue(self.panel.closed)

    def test_configure_audit(self):
        self.assertEqual(self.client.get("/config/audit").status_code, 404)
        self.client.put("/config/audit", json={"channel_id": "555", "actor_id": "alice"})
        self.assertEqual(self.client.get("/config/audit").json(), {"channel_id": "555"})
        self.assertIn("audit channel", self.audit.events[-1].description)

    def test_audit_log_endpoint(self):
        self.context.audit_log.record(AuditEvent("Start requested for **SMP**."))
        entries = self.client.get("/audit", params={"limit": 5}).json()["entries"]
        self.assertEqual(entries[0]["description"], "Start requested for **SMP**.")
        self.assertEqual(self.client.get("/audit", params={"limit": 0}).status_code, 422)


if __name__ == "__main__":
    unittest.main()
