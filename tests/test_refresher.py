import unittest

from dashboard.service import DashboardService
from dashboard.state_model import DashboardStateModel
from dashboard.store import ConfigStore, DashboardConfig
from monitor.aggregator import StatusAggregator
from monitor.refresher import DashboardRefresher
from monitor.resource_cache import ResourceCache
from tests.helpers import FakeClock, FakePanelClient, FakeTelemetryClient, make_servers, memory_session_factory


class DashboardRefresherTests(unittest.TestCase):
    def test_failure_disables_until_reconfigured(self):
        calls = []

        def refresh():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("message deleted")

        refresher = DashboardRefresher(refresh, interval_seconds=60)

        self.assertFalse(refresher.tick())
        self.assertFalse(refresher.enabled)
        self.assertEqual(refresher.last_error, "message deleted")

        self.assertFalse(refresher.tick())
        self.assertEqual(len(calls), 1)

        refresher.reconfigure()
        self.assertTrue(refresher.tick())
        self.assertTrue(refresher.enabled)
        self.assertIsNone(refresher.last_error)

    def test_start_stop(self):
        refresher = DashboardRefresher(lambda: None, interval_seconds=60)
        refresher.start()
        self.assertTrue(refresher.running)
        refresher.stop()
        self.assertFalse(refresher.running)


class RefreshLiveTests(unittest.TestCase):
    def setUp(self):
        self.servers = make_servers("a")
        self.published = []
        aggregator = StatusAggregator(FakeTelemetryClient(), ResourceCache(FakePanelClient(), ttl_seconds=10, clock=FakeClock()))
        self.dashboards = DashboardService(self.servers, aggregator, DashboardStateModel(self.servers),
                                           publisher=self.published.append)
        self.config_store = ConfigStore(memory_session_factory())

    def test_nothing_configured(self):
        self.assertIsNone(self.dashboards.refresh_live(self.config_store))
        self.assertEqual(self.published, [])

    def test_renders_configured_dashboard(self):
        self.config_store.save_dashboard_config(DashboardConfig("g1", "c1", "m1"))
        rendered = self.dashboards.refresh_live(self.config_store)
        self.assertEqual(rendered.instance_id, "m1")
        self.assertEqual(self.published, [rendered])


if __name__ == "__main__":
    unittest.main()
