import unittest
from datetime import datetime

from dashboard.render import (
    CARD_COLOR,
    SELECTED_COLOR,
    build_status_cards,
    format_players,
    format_resources,
    format_uptime,
    percent_of,
)
from dashboard.state import DashboardState
from monitor.aggregator import ServerStatus
from shared.custom_ids import ViewMode
from shared.errors import SourceUnavailable
from tests.helpers import make_servers, resources, telemetry


class FormatTests(unittest.TestCase):
    def test_format_uptime(self):
        self.assertEqual(format_uptime(None), "—")
        self.assertEqual(format_uptime(42_000), "42s")
        self.assertEqual(format_uptime(187_000), "3m07s")
        self.assertEqual(format_uptime(3_900_000), "1h05m")

    def test_percent_of(self):
        self.assertEqual(percent_of(50, 200), 25)
        self.assertIsNone(percent_of(50, 0))
        self.assertIsNone(percent_of(None, 100))

    def test_hot_resources(self):
        lines = format_resources(resources("running", mem_used=95, mem_limit=100, cpu_used=12.0))
        self.assertIn("🔥 RAM 95.0%", lines[0])
        self.assertIn("CPU 12.0%", lines[0])
        self.assertIn("Disk —", lines[1])

    def test_players(self):
        self.assertEqual(format_players(telemetry([]), None), "No players online")
        self.assertEqual(format_players(telemetry(["Steve", "Alex"]), None), "Online (2):\n- Steve\n- Alex")
        self.assertEqual(format_players(None, SourceUnavailable("down")), "Player info unavailable")


class StatusCardTests(unittest.TestCase):
    def test_cards_follow_state(self):
        servers = make_servers("a", "b")
        statuses = {
            "a": ServerStatus(telemetry=telemetry(["Steve"]), resources=resources("running").with_uptime(60_000)),
            "b": ServerStatus(telemetry_error=SourceUnavailable("HTTP 502"), resources_error=SourceUnavailable("x")),
        }
        state = DashboardState("a", {"a": ViewMode.PLAYERS})

        cards = build_status_cards(servers, statuses, state, datetime(2026, 1, 2, 3, 4))

        self.assertEqual([card.server_id for card in cards], ["a", "b"])
        self.assertTrue(cards[0].selected)
        self.assertEqual(cards[0].color, SELECTED_COLOR)
        self.assertTrue(cards[0].title.startswith("▶ A"))
        self.assertIn("🟢 Running", cards[0].title)
        self.assertIn("- Steve", cards[0].description)

        self.assertEqual(cards[1].color, CARD_COLOR)
        self.assertIn("Players Online: unavailable", cards[1].description)
        self.assertEqual(cards[1].footer, "Last update: Jan 02, 2026, 03:04 UTC")


if __name__ == "__main__":
    unittest.main()
