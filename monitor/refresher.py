"""
Background dashboard refresher.

Re-renders the persisted live dashboard every interval. A cycle that raises
disables further ticks; the loop stays idle until reconfigure() is called
(the dashboard is configured again), instead of retrying a broken setup
forever.
"""

import logging
import threading
from typing import Callable, Optional

from shared import config

logger = logging.getLogger(__name__)


class DashboardRefresher:
    """
    Periodic driver for one refresh callback.
    Runs in background thread.
    """

    def __init__(self, refresh: Callable[[], object], interval_seconds: Optional[float] = None):
        """
        Initialize the refresher.

        Args:
            refresh: One refresh cycle for the live dashboard
            interval_seconds: Delay between cycles (default FLEET_REFRESH_INTERVAL_SECONDS)
        """
        self.refresh = refresh
        self.interval_seconds = interval_seconds if interval_seconds is not None else config.REFRESH_INTERVAL_SECONDS

        self.running = False
        self.enabled = True
        self.last_error: Optional[str] = None
        self._thread: Optional[threading.Thread] = None
        self._wake = threading.Event()

        logger.info(f"Dashboard refresher initialized: interval={self.interval_seconds}s")

    def start(self):
        """Start refresher in background thread"""
        if self.running:
            logger.warning("Dashboard refresher already running")
            return

        self.running = True
        self._wake.clear()
        self._thread = threading.Thread(target=self._loop, name="dashboard-refresher", daemon=True)
        self._thread.start()
        logger.info("Dashboard refresher started")

    def stop(self):
        """Stop refresher"""
        if not self.running:
            return

        self.running = False
        self._wake.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)
        logger.info("Dashboard refresher stopped")

    def reconfigure(self):
        """Re-enable ticking after a failure or a new dashboard configuration"""
        if not self.enabled:
            logger.info("Dashboard refresher re-enabled")
        self.enabled = True
        self.last_error = None

    def tick(self) -> bool:
        """
        Run one refresh cycle if enabled.

        Returns:
            True if the cycle ran and succeeded
        """
        if not self.enabled:
            return False

        try:
            self.refresh()
        except Exception as e:
            self.enabled = False
            self.last_error = str(e)
            logger.error(f"Dashboard refresh failed, auto-refresh disabled until reconfigured: {e}", exc_info=True)
            return False
        return True

    def _loop(self):
        while self.running:
            # Event.wait doubles as an interruptible sleep for stop()
            if self._wake.wait(self.interval_seconds):
                break
            self.tick()
