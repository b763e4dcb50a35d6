"""
Resource cache and uptime tracker.

Wraps the panel client with a per-server TTL cache and derives a stable
"running since" timestamp from observed run-state transitions. The panel's
own uptime counter is only used to seed that timestamp the first time a
server is seen running; afterwards uptime is computed locally so polling
jitter and panel-side counter resets never make it jump backwards.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from shared import config
from shared.servers import ServerDescriptor
from sources.models import RUNNING_STATE, ResourceSnapshot, SourceResult

logger = logging.getLogger(__name__)


def epoch_ms() -> float:
    return time.time() * 1000


@dataclass(frozen=True)
class CacheEntry:
    data: ResourceSnapshot
    observed_at: float


class UptimeTracker:
    """
    Per-server run-state memory.

    Invariant: a server has a running-since timestamp iff the last state
    observed for it was "running".
    """

    def __init__(self):
        self._last_state: Dict[str, Optional[str]] = {}
        self._running_since: Dict[str, float] = {}

    def observe(
        self,
        server_id: str,
        state: Optional[str],
        reported_uptime_ms: Optional[float],
        now_ms: float,
    ) -> Optional[float]:
        """
        Record a run-state observation and return the derived uptime.

        Returns:
            Milliseconds since the server was first seen running, or None
            when it is not running
        """
        previous_state = self._last_state.get(server_id)
        self._last_state[server_id] = state

        if state != RUNNING_STATE:
            self._running_since.pop(server_id, None)
            return None

        if server_id not in self._running_since or previous_state != RUNNING_STATE:
            self._running_since[server_id] = now_ms - (reported_uptime_ms or 0)

        return now_ms - self._running_since[server_id]

    def running_since(self, server_id: str) -> Optional[float]:
        return self._running_since.get(server_id)

    def last_state(self, server_id: str) -> Optional[str]:
        return self._last_state.get(server_id)

    def clear(self):
        self._last_state.clear()
        self._running_since.clear()


class ResourceCache:
    """TTL cache in front of a panel client, keyed by server id"""

    def __init__(
        self,
        panel_client,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = epoch_ms,
        tracker: Optional[UptimeTracker] = None,
    ):
        """
        Args:
            panel_client: Object with fetch(server, force_refresh=, token=) -> SourceResult
            ttl_seconds: Cache lifetime (default FLEET_CACHE_TTL_SECONDS)
            clock: Millisecond epoch clock, injectable for tests
            tracker: Uptime tracker to share (a fresh one by default)
        """
        self.panel_client = panel_client
        ttl = ttl_seconds if ttl_seconds is not None else config.CACHE_TTL_SECONDS
        self.ttl_ms = ttl * 1000
        self.clock = clock
        self.tracker = tracker or UptimeTracker()

        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}

    def get(
        self,
        server: ServerDescriptor,
        force_refresh: bool = False,
        token: Optional[str] = None,
    ) -> SourceResult[ResourceSnapshot]:
        """
        Return the resource snapshot for a server with uptime derived.

        Within the TTL the cached data is served and only uptime is
        recomputed. Past the TTL, or when force_refresh is set, the panel is
        called; a failure is returned as-is with no stale fallback.
        """
        if not force_refresh:
            with self._lock:
                entry = self._entries.get(server.id)
                now = self.clock()
                if entry is not None and now - entry.observed_at < self.ttl_ms:
                    logger.debug(f"Serving cached panel resources for {server.name}")
                    uptime = self.tracker.observe(
                        server.id, entry.data.state, entry.data.reported_uptime_ms, now
                    )
                    return SourceResult.success(entry.data.with_uptime(uptime))

        # Overlapping refreshes for the same server are not coalesced.
        result = self.panel_client.fetch(server, force_refresh=force_refresh, token=token)
        if not result.ok:
            return result

        with self._lock:
            now = self.clock()
            uptime = self.tracker.observe(server.id, result.data.state, result.data.reported_uptime_ms, now)
            snapshot = result.data.with_uptime(uptime)
            current = self._entries.get(server.id)
            if current is None or current.observed_at <= now:
                self._entries[server.id] = CacheEntry(data=snapshot, observed_at=now)
        return SourceResult.success(snapshot)

    def peek(self, server_id: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(server_id)

    def clear(self):
        """Drop cached data; uptime tracking is kept"""
        with self._lock:
            self._entries.clear()
