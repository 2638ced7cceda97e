"""Per-browser admin gate flows.

Each browser going through the admin sign-in gets an ``AdminGate`` kept
here under a random flow id (stored in the ``admin_flow`` cookie).  A
flow is only allocated by ``get()``, which the web layer calls for form
posts; page views use ``peek()`` and never grow the map.  The registry
is **in-memory only**; a multi-instance deployment needs a shared store.
Idle flows are lazily pruned, and the least recently used flow is
evicted once ``max_flows`` is reached.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Callable

from superengulfing.routing.admin_gate import AdminGate, AdminSession

logger = logging.getLogger(__name__)


class AdminFlowRegistry:
    """Map flow ids to gates, dropping flows idle for longer than *ttl_seconds*.

    Args:
        gate_factory: Builds a fresh ``AdminGate`` for a new flow, seeded
            with the credential from an earlier sign-in when there is one.
        ttl_seconds: Idle lifetime of a flow.
        max_flows: Upper bound on live flows.
    """

    def __init__(
        self,
        gate_factory: Callable[[AdminSession | None], AdminGate],
        ttl_seconds: float = 900.0,
        max_flows: int = 10_000,
    ) -> None:
        self._factory = gate_factory
        self._ttl = ttl_seconds
        self._max = max_flows
        self._flows: dict[str, tuple[AdminGate, float]] = {}

    def __len__(self) -> int:
        return len(self._flows)

    def _prune(self, now: float) -> None:
        cutoff = now - self._ttl
        self._flows = {fid: entry for fid, entry in self._flows.items() if entry[1] > cutoff}

    def _touch(self, flow_id: str, gate: AdminGate, now: float) -> None:
        # Re-insert so dict order stays least-recently-used first.
        self._flows.pop(flow_id, None)
        self._flows[flow_id] = (gate, now)

    def peek(
        self,
        flow_id: str | None,
        session: AdminSession | None = None,
    ) -> tuple[str | None, AdminGate]:
        """Return the live flow for *flow_id*, or ``(None, gate)`` with an unstored gate."""
        now = time.monotonic()
        self._prune(now)

        if flow_id is not None and flow_id in self._flows:
            gate, _ = self._flows[flow_id]
            self._touch(flow_id, gate, now)
            return flow_id, gate
        return None, self._factory(session)

    def get(
        self,
        flow_id: str | None,
        session: AdminSession | None = None,
    ) -> tuple[str, AdminGate]:
        """Return ``(flow_id, gate)``, creating a new flow for unknown ids."""
        now = time.monotonic()
        self._prune(now)

        if flow_id is not None and flow_id in self._flows:
            gate, _ = self._flows[flow_id]
        else:
            while len(self._flows) >= self._max:
                evicted = next(iter(self._flows))
                del self._flows[evicted]
                logger.warning("Admin flow limit reached", extra={"event": "admin_flow_evicted"})
            flow_id = secrets.token_urlsafe(24)
            gate = self._factory(session)
        self._touch(flow_id, gate, now)
        return flow_id, gate

    def discard(self, flow_id: str | None) -> None:
        if flow_id is not None:
            self._flows.pop(flow_id, None)
