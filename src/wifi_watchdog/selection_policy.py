# ─── Future imports ───
from __future__ import annotations

# ─── Standard library imports ───
from dataclasses import dataclass

# ─── Project imports ───
from .config import Config
from .models import CandidateNetwork, ConfigurationSnapshot


def trial_order(snapshot: ConfigurationSnapshot) -> list[CandidateNetwork]:
    """
    Deterministic priority order in which candidate networks are tried.

    1. The candidate matching `primary_ssid` (if set and configured)
    2. Every other candidate, in configuration order

    Each SSID appears exactly once.
    """
    ordered: list[CandidateNetwork] = []
    seen: set[str] = set()

    primary = snapshot.candidate(snapshot.primary_ssid) if snapshot.primary_ssid else None
    if primary is not None:
        ordered.append(primary)
        seen.add(primary.ssid)

    for network in snapshot.candidates:
        if network.ssid not in seen:
            ordered.append(network)
            seen.add(network.ssid)

    return ordered


@dataclass(frozen=True)
class FailoverPolicy:
    """
    Timing knobs for walking the trial order.

    A successful association is only trusted after the link settles and
    the connectivity probe passes.
    """

    # Wait between association and the confirming probe
    settle_delay_s: float = Config.Timing.NETWORK_SWITCH_DELAY_S

    # ─── Introspection / debugging helpers ───

    def summary(self) -> dict[str, float]:
        return {
            "settle_delay_s": self.settle_delay_s,
            "max_connection_attempts": Config.Timing.MAX_CONNECTION_ATTEMPTS,
            "retry_delay_s": Config.Timing.RETRY_DELAY_S,
            "connection_timeout_s": Config.Timing.CONNECTION_TIMEOUT_S,
        }


# Global singleton instance
failover_policy = FailoverPolicy()
