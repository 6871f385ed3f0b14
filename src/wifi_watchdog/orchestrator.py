# ─── Standard library imports ───
import time
from enum import Enum, auto
from typing import Optional
from dataclasses import dataclass

# ─── Project imports ───
from .telemetry import tlog
from .logger import get_logger
from .catalog import NetworkCatalog
from .nmcli import ManagerConnectivity
from .station import ConnectOutcome, StationManager
from .access_point import AccessPointManager
from .models import ConfigurationSnapshot, Mode, WatchdogState
from .connectivity import ConnectivityProber, ConnectivityVerdict
from .selection_policy import FailoverPolicy, failover_policy, trial_order


class Phase(Enum):
    """Branch of the state machine evaluated during a tick."""
    NOT_ONBOARDED = auto()
    STATION = auto()
    ACCESS_POINT = auto()
    DISCONNECTED = auto()


MODE_EMOJI = {
    Mode.UNKNOWN: "⚪",
    Mode.STATION: "💚",
    Mode.ACCESS_POINT: "🟡",
    Mode.DISCONNECTED: "🔴",
}


class FailoverAborted(Exception):
    """NetworkManager went away mid-walk; nothing else can work this cycle."""


@dataclass(frozen=True)
class CycleResult:
    phase: Phase
    state: WatchdogState


class FailoverOrchestrator:
    """
    Per-tick decision maker: stay, switch networks, or fall back to the AP.

    Invariants:
      - Never attempts a station connection while not onboarded
      - The incoming state is a hint only; reachability is always re-probed
      - Recoverable failures are logged and absorbed, never raised
    """

    def __init__(
        self,
        catalog: NetworkCatalog,
        prober: ConnectivityProber,
        station: StationManager,
        access_point: AccessPointManager,
        policy: FailoverPolicy = failover_policy,
        manager_connectivity: bool = False,
    ):
        self.catalog = catalog
        self.prober = prober
        self.station = station
        self.access_point = access_point
        self.policy = policy
        self.manager_connectivity = manager_connectivity
        self.logger = get_logger("orchestrator")
        self._last_probe_epoch = 0

    # ──────────────────────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────────────────────

    def tick(
        self, snapshot: ConfigurationSnapshot, previous: WatchdogState
    ) -> CycleResult:
        """
        Evaluate one watchdog cycle.

        Returns:
            The branch taken and the observed resulting state.
        """
        self._last_probe_epoch = previous.last_probe_epoch

        if not snapshot.onboarded:
            result = self._handle_not_onboarded()
        else:
            try:
                result = self._handle_onboarded(snapshot)
            except FailoverAborted as exc:
                # AP fallback is skipped as well
                self.logger.error(f"{exc}; skipping the rest of this cycle")
                result = CycleResult(Phase.DISCONNECTED, self._disconnected_state())

        self._log_transition(previous, result)
        return result

    def run_failover(self, snapshot: ConfigurationSnapshot) -> Optional[str]:
        """
        Walk the trial order until a candidate associates AND passes the probe.

        Returns:
            The SSID now in use, or None when every candidate failed.

        Raises:
            FailoverAborted: NetworkManager stopped answering.
        """
        self.logger.info("Attempting to connect to configured networks...")

        candidates = trial_order(snapshot)
        if not candidates:
            self.logger.warning("No WiFi networks configured")
            return None

        visible = self.catalog.scan()

        for network in candidates:
            self.logger.info(f"Trying network: {network.ssid}")

            if network.ssid not in visible:
                self.logger.info(f"Network '{network.ssid}' is not visible, skipping")
                continue

            outcome = self.station.connect(network.ssid, network.password)

            if outcome == ConnectOutcome.MANAGER_UNAVAILABLE:
                raise FailoverAborted(f"NetworkManager unavailable while joining {network.ssid}")

            if outcome != ConnectOutcome.CONNECTED:
                tlog(
                    self.logger, "🟠", "FAILOVER", "CONNECT_FAILED",
                    primary=network.ssid, meta=f"outcome={outcome.name}",
                )
                continue

            time.sleep(self.policy.settle_delay_s)
            verdict = self._probe()

            if verdict.reachable:
                tlog(self.logger, "🟢", "FAILOVER", "CONNECTED", primary=network.ssid)
                return network.ssid

            self.logger.warning(
                f"Connected to '{network.ssid}' but no internet "
                f"({verdict.failure_class.name}), trying next..."
            )
            self.station.disconnect()

        self.logger.error("Failed to connect to any configured network")
        return None

    # ──────────────────────────────────────────────────────────────
    # Branches
    # ──────────────────────────────────────────────────────────────

    def _handle_not_onboarded(self) -> CycleResult:
        self.logger.info("Device not onboarded - enabling AP mode for setup")

        if self.access_point.is_active() or self.access_point.enable():
            self.logger.info(
                "Waiting for onboarding via web UI at "
                f"http://{self.access_point.profile.address}"
            )
            return CycleResult(Phase.NOT_ONBOARDED, self._access_point_state())

        self.logger.error("Failed to enable AP mode for onboarding")
        return CycleResult(Phase.NOT_ONBOARDED, self._disconnected_state())

    def _handle_onboarded(self, snapshot: ConfigurationSnapshot) -> CycleResult:
        self.logger.debug("Checking network status...")

        if self.access_point.is_active():
            self.logger.info("Currently in AP mode, attempting to connect to configured WiFi...")

            ssid = self.run_failover(snapshot)
            if ssid:
                self.logger.info("Successfully connected to WiFi, AP mode disabled")
                return CycleResult(Phase.STATION, self._station_state(ssid))

            self.logger.warning("Could not connect to any WiFi network, staying in AP mode")
            # Joining attempts take the AP down; put it back up
            if self.access_point.is_active() or self.access_point.enable():
                return CycleResult(Phase.ACCESS_POINT, self._access_point_state())
            return CycleResult(Phase.DISCONNECTED, self._disconnected_state())

        active_ssid = self.catalog.active_ssid()

        if active_ssid:
            self.logger.debug(f"Currently connected to: {active_ssid}")
            verdict = self._probe()

            if verdict.reachable:
                self.logger.debug(f"Internet connectivity OK on {active_ssid}")
                return CycleResult(Phase.STATION, self._station_state(active_ssid))

            self.logger.warning(
                f"No internet on current network: {active_ssid} "
                f"({verdict.failure_class.name})"
            )
            self.logger.info("Attempting to find a working network...")
            self.station.disconnect()
        else:
            self.logger.info("Not connected to any WiFi network")

        ssid = self.run_failover(snapshot)
        if ssid:
            return CycleResult(Phase.STATION, self._station_state(ssid))

        return self._fall_back_to_access_point()

    def _fall_back_to_access_point(self) -> CycleResult:
        self.logger.warning("All WiFi networks failed, falling back to AP mode")

        if self.access_point.enable():
            self.logger.info("AP mode enabled for reconfiguration")
            return CycleResult(Phase.ACCESS_POINT, self._access_point_state())

        self.logger.error("Failed to enable AP mode")
        return CycleResult(Phase.DISCONNECTED, self._disconnected_state())

    # ──────────────────────────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────────────────────────

    def _probe(self) -> ConnectivityVerdict:
        verdict = self.prober.probe()
        self._last_probe_epoch = self.prober.last_probe_epoch

        if not verdict.reachable and self.manager_connectivity:
            manager = self.prober.manager_verdict()
            if manager == ManagerConnectivity.PORTAL:
                self.logger.warning("NetworkManager reports a captive portal")
            elif manager is not None:
                self.logger.debug(f"NetworkManager connectivity: {manager.value}")

        return verdict

    def _station_state(self, ssid: str) -> WatchdogState:
        return WatchdogState.station(ssid, self._last_probe_epoch)

    def _access_point_state(self) -> WatchdogState:
        return WatchdogState.access_point(self.access_point.ssid, self._last_probe_epoch)

    def _disconnected_state(self) -> WatchdogState:
        return WatchdogState.disconnected(self._last_probe_epoch)

    def _log_transition(self, previous: WatchdogState, result: CycleResult) -> None:
        current = result.state
        if (previous.mode, previous.active_ssid) == (current.mode, current.active_ssid):
            self.logger.debug(f"Mode unchanged: {current.describe()}")
            return

        tlog(
            self.logger,
            MODE_EMOJI[current.mode],
            "MODE",
            "CHANGE",
            primary=f"{previous.describe()} → {current.describe()}",
            meta=f"phase={result.phase.name}",
        )
