# ─── Standard library imports ───
import time
from enum import Enum, auto

# ─── Project imports ───
from .config import Config
from .logger import get_logger
from .catalog import NetworkCatalog
from .access_point import AccessPointManager
from .nmcli import CommandResult, NetworkManagerClient, NmcliOutcome


class ConnectOutcome(Enum):
    CONNECTED = auto()
    TIMED_OUT = auto()
    ACTIVATION_FAILED = auto()
    NOT_FOUND = auto()
    MANAGER_UNAVAILABLE = auto()


# Anything not listed (unknown codes) is a generic, retryable failure
ATTEMPT_OUTCOMES = {
    NmcliOutcome.SUCCESS: ConnectOutcome.CONNECTED,
    NmcliOutcome.TIMEOUT: ConnectOutcome.TIMED_OUT,
    NmcliOutcome.ACTIVATION_FAILED: ConnectOutcome.ACTIVATION_FAILED,
    NmcliOutcome.NOT_FOUND: ConnectOutcome.NOT_FOUND,
    NmcliOutcome.NM_NOT_RUNNING: ConnectOutcome.MANAGER_UNAVAILABLE,
}

NON_RETRYABLE = frozenset({
    ConnectOutcome.NOT_FOUND,
    ConnectOutcome.MANAGER_UNAVAILABLE,
})


class StationManager:
    """
    Joins and leaves client (station mode) connections with bounded retries.

    Responsibilities:
    • Deactivate the fallback AP before joining a network
    • Reuse a saved profile for the SSID when one exists
    • Map each attempt to a ConnectOutcome

    Non-responsibilities:
    • No internet verification (callers re-probe after CONNECTED)
    • No network selection
    """

    def __init__(
        self,
        client: NetworkManagerClient,
        catalog: NetworkCatalog,
        access_point: AccessPointManager,
        interface: str = Config.WIFI_INTERFACE,
        max_attempts: int = Config.Timing.MAX_CONNECTION_ATTEMPTS,
        retry_delay_s: float = Config.Timing.RETRY_DELAY_S,
        connection_timeout_s: int = Config.Timing.CONNECTION_TIMEOUT_S,
    ):
        self.client = client
        self.catalog = catalog
        self.access_point = access_point
        self.interface = interface
        self.max_attempts = max_attempts
        self.retry_delay_s = retry_delay_s
        self.connection_timeout_s = connection_timeout_s
        self.logger = get_logger("station")

    def connect(self, ssid: str, password: str = "") -> ConnectOutcome:
        self.logger.info(f"Attempting to connect to WiFi: {ssid}")

        if self.access_point.is_active():
            self.access_point.disable()

        outcome = ConnectOutcome.ACTIVATION_FAILED
        for attempt in range(1, self.max_attempts + 1):
            self.logger.debug(f"Connection attempt {attempt} of {self.max_attempts}")
            outcome = self._attempt(ssid, password)

            if outcome == ConnectOutcome.CONNECTED:
                self.logger.info(f"Successfully connected to: {ssid}")
                return outcome

            if outcome == ConnectOutcome.NOT_FOUND:
                self.logger.warning(f"Network or connection not found: {ssid}")
                return outcome

            if outcome == ConnectOutcome.MANAGER_UNAVAILABLE:
                self.logger.error("NetworkManager is not running")
                return outcome

            if attempt < self.max_attempts:
                time.sleep(self.retry_delay_s)

        self.logger.error(
            f"Failed to connect to {ssid} after {self.max_attempts} attempts"
        )
        return outcome

    def _attempt(self, ssid: str, password: str) -> ConnectOutcome:
        profile = self.catalog.resolve_profile(ssid)

        if profile:
            self.logger.debug(f"Using existing connection profile: {profile}")
            result = self.client.connection_up(profile, wait=self.connection_timeout_s)
        else:
            self.logger.debug(f"Creating new connection for SSID: {ssid}")
            result = self.client.wifi_connect(
                ssid, password, self.interface, wait=self.connection_timeout_s
            )

        outcome = ATTEMPT_OUTCOMES.get(result.outcome, ConnectOutcome.ACTIVATION_FAILED)
        self._log_attempt(outcome, result)
        return outcome

    def _log_attempt(self, outcome: ConnectOutcome, result: CommandResult) -> None:
        if outcome == ConnectOutcome.TIMED_OUT:
            self.logger.warning("Connection attempt timed out")
        elif outcome == ConnectOutcome.ACTIVATION_FAILED:
            if result.outcome == NmcliOutcome.ACTIVATION_FAILED:
                self.logger.warning(f"Connection activation failed: {result.message}")
            else:
                self.logger.warning(
                    f"Connection failed with code {result.returncode}: {result.message}"
                )

    def disconnect(self) -> bool:
        """
        Bring down the active station connection.

        Returns:
            True if a connection was taken down, False if there was none.
        """
        active = self.catalog.active_connection()

        if not active or active == self.access_point.profile.connection_name:
            self.logger.debug("No active station connection to disconnect")
            return False

        self.logger.debug(f"Deactivating connection: {active}")
        result = self.client.connection_down(active)
        if not result.ok:
            self.logger.warning(f"Failed to deactivate {active}: {result.message}")
        return True
