# ─── Standard library imports ───
import time
from dataclasses import dataclass

# ─── Project imports ───
from .config import Config
from .logger import get_logger
from .catalog import NetworkCatalog
from .nmcli import (
    ActivationFailure,
    CommandResult,
    NetworkManagerClient,
    NmcliOutcome,
    classify_activation_failure,
)


@dataclass(frozen=True)
class AccessPointProfile:
    """
    Fixed definition of the device's own fallback network.

    Open (no security) by design: the AP exists only so a phone can reach
    the setup page. IPv4 is `shared` so NetworkManager serves DHCP/NAT.
    """

    connection_name: str = Config.AccessPoint.CONNECTION_NAME
    ssid: str = Config.AccessPoint.SSID
    interface: str = Config.WIFI_INTERFACE
    channel: int = Config.AccessPoint.CHANNEL
    band: str = Config.AccessPoint.BAND
    address: str = Config.AccessPoint.ADDRESS
    prefix: int = Config.AccessPoint.PREFIX

    @property
    def cidr(self) -> str:
        return f"{self.address}/{self.prefix}"


ACTIVATION_HINTS = {
    ActivationFailure.DEVICE_BUSY:
        "WiFi device is busy - may need to wait or restart NetworkManager",
    ActivationFailure.UNSUPPORTED:
        "AP mode may not be supported by this hardware",
    ActivationFailure.OTHER: None,
}


class AccessPointManager:
    """
    Creates (idempotently), activates and deactivates the fallback AP.

    Every failure is reported as False; the diagnostic class of an
    activation failure only changes the log text.
    """

    def __init__(
        self,
        client: NetworkManagerClient,
        catalog: NetworkCatalog,
        profile: AccessPointProfile = AccessPointProfile(),
        activation_timeout_s: int = Config.Timing.CONNECTION_TIMEOUT_S,
        settle_s: float = Config.Timing.MODE_SWITCH_SETTLE_S,
    ):
        self.client = client
        self.catalog = catalog
        self.profile = profile
        self.activation_timeout_s = activation_timeout_s
        self.settle_s = settle_s
        self.logger = get_logger("access_point")

    @property
    def ssid(self) -> str:
        return self.profile.ssid

    # ──────────────────────────────────────────────────────────────
    # Profile lifecycle
    # ──────────────────────────────────────────────────────────────

    def ensure_profile_exists(self) -> bool:
        """
        Create the AP profile if (and only if) it is absent.

        An existing profile is never modified or replaced here.
        """
        if self.catalog.profile_exists(self.profile.connection_name):
            self.logger.debug(
                f"AP connection profile '{self.profile.connection_name}' exists"
            )
            return True
        return self._create_profile()

    def _create_profile(self) -> bool:
        name = self.profile.connection_name
        self.logger.info(f"Creating AP connection profile: {name}")

        added = self.client.run([
            "connection", "add",
            "type", "wifi",
            "ifname", self.profile.interface,
            "con-name", name,
            "autoconnect", "no",
            "ssid", self.profile.ssid,
            "mode", "ap",
        ])
        if not added.ok:
            self.logger.error(f"Failed to create AP connection profile: {added.message}")
            return False

        steps = (
            ("WiFi", {
                "802-11-wireless.band": self.profile.band,
                "802-11-wireless.channel": str(self.profile.channel),
            }),
            ("IP", {
                "ipv4.method": "shared",
                "ipv4.addresses": self.profile.cidr,
            }),
        )
        for label, settings in steps:
            result = self.client.connection_modify(name, settings)
            if not result.ok:
                self.logger.error(f"Failed to configure AP {label} settings: {result.message}")
                # Half-built profile would otherwise be reused as-is
                self.client.connection_delete(name)
                return False

        ipv6 = self.client.connection_modify(name, {"ipv6.method": "disabled"})
        if not ipv6.ok:
            self.logger.warning("Failed to disable IPv6 on AP (non-fatal)")

        self.logger.info("AP connection profile created successfully")
        self.logger.info(f"  SSID: {self.profile.ssid}")
        self.logger.info(f"  IP: {self.profile.cidr}")
        self.logger.info("  Security: Open (no password)")
        return True

    def _recreate_profile(self) -> bool:
        self.logger.warning(
            f"AP profile '{self.profile.connection_name}' unusable; recreating"
        )
        self.client.connection_delete(self.profile.connection_name)
        return self._create_profile()

    # ──────────────────────────────────────────────────────────────
    # Activation
    # ──────────────────────────────────────────────────────────────

    def is_active(self) -> bool:
        """True only when the AP profile itself is the active connection."""
        return self.catalog.active_connection() == self.profile.connection_name

    def _activate(self) -> CommandResult:
        return self.client.connection_up(
            self.profile.connection_name, wait=self.activation_timeout_s
        )

    def enable(self) -> bool:
        self.logger.info("Enabling AP mode...")

        if not self.ensure_profile_exists():
            self.logger.error("Failed to create AP connection profile")
            return False

        active = self.catalog.active_connection()
        if active and active != self.profile.connection_name:
            self.logger.debug(f"Disconnecting from: {active}")
            self.client.connection_down(active)
            time.sleep(self.settle_s)

        result = self._activate()
        if result.outcome == NmcliOutcome.NOT_FOUND and self._recreate_profile():
            result = self._activate()

        if result.ok:
            self.logger.info("AP mode enabled successfully")
            self.logger.info(f"  SSID: {self.profile.ssid}")
            self.logger.info(f"  IP: {self.profile.address}")
            self.logger.info("  Connect to configure the device")
            return True

        self._log_activation_failure(result)
        return False

    def _log_activation_failure(self, result: CommandResult) -> None:
        if result.outcome != NmcliOutcome.ACTIVATION_FAILED:
            self.logger.error(
                f"AP activation failed ({result.outcome.name}): {result.message}"
            )
            return

        self.logger.error(f"Failed to activate AP mode: {result.message}")
        hint = ACTIVATION_HINTS[classify_activation_failure(result.message)]
        if hint:
            self.logger.error(hint)

    def disable(self) -> bool:
        self.logger.info("Disabling AP mode...")

        if not self.catalog.profile_exists(self.profile.connection_name):
            self.logger.debug("AP connection profile does not exist")
            return True

        if self.is_active():
            self.logger.debug("Deactivating AP connection")
            result = self.client.connection_down(self.profile.connection_name)
            time.sleep(self.settle_s)
            if not result.ok:
                self.logger.warning(f"Failed to deactivate AP: {result.message}")
                return False

        self.logger.info("AP mode disabled")
        return True
