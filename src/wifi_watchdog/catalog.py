# ─── Standard library imports ───
import time
from typing import Optional

# ─── Project imports ───
from .config import Config
from .logger import get_logger
from .nmcli import NetworkManagerClient, split_terse


WIFI_CONNECTION_TYPE = "802-11-wireless"


class NetworkCatalog:
    """
    Read-only view of the wireless world on the single managed interface:
    visible SSIDs, saved connection profiles and the active connection.
    """

    def __init__(
        self,
        client: NetworkManagerClient,
        interface: str = Config.WIFI_INTERFACE,
        scan_settle_s: float = Config.Timing.SCAN_SETTLE_S,
    ):
        self.client = client
        self.interface = interface
        self.scan_settle_s = scan_settle_s
        self.logger = get_logger("catalog")

    def scan(self) -> set[str]:
        """
        Force a fresh radio scan and return the visible SSIDs.

        The rescan is best-effort: when it fails the (possibly stale)
        cached list is used, and a failed listing yields an empty set.
        """
        self.logger.debug("Scanning for available WiFi networks...")

        rescan = self.client.run(["device", "wifi", "rescan", "ifname", self.interface])
        if not rescan.ok:
            self.logger.debug(f"WiFi rescan unavailable ({rescan.message}); using cached results")
        time.sleep(self.scan_settle_s)

        listing = self.client.run(
            ["-t", "-f", "SSID", "device", "wifi", "list", "ifname", self.interface]
        )
        if not listing.ok:
            self.logger.warning(f"WiFi scan failed: {listing.message or listing.outcome.name}")
            return set()

        visible = {split_terse(line)[0] for line in listing.stdout.splitlines()}
        visible.discard("")
        self.logger.debug(f"Visible networks: {sorted(visible)}")
        return visible

    def resolve_profile(self, ssid: str) -> Optional[str]:
        """Return the name of a saved connection profile for `ssid`, if any."""
        for row in self.client.terse(
            f"NAME,{WIFI_CONNECTION_TYPE}.ssid", ["connection", "show"]
        ):
            if len(row) >= 2 and row[1] == ssid:
                return row[0]
        return None

    def profile_exists(self, name: str) -> bool:
        return any(
            row and row[0] == name
            for row in self.client.terse("NAME", ["connection", "show"])
        )

    def active_connection(self) -> Optional[str]:
        """Name of the wifi connection active on the managed interface."""
        for row in self.client.terse(
            "NAME,TYPE,DEVICE", ["connection", "show", "--active"]
        ):
            if (
                len(row) >= 3
                and row[1] == WIFI_CONNECTION_TYPE
                and row[2] == self.interface
            ):
                return row[0]
        return None

    def active_ssid(self) -> Optional[str]:
        """SSID the managed interface is currently associated with."""
        for row in self.client.terse(
            "ACTIVE,SSID", ["device", "wifi", "list", "ifname", self.interface]
        ):
            if len(row) >= 2 and row[0] == "yes" and row[1]:
                return row[1]
        return None
