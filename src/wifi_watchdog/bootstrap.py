# ─── Standard library imports ───
import os
import time
from enum import IntEnum
from pathlib import Path
from dataclasses import dataclass

# ─── Project imports ───
from .config import Config
from .logger import get_logger
from .nmcli import ManagerConnectivity, NetworkManagerClient


logger = get_logger("bootstrap")


class ExitCode(IntEnum):
    CLEAN = 0
    PRIVILEGE = 1
    MANAGER_UNAVAILABLE = 2
    HARDWARE_UNAVAILABLE = 3
    CONFIG_UNREADABLE = 4
    STATE_UNWRITABLE = 5


class StartupError(Exception):
    """An unmet startup prerequisite; carries the process exit code."""

    def __init__(self, exit_code: ExitCode, message: str):
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(frozen=True)
class EnvCapabilities:
    """
    Observed runtime capabilities derived at startup.

    These represent what the system is actually capable of doing,
    not what it is configured to do in theory.
    """
    manager_connectivity: bool


def init_directories(*files: str) -> None:
    """Create the parent directories of the daemon's own files."""
    for file in files:
        directory = Path(file).parent
        if not directory.is_dir():
            directory.mkdir(mode=0o755, parents=True, exist_ok=True)
            logger.info(f"Created directory: {directory}")


def check_privilege() -> None:
    if os.geteuid() != 0:
        raise StartupError(ExitCode.PRIVILEGE, "This daemon must be run as root")


def check_network_manager(client: NetworkManagerClient) -> None:
    """
    Ensure the NetworkManager service is up and answering nmcli.

    One remediation attempt: start the service if it is not active.
    """
    if not client.service_active():
        logger.error("NetworkManager is not running")
        logger.info("Attempting to start NetworkManager...")

        if not client.start_service():
            raise StartupError(ExitCode.MANAGER_UNAVAILABLE, "Failed to start NetworkManager")

        logger.info("NetworkManager started successfully")
        time.sleep(Config.Timing.SERVICE_START_SETTLE_S)

    if not client.is_responsive():
        raise StartupError(
            ExitCode.MANAGER_UNAVAILABLE,
            "Cannot communicate with NetworkManager via nmcli",
        )

    logger.debug("NetworkManager is running and responsive")


def check_wifi_hardware(client: NetworkManagerClient, interface: str) -> None:
    """
    Ensure the managed interface exists, is a wifi device, and has its
    radio on. One remediation attempt: switch the radio on.
    """
    device_type = client.device_type(interface)

    if device_type is None:
        raise StartupError(
            ExitCode.HARDWARE_UNAVAILABLE, f"WiFi interface {interface} not found"
        )

    if device_type != "wifi":
        raise StartupError(
            ExitCode.HARDWARE_UNAVAILABLE,
            f"Device {interface} is not a WiFi device (type: {device_type})",
        )

    if not client.radio_enabled():
        logger.warning("WiFi radio is disabled, attempting to enable...")

        if not client.enable_radio():
            raise StartupError(ExitCode.HARDWARE_UNAVAILABLE, "Failed to enable WiFi radio")

        logger.info("WiFi radio enabled")
        time.sleep(Config.Timing.SERVICE_START_SETTLE_S)

    logger.debug("WiFi hardware check passed")


def check_prerequisites(
    client: NetworkManagerClient, interface: str = Config.WIFI_INTERFACE
) -> None:
    """
    Validate everything the control loop needs before it starts.

    Raises:
        StartupError: with exit code 1 (privilege), 2 (NetworkManager)
        or 3 (WiFi hardware).
    """
    logger.info("Checking prerequisites...")

    check_privilege()
    check_network_manager(client)
    check_wifi_hardware(client, interface)

    logger.info("Prerequisites check passed")


def discover_runtime_capabilities(client: NetworkManagerClient) -> EnvCapabilities:
    """
    Perform non-fatal probes of optional features.

    NetworkManager's own connectivity checking is only used when enabled
    in config and when it answers with a real verdict.
    """
    manager_connectivity = False

    if Config.USE_NM_CONNECTIVITY:
        verdict = client.connectivity_check()
        manager_connectivity = verdict != ManagerConnectivity.UNKNOWN
        if manager_connectivity:
            logger.info(f"NetworkManager connectivity checking available ({verdict.value})")
        else:
            logger.info("NetworkManager connectivity checking unavailable")

    return EnvCapabilities(manager_connectivity=manager_connectivity)
