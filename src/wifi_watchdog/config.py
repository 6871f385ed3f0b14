# ─── Standard library imports ───
import os

# ─── Third-party imports ───
from dotenv import load_dotenv


# Load .env once
load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() == "true"


class Config:
    """Centralized config for the network watchdog daemon"""

    SCRIPT_NAME = "tether-network-watchdog"
    VERSION = "1.0.0"

    # ─── Scheduling Policy ───
    CHECK_INTERVAL_S = _env_int("CHECK_INTERVAL", 30)

    # ─── Connectivity Probe ───
    CONNECTIVITY_CHECK_URL = os.getenv(
        "CONNECTIVITY_CHECK_URL",
        "http://connectivitycheck.gstatic.com/generate_204",
    )
    CONNECTIVITY_EXPECTED_STATUS = 204   # NOT user configurable
    CONNECTIVITY_TIMEOUT_S = _env_int("CONNECTIVITY_TIMEOUT", 10)
    CONNECTIVITY_CONNECT_TIMEOUT_S = _env_int("CONNECTIVITY_CONNECT_TIMEOUT", 5)
    USE_NM_CONNECTIVITY = _env_bool("USE_NM_CONNECTIVITY", True)

    # ─── Hardware ───
    WIFI_INTERFACE = os.getenv("WIFI_INTERFACE", "wlan0")

    # ─── Observability Policy ───
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # ─── Paths ───
    class Paths:
        CONFIG_FILE = os.getenv(
            "WATCHDOG_CONFIG_FILE", "/opt/tether/config/tether.toml"
        )
        STATE_FILE = os.getenv(
            "WATCHDOG_STATE_FILE", "/opt/tether/data/watchdog.state"
        )
        LOG_FILE = os.getenv(
            "WATCHDOG_LOG_FILE", "/opt/tether/logs/network-watchdog.log"
        )
        PID_FILE = os.getenv(
            "WATCHDOG_PID_FILE", "/run/tether-network-watchdog.pid"
        )

    # ─── Fallback Access Point (NOT user configurable) ───
    class AccessPoint:
        CONNECTION_NAME = "TetherSetup"
        SSID = "TetherSetup"
        CHANNEL = 6
        BAND = "bg"   # 2.4GHz
        ADDRESS = "192.168.4.1"
        PREFIX = 24

    # ─── Timing (seconds, NOT user configurable) ───
    class Timing:
        NETWORK_SWITCH_DELAY_S = 5
        MAX_CONNECTION_ATTEMPTS = 3
        RETRY_DELAY_S = 2
        CONNECTION_TIMEOUT_S = 30
        SCAN_SETTLE_S = 2
        MODE_SWITCH_SETTLE_S = 2
        SERVICE_START_SETTLE_S = 2
        COMMAND_TIMEOUT_S = 15
