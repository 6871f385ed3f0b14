# ─── Standard library imports ───
import re
from pathlib import Path
from typing import Iterable, Optional

# ─── Project imports ───
from .logger import get_logger
from .models import CandidateNetwork, ConfigurationSnapshot


logger = get_logger("network_config")

# Array-of-tables headers that open one candidate network each
NETWORK_HEADERS = frozenset({"[[wifi_networks]]", "[[wifi.networks]]"})

ONBOARDED_KEYS = frozenset({"onboarded", "setup_completed"})
PRIMARY_KEYS = frozenset({"primary_ssid", "primary_network"})
PASSWORD_KEYS = frozenset({"password", "psk"})

KEY_VALUE_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")
SECTION_RE = re.compile(r"^\[.*\]$")


class ConfigError(Exception):
    """Raised when a present configuration file cannot be read."""


def _unquote(raw: str) -> str:
    """
    Strip matching quotes from a value, dropping any trailing comment.

    Unquoted values only lose a ` #` comment suffix.
    """
    value = raw.strip()
    if value[:1] in ("'", '"'):
        quote = value[0]
        end = value.find(quote, 1)
        if end != -1:
            return value[1:end]
        return value[1:]

    return value.split(" #", 1)[0].strip()


def _is_true(value: str) -> bool:
    return value.strip().lower() == "true"


class _NetworkBlock:
    """Key/values collected for one [[wifi_networks]] block."""

    def __init__(self):
        self.ssid = ""
        self.password = ""
        self.is_primary = False

    def set(self, key: str, value: str) -> None:
        if key == "ssid":
            self.ssid = value
        elif key in PASSWORD_KEYS:
            self.password = value
        elif key == "is_primary":
            self.is_primary = _is_true(value)


def parse(lines: Iterable[str]) -> ConfigurationSnapshot:
    """
    Parse the structured-config subset into a ConfigurationSnapshot.

    A network block is closed by the next block header, by any other
    section header, or by end of input. Blocks without an ssid are
    dropped; a repeated ssid keeps its first occurrence.
    """
    onboarded = False
    primary_ssid = ""
    flagged_primary = ""
    networks: dict[str, CandidateNetwork] = {}

    block: Optional[_NetworkBlock] = None
    in_other_section = False

    def close(current: Optional[_NetworkBlock]) -> None:
        nonlocal flagged_primary
        if current is None or not current.ssid:
            return
        if current.ssid in networks:
            logger.debug(f"Duplicate network '{current.ssid}' ignored")
            return
        networks[current.ssid] = CandidateNetwork(current.ssid, current.password)
        if current.is_primary and not flagged_primary:
            flagged_primary = current.ssid

    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        if line in NETWORK_HEADERS:
            close(block)
            block = _NetworkBlock()
            in_other_section = False
            continue

        if SECTION_RE.match(line):
            close(block)
            block = None
            in_other_section = True
            continue

        match = KEY_VALUE_RE.match(line)
        if not match:
            continue

        key, value = match.group(1), _unquote(match.group(2))

        if block is not None:
            block.set(key, value)
        elif not in_other_section:
            if key in ONBOARDED_KEYS:
                onboarded = _is_true(value)
            elif key in PRIMARY_KEYS:
                primary_ssid = value

    close(block)

    return ConfigurationSnapshot(
        onboarded=onboarded,
        primary_ssid=primary_ssid or flagged_primary,
        candidates=tuple(networks.values()),
    )


def load(path: str | Path) -> ConfigurationSnapshot:
    """
    Load the candidate networks and onboarding flag from `path`.

    Returns:
        A not-onboarded, empty snapshot when the file does not exist
        (first boot).

    Raises:
        ConfigError: the file exists but cannot be read.
    """
    path = Path(path)
    logger.info(f"Parsing configuration from {path}")

    if not path.exists():
        logger.info(
            f"Configuration file not found ({path}); "
            "assuming first boot - device not onboarded"
        )
        return ConfigurationSnapshot()

    try:
        with path.open(encoding="utf-8") as fh:
            snapshot = parse(fh)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc

    _log_summary(snapshot)
    return snapshot


def _log_summary(snapshot: ConfigurationSnapshot) -> None:
    logger.info("Configuration loaded:")
    logger.info(f"  onboarded: {str(snapshot.onboarded).lower()}")
    logger.info(f"  primary_ssid: {snapshot.primary_ssid or '<none>'}")
    logger.info(f"  configured networks: {len(snapshot.candidates)}")

    for idx, network in enumerate(snapshot.candidates):
        has_password = "yes" if network.has_password else "no"
        logger.debug(f"    [{idx}] {network.ssid} (password: {has_password})")

    if snapshot.onboarded and not snapshot.candidates:
        logger.info("No WiFi networks configured")
