"""
Data models shared across the watchdog.
"""

# ─── Standard library imports ───
from enum import Enum
from typing import Optional
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CandidateNetwork:
    """A wireless network the device is permitted to join."""

    ssid: str
    password: str = ""   # empty → open network

    @property
    def has_password(self) -> bool:
        return bool(self.password)


@dataclass(frozen=True)
class ConfigurationSnapshot:
    """
    Read-only view of the externally owned configuration file.

    Replaced wholesale on reload, never mutated.
    """

    onboarded: bool = False
    primary_ssid: str = ""
    candidates: tuple[CandidateNetwork, ...] = field(default_factory=tuple)

    def candidate(self, ssid: str) -> Optional[CandidateNetwork]:
        for network in self.candidates:
            if network.ssid == ssid:
                return network
        return None


class Mode(str, Enum):
    """Persisted watchdog modes (values are the on-disk spelling)."""

    UNKNOWN = "unknown"
    STATION = "station"
    ACCESS_POINT = "ap"
    DISCONNECTED = "disconnected"

    @property
    def label(self) -> str:
        return self.name


# Modes that always name the network they are on
MODES_WITH_SSID = frozenset({Mode.STATION, Mode.ACCESS_POINT})


@dataclass(frozen=True)
class WatchdogState:
    """
    The daemon's own memory, persisted after every tick.

    Invariant:
      - active_ssid is non-empty iff mode is STATION or ACCESS_POINT
    """

    mode: Mode = Mode.UNKNOWN
    active_ssid: str = ""
    last_probe_epoch: int = 0

    def __post_init__(self):
        if bool(self.active_ssid) != (self.mode in MODES_WITH_SSID):
            raise ValueError(
                f"Inconsistent watchdog state: mode={self.mode.value} "
                f"active_ssid={self.active_ssid!r}"
            )

    @classmethod
    def station(cls, ssid: str, last_probe_epoch: int = 0) -> "WatchdogState":
        return cls(Mode.STATION, ssid, last_probe_epoch)

    @classmethod
    def access_point(cls, ssid: str, last_probe_epoch: int = 0) -> "WatchdogState":
        return cls(Mode.ACCESS_POINT, ssid, last_probe_epoch)

    @classmethod
    def disconnected(cls, last_probe_epoch: int = 0) -> "WatchdogState":
        return cls(Mode.DISCONNECTED, "", last_probe_epoch)

    def describe(self) -> str:
        if self.active_ssid:
            return f"{self.mode.label}({self.active_ssid})"
        return self.mode.label
