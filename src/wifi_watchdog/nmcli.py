# ─── Standard library imports ───
import os
import subprocess
from enum import Enum, auto
from typing import Optional
from dataclasses import dataclass

# ─── Project imports ───
from .config import Config
from .logger import get_logger


logger = get_logger("nmcli")


class NmcliOutcome(Enum):
    """
    Typed view of nmcli's process exit status.

    Everything above this module works with these values only;
    raw exit codes and tool output never leave the adapter.
    """
    SUCCESS = auto()
    UNKNOWN_ERROR = auto()
    INVALID_INPUT = auto()
    TIMEOUT = auto()
    ACTIVATION_FAILED = auto()
    DEACTIVATION_FAILED = auto()
    DISCONNECT_FAILED = auto()
    DELETE_FAILED = auto()
    NM_NOT_RUNNING = auto()
    NOT_FOUND = auto()
    UNKNOWN = auto()


# nmcli(1) exit status table
EXIT_CODES = {
    0: NmcliOutcome.SUCCESS,
    1: NmcliOutcome.UNKNOWN_ERROR,
    2: NmcliOutcome.INVALID_INPUT,
    3: NmcliOutcome.TIMEOUT,
    4: NmcliOutcome.ACTIVATION_FAILED,
    5: NmcliOutcome.DEACTIVATION_FAILED,
    6: NmcliOutcome.DISCONNECT_FAILED,
    7: NmcliOutcome.DELETE_FAILED,
    8: NmcliOutcome.NM_NOT_RUNNING,
    10: NmcliOutcome.NOT_FOUND,
}


def outcome_from_returncode(returncode: int) -> NmcliOutcome:
    return EXIT_CODES.get(returncode, NmcliOutcome.UNKNOWN)


class ActivationFailure(Enum):
    """Diagnostic classes for a failed AP activation (log text only)."""
    DEVICE_BUSY = auto()
    UNSUPPORTED = auto()
    OTHER = auto()


class ManagerConnectivity(str, Enum):
    """NetworkManager's own connectivity verdict."""
    FULL = "full"
    LIMITED = "limited"
    PORTAL = "portal"
    NONE = "none"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CommandResult:
    outcome: NmcliOutcome
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == NmcliOutcome.SUCCESS

    @property
    def message(self) -> str:
        return self.stderr.strip() or self.stdout.strip()


def classify_activation_failure(message: str) -> ActivationFailure:
    text = message.lower()
    if "busy" in text and "device" in text:
        return ActivationFailure.DEVICE_BUSY
    if "not supported" in text:
        return ActivationFailure.UNSUPPORTED
    return ActivationFailure.OTHER


def split_terse(line: str) -> list[str]:
    """
    Split one line of `nmcli --terse` output into fields.

    nmcli escapes literal ':' and '\\' inside values with a backslash.
    """
    fields, current = [], []
    chars = iter(line)
    for ch in chars:
        if ch == "\\":
            current.append(next(chars, ""))
        elif ch == ":":
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def _redact(cmd: list[str]) -> str:
    shown = []
    hide_next = False
    for arg in cmd:
        shown.append("****" if hide_next else arg)
        hide_next = arg in ("password", "wifi-sec.psk")
    return " ".join(shown)


class NetworkManagerClient:
    """
    Synchronous client for the NetworkManager service via nmcli/systemctl.

    Command failures are returned as CommandResult values; this class
    never raises for a failed or timed-out command.
    """

    SERVICE_NAME = "NetworkManager"

    def __init__(self, command_timeout_s: float = Config.Timing.COMMAND_TIMEOUT_S):
        self.command_timeout_s = command_timeout_s
        self.env = {**os.environ, "LC_ALL": "C"}

    # ──────────────────────────────────────────────────────────────
    # Process execution
    # ──────────────────────────────────────────────────────────────

    def _exec(self, cmd: list[str], timeout: float) -> CommandResult:
        logger.debug(f"Running command: {_redact(cmd)}")
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=self.env,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.debug(f"Command timed out after {timeout}s: {_redact(cmd)}")
            return CommandResult(NmcliOutcome.TIMEOUT, -1, "", "timed out")
        except FileNotFoundError:
            return CommandResult(NmcliOutcome.NM_NOT_RUNNING, 127, "", f"{cmd[0]} not found")
        except OSError as exc:
            return CommandResult(NmcliOutcome.UNKNOWN, -1, "", str(exc))

        return CommandResult(
            outcome_from_returncode(proc.returncode),
            proc.returncode,
            proc.stdout or "",
            proc.stderr or "",
        )

    def run(self, args: list[str], wait: Optional[int] = None) -> CommandResult:
        """
        Run `nmcli [--wait N] <args>`.

        With `wait`, the process timeout is nmcli's own wait plus slack so
        that nmcli reports its timeout (exit 3) before we kill it.
        """
        cmd = ["nmcli"]
        timeout = self.command_timeout_s
        if wait is not None:
            cmd += ["--wait", str(wait)]
            timeout = wait + 5
        return self._exec(cmd + list(args), timeout)

    def terse(self, fields: str, args: list[str]) -> list[list[str]]:
        """Run nmcli in terse mode and return parsed rows (empty on failure)."""
        result = self.run(["-t", "-f", fields] + list(args))
        if not result.ok:
            logger.debug(f"nmcli {' '.join(args)} failed: {result.message}")
            return []
        return [split_terse(line) for line in result.stdout.splitlines() if line]

    # ──────────────────────────────────────────────────────────────
    # Service / hardware queries (startup prerequisites)
    # ──────────────────────────────────────────────────────────────

    def _systemctl(self, *args: str) -> bool:
        result = self._exec(["systemctl", *args], self.command_timeout_s)
        return result.returncode == 0

    def service_active(self) -> bool:
        return self._systemctl("is-active", "--quiet", self.SERVICE_NAME)

    def start_service(self) -> bool:
        return self._systemctl("start", self.SERVICE_NAME)

    def is_responsive(self) -> bool:
        return self.run(["general", "status"]).ok

    def device_type(self, interface: str) -> Optional[str]:
        """Return the device TYPE nmcli reports for `interface`, or None."""
        for row in self.terse("DEVICE,TYPE", ["device", "status"]):
            if len(row) >= 2 and row[0] == interface:
                return row[1]
        return None

    def radio_enabled(self) -> bool:
        result = self.run(["radio", "wifi"])
        return result.ok and result.stdout.strip() == "enabled"

    def enable_radio(self) -> bool:
        return self.run(["radio", "wifi", "on"]).ok

    def connectivity_check(self) -> ManagerConnectivity:
        result = self.run(["networking", "connectivity", "check"])
        if not result.ok:
            return ManagerConnectivity.UNKNOWN
        try:
            return ManagerConnectivity(result.stdout.strip().lower())
        except ValueError:
            return ManagerConnectivity.UNKNOWN

    # ──────────────────────────────────────────────────────────────
    # Connection profiles
    # ──────────────────────────────────────────────────────────────

    def connection_up(self, name: str, wait: int) -> CommandResult:
        return self.run(["connection", "up", name], wait=wait)

    def connection_down(self, name: str) -> CommandResult:
        return self.run(["connection", "down", name])

    def connection_delete(self, name: str) -> CommandResult:
        return self.run(["connection", "delete", name])

    def connection_modify(self, name: str, settings: dict[str, str]) -> CommandResult:
        args = ["connection", "modify", name]
        for key, value in settings.items():
            args += [key, str(value)]
        return self.run(args)

    def wifi_connect(
        self, ssid: str, password: str, interface: str, wait: int
    ) -> CommandResult:
        args = ["device", "wifi", "connect", ssid]
        if password:
            args += ["password", password]
        args += ["ifname", interface]
        return self.run(args, wait=wait)
