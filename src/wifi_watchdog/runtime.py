# ─── Standard library imports ───
import os
import time
import signal
from pathlib import Path
from typing import Callable, Optional
from dataclasses import dataclass

# ─── Project imports ───
from .config import Config
from .logger import get_logger
from .bootstrap import ExitCode
from .state_store import store_state
from .network_config import ConfigError, load
from .models import ConfigurationSnapshot, WatchdogState
from .orchestrator import CycleResult, FailoverOrchestrator


@dataclass
class ControlFlags:
    """
    The only state touched from signal handlers.

    Inspected by the control loop at its checkpoints: the top of every
    cycle and every sleep slice.
    """
    reload_requested: bool = False
    shutdown_requested: bool = False


class WatchdogRuntime:
    """
    Process shell around the orchestrator.

    Responsibilities:
        - Own the current ConfigurationSnapshot and WatchdogState
        - Tick on a fixed interval, one cycle at a time
        - Honor reload/shutdown requests at checkpoints
        - Persist state after every cycle and maintain the PID marker
    """

    SLEEP_SLICE_S = 1.0

    def __init__(
        self,
        orchestrator: FailoverOrchestrator,
        snapshot: ConfigurationSnapshot,
        state: WatchdogState,
        config_path: str = Config.Paths.CONFIG_FILE,
        state_path: str = Config.Paths.STATE_FILE,
        pid_path: str = Config.Paths.PID_FILE,
        interval_s: float = Config.CHECK_INTERVAL_S,
        loader: Callable[[str], ConfigurationSnapshot] = load,
        flags: Optional[ControlFlags] = None,
    ):
        self.orchestrator = orchestrator
        self.snapshot = snapshot
        self.state = state
        self.config_path = config_path
        self.state_path = state_path
        self.pid_path = Path(pid_path)
        self.interval_s = interval_s
        self.loader = loader
        self.flags = flags or ControlFlags()
        self.last_result: Optional[CycleResult] = None
        self.logger = get_logger("runtime")

    # ──────────────────────────────────────────────────────────────
    # Signals
    # ──────────────────────────────────────────────────────────────

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGTERM, self._request_shutdown)
        signal.signal(signal.SIGINT, self._request_shutdown)
        signal.signal(signal.SIGHUP, self._request_reload)

    def _request_shutdown(self, signum, frame) -> None:
        self.flags.shutdown_requested = True

    def _request_reload(self, signum, frame) -> None:
        self.flags.reload_requested = True

    # ──────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────

    def run(self) -> int:
        """
        Supervisor loop: one cycle immediately, then one per interval.

        Returns:
            ExitCode.CLEAN after a shutdown request.
        """
        self.logger.info(f"Resuming from previous state: {self.state.describe()}")
        self._write_pid()

        try:
            elapsed = self.run_cycle()
            self.logger.info(f"Entering main watchdog loop (interval: {self.interval_s}s)")

            while not self.flags.shutdown_requested:
                self.sleep(max(0.0, self.interval_s - elapsed))

                if self.flags.shutdown_requested:
                    break

                elapsed = self.run_cycle()
        finally:
            self._remove_pid()

        self.logger.info("Received shutdown signal")
        self.logger.info("Watchdog shutdown complete")
        return ExitCode.CLEAN

    def run_cycle(self) -> float:
        """
        Execute one watchdog cycle and persist its outcome.

        Unexpected errors inside the cycle are logged and the previous
        state is kept; a failure to persist state is not caught.

        Returns:
            Seconds spent in the cycle.
        """
        if self.flags.reload_requested:
            self.flags.reload_requested = False
            self.reload()

        start = time.monotonic()

        try:
            result = self.orchestrator.tick(self.snapshot, self.state)
        except Exception as exc:
            self.logger.exception(f"Unhandled exception during watchdog cycle: {exc}")
        else:
            self.last_result = result
            self.state = result.state
            store_state(self.state_path, self.state)

        elapsed = time.monotonic() - start
        self.logger.info(f"🛜 Network State [{self.state.describe()}] ({elapsed:.1f} s)")
        return elapsed

    def reload(self) -> None:
        """Replace the snapshot; a failed load keeps the previous one."""
        self.logger.info("Reloading configuration...")
        try:
            self.snapshot = self.loader(self.config_path)
        except ConfigError as exc:
            self.logger.warning(f"Configuration reload failed, keeping previous: {exc}")

    def sleep(self, duration: float) -> None:
        """
        Sleep up to `duration` seconds in short slices, returning early
        as soon as a reload or shutdown has been requested.
        """
        deadline = time.monotonic() + duration

        while not (self.flags.shutdown_requested or self.flags.reload_requested):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            time.sleep(min(self.SLEEP_SLICE_S, remaining))

        if self.flags.reload_requested:
            self.logger.info("Received reload signal (SIGHUP)")

    # ──────────────────────────────────────────────────────────────
    # PID marker
    # ──────────────────────────────────────────────────────────────

    def _write_pid(self) -> None:
        self.pid_path.parent.mkdir(parents=True, exist_ok=True)
        self.pid_path.write_text(f"{os.getpid()}\n")
        self.logger.debug(f"Wrote PID {os.getpid()} to {self.pid_path}")

    def _remove_pid(self) -> None:
        self.logger.info("Cleaning up...")
        if self.pid_path.exists():
            self.pid_path.unlink(missing_ok=True)
            self.logger.debug("Removed PID file")
