# ─── Standard library imports ───
import sys

# ─── Project imports ───
from .config import Config
from .catalog import NetworkCatalog
from .station import StationManager
from .state_store import load_state
from .runtime import WatchdogRuntime
from .nmcli import NetworkManagerClient
from .connectivity import ConnectivityProber
from .orchestrator import FailoverOrchestrator
from .selection_policy import failover_policy
from .logger import get_logger, parse_level, setup_logging
from .network_config import ConfigError, load as load_network_config
from .access_point import AccessPointManager, AccessPointProfile
from .bootstrap import (
    ExitCode,
    StartupError,
    check_prerequisites,
    discover_runtime_capabilities,
    init_directories,
)


def main() -> int:
    """
    Entry point for the network watchdog daemon.

    Startup order:
        logging → prerequisites → configuration → previous state →
        AP profile → supervisor loop
    """
    log_dir_error = None
    try:
        init_directories(Config.Paths.LOG_FILE)
    except OSError as exc:
        log_dir_error = exc

    setup_logging(level=parse_level(Config.LOG_LEVEL), log_file=Config.Paths.LOG_FILE)
    logger = get_logger("main")
    logger.info("==========================================")
    logger.info(f"🚀 Tether Network Watchdog v{Config.VERSION}")
    logger.info("==========================================")
    logger.debug(f"Python version: {sys.version}")

    if log_dir_error is not None:
        logger.warning(f"Cannot create log directory: {log_dir_error}")

    client = NetworkManagerClient()

    try:
        check_prerequisites(client, Config.WIFI_INTERFACE)
        init_directories(Config.Paths.STATE_FILE, Config.Paths.LOG_FILE)
        snapshot = load_network_config(Config.Paths.CONFIG_FILE)
    except StartupError as exc:
        logger.error(str(exc))
        return exc.exit_code
    except ConfigError as exc:
        logger.error(f"Failed to parse configuration: {exc}")
        return ExitCode.CONFIG_UNREADABLE

    capabilities = discover_runtime_capabilities(client)
    state = load_state(Config.Paths.STATE_FILE)

    # Core components
    catalog = NetworkCatalog(client, Config.WIFI_INTERFACE)
    access_point = AccessPointManager(
        client, catalog, AccessPointProfile(interface=Config.WIFI_INTERFACE)
    )
    station = StationManager(client, catalog, access_point, Config.WIFI_INTERFACE)
    prober = ConnectivityProber(
        manager=client if capabilities.manager_connectivity else None
    )
    logger.info(f"⚙️  Failover policy: {failover_policy.summary()}")
    orchestrator = FailoverOrchestrator(
        catalog,
        prober,
        station,
        access_point,
        policy=failover_policy,
        manager_connectivity=capabilities.manager_connectivity,
    )

    # Needed eventually; a failure here is retried by the first enable()
    if not access_point.ensure_profile_exists():
        logger.warning("Failed to create AP profile (will retry)")

    runtime = WatchdogRuntime(orchestrator, snapshot, state)
    runtime.install_signal_handlers()

    try:
        return runtime.run()
    except OSError:
        logger.exception("Failed to persist watchdog state; exiting")
        return ExitCode.STATE_UNWRITABLE


if __name__ == "__main__":
    sys.exit(main())
