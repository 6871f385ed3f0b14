import pytest
from unittest.mock import MagicMock, patch

from wifi_watchdog.access_point import AccessPointProfile
from wifi_watchdog.nmcli import CommandResult, NmcliOutcome
from wifi_watchdog.station import ConnectOutcome, StationManager


def result(outcome, returncode=0, stderr=""):
    return CommandResult(outcome, returncode, "", stderr)


SUCCESS = result(NmcliOutcome.SUCCESS)
TIMEOUT = result(NmcliOutcome.TIMEOUT, 3, "Error: Timeout expired")
ACTIVATION = result(NmcliOutcome.ACTIVATION_FAILED, 4, "Error: Secrets were required")
NOT_FOUND = result(NmcliOutcome.NOT_FOUND, 10, "Error: No network with SSID 'Home' found")
NM_DOWN = result(NmcliOutcome.NM_NOT_RUNNING, 8, "Error: NetworkManager is not running")
ODD = result(NmcliOutcome.UNKNOWN, 65, "weird")


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("wifi_watchdog.station.time.sleep", return_value=None) as mock_sleep:
        yield mock_sleep


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def catalog():
    catalog = MagicMock()
    catalog.resolve_profile.return_value = None
    catalog.active_connection.return_value = None
    return catalog


@pytest.fixture
def access_point():
    ap = MagicMock()
    ap.profile = AccessPointProfile()
    ap.is_active.return_value = False
    return ap


@pytest.fixture
def station(client, catalog, access_point):
    return StationManager(
        client, catalog, access_point,
        interface="wlan0", max_attempts=3, retry_delay_s=2, connection_timeout_s=30,
    )


# =================================
# TEST GROUP: Connecting a station
# =================================
# Function: StationManager.connect()
# ----------------------------------
@pytest.mark.parametrize(
    "attempts, expected_outcome, expected_calls",
    [
        # ✅ First attempt succeeds
        ([SUCCESS], ConnectOutcome.CONNECTED, 1),

        # ✅ Succeeds after transient failures
        ([TIMEOUT, ACTIVATION, SUCCESS], ConnectOutcome.CONNECTED, 3),

        # ❌ Every attempt times out, last outcome reported
        ([TIMEOUT, TIMEOUT, TIMEOUT], ConnectOutcome.TIMED_OUT, 3),

        # ❌ Unknown exit codes are retryable activation failures
        ([ODD, ODD, ODD], ConnectOutcome.ACTIVATION_FAILED, 3),

        # 🛑 NOT_FOUND short-circuits the retries
        ([NOT_FOUND], ConnectOutcome.NOT_FOUND, 1),

        # 🛑 NetworkManager gone short-circuits the retries
        ([TIMEOUT, NM_DOWN], ConnectOutcome.MANAGER_UNAVAILABLE, 2),
    ],
)
def test_connect_retries(station, client, no_sleep, attempts, expected_outcome, expected_calls):
    client.wifi_connect.side_effect = attempts

    outcome = station.connect("Home", "hunter22")

    assert outcome == expected_outcome
    assert client.wifi_connect.call_count == expected_calls


def test_connect_sleeps_between_attempts_only(station, client, no_sleep):
    client.wifi_connect.side_effect = [TIMEOUT, TIMEOUT, TIMEOUT]

    station.connect("Home")

    assert no_sleep.call_count == 2
    no_sleep.assert_called_with(2)


def test_connect_uses_saved_profile(station, client, catalog):
    catalog.resolve_profile.return_value = "home-profile"
    client.connection_up.return_value = SUCCESS

    assert station.connect("Home", "ignored") == ConnectOutcome.CONNECTED
    client.connection_up.assert_called_once_with("home-profile", wait=30)
    client.wifi_connect.assert_not_called()


def test_connect_new_network_passes_credentials(station, client):
    client.wifi_connect.return_value = SUCCESS

    station.connect("Cafe", "")

    client.wifi_connect.assert_called_once_with("Cafe", "", "wlan0", wait=30)


def test_connect_disables_active_access_point_first(station, client, access_point):
    access_point.is_active.return_value = True
    client.wifi_connect.return_value = SUCCESS

    station.connect("Home", "hunter22")

    access_point.disable.assert_called_once()


def test_connect_leaves_inactive_access_point_alone(station, client, access_point):
    client.wifi_connect.return_value = SUCCESS

    station.connect("Home", "hunter22")

    access_point.disable.assert_not_called()


# ====================================
# TEST GROUP: Disconnecting a station
# ====================================
# Function: StationManager.disconnect()
# -------------------------------------
def test_disconnect_active_station(station, client, catalog):
    catalog.active_connection.return_value = "Home"
    client.connection_down.return_value = SUCCESS

    assert station.disconnect() is True
    client.connection_down.assert_called_once_with("Home")


@pytest.mark.parametrize("active", [None, "TetherSetup"])
def test_disconnect_nothing_to_do(station, client, catalog, active):
    """Never tears down the AP through the station path"""
    catalog.active_connection.return_value = active

    assert station.disconnect() is False
    client.connection_down.assert_not_called()
