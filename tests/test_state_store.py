import pytest
from datetime import datetime, timezone

from wifi_watchdog.models import Mode, WatchdogState
from wifi_watchdog.state_store import load_state, render_state, store_state


# ==========================
# TEST GROUP: State invariant
# ==========================
# Class: WatchdogState
# --------------------
@pytest.mark.parametrize(
    "mode, ssid",
    [
        # ❌ Station / AP must name their network
        (Mode.STATION, ""),
        (Mode.ACCESS_POINT, ""),

        # ❌ Disconnected / unknown must not
        (Mode.DISCONNECTED, "Home"),
        (Mode.UNKNOWN, "Home"),
    ],
)
def test_inconsistent_state_rejected(mode, ssid):
    with pytest.raises(ValueError):
        WatchdogState(mode, ssid)


def test_describe():
    assert WatchdogState.station("Home").describe() == "STATION(Home)"
    assert WatchdogState.disconnected().describe() == "DISCONNECTED"


# ==============================
# TEST GROUP: Persisted state file
# ==============================
# Functions: store_state() / load_state()
# ---------------------------------------
@pytest.mark.parametrize(
    "state",
    [
        WatchdogState.station("Home", 1700000000),
        WatchdogState.access_point("TetherSetup", 42),
        WatchdogState.disconnected(7),
    ],
)
def test_store_then_load(tmp_path, state):
    path = tmp_path / "data" / "watchdog.state"

    store_state(path, state)

    assert load_state(path) == state


@pytest.mark.parametrize(
    "ssid",
    [
        # ⚠️ Leading / trailing spaces are legal in an SSID
        " Home ",
        "Home\t",

        # ⚠️ Characters that would otherwise break the key=value layout
        "Line\nBreak",
        "Carriage\rReturn",
        "back\\slash",
        "mode=ap",
        "Cafe Upstairs",
    ],
)
def test_ssid_survives_store_then_load(tmp_path, ssid):
    path = tmp_path / "watchdog.state"

    store_state(path, WatchdogState.station(ssid, 5))

    assert load_state(path) == WatchdogState.station(ssid, 5)


def test_ssid_with_newline_cannot_inject_keys(tmp_path):
    path = tmp_path / "watchdog.state"

    store_state(path, WatchdogState.station("Home\nmode=disconnected", 5))

    text = path.read_text(encoding="utf-8")
    assert [line for line in text.split("\n") if line.startswith("mode=")] == ["mode=station"]


def test_store_replaces_and_leaves_no_temp_files(tmp_path):
    path = tmp_path / "watchdog.state"

    store_state(path, WatchdogState.station("Home", 1))
    store_state(path, WatchdogState.disconnected(2))

    assert load_state(path) == WatchdogState.disconnected(2)
    assert [p.name for p in tmp_path.iterdir()] == ["watchdog.state"]


def test_store_failure_propagates(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    with pytest.raises(OSError):
        store_state(blocker / "watchdog.state", WatchdogState.disconnected())


def test_render_format():
    text = render_state(
        WatchdogState.station("Home", 1700000000),
        now=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )

    lines = text.splitlines()
    assert lines[0].startswith("#")
    assert "timestamp=2026-01-02T03:04:05Z" in lines
    assert "mode=station" in lines
    assert "ssid=Home" in lines
    assert "last_check=1700000000" in lines


def test_missing_state_is_unknown(tmp_path):
    assert load_state(tmp_path / "absent.state") == WatchdogState()


@pytest.mark.parametrize(
    "content, expected",
    [
        # ✅ Older releases wrote "wifi" for station mode
        ("mode=wifi\nssid=Home\nlast_check=5\n", WatchdogState.station("Home", 5)),

        # ✅ AP spelled on disk as "ap"
        ("mode=ap\nssid=TetherSetup\n", WatchdogState.access_point("TetherSetup")),

        # ❌ Unknown mode
        ("mode=mesh\nssid=Home\n", WatchdogState()),

        # ❌ Violates the ssid invariant
        ("mode=station\nssid=\n", WatchdogState()),

        # ❌ Garbage epoch
        ("mode=disconnected\nssid=\nlast_check=soon\n", WatchdogState()),

        # ⚠️ Empty file
        ("", WatchdogState()),
    ],
)
def test_load_tolerates_bad_files(tmp_path, content, expected):
    path = tmp_path / "watchdog.state"
    path.write_text(content)

    assert load_state(path) == expected
