import pytest

from wifi_watchdog.models import CandidateNetwork, ConfigurationSnapshot
from wifi_watchdog.selection_policy import FailoverPolicy, failover_policy, trial_order


def snapshot(ssids, primary=""):
    return ConfigurationSnapshot(
        onboarded=True,
        primary_ssid=primary,
        candidates=tuple(CandidateNetwork(s, f"pw-{s}") for s in ssids),
    )


# ===========================
# TEST GROUP: Trial ordering
# ===========================
# Function: trial_order()
# -----------------------
@pytest.mark.parametrize(
    "ssids, primary, expected",
    [
        # ✅ No primary: configuration order
        (["Home", "Office", "Cafe"], "", ["Home", "Office", "Cafe"]),

        # ✅ Primary moves to the front, the rest keep their order
        (["Home", "Office", "Cafe"], "Cafe", ["Cafe", "Home", "Office"]),

        # ✅ Primary already first
        (["Home", "Office"], "Home", ["Home", "Office"]),

        # ⚠️ Primary names a network that is not configured
        (["Home", "Office"], "Elsewhere", ["Home", "Office"]),

        # ❌ Nothing configured
        ([], "Home", []),
    ],
)
def test_trial_order(ssids, primary, expected):
    assert [n.ssid for n in trial_order(snapshot(ssids, primary))] == expected


def test_trial_order_never_repeats_an_ssid():
    """Even a snapshot built by hand with duplicates yields each SSID once"""
    snap = ConfigurationSnapshot(
        onboarded=True,
        primary_ssid="Home",
        candidates=(
            CandidateNetwork("Home", "a"),
            CandidateNetwork("Office", "b"),
            CandidateNetwork("Home", "c"),
        ),
    )

    ordered = trial_order(snap)

    assert [n.ssid for n in ordered] == ["Home", "Office"]
    assert ordered[0].password == "a"


def test_trial_order_keeps_credentials():
    ordered = trial_order(snapshot(["Home"]))

    assert ordered == [CandidateNetwork("Home", "pw-Home")]


# =============================
# TEST GROUP: Policy summary
# =============================
def test_policy_summary():
    summary = FailoverPolicy(settle_delay_s=1).summary()

    assert summary["settle_delay_s"] == 1
    assert {"max_connection_attempts", "retry_delay_s", "connection_timeout_s"} <= summary.keys()


def test_default_policy_settle_delay():
    assert failover_policy.settle_delay_s == 5
