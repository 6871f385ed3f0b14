import os
import pytest

from wifi_watchdog.models import CandidateNetwork
from wifi_watchdog.network_config import ConfigError, load, parse


# ========
# FIXTURES
# ========
@pytest.fixture
def write_config(tmp_path):
    """Write config text to a temp tether.toml and return its path"""
    def _write(text: str):
        path = tmp_path / "tether.toml"
        path.write_text(text)
        return path
    return _write


# ==============================
# TEST GROUP: Config file loading
# ==============================
# Function: load()
# ----------------
def test_missing_file_means_not_onboarded(tmp_path):
    """First boot: no file → not onboarded, zero candidates, no error"""
    snapshot = load(tmp_path / "absent.toml")

    assert snapshot.onboarded is False
    assert snapshot.candidates == ()
    assert snapshot.primary_ssid == ""


def test_empty_file_means_not_onboarded(write_config):
    snapshot = load(write_config(""))

    assert snapshot.onboarded is False
    assert snapshot.candidates == ()


@pytest.mark.skipif(os.geteuid() == 0, reason="root can read mode 000 files")
def test_unreadable_file_raises(write_config):
    path = write_config("onboarded = true\n")
    path.chmod(0o000)
    try:
        with pytest.raises(ConfigError):
            load(path)
    finally:
        path.chmod(0o644)


def test_undecodable_file_raises(tmp_path):
    path = tmp_path / "tether.toml"
    path.write_bytes(b"onboarded = true\n\xff\xfe\xfa\n")

    with pytest.raises(ConfigError):
        load(path)


def test_full_config(write_config):
    path = write_config(
        """
        # Tether configuration
        onboarded = true
        primary_ssid = "Office"

        [[wifi_networks]]
        ssid = "Home"
        password = "hunter22"

        [[wifi_networks]]
        ssid = "Office"
        psk = 'c0rp'

        [[wifi.networks]]
        ssid = "Cafe"
        """
    )

    snapshot = load(path)

    assert snapshot.onboarded is True
    assert snapshot.primary_ssid == "Office"
    assert snapshot.candidates == (
        CandidateNetwork("Home", "hunter22"),
        CandidateNetwork("Office", "c0rp"),
        CandidateNetwork("Cafe", ""),
    )


# =====================================
# TEST GROUP: Line-oriented subset rules
# =====================================
# Function: parse()
# -----------------
@pytest.mark.parametrize(
    "text, expected_ssids",
    [
        # ✅ EOF closes the last block
        ("[[wifi_networks]]\nssid = \"A\"", ["A"]),

        # ✅ A new header closes the previous block
        ("[[wifi_networks]]\nssid = \"A\"\n[[wifi_networks]]\nssid = \"B\"", ["A", "B"]),

        # ✅ A different section closes the block; its keys are not networks
        ("[[wifi_networks]]\nssid = \"A\"\n[bluetooth]\nssid = \"X\"", ["A"]),

        # ❌ Empty ssid is dropped silently
        ("[[wifi_networks]]\nssid = \"\"\npassword = \"p\"\n[[wifi_networks]]\nssid = \"B\"", ["B"]),

        # ❌ Block without ssid is dropped
        ("[[wifi_networks]]\npassword = \"p\"", []),

        # ⚠️ Duplicate ssid keeps the first occurrence
        ("[[wifi_networks]]\nssid = \"A\"\n[[wifi_networks]]\nssid = \"B\"\n[[wifi_networks]]\nssid = \"A\"", ["A", "B"]),

        # ✅ Comments and blank lines ignored
        ("# comment\n\n[[wifi_networks]]\n   # indented comment\nssid = \"A\"  \n", ["A"]),
    ],
)
def test_block_closing(text, expected_ssids):
    snapshot = parse(text.splitlines())

    assert [c.ssid for c in snapshot.candidates] == expected_ssids


@pytest.mark.parametrize(
    "line, expected",
    [
        ("onboarded = true", True),
        ("onboarded = TRUE", True),
        ("onboarded = \"true\"", True),
        ("setup_completed = true", True),
        ("onboarded = false", False),
        ("onboarded = yes", False),
    ],
)
def test_onboarded_flag(line, expected):
    assert parse([line]).onboarded is expected


def test_primary_network_alias():
    snapshot = parse(["primary_network = 'Home'"])

    assert snapshot.primary_ssid == "Home"


def test_is_primary_flag_used_when_no_top_level_primary():
    snapshot = parse([
        "[[wifi_networks]]", "ssid = \"A\"",
        "[[wifi_networks]]", "ssid = \"B\"", "is_primary = true",
    ])

    assert snapshot.primary_ssid == "B"


def test_top_level_primary_wins_over_flag():
    snapshot = parse([
        "primary_ssid = \"A\"",
        "[[wifi_networks]]", "ssid = \"A\"",
        "[[wifi_networks]]", "ssid = \"B\"", "is_primary = true",
    ])

    assert snapshot.primary_ssid == "A"


def test_quoted_value_keeps_inner_hash_and_drops_comment():
    snapshot = parse([
        "[[wifi_networks]]",
        "ssid = \"Cafe #1\"  # the one downstairs",
        "password = unquoted # trailing comment",
    ])

    assert snapshot.candidates == (CandidateNetwork("Cafe #1", "unquoted"),)


def test_top_level_keys_inside_block_are_not_top_level():
    """`onboarded` inside a network block is not the onboarding flag"""
    snapshot = parse(["[[wifi_networks]]", "ssid = \"A\"", "onboarded = true"])

    assert snapshot.onboarded is False
