# ─── Standard library imports ───
import os
import tempfile
from pathlib import Path
from datetime import datetime, timezone

# ─── Project imports ───
from .logger import get_logger
from .models import Mode, WatchdogState


logger = get_logger("state_store")

STATE_HEADER = (
    "# Network watchdog state\n"
    "# Auto-generated - do not edit\n"
)

# Spellings written by older releases
LEGACY_MODES = {"wifi": Mode.STATION}

# Values are written verbatim except for these (one key per line)
ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r"}
UNESCAPES = {"n": "\n", "r": "\r"}


def _escape(value: str) -> str:
    return "".join(ESCAPES.get(ch, ch) for ch in value)


def _unescape(value: str) -> str:
    chars, out = iter(value), []
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "")
            out.append(UNESCAPES.get(nxt, nxt))
        else:
            out.append(ch)
    return "".join(out)


def _parse_mode(value: str) -> Mode:
    value = value.strip().lower()
    if value in LEGACY_MODES:
        return LEGACY_MODES[value]
    return Mode(value)


def load_state(path: str | Path) -> WatchdogState:
    """
    Return the last persisted WatchdogState.

    The file is only a hint for the first tick, so a missing, unreadable
    or inconsistent file is treated as UNKNOWN rather than an error.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug(f"No previous state at {path}")
        return WatchdogState()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(f"Cannot read state file {path} ({exc}); starting from UNKNOWN")
        return WatchdogState()

    values: dict[str, str] = {}
    # Only "\n" separates records; SSIDs may hold other line-break characters
    for line in text.split("\n"):
        if not line.strip() or line.lstrip().startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = _unescape(value)

    try:
        state = WatchdogState(
            mode=_parse_mode(values.get("mode", Mode.UNKNOWN.value)),
            active_ssid=values.get("ssid", ""),
            last_probe_epoch=int(values.get("last_check", "0") or 0),
        )
    except ValueError as exc:
        logger.warning(f"Ignoring inconsistent state file {path}: {exc}")
        return WatchdogState()

    logger.debug(f"Loaded state: mode={state.mode.value}, ssid={state.active_ssid}")
    return state


def render_state(state: WatchdogState, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return (
        STATE_HEADER
        + f"timestamp={now.strftime('%Y-%m-%dT%H:%M:%SZ')}\n"
        + f"mode={state.mode.value}\n"
        + f"ssid={_escape(state.active_ssid)}\n"
        + f"last_check={state.last_probe_epoch}\n"
    )


def store_state(path: str | Path, state: WatchdogState) -> None:
    """
    Atomically replace the state file.

    Raises:
        OSError: the state cannot be written. Not swallowed: the daemon
        relies on its supervisor to restart it.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(render_state(state))
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
