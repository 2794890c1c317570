"""Persistent statistics, LED config, and session state with load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from tictac_link.transport import DEFAULT_BAUD, DEFAULT_PORT, MOCK_IN_NAME, MOCK_OUT_NAME

from .logging_setup import get_logger
from .stats import AiStats, GameMode, PvpStats, win_rate


STATE_VERSION = 2

SECTION_PVP = "PvP stats"
SECTION_AI = "AI stats"
SECTION_LEDS = "LED config"
SECTION_SESSION = "Session"
SECTION_DEVICE = "Device"

# v1 files used the controller's own counter names.
_LEGACY_PVP_KEYS = {
    "pvpGames": "games",
    "winsA": "wins_x",
    "lossesA": "losses_x",
    "drawsA": "draws_x",
    "winsB": "wins_o",
    "lossesB": "losses_o",
    "drawsB": "draws_o",
}
_LEGACY_AI_KEYS = {"aiGames": "games", "winRate": "win_rate"}
_LEGACY_LED_KEYS = {"led1": "led_a", "led2": "led_b"}


class PersistenceError(Exception):
    pass


@dataclass
class LedConfig:
    led_a: bool = False
    led_b: bool = False


@dataclass
class SessionConfig:
    mode: str = GameMode.PVP.value


@dataclass
class DeviceConfig:
    port: str = DEFAULT_PORT
    baud: int = DEFAULT_BAUD
    mock_out: str = MOCK_OUT_NAME
    mock_in: str = MOCK_IN_NAME


@dataclass
class AppState:
    state_version: int = STATE_VERSION
    pvp: PvpStats = field(default_factory=PvpStats)
    ai: AiStats = field(default_factory=AiStats)
    leds: LedConfig = field(default_factory=LedConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)


def state_path() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "TicTacLink" / "state.json"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "TicTacLink" / "state.json"
    return Path.home() / ".config" / "tictaclink" / "state.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _rename(raw: Any, mapping: dict[str, str]) -> dict[str, Any]:
    data = dict(raw) if isinstance(raw, dict) else {}
    for old, new in mapping.items():
        if old in data:
            data.setdefault(new, data.pop(old))
    return data


def _as_count(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _normalize_stats(state: AppState) -> None:
    for section in (state.pvp, state.ai):
        for name, value in asdict(section).items():
            setattr(section, name, _as_count(value))
    state.ai.win_rate = win_rate(state.ai.wins, state.ai.games)


def _normalize_leds(state: AppState) -> None:
    state.leds.led_a = bool(state.leds.led_a)
    state.leds.led_b = bool(state.leds.led_b)


def _normalize_session(state: AppState) -> None:
    if state.session.mode not in {m.value for m in GameMode}:
        state.session.mode = GameMode.PVP.value


def _normalize_device(state: AppState) -> None:
    state.device.port = str(state.device.port or DEFAULT_PORT)
    try:
        state.device.baud = int(state.device.baud)
    except (TypeError, ValueError):
        state.device.baud = DEFAULT_BAUD
    if state.device.baud <= 0:
        state.device.baud = DEFAULT_BAUD


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("state_version", 1))
    data = dict(raw)

    if version < 2:
        # v2 renames the counters and adds the session/device sections.
        data[SECTION_PVP] = _rename(data.get(SECTION_PVP), _LEGACY_PVP_KEYS)
        data[SECTION_AI] = _rename(data.get(SECTION_AI), _LEGACY_AI_KEYS)
        data[SECTION_LEDS] = _rename(data.get(SECTION_LEDS), _LEGACY_LED_KEYS)
        data.setdefault(SECTION_SESSION, {})
        data.setdefault(SECTION_DEVICE, {})
        data["state_version"] = 2

    return data


def load_state(path: Path | None = None) -> AppState:
    """Load the state file, falling back to defaults when it is missing or unreadable."""
    path = path or state_path()
    logger = get_logger()
    if not path.exists():
        logger.warning(f"state file {path} not found, using defaults", extra={"event": "state_missing"})
        return AppState()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning(f"state file {path} unreadable: {exc}", extra={"event": "state_unreadable"})
        return AppState()
    if not isinstance(raw, dict):
        logger.warning(f"state file {path} has no sections", extra={"event": "state_unreadable"})
        return AppState()

    data = _migrate(raw)
    state = AppState(
        state_version=STATE_VERSION,
        pvp=_merge(PvpStats, data.get(SECTION_PVP, {})),
        ai=_merge(AiStats, data.get(SECTION_AI, {})),
        leds=_merge(LedConfig, data.get(SECTION_LEDS, {})),
        session=_merge(SessionConfig, data.get(SECTION_SESSION, {})),
        device=_merge(DeviceConfig, data.get(SECTION_DEVICE, {})),
    )

    _normalize_stats(state)
    _normalize_leds(state)
    _normalize_session(state)
    _normalize_device(state)
    return state


def dump_state(state: AppState) -> dict[str, Any]:
    return {
        "state_version": STATE_VERSION,
        SECTION_PVP: asdict(state.pvp),
        SECTION_AI: asdict(state.ai),
        SECTION_LEDS: asdict(state.leds),
        SECTION_SESSION: asdict(state.session),
        SECTION_DEVICE: asdict(state.device),
    }


def save_state(state: AppState, path: Path | None = None) -> Path:
    """Overwrite the whole state file. Raises PersistenceError on I/O failure."""
    state.state_version = STATE_VERSION
    path = path or state_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(dump_state(state), indent=2, sort_keys=True), encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Unable to save state to {path}: {exc}") from exc
    return path
