"""Board state, statistics, persistence, and the device session controller."""

from .board import Board, Cell
from .config import AppState, LedConfig, PersistenceError, load_state, save_state, state_path
from .session import ExchangePhase, Intent, IntentKind, SessionController, SessionState
from .stats import AiStats, GameMode, PvpStats, StatisticsTracker, win_rate

__all__ = [
    "AiStats",
    "AppState",
    "Board",
    "Cell",
    "ExchangePhase",
    "GameMode",
    "Intent",
    "IntentKind",
    "LedConfig",
    "PersistenceError",
    "PvpStats",
    "SessionController",
    "SessionState",
    "StatisticsTracker",
    "load_state",
    "save_state",
    "state_path",
    "win_rate",
]
