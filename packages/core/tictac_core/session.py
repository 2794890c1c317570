"""Session controller: one request/response exchange per user intent."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from tictac_link import Command, Response, Transport, TransportIOError, decode_response, encode_command, encode_move
from tictac_link.models import Outcome

from .board import Board, Cell
from .config import AppState, LedConfig, PersistenceError, save_state
from .logging_setup import get_logger, trace
from .stats import GameMode, StatisticsTracker


class ExchangePhase(str, Enum):
    IDLE = "Idle"
    AWAITING_RESPONSE = "AwaitingResponse"


class IntentKind(str, Enum):
    MOVE = "move"
    RESET = "reset"
    SELECT_MODE = "mode"
    TOGGLE_LED = "led"
    POLL = "poll"


@dataclass(frozen=True)
class Intent:
    kind: IntentKind
    row: int = 0
    col: int = 0
    mode: GameMode | None = None
    led: str | None = None


@dataclass
class SessionState:
    board: Board = field(default_factory=Board)
    mode: GameMode = GameMode.PVP
    phase: ExchangePhase = ExchangePhase.IDLE
    reset_pending: bool = False
    game_over: bool = False
    last_outcome: Outcome | None = None
    last_response: str | None = None
    last_error: str | None = None
    line_expected: bool = False


_MODE_COMMANDS = {
    GameMode.PVP: Command.PVP,
    GameMode.PLAYER_FIRST: Command.PLAYER_FIRST,
    GameMode.AI_FIRST: Command.AI_FIRST,
}
_LED_COMMANDS = {"a": Command.TOGGLE_LED_A, "b": Command.TOGGLE_LED_B}


class SessionController:
    """Owns the transport and keeps board, statistics and config in sync with the device.

    Every intent results in at most one write followed by exactly one read.
    Moves are dropped while a reset is unacknowledged or the game is over.
    """

    def __init__(self, transport: Transport, app_state: AppState | None = None, state_path: Path | None = None) -> None:
        self._transport = transport
        self.app_state = app_state or AppState()
        self.state_path = state_path
        self.stats = StatisticsTracker(self.app_state.pvp, self.app_state.ai)
        self.state = SessionState(mode=GameMode(self.app_state.session.mode))
        self._events: list[dict[str, Any]] = []
        self._logger = get_logger()

    @property
    def board(self) -> Board:
        return self.state.board

    @property
    def mode(self) -> GameMode:
        return self.state.mode

    @property
    def config(self) -> LedConfig:
        return self.app_state.leds

    @property
    def transport(self) -> Transport:
        return self._transport

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        return self._events[-limit:]

    def _log_event(self, event: str, level: int = logging.DEBUG, **fields: Any) -> None:
        row = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "phase": self.state.phase.value,
        }
        row.update(fields)
        self._events.append(row)
        if len(self._events) > 1000:
            self._events = self._events[-1000:]
        trace(self._logger, event, self.state.phase.value, level, **fields)

    def close(self) -> None:
        self._transport.close()
        self._log_event("close")

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    # Intents

    def dispatch(self, intent: Intent) -> Response | None:
        if intent.kind is IntentKind.MOVE:
            return self.move(intent.row, intent.col)
        if intent.kind is IntentKind.RESET:
            return self.reset()
        if intent.kind is IntentKind.SELECT_MODE:
            if intent.mode is None:
                raise ValueError("Mode intent without a mode")
            return self.select_mode(intent.mode)
        if intent.kind is IntentKind.TOGGLE_LED:
            if intent.led is None:
                raise ValueError("LED intent without an LED")
            return self.toggle_led(intent.led)
        return self.poll()

    def move(self, row: int, col: int) -> Response | None:
        payload = encode_move(row, col)
        if self.state.reset_pending:
            self._log_event("move_ignored", reason="reset_pending", row=row, col=col)
            return None
        if self.state.game_over:
            self._log_event("move_ignored", reason="game_over", row=row, col=col)
            return None
        if self.state.board.cell(row, col) is not Cell.EMPTY:
            self._log_event("move_ignored", reason="occupied", row=row, col=col)
            return None
        return self._exchange(payload)

    def reset(self) -> Response | None:
        return self._exchange(encode_command(Command.RESET), on_sent=self._begin_new_game)

    def select_mode(self, mode: GameMode) -> Response | None:
        mode = GameMode(mode)

        def _switch() -> None:
            self.state.mode = mode
            self.app_state.session.mode = mode.value
            self._persist("mode_saved", mode=mode.value)
            self._begin_new_game()

        return self._exchange(encode_command(_MODE_COMMANDS[mode]), on_sent=_switch)

    def toggle_led(self, which: str) -> Response | None:
        key = which.lower()
        if key not in _LED_COMMANDS:
            raise ValueError(f"Unknown LED: {which}")

        def _flip() -> None:
            leds = self.app_state.leds
            if key == "a":
                leds.led_a = not leds.led_a
            else:
                leds.led_b = not leds.led_b
            self._persist("led_saved", led_a=leds.led_a, led_b=leds.led_b)

        return self._exchange(encode_command(_LED_COMMANDS[key]), on_sent=_flip)

    def poll(self) -> Response | None:
        """Read one more line for the last command sent.

        Picks up a reply that was empty or cut short, or an outcome the
        device sends on its own line after the final snapshot. Does nothing
        until a write has succeeded, and after a failed one.
        """
        if not self.state.line_expected:
            return None
        return self._receive()

    # Exchange

    def _begin_new_game(self) -> None:
        # Local clear for immediate feedback; the next snapshot is authoritative.
        self.state.board.reset()
        self.state.reset_pending = True
        self.state.game_over = False
        self.state.last_outcome = None

    def _exchange(self, payload: bytes, on_sent: Callable[[], None] | None = None) -> Response | None:
        self.state.phase = ExchangePhase.AWAITING_RESPONSE
        try:
            self._transport.write(payload)
        except TransportIOError as exc:
            self.state.phase = ExchangePhase.IDLE
            self.state.line_expected = False
            self._io_failed("write_error", exc)
            return None
        self.state.line_expected = True
        self._log_event("sent", payload=payload.decode("ascii").rstrip("\n"))
        if on_sent is not None:
            on_sent()
        return self._receive()

    def _receive(self) -> Response | None:
        try:
            raw = self._transport.read()
        except TransportIOError as exc:
            self._io_failed("read_error", exc)
            return None

        if not raw:
            self._log_event("no_response")
            return None

        text = raw.decode("ascii", errors="replace").rstrip("\r\n")
        response = decode_response(raw)
        if response is not None and response.snapshot is None and self.state.reset_pending:
            # Result of the game that was just abandoned; the reset is still unacknowledged.
            self._log_event("stale_outcome", raw=text)
            return None

        self.state.reset_pending = False
        self.state.last_response = text
        if response is None:
            self._log_event("malformed_response", raw=text)
            return None

        self.state.phase = ExchangePhase.IDLE
        self.state.last_error = None
        self._apply(response)
        return response

    def _apply(self, response: Response) -> None:
        if response.snapshot is not None:
            self.state.board.reconcile(response.snapshot)
            self._log_event("reconciled", snapshot=response.snapshot)
        if response.outcome is None or self.state.game_over:
            return

        self.state.game_over = True
        self.state.last_outcome = response.outcome
        bucket = self.stats.record(response.outcome, self.state.mode)
        if bucket is None:
            self._log_event(
                "outcome_unmapped",
                logging.WARNING,
                outcome=response.outcome.value,
                mode=self.state.mode.value,
            )
            return
        self._log_event(
            "game_over",
            logging.INFO,
            outcome=response.outcome.value,
            mode=self.state.mode.value,
            bucket=bucket,
        )
        self._persist("stats_saved", bucket=bucket)

    def _io_failed(self, event: str, exc: TransportIOError) -> None:
        self.state.last_error = str(exc)
        self._log_event(event, logging.WARNING, error=str(exc))

    def _persist(self, event: str, **fields: Any) -> None:
        if self.state_path is None:
            return
        try:
            save_state(self.app_state, self.state_path)
        except PersistenceError as exc:
            self._log_event("save_error", logging.WARNING, error=str(exc))
            return
        self._log_event(event, **fields)
