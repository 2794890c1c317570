"""Typed models for the serial link and line protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TransportState(str, Enum):
    CLOSED = "Closed"
    OPEN = "Open"


class Command(str, Enum):
    RESET = "reset"
    PLAYER_FIRST = "player_first"
    AI_FIRST = "ai_first"
    PVP = "pvp"
    TOGGLE_LED_A = "led1"
    TOGGLE_LED_B = "led2"


class Outcome(str, Enum):
    X_WIN = "X win!"
    O_WIN = "O win!"
    AI_WIN = "AI win!"
    YOU_WIN = "You win!"
    DRAW = "Draw!"


@dataclass(frozen=True)
class SerialDevice:
    device: str
    description: str
    hwid: str
    vid: int | None
    pid: int | None


@dataclass(frozen=True)
class Response:
    raw: str
    snapshot: str | None
    outcome: Outcome | None = None
