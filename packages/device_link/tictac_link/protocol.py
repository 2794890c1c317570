"""Line protocol spoken with the board controller.

Outgoing lines are either a move (``"<row>,<col>"``) or a bare keyword. The
controller answers every line with a nine character board snapshot, row
major, optionally followed by an outcome marker such as ``"X win!"``, which
may also arrive on a line of its own after the final snapshot. The
newline is the only framing, so payloads never contain one.
"""

from __future__ import annotations

from .models import Command, Outcome, Response


SNAPSHOT_LENGTH = 9
BOARD_SIZE = 3
LINE_END = b"\n"

# First match wins.
OUTCOME_MARKERS: tuple[Outcome, ...] = (
    Outcome.X_WIN,
    Outcome.O_WIN,
    Outcome.AI_WIN,
    Outcome.YOU_WIN,
    Outcome.DRAW,
)


def _frame(text: str) -> bytes:
    if "\n" in text or "\r" in text:
        raise ValueError("Protocol payload must not contain a line break")
    return text.encode("ascii") + LINE_END


def encode_move(row: int, col: int) -> bytes:
    if not (0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE):
        raise ValueError(f"Cell out of range: {row},{col}")
    return _frame(f"{int(row)},{int(col)}")


def encode_command(command: Command | str) -> bytes:
    return _frame(Command(command).value)


def match_outcome(text: str) -> Outcome | None:
    for marker in OUTCOME_MARKERS:
        if marker.value in text:
            return marker
    return None


def decode_response(raw: bytes | str) -> Response | None:
    """Decode one response line.

    A short line is either an outcome sent on its own line after the final
    snapshot (returned with ``snapshot=None``) or a partial read (None).
    """
    text = raw.decode("ascii", errors="replace") if isinstance(raw, bytes) else raw
    text = text.rstrip("\r\n")
    if len(text) < SNAPSHOT_LENGTH:
        outcome = match_outcome(text)
        if outcome is None:
            return None
        return Response(raw=text, snapshot=None, outcome=outcome)
    snapshot = text[:SNAPSHOT_LENGTH]
    return Response(raw=text, snapshot=snapshot, outcome=match_outcome(text[SNAPSHOT_LENGTH:]))
