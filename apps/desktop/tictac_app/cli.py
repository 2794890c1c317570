"""CLI entrypoints for TicTacLink: console play, scripted sessions, stats, and port listing."""

from __future__ import annotations

import argparse
import json
import re
import sys
from dataclasses import asdict
from pathlib import Path

from tictac_core import (
    GameMode,
    Intent,
    IntentKind,
    SessionController,
    load_state,
    state_path,
)
from tictac_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from tictac_link import Response, SerialTransport, TransportOpenError, open_transport, select_backend


_MOVE_RE = re.compile(r"^(?:move\s+)?([0-2])\s*[,\s]\s*([0-2])$")
_KEYWORD_INTENTS = {
    "reset": Intent(IntentKind.RESET),
    "poll": Intent(IntentKind.POLL),
    "pvp": Intent(IntentKind.SELECT_MODE, mode=GameMode.PVP),
    "player_first": Intent(IntentKind.SELECT_MODE, mode=GameMode.PLAYER_FIRST),
    "ai_first": Intent(IntentKind.SELECT_MODE, mode=GameMode.AI_FIRST),
    "led1": Intent(IntentKind.TOGGLE_LED, led="a"),
    "led2": Intent(IntentKind.TOGGLE_LED, led="b"),
}

PLAY_HELP = """commands:
  move R C | R C | R,C   place a mark (rows and columns 0-2)
  reset                  start a new game
  mode pvp|player_first|ai_first
  led a|b                toggle an indicator LED
  poll                   read a late response
  board | stats | help | quit"""


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def parse_intent(text: str) -> Intent | None:
    """Parse one line of the console/script grammar. Blank lines and # comments give None."""
    line = text.strip().lower()
    if not line or line.startswith("#"):
        return None

    match = _MOVE_RE.match(line)
    if match:
        return Intent(IntentKind.MOVE, row=int(match.group(1)), col=int(match.group(2)))
    if line in _KEYWORD_INTENTS:
        return _KEYWORD_INTENTS[line]

    parts = line.split()
    if len(parts) == 2 and parts[0] == "mode":
        return Intent(IntentKind.SELECT_MODE, mode=GameMode(parts[1]))
    if len(parts) == 2 and parts[0] == "led" and parts[1] in ("a", "b"):
        return Intent(IntentKind.TOGGLE_LED, led=parts[1])
    raise ValueError(f"Unrecognized command: {text.strip()!r}")


def _state_file(args: argparse.Namespace) -> Path:
    return Path(args.state).expanduser() if args.state else state_path()


def _open_session(args: argparse.Namespace) -> SessionController:
    path = _state_file(args)
    app_state = load_state(path)
    mock_dir = Path(args.mock_dir).expanduser().resolve() if args.mock_dir else None
    transport = open_transport(
        port=args.port or app_state.device.port,
        baud=app_state.device.baud,
        mock_dir=mock_dir,
        mock_out=app_state.device.mock_out,
        mock_in=app_state.device.mock_in,
    )
    get_logger().info(
        f"transport open backend={transport.backend}",
        extra={"event": "transport_open"},
    )
    return SessionController(transport, app_state=app_state, state_path=path)


def _response_payload(response: Response | None) -> dict[str, object] | None:
    if response is None:
        return None
    return {
        "raw": response.raw,
        "snapshot": response.snapshot,
        "outcome": response.outcome.value if response.outcome else None,
    }


def _session_summary(session: SessionController) -> dict[str, object]:
    return {
        "board": [[cell.value for cell in row] for row in session.board.rows()],
        "mode": session.mode.value,
        "phase": session.state.phase.value,
        "reset_pending": session.state.reset_pending,
        "game_over": session.state.game_over,
        "last_outcome": session.state.last_outcome.value if session.state.last_outcome else None,
        "stats": {"pvp": asdict(session.stats.pvp), "ai": asdict(session.stats.ai)},
        "leds": asdict(session.config),
    }


def _print_stats(session: SessionController) -> None:
    pvp = session.stats.pvp
    ai = session.stats.ai
    print(f"PvP  games={pvp.games} X {pvp.wins_x}/{pvp.losses_x}/{pvp.draws_x} O {pvp.wins_o}/{pvp.losses_o}/{pvp.draws_o}")
    print(f"AI   games={ai.games} wins={ai.wins} losses={ai.losses} draws={ai.draws} win_rate={ai.win_rate}%")


def _print_status(session: SessionController) -> None:
    print(session.board.render())
    state = session.state
    if state.game_over and state.last_outcome is not None:
        print(state.last_outcome.value)
    elif state.reset_pending:
        print("(waiting for the board to confirm the reset)")


def cmd_play(_args: argparse.Namespace, session: SessionController) -> int:
    print(PLAY_HELP)
    _print_status(session)
    while True:
        try:
            line = input(f"[{session.mode.value}]> ")
        except EOFError:
            break
        word = line.strip().lower()
        if word in ("quit", "exit", "q"):
            break
        if word == "help":
            print(PLAY_HELP)
            continue
        if word == "stats":
            _print_stats(session)
            continue
        if word == "board":
            _print_status(session)
            continue
        try:
            intent = parse_intent(line)
        except ValueError as exc:
            print(exc)
            continue
        if intent is None:
            continue
        session.dispatch(intent)
        _print_status(session)
    return 0


def cmd_script(args: argparse.Namespace, session: SessionController) -> int:
    try:
        lines = Path(args.file).read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        print(f"error: cannot read script {args.file}: {exc}", file=sys.stderr)
        return 2
    exchanges = 0
    for line_no, line in enumerate(lines, start=1):
        try:
            intent = parse_intent(line)
        except ValueError as exc:
            print(f"line {line_no}: {exc}", file=sys.stderr)
            return 2
        if intent is None:
            continue
        session.dispatch(intent)
        exchanges += 1
    payload = _session_summary(session)
    payload["intents"] = exchanges
    _print_json(payload)
    return 0


def cmd_send(args: argparse.Namespace, session: SessionController) -> int:
    try:
        intent = parse_intent(args.line)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    if intent is None:
        print("error: nothing to send", file=sys.stderr)
        return 2
    response = session.dispatch(intent)
    _print_json({"response": _response_payload(response), "session": _session_summary(session)})
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    app_state = load_state(_state_file(args))
    _print_json({"pvp": asdict(app_state.pvp), "ai": asdict(app_state.ai), "leds": asdict(app_state.leds)})
    return 0


def cmd_list_ports(_args: argparse.Namespace) -> int:
    _print_json(
        {
            "backend": select_backend(),
            "ports": [asdict(d) for d in SerialTransport.discover()],
        }
    )
    return 0


def _with_session(func):
    def run(args: argparse.Namespace) -> int:
        try:
            session = _open_session(args)
        except TransportOpenError as exc:
            get_logger().error(str(exc), extra={"event": "transport_open_failed"})
            print(f"error: {exc}", file=sys.stderr)
            return 1
        with session:
            return func(args, session)

    return run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tictaclink", description="Tic-tac-toe client for the serial game board")
    parser.add_argument("--state", default=None, help="Path to the statistics/config state file")
    parser.add_argument("--port", default=None, help="Serial port override (default from state file, COM7)")
    parser.add_argument("--mock-dir", default=None, help="Directory holding the mock serial files when CI is set")
    parser.add_argument("--verbose", action="store_true", help="Log protocol traffic to the console")
    sub = parser.add_subparsers(dest="command", required=True)

    play_cmd = sub.add_parser("play", help="Interactive console game")
    play_cmd.set_defaults(func=_with_session(cmd_play))

    script_cmd = sub.add_parser("script", help="Run intents from a file, one per line")
    script_cmd.add_argument("file", help="Path to the intent script")
    script_cmd.set_defaults(func=_with_session(cmd_script))

    send_cmd = sub.add_parser("send", help="Send a single move or command")
    send_cmd.add_argument("line", help='Move as "R,C" or a keyword such as reset, pvp, led1')
    send_cmd.set_defaults(func=_with_session(cmd_send))

    stats_cmd = sub.add_parser("stats", help="Print saved statistics")
    stats_cmd.set_defaults(func=cmd_stats)

    ports_cmd = sub.add_parser("list-ports", help="List serial ports")
    ports_cmd.set_defaults(func=cmd_list_ports)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(_state_file(args), verbose=args.verbose)
    if args.command == "play":
        install_crash_hooks()
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
