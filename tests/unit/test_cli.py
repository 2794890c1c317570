import json
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "desktop"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "device_link"))

import pytest

from tictac_app.cli import build_parser, parse_intent
from tictac_core import GameMode, IntentKind
from tictac_link.transport import MOCK_IN_NAME, MOCK_OUT_NAME


class ParserTests(unittest.TestCase):
    def test_play_command(self):
        args = build_parser().parse_args(["play"])
        self.assertEqual(args.command, "play")

    def test_global_options(self):
        args = build_parser().parse_args(["--state", "s.json", "--port", "/dev/ttyACM0", "stats"])
        self.assertEqual(args.command, "stats")
        self.assertEqual(args.state, "s.json")
        self.assertEqual(args.port, "/dev/ttyACM0")

    def test_script_command(self):
        args = build_parser().parse_args(["--mock-dir", "ci", "script", "moves.txt"])
        self.assertEqual(args.command, "script")
        self.assertEqual(args.file, "moves.txt")
        self.assertEqual(args.mock_dir, "ci")

    def test_send_command(self):
        args = build_parser().parse_args(["send", "1,2"])
        self.assertEqual(args.line, "1,2")


class ParseIntentTests(unittest.TestCase):
    def test_moves(self):
        for text in ("move 1 2", "1 2", "1,2", " 1, 2 "):
            intent = parse_intent(text)
            self.assertEqual((intent.kind, intent.row, intent.col), (IntentKind.MOVE, 1, 2))

    def test_keywords(self):
        self.assertEqual(parse_intent("RESET").kind, IntentKind.RESET)
        self.assertEqual(parse_intent("mode ai_first").mode, GameMode.AI_FIRST)
        self.assertEqual(parse_intent("player_first").mode, GameMode.PLAYER_FIRST)
        self.assertEqual(parse_intent("led b").led, "b")
        self.assertEqual(parse_intent("led1").led, "a")
        self.assertEqual(parse_intent("poll").kind, IntentKind.POLL)

    def test_blank_and_comment(self):
        self.assertIsNone(parse_intent("   "))
        self.assertIsNone(parse_intent("# opening"))

    def test_rejects_garbage(self):
        for text in ("3 3", "mode chess", "led c", "jump"):
            with self.assertRaises(ValueError):
                parse_intent(text)


def test_script_runs_against_mock_files(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("CI", "true")
    (tmp_path / MOCK_IN_NAME).write_text("         \nX        \nXO       \n", encoding="ascii")
    script = tmp_path / "game.txt"
    script.write_text("# new game\nmode pvp\n0 0\nmove 0 1\n", encoding="utf-8")
    state = tmp_path / "state.json"

    args = build_parser().parse_args(
        ["--state", str(state), "--mock-dir", str(tmp_path), "script", str(script)]
    )
    rc = args.func(args)

    assert rc == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["intents"] == 3
    assert summary["board"][0] == ["X", "O", " "]
    assert summary["reset_pending"] is False
    assert (tmp_path / MOCK_OUT_NAME).read_text(encoding="ascii") == "pvp\n0,0\n0,1\n"
    assert json.loads(state.read_text(encoding="utf-8"))["Session"]["mode"] == "pvp"


def test_missing_port_exits_non_zero(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.delenv("CI", raising=False)
    args = build_parser().parse_args(
        ["--state", str(tmp_path / "state.json"), "--port", "/dev/tictaclink-does-not-exist", "send", "reset"]
    )
    rc = args.func(args)

    assert rc == 1
    assert "error:" in capsys.readouterr().err


def test_stats_prints_saved_counters(tmp_path, capsys) -> None:
    state = tmp_path / "state.json"
    state.write_text(json.dumps({"state_version": 2, "AI stats": {"games": 2, "wins": 1}}), encoding="utf-8")
    args = build_parser().parse_args(["--state", str(state), "stats"])

    assert args.func(args) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["ai"]["win_rate"] == 50
    assert out["pvp"]["games"] == 0


def test_script_file_missing_is_reported(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("CI", "true")
    (tmp_path / MOCK_IN_NAME).write_text("", encoding="ascii")
    args = build_parser().parse_args(
        ["--state", str(tmp_path / "state.json"), "--mock-dir", str(tmp_path), "script", str(tmp_path / "nope.txt")]
    )

    assert args.func(args) == 2
    captured = capsys.readouterr()
    assert "error: cannot read script" in captured.err
    assert captured.out == ""


if __name__ == "__main__":
    unittest.main()
