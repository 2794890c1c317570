import json
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "device_link"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from tictac_core.config import AppState, PersistenceError, load_state, save_state


class StateTests(unittest.TestCase):
    def test_load_default_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            state = load_state(Path(tmp) / "missing.json")
            self.assertIsInstance(state, AppState)
            self.assertEqual(state.pvp.games, 0)
            self.assertEqual(state.ai.win_rate, 0)
            self.assertFalse(state.leds.led_a)
            self.assertEqual(state.session.mode, "pvp")
            self.assertEqual(state.device.port, "COM7")
            self.assertEqual(state.device.baud, 9600)

    def test_load_default_when_corrupt(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "state.json"
            path.write_text('{"PvP stats": {"games": 2', encoding="utf-8")
            self.assertEqual(load_state(path).pvp.games, 0)

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "state.json"
            state = load_state(path)
            state.pvp.games = 5
            state.pvp.wins_x = 3
            state.ai.games = 2
            state.ai.wins = 1
            state.leds.led_b = True
            state.session.mode = "ai_first"
            save_state(state, path)

            raw = json.loads(path.read_text(encoding="utf-8"))
            self.assertIn("PvP stats", raw)
            self.assertIn("AI stats", raw)
            self.assertIn("LED config", raw)

            reloaded = load_state(path)
            self.assertEqual(reloaded.pvp.games, 5)
            self.assertEqual(reloaded.pvp.wins_x, 3)
            self.assertEqual(reloaded.ai.win_rate, 50)
            self.assertTrue(reloaded.leds.led_b)
            self.assertEqual(reloaded.session.mode, "ai_first")

    def test_migrate_legacy_counter_names(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "state.json"
            old = {
                "PvP stats": {"pvpGames": 3, "winsA": 2, "lossesB": 2, "drawsA": 1, "drawsB": 1},
                "AI stats": {"aiGames": 4, "wins": 1, "winRate": 99},
                "LED config": {"led1": True, "led2": False},
            }
            path.write_text(json.dumps(old), encoding="utf-8")
            state = load_state(path)
            self.assertEqual(state.pvp.games, 3)
            self.assertEqual(state.pvp.wins_x, 2)
            self.assertEqual(state.pvp.losses_o, 2)
            self.assertEqual(state.ai.games, 4)
            self.assertEqual(state.ai.win_rate, 25)
            self.assertTrue(state.leds.led_a)
            self.assertEqual(state.session.mode, "pvp")

    def test_normalizes_bad_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "state.json"
            raw = {
                "state_version": 2,
                "PvP stats": {"games": -4, "wins_x": "x"},
                "Session": {"mode": "chess"},
                "Device": {"baud": 0},
            }
            path.write_text(json.dumps(raw), encoding="utf-8")
            state = load_state(path)
            self.assertEqual(state.pvp.games, 0)
            self.assertEqual(state.pvp.wins_x, 0)
            self.assertEqual(state.session.mode, "pvp")
            self.assertEqual(state.device.baud, 9600)

    def test_save_failure_raises_persistence_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_text("", encoding="utf-8")
            with self.assertRaises(PersistenceError):
                save_state(AppState(), blocker / "state.json")


if __name__ == "__main__":
    unittest.main()
