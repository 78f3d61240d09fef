import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from parkour_monitor import live_monitor, webserver
from parkour_monitor.log_parser import parse_logs
from parkour_monitor.log_simulator import SimulationManager
from parkour_monitor.reconciler import ReconcileOutcome, Reconciler, Selection

LOG_TWO_CHECKPOINTS = "\n".join([
    "[11:59:00] [Client thread/INFO]: Setting user: Alice",
    "[12:00:00] [Client thread/INFO]: [CHAT] Parkour Duels",
    "[12:00:10] [Client thread/INFO]: [CHAT] CHECKPOINT! You reached checkpoint 1 in 0:10.000!",
    "[12:00:11] [Client thread/INFO]: [CHAT] CHECKPOINT! Bob reached checkpoint 1 in 0:11.000!",
])


class HashContentTests(unittest.TestCase):
    def test_same_content_same_hash(self):
        self.assertEqual(live_monitor.hash_content("abc"), live_monitor.hash_content("abc"))

    def test_small_change_detected(self):
        self.assertNotEqual(live_monitor.hash_content("abc"), live_monitor.hash_content("abd"))

    def test_growth_detected_for_large_logs(self):
        base = "x" * 5000
        self.assertNotEqual(live_monitor.hash_content(base), live_monitor.hash_content(base + "y"))


class LogWatcherTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "latest.log"
        self.path.write_text("first", encoding="utf-8")

    def tearDown(self):
        self.tmp.cleanup()

    def test_delivers_full_content_once(self):
        watcher = live_monitor.LogWatcher(self.path, debounce=2.0)
        self.assertEqual(watcher.poll(now=0.0), "first")
        self.assertIsNone(watcher.poll(now=10.0))

    def test_debounce_delays_next_delivery(self):
        watcher = live_monitor.LogWatcher(self.path, debounce=2.0)
        watcher.poll(now=0.0)
        self.path.write_text("first\nsecond", encoding="utf-8")
        self.assertIsNone(watcher.poll(now=1.0))
        self.assertEqual(watcher.poll(now=2.5), "first\nsecond")

    def test_missing_file(self):
        watcher = live_monitor.LogWatcher(Path(self.tmp.name) / "nope.log")
        self.assertIsNone(watcher.poll(now=0.0))


class ResolveLogPathTests(unittest.TestCase):
    def test_explicit_missing_path_raises(self):
        with self.assertRaises(FileNotFoundError):
            live_monitor.resolve_log_path("/definitely/not/here/latest.log")

    def test_find_log_path_required(self):
        with mock.patch.object(live_monitor, "default_log_paths", return_value=[]):
            self.assertIsNone(live_monitor.find_log_path())
            with self.assertRaises(live_monitor.LogNotFoundError):
                live_monitor.find_log_path(required=True)


class ProcessDeliveryTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.output = Path(self.tmp.name) / "live_session.json"
        self.patches = [
            mock.patch.object(live_monitor, "OUTPUT_JSON", self.output),
            mock.patch.object(live_monitor, "reconciler", Reconciler()),
            mock.patch.dict(live_monitor.state, {"session": None, "selection": Selection()}),
            mock.patch.object(live_monitor, "_print_terminal_snapshot"),
        ]
        for p in self.patches:
            p.start()
        webserver.set_published(None)

    def tearDown(self):
        for p in reversed(self.patches):
            p.stop()
        webserver.set_published(None)
        self.tmp.cleanup()

    def test_first_delivery_exports_json(self):
        result = live_monitor.process_delivery(LOG_TWO_CHECKPOINTS)
        self.assertIs(result.outcome, ReconcileOutcome.REPLACED)
        data = json.loads(self.output.read_text(encoding="utf-8"))
        self.assertEqual(data["username"], "Alice")
        self.assertEqual(data["selection"], {"gameIndex": 0, "players": ["Alice", "Bob"]})
        self.assertIs(webserver.get_published(), result.published)

    def test_unchanged_delivery_does_not_rewrite(self):
        live_monitor.process_delivery(LOG_TWO_CHECKPOINTS)
        self.output.unlink()
        result = live_monitor.process_delivery(LOG_TWO_CHECKPOINTS + "\n[12:00:20] unrelated line")
        self.assertIs(result.outcome, ReconcileOutcome.SUPPRESSED)
        self.assertFalse(self.output.exists())

    def test_selection_kept_when_game_grows(self):
        live_monitor.process_delivery(LOG_TWO_CHECKPOINTS)
        live_monitor.state["selection"] = Selection(0, ["Bob"])
        grown = LOG_TWO_CHECKPOINTS + "\n[12:00:30] [Client thread/INFO]: [CHAT] CHECKPOINT! Bob reached checkpoint 2 in 0:21.000!"
        result = live_monitor.process_delivery(grown)
        self.assertIs(result.outcome, ReconcileOutcome.REPLACED)
        self.assertEqual(live_monitor.state["selection"], Selection(0, ["Bob"]))

    def test_parse_file(self):
        log_file = Path(self.tmp.name) / "saved.log"
        log_file.write_text(LOG_TWO_CHECKPOINTS, encoding="utf-8")
        result = live_monitor.parse_file(log_file)
        self.assertIs(result.outcome, ReconcileOutcome.REPLACED)
        data = json.loads(self.output.read_text(encoding="utf-8"))
        self.assertEqual(data["status"], "paste")
        self.assertEqual(data["logLocation"], str(log_file))

    def test_parse_file_without_games(self):
        log_file = Path(self.tmp.name) / "empty.log"
        log_file.write_text("[12:00:00] nothing here", encoding="utf-8")
        with mock.patch.object(live_monitor, "print_colored") as printed:
            result = live_monitor.parse_file(log_file)
        self.assertIs(result.outcome, ReconcileOutcome.NO_GAMES)
        printed.assert_called_once()
        self.assertFalse(self.output.exists())



class TerminalSnapshotTests(unittest.TestCase):
    LOG = "\n".join([
        "[11:59:00] [Client thread/INFO]: Setting user: Alice",
        "[12:00:00] [Client thread/INFO]: [CHAT] Parkour Duels",
        "[12:00:10] [Client thread/INFO]: [CHAT] CHECKPOINT! You reached checkpoint 1 in 0:10.000!",
        "[12:00:11] [Client thread/INFO]: [CHAT] CHECKPOINT! Bob reached checkpoint 1 in 0:11.000!",
        "[12:00:12] [Client thread/INFO]: [CHAT] CHECKPOINT! Carol reached checkpoint 1 in 0:12.000!",
        "[12:00:30] [Client thread/INFO]: [CHAT] COMPLETED! Bob completed the parkour in 0:30.000!",
        "[12:00:31] [Client thread/INFO]: [CHAT] COMPLETED! You completed the parkour in 0:31.250!",
    ])

    def render(self, manager=None):
        session = parse_logs(self.LOG)
        with mock.patch.dict(live_monitor.state, {"session": session, "selection": Selection(0, ["Bob"])}), \
                mock.patch.object(live_monitor, "simulation_manager", manager), \
                mock.patch.object(live_monitor, "print_colored") as printed:
            live_monitor._print_terminal_snapshot()
        return [c.args[0] for c in printed.call_args_list]

    def test_gap_to_winner_and_last_split(self):
        lines = self.render()
        self.assertIn("* 1. Bob  00:30.000", lines)
        self.assertIn("  2. Alice (you)  00:31.250  +1.250s", lines)
        self.assertIn("  3. Carol  1 checkpoints (last 0:12.0)", lines)

    def test_simulation_progress_shown_in_test_mode(self):
        manager = SimulationManager(quiet=True)
        manager.total_blocks = 4
        manager.current_progress = 50.0
        lines = self.render(manager)
        self.assertIn(f"Simulation: {manager.get_progress_string()}", lines)
        self.assertTrue(any("50.0%" in line for line in lines))


if __name__ == "__main__":
    unittest.main()
