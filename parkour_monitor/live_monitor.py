import json
import time
import logging
import threading
import signal
import hashlib
from pathlib import Path

from colorama import init, Fore, Style

from parkour_monitor.config import *
from parkour_monitor.reconciler import Reconciler, ReconcileOutcome, Selection, parse_once
from parkour_monitor.standings import sort_players, player_summary
from parkour_monitor.time_codec import fmt_delta, fmt_full, fmt_short
from parkour_monitor.log_simulator import SimulationManager
from parkour_monitor import webserver

init(autoreset=True)

# Setup logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)

# Global simulation manager
simulation_manager = None

# Global shutdown control
shutdown_event = threading.Event()
signal_received = False


class LogNotFoundError(FileNotFoundError):
    pass


# ---------- State ----------
reconciler = Reconciler()
state = {
    "session": None,
    "selection": Selection(),
    "logLocation": None,
    "status": "idle",
    "lastUpdated": int(time.time()),
}


def print_colored(text, color=Fore.WHITE, style=Style.NORMAL, end="\n"):
    print(f"{style}{color}{text}{Style.RESET_ALL}", end=end)


def print_status_header(mode="Live"):
    status_color = Fore.GREEN if mode == "Live" else Fore.YELLOW
    print_colored(f"\n{'='*60}", Fore.BLUE)
    print_colored(f"PARKOUR DUELS MONITOR - {mode.upper()} MODE", status_color, Style.BRIGHT)
    print_colored(f"{'='*60}", Fore.BLUE)


# ---------- Log Discovery ----------
def find_log_path(required=False):
    """First existing client log among the OS defaults."""
    for candidate in default_log_paths():
        if candidate.exists():
            return candidate
    if required:
        raise LogNotFoundError("Could not find Minecraft log file")
    return None


def resolve_log_path(explicit=None):
    if explicit:
        path = Path(explicit).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return path
    return find_log_path(required=False)


def read_log(path):
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def hash_content(content):
    """Cheap fingerprint: length plus the head and tail of large logs."""
    data = content.encode("utf-8", errors="replace")
    h = hashlib.blake2b(digest_size=8)
    h.update(str(len(data)).encode())
    if len(data) > HASH_SAMPLE_BYTES * 2:
        h.update(data[:HASH_SAMPLE_BYTES])
        h.update(data[-HASH_SAMPLE_BYTES:])
    else:
        h.update(data)
    return h.hexdigest()


class LogWatcher:
    """Polls one log file and hands out its full content when it changed."""

    def __init__(self, path, debounce=DEBOUNCE_SECONDS):
        self.path = Path(path)
        self.debounce = debounce
        self.last_hash = None
        self.last_emit = None

    def poll(self, now=None):
        now = time.monotonic() if now is None else now
        if self.last_emit is not None and now - self.last_emit < self.debounce:
            return None
        if not self.path.exists():
            return None
        try:
            content = read_log(self.path)
        except OSError as e:
            logging.error(f"Failed to read log {self.path}: {e}")
            return None
        new_hash = hash_content(content)
        if new_hash == self.last_hash:
            return None
        self.last_hash = new_hash
        self.last_emit = now
        return content


# ---------- Publishing ----------
def apply_result(result):
    """Store what the reconciler decided and refresh outputs on a real change."""
    if result.policy.reset:
        state["selection"] = result.policy.selection
    if result.outcome is ReconcileOutcome.REPLACED:
        state["session"] = result.published
        state["status"] = "live"
        state["lastUpdated"] = int(time.time())
        webserver.set_published(result.published)
        _export_json()
        _print_terminal_snapshot()
    elif result.outcome is ReconcileOutcome.SUPPRESSED:
        logging.debug("Update suppressed: last game unchanged")
    return result


def process_delivery(content):
    return apply_result(reconciler.update(content))


def _state_payload():
    session = state["session"]
    payload = session.to_dict() if session else {"username": None, "games": []}
    payload["selection"] = state["selection"].to_dict()
    payload["logLocation"] = state["logLocation"]
    payload["status"] = state["status"]
    payload["lastUpdated"] = state["lastUpdated"]
    return payload


def _export_json():
    try:
        Path(OUTPUT_JSON).parent.mkdir(parents=True, exist_ok=True)
        with open(OUTPUT_JSON, "w", encoding="utf-8") as f:
            json.dump(_state_payload(), f, indent=2)
        logging.debug(f"Exported session to {OUTPUT_JSON}")
    except OSError as e:
        logging.error(f"Failed to write JSON: {e}")


def _print_terminal_snapshot():
    session = state["session"]
    if not session or not session.games:
        print_colored("Waiting for parkour games...", Fore.WHITE, Style.DIM)
        return
    selection = state["selection"]
    index = min(selection.game_index, session.game_count - 1)
    game = session.games[index]
    plural = "s" if session.game_count != 1 else ""
    print_colored(f"\n{session.game_count} game{plural} found - showing game {index + 1}", Fore.CYAN, Style.BRIGHT)
    if simulation_manager:
        print_colored(f"Simulation: {simulation_manager.get_progress_string()}", Fore.CYAN)
    if game.opponents:
        print_colored(f"Opponents: {game.opponents}", Fore.WHITE, Style.DIM)
    ranking = sort_players(game)
    leader = player_summary(game, ranking[0])["finishSeconds"]
    for rank, name in enumerate(ranking, start=1):
        summary = player_summary(game, name)
        marker = "*" if name in selection.players else " "
        you = " (you)" if name == session.username else ""
        if summary["finished"]:
            secs = summary["finishSeconds"]
            gap = ""
            if rank > 1 and secs is not None and leader is not None:
                gap = f"  {fmt_delta(secs - leader)}"
            print_colored(f"{marker}{rank:>2}. {name}{you}  {fmt_full(secs)}{gap}", Fore.GREEN)
        else:
            last = game.players[name][-1] if game.players[name] else None
            at = f" (last {fmt_short(last.elapsed)})" if last else ""
            print_colored(f"{marker}{rank:>2}. {name}{you}  {summary['checkpoints']} checkpoints{at}", Fore.RED)


# ---------- One-shot ----------
def parse_file(path):
    """Parse a saved log once and publish the result unconditionally."""
    result = parse_once(read_log(path))
    if result.outcome is ReconcileOutcome.NO_GAMES:
        print_colored(result.message, Fore.RED)
        return result
    state["session"] = result.published
    state["selection"] = result.policy.selection
    state["logLocation"] = str(path)
    state["status"] = "paste"
    state["lastUpdated"] = int(time.time())
    webserver.set_published(result.published)
    _export_json()
    _print_terminal_snapshot()
    return result


# ---------- Shutdown Handling ----------
def signal_handler(signum, frame):
    global signal_received
    if signal_received:
        print_colored(f"\nForce exit requested (signal {signum} received again)", Fore.RED)
        raise SystemExit(1)
    signal_received = True
    print_colored(f"\nReceived signal {signum}. Shutting down...", Fore.YELLOW)
    shutdown_event.set()


def setup_signal_handlers():
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    if hasattr(signal, 'SIGHUP'):
        signal.signal(signal.SIGHUP, signal_handler)


def interruptible_sleep(duration):
    """Sleep that returns True early if shutdown was requested."""
    return shutdown_event.wait(duration)


def wait_for_log(explicit=None):
    """Block until a client log exists, retrying every LOG_RETRY_INTERVAL seconds."""
    while not shutdown_event.is_set():
        path = resolve_log_path(explicit)
        if path:
            return path
        logging.error("Minecraft log file not found")
        if interruptible_sleep(LOG_RETRY_INTERVAL):
            break
    return None


def main_loop(log_path):
    state["logLocation"] = str(log_path)
    watcher = LogWatcher(log_path)
    print_colored(f"Watching {log_path}", Fore.GREEN)
    print_colored("Starting live monitoring... (Press Ctrl+C to stop)", Fore.CYAN, Style.BRIGHT)
    replay_reported = False
    try:
        while not shutdown_event.is_set():
            content = watcher.poll()
            if content is not None:
                result = process_delivery(content)
                logging.debug(f"Delivery processed: {result.outcome.value}")
            elif simulation_manager and simulation_manager.is_complete() and not replay_reported:
                print_colored(f"Simulation finished {simulation_manager.get_progress_string()}", Fore.YELLOW)
                replay_reported = True
            if interruptible_sleep(POLL_INTERVAL):
                break
    except KeyboardInterrupt:
        print_colored("\nKeyboard interrupt received", Fore.YELLOW)
    print_colored("Exiting monitoring loop...", Fore.YELLOW)


def main(test_mode=False, log_path=None, serve=True):
    """Run the live monitor, optionally against the simulated log."""
    global simulation_manager

    setup_signal_handlers()
    ensure_directories()

    mode = "Test" if test_mode else "Live"
    print_status_header(mode)

    if serve:
        webserver.start_server()
        print_colored(f"Web server started on http://{WEB_SERVER_HOST}:{WEB_SERVER_PORT}", Fore.GREEN)

    if test_mode:
        print_colored("Starting background simulation...", Fore.YELLOW)
        simulation_manager = SimulationManager(quiet=True)
        if not simulation_manager.start():
            print_colored("Failed to start simulation. Check test log files.", Fore.RED)
            return
        log_path = simulation_manager.output_file

    try:
        path = wait_for_log(log_path)
    except FileNotFoundError as e:
        print_colored(str(e), Fore.RED)
        return
    if path is None:
        return

    try:
        main_loop(path)
    finally:
        if simulation_manager:
            simulation_manager.stop()
            print_colored("Simulation stopped", Fore.YELLOW)
        _export_json()


if __name__ == "__main__":
    main()
