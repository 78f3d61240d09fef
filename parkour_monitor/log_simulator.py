import threading
import logging

from colorama import Fore, Style

from parkour_monitor.config import *
from parkour_monitor.log_parser import is_game_start

SAMPLE_LOG = """[10:00:00] [Client thread/INFO]: Setting user: Alice
[10:00:05] [Client thread/INFO]: [CHAT] §e§lParkour Duels
[10:00:05] [Client thread/INFO]: [CHAT] §7Opponents: §aBob
[10:00:06] [Client thread/INFO]: [CHAT] §6§lTITLE §eParkour Duels
[10:00:16] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! You reached checkpoint 1 in 0:10.250!
[10:00:17] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! §b[MVP+] Bob reached checkpoint 1 in 0:11.100!
[10:00:27] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! You reached checkpoint 2 in 0:21.400!
[10:00:27] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! §b[MVP+] Bob reached checkpoint 2 in 0:21.050!
[10:00:27] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! §b[MVP+] Bob reached checkpoint 2 in 0:21.050!
[10:00:39] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! You reached checkpoint 3 in 0:33.875!
[10:00:41] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! §b[MVP+] Bob reached checkpoint 3 in 0:35.600!
[10:00:52] [Client thread/INFO]: [CHAT] §6§lCOMPLETED! You completed the parkour in 0:46.320!
[10:00:52] [Client thread/INFO]: [CHAT] §eWinstreak: 3 §7(Parkour Duels)
[10:01:30] [Client thread/INFO]: [CHAT] §e§lParkour Duels
[10:01:30] [Client thread/INFO]: [CHAT] §7Opponents: §cCarol
[10:01:41] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! §c[VIP] Carol reached checkpoint 1 in 0:09.900!
[10:01:42] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! You reached checkpoint 1 in 0:10.700!
[10:01:53] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! §c[VIP] Carol reached checkpoint 2 in 0:20.400!
[10:02:05] [Client thread/INFO]: [CHAT] §6§lCOMPLETED! §c[VIP] Carol completed the parkour in 0:32.015!
[10:02:06] [Client thread/INFO]: [CHAT] §a§lCHECKPOINT! You reached checkpoint 2 in 0:34.200!
"""


class SimulationManager:
    """Replays a Parkour Duels log into SIMULATED_LOG_FILE in a separate thread."""

    def __init__(self, quiet=False):
        self.thread = None
        self.stop_flag = threading.Event()
        self.current_progress = 0.0
        self.total_blocks = 0
        self.current_block = 0
        self.is_running = False
        self.simulation_complete = False
        self.source_file = None
        self.output_file = SIMULATED_LOG_FILE
        self.quiet = quiet

    def get_progress(self):
        return self.current_progress

    def get_progress_string(self):
        """Twenty-cell bar and percentage for the status line."""
        if self.total_blocks == 0:
            return "Waiting..."

        progress = self.get_progress()
        bar_length = 20
        filled = int(bar_length * progress / 100)
        bar = "█" * filled + "░" * (bar_length - filled)
        return f"[{bar}] {progress:5.1f}%"

    def is_complete(self):
        return self.simulation_complete

    def start(self):
        """Start the simulation in a separate thread."""
        test_files = get_test_log_files()

        if not test_files:
            self._print_colored(f"No test log files found in {TEST_LOGS_DIR}", Fore.RED)
            self._print_colored("Creating sample test data...", Fore.YELLOW)
            test_files = [self.create_sample_test_data()]

        self.source_file = test_files[0]
        self._print_colored(f"Using test file: {self.source_file.name}", Fore.CYAN)

        # The watcher needs the file to exist before the first block lands
        self.output_file.parent.mkdir(parents=True, exist_ok=True)
        self.output_file.write_text("", encoding="utf-8")
        self.stop_flag.clear()

        self.thread = threading.Thread(
            target=self._simulate_live_log,
            args=(self.source_file, self.output_file),
            daemon=True
        )
        self.thread.start()
        return True

    def stop(self):
        if self.thread and self.is_running:
            self.stop_flag.set()
            self.thread.join(timeout=5)
            self.is_running = False

    def _print_colored(self, text, color=Fore.WHITE):
        if not self.quiet:
            print(f"{color}{text}{Style.RESET_ALL}")

    def _parse_log_into_blocks(self, log_content):
        """
        Split a log into blocks that can be written incrementally.
        Every game-start line opens a new block; each chat broadcast after it
        becomes its own block so checkpoints arrive one at a time.
        """
        blocks = []
        current_block = []

        for line in log_content.split('\n'):
            if not line.strip():
                continue
            if is_game_start(line) or CHAT_MARKER not in line:
                current_block.append(line)
                continue
            current_block.append(line)
            blocks.append('\n'.join(current_block))
            current_block = []

        if current_block:
            blocks.append('\n'.join(current_block))

        return blocks

    def _simulate_live_log(self, source_file, output_file):
        """Append blocks from the source log to the output file with a delay."""
        self.is_running = True
        self.simulation_complete = False

        try:
            with open(source_file, 'r', encoding='utf-8') as f:
                log_content = f.read()

            blocks = self._parse_log_into_blocks(log_content)
            self.total_blocks = len(blocks)
            self._print_colored(f"Parsed {self.total_blocks} log blocks.", Fore.MAGENTA)
            logging.info(f"Starting simulation from {source_file.name}")

            with open(output_file, 'a', encoding='utf-8') as out:
                self.current_block = 0
                while self.current_block < self.total_blocks and not self.stop_flag.is_set():
                    for _ in range(SIMULATION_CHUNK_SIZE):
                        if self.current_block >= self.total_blocks:
                            break
                        out.write(blocks[self.current_block] + '\n')
                        self.current_block += 1

                    out.flush()
                    self.current_progress = (self.current_block / self.total_blocks) * 100
                    self.stop_flag.wait(SIMULATION_SPEED)

        except OSError as e:
            logging.error(f"Simulation error: {e}")
        finally:
            self.is_running = False
            self.simulation_complete = True
            logging.info("Simulation completed.")

    def create_sample_test_data(self):
        """Write the bundled sample log into the test log directory."""
        ensure_directories()
        sample_file = TEST_LOGS_DIR / "sample_latest.log"
        with open(sample_file, 'w', encoding='utf-8') as f:
            f.write(SAMPLE_LOG)
        self._print_colored(f"Created sample test file: {sample_file}", Fore.GREEN)
        return sample_file


def get_test_log_files():
    if not TEST_LOGS_DIR.exists():
        return []
    return sorted(f for f in TEST_LOGS_DIR.glob("*.log") if f.is_file())
