# parkour_monitor/config.py

import os
import sys
from pathlib import Path


def data_dir():
    """Where logs and exports live: $PARKOUR_MONITOR_HOME, else the working directory."""
    override = os.environ.get("PARKOUR_MONITOR_HOME")
    return Path(override).expanduser() if override else Path.cwd()


# ---------- Directory Configuration ----------
ROOT_DIR = data_dir()

# Log directories
LOGS_DIR = ROOT_DIR / "logs"
TEST_LOGS_DIR = LOGS_DIR / "test"

# Output files
OUTPUT_JSON = ROOT_DIR / "live_session.json"
SIMULATED_LOG_FILE = ROOT_DIR / "simulated_latest.log"

# Minecraft client logs, relative to the per-OS base directory
LOG_FILE_NAME = "latest.log"
MINECRAFT_LOG_PARTS = (".minecraft", "logs", LOG_FILE_NAME)
LUNAR_LOG_PARTS = (".lunarclient", "offline", "multiver", "logs", LOG_FILE_NAME)
MAC_MINECRAFT_LOG_PARTS = ("Library", "Application Support", "minecraft", "logs", LOG_FILE_NAME)

# ---------- Log Grammar ----------
MINIGAME_NAME = "Parkour Duels"
CHAT_MARKER = "[CHAT]"
OPPONENTS_MARKER = "Opponents:"
# Chat broadcasts that mention the minigame but never start a game
NON_START_MARKERS = ("Winstreak", "TITLE", "CHECKPOINT", "COMPLETED")
GAME_START_MAX_LENGTH = 40
FINISH_CHECKPOINT = 9999  # sorts after every real checkpoint
SELF_NAME = "You"

# ---------- Selection ----------
MAX_SELECTED_PLAYERS = 4
NO_GAMES_MESSAGE = "No Parkour Duels games found."
TIME_PLACEHOLDER = "--"

# ---------- Timing Configuration ----------
POLL_INTERVAL = 0.5  # How often to check the log for changes
DEBOUNCE_SECONDS = 2.0  # Minimum gap between two deliveries
LOG_RETRY_INTERVAL = 5.0  # How often to look again for a missing log
HASH_SAMPLE_BYTES = 512
SIMULATION_SPEED = 0.05  # Seconds between simulation updates
SIMULATION_CHUNK_SIZE = 1  # How many log blocks to write at once

# ---------- Server Configuration ----------
WEB_SERVER_PORT = 5000
WEB_SERVER_HOST = "0.0.0.0"  # Allow network access

# ---------- Logging Configuration ----------
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def default_log_paths():
    """Candidate client log locations for the current OS, in lookup order."""
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        if not appdata:
            return []
        base = Path(appdata)
        return [base.joinpath(*MINECRAFT_LOG_PARTS), base.joinpath(*LUNAR_LOG_PARTS)]
    home = Path.home()
    if sys.platform == "darwin":
        return [home.joinpath(*MAC_MINECRAFT_LOG_PARTS), home.joinpath(*LUNAR_LOG_PARTS)]
    return [home.joinpath(*MINECRAFT_LOG_PARTS), home.joinpath(*LUNAR_LOG_PARTS)]


# ---------- Create Required Directories ----------
def ensure_directories():
    """Create all required directories if they don't exist."""
    directories = [
        LOGS_DIR,
        TEST_LOGS_DIR,
        OUTPUT_JSON.parent,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
