"""
log_parser.py

Turns raw Minecraft client-log text into Parkour Duels games.

Each line is first classified into one tagged variant (identity, game start,
opponents, checkpoint, finish, other) and the variants are then folded into a
ScanState. The whole text is re-parsed on every call; nothing is kept between
calls.
"""

import logging
import re
from dataclasses import dataclass, field
from functools import reduce
from typing import Dict, List, Optional

from parkour_monitor.config import (
    CHAT_MARKER,
    FINISH_CHECKPOINT,
    GAME_START_MAX_LENGTH,
    MINIGAME_NAME,
    NON_START_MARKERS,
    OPPONENTS_MARKER,
    SELF_NAME,
)
from parkour_monitor.time_codec import to_seconds

CHECKPOINT = "checkpoint"
FINISH = "finish"

# ---------- Line Patterns ----------
IDENTITY_RE = re.compile(r"Setting user:\s*(\S+)")
COLOR_CODE_RE = re.compile(r"§.")
BRACKET_PREFIX_RE = re.compile(r"\[.*?\]\s*")
OPPONENTS_LABEL_RE = re.compile(r"^Opponents:\s*")
SELF_CHECKPOINT_RE = re.compile(
    r"\[CHAT\].*?CHECKPOINT!\s+You\s+reached checkpoint\s+(\d+)\s+in\s+([\d:.]+)!"
)
OTHER_CHECKPOINT_RE = re.compile(
    r"\[CHAT\].*?CHECKPOINT!\s+(.+?)\s+reached checkpoint\s+(\d+)\s+in\s+([\d:.]+)!"
)
SELF_FINISH_RE = re.compile(
    r"\[CHAT\].*?COMPLETED!\s+You\s+completed the parkour in\s+([\d:.]+)!"
)
OTHER_FINISH_RE = re.compile(
    r"\[CHAT\].*?COMPLETED!\s+(.+?)\s+completed the parkour in\s+([\d:.]+)!"
)


# ---------- Data Model ----------
@dataclass(frozen=True)
class Event:
    checkpoint: int
    time_text: str
    kind: str = CHECKPOINT

    @property
    def elapsed(self) -> Optional[float]:
        return to_seconds(self.time_text)

    @property
    def is_finish(self) -> bool:
        return self.kind == FINISH

    def to_dict(self):
        return {
            "checkpoint": self.checkpoint,
            "time": self.time_text,
            "seconds": self.elapsed,
            "kind": self.kind,
        }


@dataclass
class Game:
    """One race. Player order follows first appearance in the log."""

    players: Dict[str, List[Event]] = field(default_factory=dict)
    opponents: str = ""

    def is_empty(self) -> bool:
        return not any(self.players.values())

    def event_count(self) -> int:
        return sum(len(events) for events in self.players.values())

    def finish_for(self, name) -> Optional[Event]:
        for event in self.players.get(name, []):
            if event.is_finish:
                return event
        return None

    def add_opponents(self, text):
        self.opponents = f"{self.opponents} {text}" if self.opponents else text

    def add_checkpoint(self, name, number, time_text) -> bool:
        events = self.players.setdefault(name, [])
        if any(e.checkpoint == number for e in events):
            return False
        events.append(Event(number, time_text, CHECKPOINT))
        return True

    def add_finish(self, name, time_text) -> bool:
        events = self.players.setdefault(name, [])
        if any(e.is_finish for e in events):
            return False
        events.append(Event(FINISH_CHECKPOINT, time_text, FINISH))
        return True

    def sort_events(self):
        for events in self.players.values():
            events.sort(key=lambda e: e.checkpoint)

    def to_dict(self):
        return {
            "opponents": self.opponents,
            "players": {
                name: [e.to_dict() for e in events]
                for name, events in self.players.items()
            },
        }


@dataclass
class Session:
    games: List[Game] = field(default_factory=list)
    username: Optional[str] = None

    @property
    def game_count(self) -> int:
        return len(self.games)

    @property
    def last_game(self) -> Optional[Game]:
        return self.games[-1] if self.games else None

    def is_empty(self) -> bool:
        return not self.games

    def to_dict(self):
        return {
            "username": self.username,
            "games": [g.to_dict() for g in self.games],
        }


# ---------- Line Variants ----------
@dataclass(frozen=True)
class Identity:
    name: str


@dataclass(frozen=True)
class GameStart:
    pass


@dataclass(frozen=True)
class Opponents:
    text: str


@dataclass(frozen=True)
class Checkpoint:
    player: Optional[str]  # None means the local player ("You")
    number: int
    time_text: str


@dataclass(frozen=True)
class Finish:
    player: Optional[str]
    time_text: str


@dataclass(frozen=True)
class Other:
    pass


OTHER = Other()
GAME_START = GameStart()


def strip_codes(text):
    return COLOR_CODE_RE.sub("", text)


def chat_payload(line):
    """Text after the ``[CHAT]`` marker, trimmed, with formatting codes removed."""
    idx = line.find(CHAT_MARKER)
    after = line[idx + len(CHAT_MARKER):] if idx >= 0 else line
    return strip_codes(after.strip())


def clean_player_name(raw):
    name = strip_codes(raw)
    name = BRACKET_PREFIX_RE.sub("", name)
    return name.strip()


def is_game_start(line):
    if CHAT_MARKER not in line or MINIGAME_NAME not in line:
        return False
    if any(marker in line for marker in NON_START_MARKERS):
        return False
    after = chat_payload(line)
    return MINIGAME_NAME in after and len(after) < GAME_START_MAX_LENGTH


def _third_person(raw_name):
    name = clean_player_name(raw_name)
    if not name or name == SELF_NAME:
        return None
    return name


def classify_line(line):
    """Map one raw log line onto exactly one line variant."""
    m = IDENTITY_RE.search(line)
    if m:
        return Identity(m.group(1))

    if is_game_start(line):
        return GAME_START

    if CHAT_MARKER in line and OPPONENTS_MARKER in line:
        return Opponents(OPPONENTS_LABEL_RE.sub("", chat_payload(line)))

    m = SELF_CHECKPOINT_RE.search(line)
    if m:
        return Checkpoint(None, int(m.group(1)), m.group(2))
    m = OTHER_CHECKPOINT_RE.search(line)
    if m:
        name = _third_person(m.group(1))
        return Checkpoint(name, int(m.group(2)), m.group(3)) if name else OTHER

    m = SELF_FINISH_RE.search(line)
    if m:
        return Finish(None, m.group(1))
    m = OTHER_FINISH_RE.search(line)
    if m:
        name = _third_person(m.group(1))
        return Finish(name, m.group(2)) if name else OTHER

    return OTHER


# ---------- Scan ----------
@dataclass
class ScanState:
    """Mutable fold accumulator. ``step`` updates it in place and hands it back."""

    username: Optional[str] = None
    current: Optional[Game] = None
    games: List[Game] = field(default_factory=list)

    def close_current(self):
        if self.current is not None and not self.current.is_empty():
            self.games.append(self.current)
        self.current = None
        return self


def _resolve_player(state, player):
    # first-person lines before "Setting user" cannot be attributed and are dropped
    return state.username if player is None else player


def step(state, event):
    if isinstance(event, Identity):
        state.username = event.name
        return state

    if isinstance(event, GameStart):
        state.close_current()
        state.current = Game()
        return state

    game = state.current
    if game is None:
        return state

    if isinstance(event, Opponents):
        game.add_opponents(event.text)
    elif isinstance(event, Checkpoint):
        name = _resolve_player(state, event.player)
        if name:
            game.add_checkpoint(name, event.number, event.time_text)
    elif isinstance(event, Finish):
        name = _resolve_player(state, event.player)
        if name:
            game.add_finish(name, event.time_text)
    return state


def parse_logs(text) -> Session:
    """Parse full log text into a Session. Never raises."""
    if not text:
        return Session()

    lines = text.split("\n")
    state = reduce(step, map(classify_line, lines), ScanState())
    state = state.close_current()

    for game in state.games:
        game.sort_events()

    logging.debug(
        f"Parsed {len(lines)} lines: {len(state.games)} game(s), user={state.username}"
    )
    return Session(games=state.games, username=state.username)
