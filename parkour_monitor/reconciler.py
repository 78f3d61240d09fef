"""
reconciler.py

Decides what to publish when the log is re-parsed, and when the active game
and compared players should snap back to their defaults.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from parkour_monitor.config import NO_GAMES_MESSAGE
from parkour_monitor.log_parser import Session, parse_logs
from parkour_monitor.standings import top_players


class ReconcileOutcome(Enum):
    REPLACED = "replaced"
    SUPPRESSED = "suppressed"
    NO_GAMES = "no_games"


@dataclass
class Selection:
    game_index: int = 0
    players: List[str] = field(default_factory=list)

    def to_dict(self):
        return {"gameIndex": self.game_index, "players": list(self.players)}


@dataclass(frozen=True)
class SelectionPolicy:
    """Whether the presentation layer should apply ``selection`` or keep its own."""

    reset: bool
    selection: Optional[Selection] = None

    @classmethod
    def keep(cls):
        return cls(reset=False)

    @classmethod
    def for_game(cls, session, index):
        return cls(reset=True, selection=select_game(session, index))


@dataclass
class ReconcileResult:
    outcome: ReconcileOutcome
    published: Optional[Session]
    policy: SelectionPolicy
    message: Optional[str] = None

    @property
    def replaced(self):
        return self.outcome is ReconcileOutcome.REPLACED


def select_game(session, index):
    """Default selection for one game: its top-ranked players."""
    return Selection(game_index=index, players=top_players(session.games[index]))


def toggle_player(selection, name):
    if name in selection.players:
        players = [p for p in selection.players if p != name]
    else:
        players = selection.players + [name]
    return Selection(game_index=selection.game_index, players=players)


class CoarseChangeDetector:
    """
    Cheap per-update change check.

    Only the game count and the total number of events in the last game are
    compared, so a correction that swaps one event for another without
    changing the count goes unnoticed.
    """

    @staticmethod
    def has_changed(old, new):
        if old is None:
            return True
        if old.game_count != new.game_count:
            return True
        old_last, new_last = old.last_game, new.last_game
        old_total = old_last.event_count() if old_last else 0
        new_total = new_last.event_count() if new_last else 0
        return old_total != new_total


class Reconciler:
    """Single writer of the published Session in live mode."""

    def __init__(self, detector=None):
        self.detector = detector or CoarseChangeDetector()
        self.published = None
        self.last_game_count = 0
        self.auto_select = True

    def reconcile(self, session):
        if session.is_empty():
            logging.debug("Delivery contained no games; keeping published session")
            return ReconcileResult(ReconcileOutcome.NO_GAMES, self.published, SelectionPolicy.keep())

        if self.detector.has_changed(self.published, session):
            self.published = session
            outcome = ReconcileOutcome.REPLACED
        else:
            outcome = ReconcileOutcome.SUPPRESSED

        policy = SelectionPolicy.keep()
        if self.auto_select or session.game_count != self.last_game_count:
            policy = SelectionPolicy.for_game(session, session.game_count - 1)
            logging.info(
                f"Selection reset to game {session.game_count} "
                f"(previously {self.last_game_count} game(s))"
            )
            self.last_game_count = session.game_count
            self.auto_select = False

        return ReconcileResult(outcome, self.published, policy)

    def update(self, text):
        """Parse a full delivery of log content and reconcile it."""
        return self.reconcile(parse_logs(text))


def parse_once(text):
    """Paste mode: parse once and publish unconditionally."""
    session = parse_logs(text)
    if session.is_empty():
        return ReconcileResult(ReconcileOutcome.NO_GAMES, None, SelectionPolicy.keep(), NO_GAMES_MESSAGE)
    policy = SelectionPolicy.for_game(session, session.game_count - 1)
    return ReconcileResult(ReconcileOutcome.REPLACED, session, policy)
