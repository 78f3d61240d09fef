"""
standings.py

Ranking and per-checkpoint comparison data for a single game.
Returns plain rows; drawing them is left to whatever consumes the API.
"""

from typing import Dict, List, Optional

from parkour_monitor.config import FINISH_CHECKPOINT, MAX_SELECTED_PLAYERS
from parkour_monitor.log_parser import CHECKPOINT, Game


def _rank_key(game, name):
    finish = game.finish_for(name)
    if finish is not None:
        seconds = finish.elapsed
        return (0, seconds if seconds is not None else float("inf"), 0)
    return (1, 0.0, -len(game.players[name]))


def sort_players(game: Game) -> List[str]:
    """
    Player names, best first.

    Finishers rank by finish time and always ahead of non-finishers, who rank
    by how many checkpoints they reached. Ties keep log order.
    """
    return sorted(game.players, key=lambda name: _rank_key(game, name))


def top_players(game: Game, limit: int = MAX_SELECTED_PLAYERS) -> List[str]:
    return sort_players(game)[:limit]


def player_summary(game: Game, name: str) -> Dict:
    events = game.players.get(name, [])
    finish = game.finish_for(name)
    return {
        "name": name,
        "finished": finish is not None,
        "finishSeconds": finish.elapsed if finish else None,
        "checkpoints": sum(1 for e in events if e.kind == CHECKPOINT),
    }


def checkpoint_label(checkpoint):
    return "Finish" if checkpoint == FINISH_CHECKPOINT else f"CP{checkpoint}"


def progress_rows(game: Game, players: List[str]) -> List[Dict]:
    """One row per checkpoint reached by any of ``players`` with each player's elapsed seconds."""
    checkpoints = set()
    for name in players:
        for event in game.players.get(name, []):
            checkpoints.add(event.checkpoint)

    rows = []
    for cp in sorted(checkpoints):
        row = {"name": checkpoint_label(cp), "cp": cp}
        for name in players:
            event = next((e for e in game.players.get(name, []) if e.checkpoint == cp), None)
            row[name] = event.elapsed if event else None
        rows.append(row)
    return rows


def segment_rows(rows: List[Dict], players: List[str]) -> List[Dict]:
    """Split times: each player's time since the previous row, None when either side is missing."""
    segments = []
    for i, row in enumerate(rows):
        seg = dict(row)
        for name in players:
            if i == 0:
                seg[f"{name}_s"] = row[name]
            elif row[name] is not None and rows[i - 1][name] is not None:
                seg[f"{name}_s"] = row[name] - rows[i - 1][name]
            else:
                seg[f"{name}_s"] = None
        segments.append(seg)
    return segments


def gap_rows(rows: List[Dict], players: List[str]) -> Optional[List[Dict]]:
    """Head-to-head difference (first minus second); only defined for exactly two players."""
    if len(players) != 2:
        return None
    a, b = players
    gaps = []
    for row in rows:
        gap = dict(row)
        gap["diff"] = row[a] - row[b] if row[a] is not None and row[b] is not None else None
        gaps.append(gap)
    return gaps
