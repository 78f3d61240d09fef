import threading
import os
from flask import Flask, Response, jsonify, request

from parkour_monitor.config import OUTPUT_JSON, WEB_SERVER_HOST, WEB_SERVER_PORT, default_log_paths
from parkour_monitor.reconciler import ReconcileOutcome, Selection, parse_once, toggle_player
from parkour_monitor.standings import (
    gap_rows,
    player_summary,
    progress_rows,
    segment_rows,
    sort_players,
    top_players,
)

app = Flask(__name__)

# Written only by the live monitor; request threads just read it
_published = None


def set_published(session):
    global _published
    _published = session


def get_published():
    return _published


def game_standings(game, players=None):
    """Ranking, summaries and comparison rows for one game."""
    ranking = sort_players(game)
    players = [p for p in players if p in game.players] if players is not None else top_players(game)
    rows = progress_rows(game, players)
    return {
        "ranking": ranking,
        "summaries": [player_summary(game, name) for name in ranking],
        "players": players,
        "progress": rows,
        "segments": segment_rows(rows, players),
        "gap": gap_rows(rows, players),
    }


@app.route('/api/live_data')
def get_live_data():
    json_file_path = str(OUTPUT_JSON)
    app.logger.debug(f"Looking for JSON file at: {json_file_path}")
    if not os.path.exists(json_file_path):
        app.logger.error(f"JSON file not found: {json_file_path}")
        return Response(f"File Not Found: {OUTPUT_JSON.name}", status=404)
    try:
        with open(json_file_path, 'r', encoding='utf-8') as f:
            return Response(f.read(), status=200, mimetype='application/json')
    except OSError as e:
        app.logger.error(f"Error reading JSON file: {e}")
        return Response(f"Error reading file: {e}", status=500)


@app.route('/api/parse', methods=['POST'])
def parse_pasted_log():
    """Paste mode: parse the posted log text once."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        text = payload.get("text") or ""
    else:
        text = request.get_data(as_text=True)

    result = parse_once(text)
    if result.outcome is ReconcileOutcome.NO_GAMES:
        return jsonify({"error": result.message}), 404

    session = result.published
    selection = result.policy.selection
    body = session.to_dict()
    body["selection"] = selection.to_dict()
    body["standings"] = game_standings(session.games[selection.game_index], selection.players)
    return jsonify(body)


@app.route('/api/games/<int:index>/standings')
def get_game_standings(index):
    session = get_published()
    if session is None:
        return jsonify({"error": "No session published yet"}), 404
    if index < 0 or index >= session.game_count:
        return jsonify({"error": f"Game {index} not found"}), 404
    game = session.games[index]
    requested = request.args.get("players")
    players = [p for p in requested.split(",") if p] if requested else None
    toggled = request.args.get("toggle")
    if toggled:
        base = Selection(index, players if players is not None else top_players(game))
        players = toggle_player(base, toggled).players
    return jsonify(game_standings(game, players))


@app.route('/api/default_paths')
def get_default_paths():
    return jsonify([str(p) for p in default_log_paths()])


@app.route('/')
def index():
    app.logger.debug("Serving root endpoint")
    return Response("Flask server is running!", status=200)


def start_server(host=WEB_SERVER_HOST, port=WEB_SERVER_PORT):
    app.logger.info("Starting Flask server...")
    server_thread = threading.Thread(target=app.run, kwargs={
        'host': host,
        'port': port,
        'debug': False,
        'use_reloader': False,
        'threaded': True
    })
    server_thread.daemon = True
    server_thread.start()
    app.logger.info(f"Server started at http://{host}:{port}")
    return server_thread


if __name__ == '__main__':
    start_server().join()
