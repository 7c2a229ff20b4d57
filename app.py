import os

ASYNC_MODE = os.environ.get('UTTT_ASYNC_MODE', 'gevent')
if ASYNC_MODE == 'gevent':
    from gevent import monkey
    monkey.patch_all()

from flask import Flask, jsonify, request
from flask_socketio import SocketIO, join_room, emit
from uttt import __version__
from uttt.logic import UltimateTicTacToe, BLACK, WHITE
from uttt.ai import get_ai_move, DIFFICULTIES
from uttt.analysis import StrategyAnalyst
from uttt.errors import GameError
import logging, random, string

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config['SECRET_KEY']    = os.environ.get('SECRET_KEY', 'a_secret_key')
app.config['AI_THINK_TIME'] = float(os.environ.get('AI_THINK_TIME', 0.8))   # seconds the AI "thinks"
socketio = SocketIO(app, async_mode=ASYNC_MODE)
analyst  = StrategyAnalyst()

MODES = ('pve', 'pvp')

games = {}   # room -> game_data, in memory only

# ── Rooms ────────────────────────────────────────────────────────────────────
def new_room():
    while True:
        room = ''.join(random.choices(string.digits, k=5))
        if room not in games: return room

def make_game_data(mode='pve', difficulty='hard', user_black=True):
    return {
        "game":       UltimateTicTacToe(),
        "mode":       mode,          # 'pve' (vs AI) | 'pvp' (two players, one screen)
        "difficulty": difficulty,    # 'easy' | 'hard'
        "user_black": user_black,    # pve: does the human play Black this game?
    }

def ai_symbol(game_data):
    if game_data["mode"] != "pve": return None
    return WHITE if game_data["user_black"] else BLACK

def is_ai_turn(game_data):
    g = game_data["game"]
    return not g.game_winner and g.current_player == ai_symbol(game_data)

def full_state(game_data):
    s = game_data["game"].state()
    s["mode"]       = game_data["mode"]
    s["difficulty"] = game_data["difficulty"]
    s["aiSymbol"]   = ai_symbol(game_data)
    s["userSymbol"] = None if game_data["mode"] != "pve" else (BLACK if game_data["user_black"] else WHITE)
    return s

def move_error(exc_name, message):
    emit("move_error", {"error": exc_name, "message": message})

def play_ai_turn(room, game_data):
    """Let the AI answer if it is its turn. Gives up if the room restarted while it was thinking."""
    if not is_ai_turn(game_data): return
    g = game_data["game"]
    socketio.sleep(app.config['AI_THINK_TIME'])
    if games.get(room) is not game_data or game_data["game"] is not g or not is_ai_turn(game_data):
        return
    b, c = get_ai_move(g, game_data["difficulty"])
    g.make_move(b, c)
    logger.info("Room %s: AI (%s) played (%d, %d)", room, game_data["difficulty"], b, c)
    emit("state", full_state(game_data), to=room)

def _run_analysis(sid, game):
    result = analyst.analyze(game)
    socketio.emit("analysis", result.to_dict(), to=sid)

# ── Routes ───────────────────────────────────────────────────────────────────
@app.route('/health')
def health(): return jsonify({"status": "ok", "version": __version__})

@app.route('/api/rooms/<room>')
def room_state(room):
    game_data = games.get(room)
    if not game_data: return jsonify({"error": "unknown room"}), 404
    return jsonify(full_state(game_data))

# ── SocketIO Events ──────────────────────────────────────────────────────────
@socketio.on("create")
def create(data=None):
    data       = data or {}
    mode       = (data.get('mode') or 'pve').lower()
    difficulty = (data.get('difficulty') or 'hard').lower()
    if mode not in MODES or difficulty not in DIFFICULTIES:
        emit("invalid", {"message": f"mode must be one of {MODES}, difficulty one of {DIFFICULTIES}"})
        return
    room = new_room()
    games[room] = game_data = make_game_data(mode, difficulty, bool(data.get('user_black', True)))
    join_room(room)
    logger.info("Room %s created (%s, %s)", room, mode, difficulty)
    emit("created", room)
    emit("state", full_state(game_data), to=room)
    play_ai_turn(room, game_data)

@socketio.on("join")
def join(data):
    room = data.get("room")
    game_data = games.get(room)
    if not game_data: emit("invalid"); return
    join_room(room)
    emit("state", full_state(game_data))

@socketio.on("move")
def move(data):
    room = data.get("room")
    game_data = games.get(room)
    if not game_data: emit("invalid"); return
    if is_ai_turn(game_data):
        move_error("IllegalMoveError", "Wait for the AI to move."); return
    try:
        b, c = int(data["board"]), int(data["cell"])
    except (KeyError, TypeError, ValueError):
        move_error("IllegalMoveError", "A move needs an integer board and cell."); return
    try:
        game_data["game"].make_move(b, c)
    except GameError as e:
        move_error(type(e).__name__, str(e)); return
    emit("state", full_state(game_data), to=room)
    play_ai_turn(room, game_data)

@socketio.on("restart")
def restart(data):
    room = data.get("room")
    game_data = games.get(room)
    if not game_data: emit("invalid"); return
    # pve: colours swap every game
    if game_data["mode"] == "pve":
        game_data["user_black"] = not game_data["user_black"]
    game_data["game"] = UltimateTicTacToe()
    emit("state", full_state(game_data), to=room)
    play_ai_turn(room, game_data)

@socketio.on("analyze")
def analyze(data):
    game_data = games.get(data.get("room"))
    if not game_data: emit("invalid"); return
    emit("analyzing")
    socketio.start_background_task(_run_analysis, request.sid, game_data["game"].copy())


if __name__ == "__main__":
    socketio.run(app, host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=True)
