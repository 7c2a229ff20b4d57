"""Move advisor for Ultimate Tic-Tac-Toe — easy / hard difficulties.

HARD AI HEURISTIC (one ply, no search)
──────────────────────────────────────
1. Take an immediate global win if one exists (scan order: board, then cell).
2. Otherwise occupy the first cell where the opponent's mark would win the
   global board.
3. Otherwise score every legal move and pick uniformly among the best:
     +300  completes a line on the local board
     +150  (else) the opponent's mark there would have completed one
     +50   sends the opponent to an already decided board (free choice)
     +10   the cell is a centre cell (sends the opponent to board 4)
     -500  sends the opponent to an open board they can win right away
   Scores <= 0 are raised to 1 unless the -500 penalty applied, so neutral
   moves always beat the penalised ones.

The advisor only reads the game; simulations run on copied cell lists.
"""
import logging
import math
import random

from .errors import NoLegalMoveError
from .logic import check_meta_winner, check_win, opponent, would_win

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "hard")

LOCAL_WIN_SCORE   = 300
LOCAL_BLOCK_SCORE = 150
FREE_CHOICE_SCORE = 50     # a reward, not a penalty
CENTER_SCORE      = 10
GIFT_PENALTY      = 500
NEUTRAL_SCORE     = 1


# ── Simulation helpers ───────────────────────────────────────────────────────
def _wins_locally(cells, c, mark):
    trial = list(cells); trial[c] = mark
    return check_win(trial)[0] == mark


def wins_globally(game, b, c, mark):
    """Would ``mark`` at (b, c) win local board b and with it the global board?"""
    if game.boards[b][c] is not None:
        return False
    if not _wins_locally(game.boards[b], c, mark):
        return False
    winners = list(game.board_winners); winners[b] = mark
    return check_meta_winner(winners)[0] == mark


def legal_moves(game):
    return game.get_valid_moves()


# ── Scoring ──────────────────────────────────────────────────────────────────
def score_move(game, b, c, mark=None):
    """Heuristic score of ``mark`` (default: the player to move) playing (b, c)."""
    mark = mark or game.current_player
    opp = opponent(mark)
    cells = game.boards[b]
    score = 0

    if _wins_locally(cells, c, mark):
        score += LOCAL_WIN_SCORE
    elif _wins_locally(cells, c, opp):
        score += LOCAL_BLOCK_SCORE

    # Cell c is where the opponent is sent next
    target_status = game.board_winners[c]
    if target_status:
        score += FREE_CHOICE_SCORE
    if c == 4:
        score += CENTER_SCORE

    gifts_local_win = target_status is None and would_win(game.boards[c], opp)
    if gifts_local_win:
        score -= GIFT_PENALTY

    if score <= 0 and not gifts_local_win:
        score = NEUTRAL_SCORE
    return score


def best_move(game, rng=None):
    rng = rng if rng is not None else random
    valid = game.get_valid_moves()
    if not valid: return None
    me = game.current_player; opp = opponent(me)

    # Instant global win
    for b, c in valid:
        if wins_globally(game, b, c, me):
            logger.debug("Hard AI: global win at (%d, %d)", b, c)
            return b, c

    # Global block
    for b, c in valid:
        if wins_globally(game, b, c, opp):
            logger.debug("Hard AI: global block at (%d, %d)", b, c)
            return b, c

    best_score = -math.inf; best_moves = []
    for b, c in valid:
        score = score_move(game, b, c, me)
        if score > best_score:
            best_score, best_moves = score, [(b, c)]
        elif score == best_score:
            best_moves.append((b, c))

    move = rng.choice(best_moves)
    logger.debug("Hard AI: %s scored %s (%d tied)", move, best_score, len(best_moves))
    return move


def random_move(game, rng=None):
    rng = rng if rng is not None else random
    valid = game.get_valid_moves()
    return rng.choice(valid) if valid else None


# ── Public API ───────────────────────────────────────────────────────────────
def get_ai_move(game, difficulty="hard", rng=None):
    """Pick a move for the player to move. Raises NoLegalMoveError once the game is over."""
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty {difficulty!r}, expected one of {DIFFICULTIES}")
    if game.game_winner:
        raise NoLegalMoveError("Game is over, there is no move to make.")
    if not game.get_valid_moves():
        raise NoLegalMoveError("No legal moves available.")
    move = None
    if difficulty == "hard":
        move = best_move(game, rng)
    # Easy, and fallback for hard
    if move is None:
        move = random_move(game, rng)
    return move
