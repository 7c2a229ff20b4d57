"""Board engine for Ultimate Tic-Tac-Toe.

Nine local boards of nine cells, indexed row-major 0-8 at both levels.
Black always moves first. A move at cell ``c`` sends the opponent to local
board ``c`` unless that board is already decided, in which case they may play
in any undecided board.
"""
import logging

from .errors import GameOverError, IllegalMoveError

logger = logging.getLogger(__name__)

BLACK, WHITE, TIE = "B", "W", "T"

WIN_LINES = [
    (0,1,2),(3,4,5),(6,7,8),
    (0,3,6),(1,4,7),(2,5,8),
    (0,4,8),(2,4,6)
]

_NAMES = {BLACK: "Black", WHITE: "White", TIE: "Tie"}


def opponent(mark):
    return WHITE if mark == BLACK else BLACK


def check_win(cells):
    """Status of a 3x3 board: (mark, line) for a win, (TIE, None) when full, else (None, None)."""
    for a, b, c in WIN_LINES:
        if cells[a] and cells[a] == cells[b] == cells[c]:
            return cells[a], [a, b, c]
    if all(cells):
        return TIE, None
    return None, None


def check_meta_winner(statuses):
    """Same as check_win over local board statuses, where a tied board never counts toward a line."""
    for a, b, c in WIN_LINES:
        if statuses[a] and statuses[a] != TIE and statuses[a] == statuses[b] == statuses[c]:
            return statuses[a], [a, b, c]
    if all(statuses):
        return TIE, None
    return None, None


def would_win(cells, mark):
    """True if ``mark`` completes a line by filling one empty cell of ``cells``."""
    for i in range(9):
        if cells[i] is None:
            trial = list(cells); trial[i] = mark
            if check_win(trial)[0] == mark:
                return True
    return False


class UltimateTicTacToe:
    def __init__(self):
        self.boards = [[None]*9 for _ in range(9)]
        self.board_winners = [None]*9
        self.board_win_lines = [None]*9   # which 3 cells formed each local win
        self.current_player = BLACK
        self.forced_board = None
        self.game_winner = None
        self.game_win_line = None          # which 3 local boards formed the meta-win
        self.last_move = None              # [board, cell]

    @property
    def is_over(self):
        return self.game_winner is not None

    def _check_move(self, b, c):
        if self.game_winner:
            raise GameOverError(f"Game is already over ({_NAMES[self.game_winner]}).")
        if not (0 <= b <= 8 and 0 <= c <= 8):
            raise IllegalMoveError(f"Move ({b}, {c}) is off the board. Indices must be 0-8.")
        if self.board_winners[b]:
            raise IllegalMoveError(f"Board {b} is already decided.")
        if self.forced_board is not None and b != self.forced_board:
            raise IllegalMoveError(f"Must play in board {self.forced_board}, not board {b}.")
        if self.boards[b][c] is not None:
            raise IllegalMoveError(f"Cell {c} of board {b} is already occupied.")

    def is_legal(self, b, c):
        try:
            self._check_move(b, c)
        except (IllegalMoveError, GameOverError):
            return False
        return True

    def make_move(self, b, c):
        """Place the current player's mark at (b, c). Raises without touching state if illegal."""
        self._check_move(b, c)
        player = self.current_player
        self.boards[b][c] = player
        self.last_move = [b, c]
        winner, win_line = check_win(self.boards[b])
        if winner:
            self.board_winners[b] = winner
            self.board_win_lines[b] = win_line
            logger.debug("Board %d decided: %s", b, _NAMES[winner])
        self.game_winner, self.game_win_line = check_meta_winner(self.board_winners)
        if self.game_winner:
            logger.info("Game over: %s", _NAMES[self.game_winner])
        self.forced_board = c if self.board_winners[c] is None else None
        self.current_player = opponent(player)
        return self

    def get_valid_moves(self):
        if self.game_winner:
            return []
        moves = []
        boards_to_check = range(9) if self.forced_board is None else [self.forced_board]
        for b in boards_to_check:
            if self.board_winners[b]: continue
            for c in range(9):
                if self.boards[b][c] is None: moves.append((b, c))
        return moves

    def copy(self):
        g = UltimateTicTacToe.__new__(UltimateTicTacToe)
        g.boards          = [list(r) for r in self.boards]
        g.board_winners   = list(self.board_winners)
        g.board_win_lines = [list(l) if l else None for l in self.board_win_lines]
        g.current_player  = self.current_player
        g.forced_board    = self.forced_board
        g.game_winner     = self.game_winner
        g.game_win_line   = list(self.game_win_line) if self.game_win_line else None
        g.last_move       = list(self.last_move) if self.last_move else None
        return g

    def state(self):
        return {
            "boards": self.boards,
            "winners": self.board_winners,
            "boardWinLines": self.board_win_lines,
            "player": self.current_player,
            "forced": self.forced_board,
            "gameWinner": self.game_winner,
            "gameWinLine": self.game_win_line,
            "lastMove": self.last_move,
        }

    def describe(self):
        """Plain-text picture of the position: B/W marks, '.' empty, X for a tied board, '-->' on the forced board."""
        if self.game_winner:
            if self.game_winner == TIE:
                return "Game over: the game is a tie."
            return f"Game over: the winner is {_NAMES[self.game_winner]}."
        lines = ["Ultimate Tic-Tac-Toe position (B=Black, W=White, .=empty, X=tied board):", ""]
        for i in range(9):
            prefix = "-->" if self.forced_board == i else "   "
            status = self.board_winners[i]
            if status:
                shown = "X" if status == TIE else status
                lines.append(f"{prefix} [Board {i}: {shown} (decided)]")
            else:
                lines.append(f"{prefix} [Board {i}]")
                for r in range(3):
                    row = self.boards[i][r*3:r*3+3]
                    lines.append("    " + " | ".join(cell or "." for cell in row))
                    if r < 2: lines.append("    --+---+--")
            if i % 3 == 2 and i != 8:
                lines.append("")
        return "\n".join(lines) + "\n"


def new_game():
    return UltimateTicTacToe()
