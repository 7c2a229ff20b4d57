"""Tests for the board engine: legality, local/global outcomes, forced board."""

import random

import pytest

from uttt.ai import get_ai_move
from uttt.errors import GameOverError, IllegalMoveError
from uttt.logic import (
    BLACK, WHITE, TIE, WIN_LINES,
    UltimateTicTacToe, check_meta_winner, check_win, new_game, would_win,
)

# Full local board with no line for either mark
TIED_CELLS = [BLACK, WHITE, BLACK,
              BLACK, WHITE, WHITE,
              WHITE, BLACK, BLACK]


def tie_board(game, b):
    game.boards[b] = list(TIED_CELLS)
    game.board_winners[b] = TIE


def play(game, moves):
    for b, c in moves:
        game.make_move(b, c)
    return game


class TestNewGame:
    def test_initial_state(self):
        g = new_game()
        assert g.current_player == BLACK
        assert g.forced_board is None
        assert g.game_winner is None
        assert g.last_move is None
        assert g.board_winners == [None] * 9
        assert all(cell is None for board in g.boards for cell in board)

    def test_all_81_cells_open(self, game):
        assert len(game.get_valid_moves()) == 81


class TestWinPatterns:
    def test_eight_lines(self):
        assert len(WIN_LINES) == 8
        assert {(0, 1, 2), (3, 4, 5), (6, 7, 8), (0, 3, 6),
                (1, 4, 7), (2, 5, 8), (0, 4, 8), (2, 4, 6)} == set(WIN_LINES)

    @pytest.mark.parametrize("line", WIN_LINES)
    def test_every_line_wins(self, line):
        cells = [None] * 9
        for i in line:
            cells[i] = WHITE
        assert check_win(cells) == (WHITE, list(line))

    def test_full_board_without_line_is_tie(self):
        assert check_win(TIED_CELLS) == (TIE, None)

    def test_open_board_undecided(self):
        assert check_win([BLACK, WHITE] + [None] * 7) == (None, None)

    def test_meta_ignores_tied_boards(self):
        statuses = [TIE, TIE, TIE, None, None, None, None, None, None]
        assert check_meta_winner(statuses) == (None, None)

    def test_meta_tie_when_all_decided(self):
        statuses = [BLACK, WHITE, BLACK, BLACK, WHITE, WHITE, WHITE, BLACK, TIE]
        assert check_meta_winner(statuses) == (TIE, None)

    def test_meta_win(self):
        statuses = [WHITE, TIE, None, None, WHITE, None, BLACK, None, WHITE]
        assert check_meta_winner(statuses) == (WHITE, [0, 4, 8])

    def test_meta_result_is_stable(self):
        statuses = [BLACK, BLACK, BLACK, TIE, WHITE, None, None, None, None]
        assert check_meta_winner(statuses) == check_meta_winner(list(statuses))


class TestWouldWin:
    def test_open_line(self):
        cells = [BLACK, BLACK, None, None, None, None, None, None, None]
        assert would_win(cells, BLACK)
        assert not would_win(cells, WHITE)

    def test_blocked_line(self):
        cells = [BLACK, BLACK, WHITE, None, None, None, None, None, None]
        assert not would_win(cells, BLACK)

    def test_does_not_touch_cells(self):
        cells = [BLACK, None, BLACK, None, None, None, None, None, None]
        before = list(cells)
        assert would_win(cells, BLACK)
        assert cells == before


class TestLegality:
    def test_occupied_cell(self, game):
        game.make_move(4, 4)
        game.make_move(4, 0)
        game.forced_board = None
        assert not game.is_legal(4, 4)

    def test_wrong_forced_board(self, game):
        game.make_move(4, 4)
        assert game.forced_board == 4
        assert not game.is_legal(3, 0)
        with pytest.raises(IllegalMoveError):
            game.make_move(3, 0)

    def test_decided_board(self, game):
        tie_board(game, 2)
        assert not game.is_legal(2, 0)
        with pytest.raises(IllegalMoveError):
            game.make_move(2, 0)

    def test_out_of_range(self, game):
        assert not game.is_legal(9, 0)
        assert not game.is_legal(0, -1)
        with pytest.raises(IllegalMoveError):
            game.make_move(0, 9)

    def test_game_over(self, game):
        game.game_winner = BLACK
        assert not game.is_legal(0, 0)
        with pytest.raises(GameOverError):
            game.make_move(0, 0)

    def test_rejected_move_leaves_state_unchanged(self, game):
        game.make_move(4, 4)
        before = game.copy().state()
        with pytest.raises(IllegalMoveError):
            game.make_move(0, 0)
        with pytest.raises(IllegalMoveError):
            game.make_move(4, 4)
        assert game.state() == before


class TestApplyMove:
    def test_center_opening(self, game):
        """Black in the centre of the centre sends White to board 4."""
        game.make_move(4, 4)
        assert game.boards[4][4] == BLACK
        assert game.forced_board == 4
        assert game.current_player == WHITE
        assert game.last_move == [4, 4]

    def test_forced_to_board_of_cell(self, game):
        play(game, [(4, 4), (4, 7)])
        assert game.forced_board == 7
        assert game.current_player == BLACK

    def test_local_win_decides_board_immediately(self, game):
        """Black takes cells 0, 1, 2 of board 0 while White keeps sending it back."""
        play(game, [(0, 1), (1, 0), (0, 2), (2, 0), (0, 0)])
        assert game.board_winners[0] == BLACK
        assert game.board_win_lines[0] == [0, 1, 2]
        assert all(cell is None for cell in game.boards[0][3:])
        # Sent to the board just won: free choice
        assert game.forced_board is None
        assert not game.is_legal(0, 5)

    def test_sent_to_decided_board_is_free(self, game):
        tie_board(game, 3)
        game.make_move(4, 3)
        assert game.forced_board is None
        assert (0, 0) in game.get_valid_moves()
        assert not any(b == 3 for b, _ in game.get_valid_moves())

    def test_decided_status_never_changes(self, game):
        play(game, [(0, 1), (1, 0), (0, 2), (2, 0), (0, 0)])
        for c in range(3, 9):
            with pytest.raises(IllegalMoveError):
                game.make_move(0, c)
        assert game.board_winners[0] == BLACK

    def test_all_boards_tied_is_global_tie(self, game):
        for b in range(8):
            tie_board(game, b)
        game.boards[8] = list(TIED_CELLS[:8]) + [None]
        game.forced_board = 8
        game.current_player = TIED_CELLS[8]
        game.make_move(8, 8)
        assert game.board_winners[8] == TIE
        assert game.game_winner == TIE
        assert game.game_win_line is None
        assert game.get_valid_moves() == []
        with pytest.raises(GameOverError):
            game.make_move(0, 0)

    def test_global_win(self, game):
        game.board_winners[0] = WHITE
        game.board_winners[4] = WHITE
        game.boards[8] = [WHITE, WHITE, None, None, BLACK, None, BLACK, None, None]
        game.forced_board = 8
        game.current_player = WHITE
        game.make_move(8, 2)
        assert game.board_winners[8] == WHITE
        assert game.game_winner == WHITE
        assert game.game_win_line == [0, 4, 8]
        assert game.is_over


class TestFullGames:
    @pytest.mark.parametrize("seed", range(10))
    def test_random_games_stay_consistent(self, seed):
        rng = random.Random(seed)
        game = UltimateTicTacToe()
        played = 0
        while not game.is_over:
            assert game.current_player == (BLACK if played % 2 == 0 else WHITE)
            decided = {b: s for b, s in enumerate(game.board_winners) if s}
            b, c = get_ai_move(game, "easy", rng)
            assert game.is_legal(b, c)
            game.make_move(b, c)
            played += 1
            # Decided boards stay decided
            for i, s in decided.items():
                assert game.board_winners[i] == s
            if game.forced_board is not None:
                assert game.board_winners[game.forced_board] is None
        assert game.game_winner in (BLACK, WHITE, TIE)
        assert check_meta_winner(game.board_winners)[0] == game.game_winner
        assert played <= 81


class TestCopy:
    def test_copy_is_independent(self, game):
        game.make_move(4, 4)
        snap = game.copy()
        snap.make_move(4, 0)
        assert game.boards[4][0] is None
        assert game.current_player == WHITE
        assert snap.current_player == BLACK


class TestDescribe:
    def test_marks_and_forced_board(self, game):
        play(game, [(4, 4), (4, 0)])
        text = game.describe()
        assert "--> [Board 0]" in text
        assert "    [Board 4]" in text
        assert "    W | . | .\n    --+---+--\n    . | B | ." in text

    def test_tied_board_shown_as_x(self, game):
        tie_board(game, 5)
        assert "[Board 5: X (decided)]" in game.describe()

    def test_won_board(self, game):
        play(game, [(0, 1), (1, 0), (0, 2), (2, 0), (0, 0)])
        assert "[Board 0: B (decided)]" in game.describe()

    def test_deterministic(self, game):
        play(game, [(4, 4), (4, 0)])
        assert game.describe() == game.copy().describe()

    def test_game_over(self, game):
        game.game_winner = WHITE
        assert game.describe() == "Game over: the winner is White."
        game.game_winner = TIE
        assert game.describe() == "Game over: the game is a tie."
