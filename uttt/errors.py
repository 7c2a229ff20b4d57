"""Exceptions raised by the game engine, the move advisor and the analysis client."""


class GameError(Exception):
    """Base class for recoverable game errors. State is never changed when one is raised."""


class IllegalMoveError(GameError):
    """Cell occupied, wrong forced board, decided board or index out of range."""


class GameOverError(GameError):
    """A move was attempted after the global board was decided."""


class NoLegalMoveError(GameError):
    """The advisor was asked for a move with nothing left to play."""


class AnalysisError(Exception):
    """The remote strategy analysis could not be obtained."""
