"""
Ultimate Tic-Tac-Toe
====================
Rules engine, heuristic move advisor and strategy-analysis client for
Ultimate Tic-Tac-Toe (nine 3x3 boards inside a 3x3 meta-board).
"""

__version__ = "1.0.0"
