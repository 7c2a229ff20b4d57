"""Shared fixtures. Environment is set before app.py is ever imported."""

import os
import random
import sys
from pathlib import Path

os.environ["UTTT_ASYNC_MODE"] = "threading"
os.environ["AI_THINK_TIME"] = "0"
os.environ.pop("GEMINI_API_KEY", None)

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from uttt.logic import UltimateTicTacToe


@pytest.fixture
def game():
    return UltimateTicTacToe()


@pytest.fixture
def rng():
    return random.Random(1234)
