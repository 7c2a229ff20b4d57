"""
Strategy analysis through the Gemini generateContent API.

The board is sent as text (see UltimateTicTacToe.describe) and the reply is
free-form advice plus optional grounding sources. The engine and the advisor
never read the result; it is only shown to the player.
"""

import os
import logging
from dataclasses import dataclass, field, asdict

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import AnalysisError
from .logic import BLACK

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

SYSTEM_PROMPT = (
    "You are a world-class Ultimate Tic-Tac-Toe strategy analyst. Using the board "
    "position and rules provided, give the current player concise, expert strategic "
    "advice in three parts:\n"
    "1. Overview: summarise the position as a whole.\n"
    "2. Key challenge (or key advantage): the main opportunity or threat facing the "
    "current player, especially around the board they are forced to play in next.\n"
    "3. Recommendation: one or two high-priority targets and the plan behind them.\n\n"
    "Use Markdown (**bold**, lists) to organise the answer. Do not mention that you "
    "are an AI model."
)

RULES_SUMMARY = (
    "Rules in brief: the 9x9 board is made of nine 3x3 boards. The cell you play in "
    "decides which 3x3 board your opponent must play in next. If that board is already "
    "decided, the opponent may play in any open board. Win by taking three boards in a row."
)

EMPTY_REPLY_TEXT = "The analysis came back empty, please try again."
FALLBACK_TEXT = (
    "The strategy analysis service ran into a connection or internal error. "
    "Please try again later."
)


@dataclass
class Source:
    """A web page the analysis was grounded on."""
    uri: str
    title: str


@dataclass
class Analysis:
    text: str
    sources: list[Source] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def build_user_query(game) -> str:
    player = "Black" if game.current_player == BLACK else "White"
    if game.forced_board is not None:
        constraint = f"The player must move in board {game.forced_board}."
    else:
        constraint = "The player may move in any board that is not yet decided."
    return (
        "Analyse the current Ultimate Tic-Tac-Toe position and give strategic advice.\n\n"
        f"{RULES_SUMMARY}\n\n"
        f"Current player: {player}\n"
        f"Move constraint: {constraint}\n\n"
        f"Board:\n{game.describe()}"
    )


def build_payload(game) -> dict:
    return {
        "contents": [{"parts": [{"text": build_user_query(game)}]}],
        "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
        "tools": [{"google_search": {}}],
    }


def parse_response(data: dict) -> Analysis:
    """Pull the first candidate's text and its grounding attributions out of a reply."""
    candidates = data.get("candidates") or []
    first = candidates[0] if candidates else {}
    parts = (first.get("content") or {}).get("parts") or []
    text = parts[0].get("text") if parts else None

    sources = []
    metadata = first.get("groundingMetadata") or {}
    for attribution in metadata.get("groundingAttributions") or []:
        web = attribution.get("web") or {}
        # Only keep sources that can be rendered as a titled link
        if web.get("uri") and web.get("title"):
            sources.append(Source(uri=web["uri"], title=web["title"]))

    return Analysis(text=text or EMPTY_REPLY_TEXT, sources=sources)


class StrategyAnalyst:
    """Client for the remote strategy analysis."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        """
        Args:
            api_key: Gemini API key (default: GEMINI_API_KEY env var)
            model: Model name (default: GEMINI_MODEL env var or DEFAULT_MODEL)
            base_url: API root (default: GEMINI_API_URL env var or DEFAULT_BASE_URL)
            timeout: Request timeout in seconds (default: ANALYSIS_TIMEOUT or 30)
            max_retries: Total attempts, including the first (default: ANALYSIS_MAX_RETRIES or 5)
        """
        self.api_key = api_key if api_key is not None else os.environ.get("GEMINI_API_KEY", "")
        self.model = model or os.environ.get("GEMINI_MODEL", DEFAULT_MODEL)
        self.base_url = (base_url or os.environ.get("GEMINI_API_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.timeout = timeout if timeout is not None else float(os.environ.get("ANALYSIS_TIMEOUT", 30))
        attempts = max_retries if max_retries is not None else int(os.environ.get("ANALYSIS_MAX_RETRIES", 5))

        # Exponential backoff on rate limiting and server errors
        self.session = requests.Session()
        retry_strategy = Retry(
            total=max(0, attempts - 1),
            backoff_factor=1.0,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=frozenset({"POST"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def request_analysis(self, game) -> Analysis:
        """Ask for advice on ``game``. Raises AnalysisError on any failure."""
        if not self.api_key:
            raise AnalysisError("GEMINI_API_KEY is not set")
        try:
            response = self.session.post(
                self._url(),
                params={"key": self.api_key},
                json=build_payload(game),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AnalysisError(f"request failed after retries: {e}") from e
        if not response.ok:
            raise AnalysisError(f"HTTP error {response.status_code}")
        try:
            data = response.json()
        except ValueError as e:
            raise AnalysisError("response is not valid JSON") from e
        return parse_response(data)

    def analyze(self, game) -> Analysis:
        """Like request_analysis, but failures turn into an apology text."""
        try:
            return self.request_analysis(game)
        except AnalysisError as e:
            logger.warning("Strategy analysis failed: %s", e)
            return Analysis(text=FALLBACK_TEXT)
