"""
Chess.com Game Ingestion

This module fetches a player's monthly game archives from the public
Chess.com API and normalizes each game into a GameRecord for the timeline
engine. It also reads saved archive exports from disk.

Usage:
    from src.ingestion.chesscom import ChessComClient, normalize_games
    client = ChessComClient("hikaru")
    records, skipped = normalize_games(client.get_all_games({"blitz"}), "hikaru")
"""

import sys
from pathlib import Path

# Add project root to path for direct script execution
_project_root = str(Path(__file__).parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import json
import time
from datetime import datetime, timezone
from urllib.parse import quote

import requests

from src.config import API_ROOT, MAX_INPUT_SIZE, MIN_REQUEST_GAP, REQUEST_TIMEOUT, USER_AGENT
from src.timeline.models import GameRecord
from src.utils import (
    PGN_TAG_RE,
    coerce_timestamp,
    sanitize_username,
    setup_logging,
    validate_input_size,
    validate_username,
)

# --- Module Logger ---
logger = setup_logging(__name__)

DRAW_RESULTS = frozenset({"agreed", "stalemate"})


class IngestionError(Exception):
    """Custom exception for ingestion errors"""
    pass


class ValidationError(IngestionError):
    """Validation-specific errors"""
    pass


class FetchError(IngestionError):
    """HTTP or decoding failure while talking to the API"""
    pass


# --- Normalization ---
def parse_pgn_tags(pgn: str | None) -> dict:
    """Extract [Tag "value"] header pairs from a PGN string."""
    if not pgn:
        return {}
    return {m.group(1): m.group(2) for m in PGN_TAG_RE.finditer(pgn)}


def normalize_result(username: str, white: dict, black: dict) -> str:
    """
    Our outcome of a game: 'win', 'draw', 'loss' or 'unknown'.

    Chess.com reports a per-side result code (win, checkmated, resigned,
    timeout, agreed, repetition, stalemate, timevsinsufficient, ...). Losing
    on time against insufficient material counts as a draw.
    """
    self_is_white = (white.get('username') or '').lower() == username
    ours = (white if self_is_white else black).get('result') or ''
    theirs = (black if self_is_white else white).get('result') or ''

    if ours == 'win':
        return 'win'
    if ours in DRAW_RESULTS or ours.startswith('repetition') or 'insufficient' in ours:
        return 'draw'
    if ours == 'timeout' and 'insufficient' in theirs:
        return 'draw'
    if ours:
        return 'loss'
    return 'unknown'


def _end_time(game: dict, tags: dict) -> datetime:
    if game.get('end_time'):
        return coerce_timestamp(game['end_time'])
    pgn_date = tags.get('Date')
    if pgn_date:
        try:
            return datetime.strptime(pgn_date, "%Y.%m.%d").replace(tzinfo=timezone.utc)
        except ValueError as e:
            raise ValidationError(f"Unparseable PGN date '{pgn_date}'") from e
    raise ValidationError("Game has no end time")


def _to_rating(value) -> int | None:
    try:
        rating = int(value or 0)
    except (TypeError, ValueError):
        return None
    return rating or None


def normalize_game(game: dict, username: str) -> GameRecord:
    """
    Convert one raw Chess.com game into a GameRecord seen from username's side.

    Ratings fall back to the PGN WhiteElo/BlackElo tags; the control falls back
    to the lowercased PGN Event tag.

    Raises:
        ValidationError: If the game has no usable end time
    """
    user = sanitize_username(username)
    tags = parse_pgn_tags(game.get('pgn'))
    white = game.get('white') or {}
    black = game.get('black') or {}

    self_is_white = (white.get('username') or '').lower() == user
    if self_is_white:
        our_rating = _to_rating(white.get('rating') or tags.get('WhiteElo'))
        opp_rating = _to_rating(black.get('rating'))
        opponent = black.get('username') or ''
    else:
        our_rating = _to_rating(black.get('rating') or tags.get('BlackElo'))
        opp_rating = _to_rating(white.get('rating'))
        opponent = white.get('username') or ''

    return GameRecord(
        date=_end_time(game, tags),
        rating=our_rating,
        control=game.get('time_class') or (tags.get('Event') or '').lower(),
        color='white' if self_is_white else 'black',
        result=normalize_result(user, white, black),
        opponent=opponent,
        opponent_rating=opp_rating,
        url=game.get('url'),
        game_id=game.get('uuid') or game.get('url') or (game.get('pgn') or '')[:32] or None,
    )


def normalize_games(games, username: str) -> tuple[list[GameRecord], int]:
    """
    Normalize a batch of raw games.

    Returns:
        Tuple of (records, skipped_count); games that fail to normalize are skipped
    """
    records = []
    skipped = 0
    for game in games:
        try:
            records.append(normalize_game(game, username))
        except (IngestionError, TypeError, ValueError, OverflowError, OSError) as e:
            skipped += 1
            logger.debug(f"Skipped game {game.get('url', '?') if isinstance(game, dict) else '?'}: {e}")
    if skipped:
        logger.warning(f"Skipped {skipped} of {skipped + len(records)} games during normalization")
    return records, skipped


def load_games_json(path: Path) -> list[dict]:
    """
    Load raw games from a saved archive export.

    Accepts either a monthly archive payload ({"games": [...]}) or a bare list.

    Raises:
        ValidationError: If the file is too large or not an archive payload
    """
    text = Path(path).read_text(encoding='utf-8')
    try:
        validate_input_size(text, MAX_INPUT_SIZE)
        data = json.loads(text)
    except ValueError as e:
        raise ValidationError(f"Could not load {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get('games', [])
    if not isinstance(data, list):
        raise ValidationError(f"Unexpected archive format in {path}")
    logger.info(f"Loaded {len(data)} games from {path}")
    return data


# --- API Client ---
class ChessComClient:
    """
    Minimal client for the public Chess.com API.

    Responses are cached per URL for the lifetime of the client and
    consecutive requests are spaced by at least min_gap seconds.
    """

    def __init__(self, username: str, session: requests.Session | None = None,
                 min_gap: float = MIN_REQUEST_GAP, timeout: float = REQUEST_TIMEOUT):
        username = sanitize_username(username)
        try:
            validate_username(username)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        self.username = username
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
        self.min_gap = min_gap
        self.timeout = timeout
        self.errors: list[str] = []
        self._cache: dict[str, dict] = {}
        self._last_request = 0.0

    @property
    def player_url(self) -> str:
        return f"{API_ROOT}/player/{quote(self.username)}"

    def _wait_for_slot(self):
        since = time.monotonic() - self._last_request
        if since < self.min_gap:
            time.sleep(self.min_gap - since)
        self._last_request = time.monotonic()

    def fetch_json(self, url: str) -> dict:
        """
        GET a JSON document, using the in-session cache.

        Raises:
            FetchError: On HTTP errors, network errors or invalid JSON
        """
        if url in self._cache:
            return self._cache[url]

        self._wait_for_slot()
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise FetchError(f"Request failed for {url}: {e}") from e
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}: {e}") from e

        self._cache[url] = data
        return data

    def _record_error(self, error: Exception):
        self.errors.append(str(error))
        logger.warning(str(error))

    def get_profile(self) -> dict:
        """Player profile. Failures propagate as FetchError."""
        try:
            return self.fetch_json(self.player_url)
        except FetchError as e:
            self._record_error(e)
            raise

    def get_stats(self) -> dict | None:
        try:
            return self.fetch_json(f"{self.player_url}/stats")
        except FetchError as e:
            self._record_error(e)
            return None

    def get_archives(self) -> list[str]:
        try:
            return self.fetch_json(f"{self.player_url}/games/archives").get('archives', [])
        except FetchError as e:
            self._record_error(e)
            return []

    def get_monthly_games(self, month_url: str) -> list[dict]:
        try:
            return self.fetch_json(month_url).get('games', [])
        except FetchError as e:
            self._record_error(e)
            return []

    def get_all_games(self, controls=None, on_progress=None) -> list[dict]:
        """
        Every archived game, optionally restricted to a set of time controls.

        Games without a time_class are dropped.

        Args:
            controls: Collection of time classes to keep (empty/None keeps all)
            on_progress: Optional callback(done, total) after each month

        Returns:
            List of raw game dicts in archive order
        """
        archives = self.get_archives()
        total = len(archives)
        logger.info(f"Fetching {total} monthly archives for {self.username}...")

        out = []
        for done, url in enumerate(archives, start=1):
            for game in self.get_monthly_games(url):
                time_class = game.get('time_class')
                if not time_class:
                    continue
                if controls and time_class not in controls:
                    continue
                out.append(game)
            if on_progress is not None:
                on_progress(done, total)
            logger.debug(f"Fetched {done}/{total} months")

        logger.info(f"Fetched {len(out)} games for {self.username}")
        return out
