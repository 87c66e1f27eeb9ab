"""
Data Ingestion

Modules:
- chesscom: Chess.com API client and game normalization
"""


def __getattr__(name):
    """Lazy imports to avoid RuntimeWarning when running modules directly."""
    if name == "ChessComClient":
        from src.ingestion.chesscom import ChessComClient
        return ChessComClient
    if name == "normalize_games":
        from src.ingestion.chesscom import normalize_games
        return normalize_games
    if name == "load_games_json":
        from src.ingestion.chesscom import load_games_json
        return load_games_json
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
