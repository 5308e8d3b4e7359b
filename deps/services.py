from fastapi import Request

from sessions import SessionRegistry
from store import ScoreStore


def get_score_store(request: Request) -> ScoreStore:
    """The score store chosen in ``main.py`` (SQL or in-memory)."""
    return request.app.state.score_store


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions
