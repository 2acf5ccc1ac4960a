"""
Repository layer for data access.

The repository pattern provides:
1. Separation of data access logic from business logic
2. Single place for query logic (easier to maintain)
3. Easier testing (can mock repositories)
4. Consistent interface for data operations

Usage:
    from app.repositories import MatchRepository
    from app.core.database import SessionLocal

    db = SessionLocal()
    match_repo = MatchRepository(db)
    match = match_repo.find_by_match_id("abc")
    db.close()
"""

from app.repositories.base import BaseRepository
from app.repositories.match_repository import MatchRepository
from app.repositories.player_repository import PlayerRepository
from app.repositories.team_repository import TeamRepository

__all__ = [
    "BaseRepository",
    "MatchRepository",
    "PlayerRepository",
    "TeamRepository",
]
