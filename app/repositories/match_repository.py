"""
Match Repository for match-owned data access.

Usage:
    repo = MatchRepository(db)
    if repo.exists("abc"):
        repo.purge("abc")
"""
from typing import Dict, List, Optional

from sqlalchemy import distinct

from app.models import (
    Match,
    MatchParticipant,
    Round,
    RoundParticipantStat,
    KillEvent,
    DamageEvent,
    MatchTag,
)
from app.repositories.base import BaseRepository

# Deepest-owned first, Match last
PURGE_ORDER = (
    RoundParticipantStat,
    KillEvent,
    DamageEvent,
    MatchTag,
    MatchParticipant,
    Round,
    Match,
)


class MatchRepository(BaseRepository[Match]):
    """Repository for matches and every row they own."""

    def __init__(self, db):
        super().__init__(Match, db)

    def find_by_match_id(self, match_id: str) -> Optional[Match]:
        return self.get(match_id)

    def exists(self, match_id: str) -> bool:
        """Existence check that does not load the Match into the session."""
        return self.exists_where(Match.match_id == match_id)

    def find_by_team(self, team_id: str) -> List[Match]:
        return self.where(Match.team_id == team_id)

    def purge(self, match_id: str) -> Dict[str, int]:
        """
        Delete a match and everything it owns, in dependency order.

        Does not commit; callers decide the transaction boundary.

        Returns:
            Rows deleted per table
        """
        deleted = {}
        for model in PURGE_ORDER:
            deleted[model.__tablename__] = self.db.query(model).filter(
                model.match_id == match_id
            ).delete(synchronize_session="fetch")
        return deleted

    # ========================================================================
    # Tags
    # ========================================================================

    def tag_names(self, match_id: str) -> List[str]:
        rows = self.db.query(MatchTag.tag_name).filter(
            MatchTag.match_id == match_id
        ).order_by(MatchTag.tag_name).all()
        return [row[0] for row in rows]

    def all_tag_names(self) -> List[str]:
        rows = self.db.query(distinct(MatchTag.tag_name)).order_by(MatchTag.tag_name).all()
        return [row[0] for row in rows]

    def find_tag(self, match_id: str, tag_name: str) -> Optional[MatchTag]:
        return self.db.get(MatchTag, (match_id, tag_name))

    # ========================================================================
    # Row counts (used by data checks and tests)
    # ========================================================================

    def owned_row_counts(self, match_id: str) -> Dict[str, int]:
        return {
            model.__tablename__: self.db.query(model).filter(model.match_id == match_id).count()
            for model in PURGE_ORDER
        }
