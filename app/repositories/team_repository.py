"""
Team Repository for ownership and membership lookups.
"""
from app.models import Match, MatchParticipant, Team, TeamMember
from app.repositories.base import BaseRepository


class TeamRepository(BaseRepository[Team]):
    """Repository for teams and their members."""

    def __init__(self, db):
        super().__init__(Team, db)

    def is_member(self, team_id: str, user_id: str) -> bool:
        return self.db.get(TeamMember, (team_id, user_id)) is not None

    def shares_match_with_player(self, user_id: str, puuid: str) -> bool:
        """True if one of the user's teams owns a match the player took part in."""
        query = (
            self.db.query(TeamMember.team_id)
            .join(Match, Match.team_id == TeamMember.team_id)
            .join(MatchParticipant, MatchParticipant.match_id == Match.match_id)
            .filter(TeamMember.user_id == user_id, MatchParticipant.puuid == puuid)
        )
        return self.db.query(query.exists()).scalar()
