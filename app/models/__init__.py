"""
Models Module

Usage:
    from app.models import Match, Player, Round

    match = db.get(Match, "abc")
    rounds = match.rounds
"""
from app.models.models import (
    Base,
    Team,
    TeamMember,
    Player,
    Match,
    MatchParticipant,
    Round,
    RoundParticipantStat,
    KillEvent,
    DamageEvent,
    MatchTag,
)

__all__ = [
    "Base",
    "Team",
    "TeamMember",
    "Player",
    "Match",
    "MatchParticipant",
    "Round",
    "RoundParticipantStat",
    "KillEvent",
    "DamageEvent",
    "MatchTag",
]
