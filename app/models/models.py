"""
Database models for match analytics.

Every table is keyed by the natural identifiers of the source data
(match id, player puuid, round number). Rows owned by a match cascade with
it; players are shared across matches and are never removed by match
deletion.
"""
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, BigInteger, DateTime, ForeignKey, Boolean, Float,
    Index, JSON, ForeignKeyConstraint,
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


# =============================================================================
# TEAMS (ownership / membership collaborator)
# =============================================================================

class Team(Base):
    """A group of users that owns uploaded matches."""
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")
    matches = relationship("Match", back_populates="team")


class TeamMember(Base):
    __tablename__ = "team_members"

    team_id = Column(String(36), ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(36), primary_key=True)
    role = Column(String(20), nullable=False, default="member")  # owner, member
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    team = relationship("Team", back_populates="members")


# =============================================================================
# PLAYER (shared across matches)
# =============================================================================

class Player(Base):
    """
    One row per unique puuid across all matches.

    merged_to_puuid is a weak reference to the canonical account of the same
    person (user correction). It carries no cascade and is validated by
    PlayerService, not by the database.
    """
    __tablename__ = "players"

    puuid = Column(String(78), primary_key=True)
    game_name = Column(String(100), nullable=True)
    tag_line = Column(String(20), nullable=True)
    alias = Column(String(100), nullable=True)
    merged_to_puuid = Column(String(78), ForeignKey("players.puuid", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    merged_to = relationship("Player", remote_side=[puuid], foreign_keys=[merged_to_puuid])
    participations = relationship("MatchParticipant", back_populates="player")


# =============================================================================
# MATCH
# =============================================================================

class Match(Base):
    """One played game, owning all of its rounds, participants and events."""
    __tablename__ = "matches"

    match_id = Column(String(64), primary_key=True)
    team_id = Column(String(36), ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True)

    map_id = Column(String(255), nullable=True, index=True)
    game_pod_id = Column(String(255), nullable=True)
    game_loop_zone = Column(String(100), nullable=True)
    game_server_address = Column(String(255), nullable=True)
    game_version = Column(String(100), nullable=True)
    game_length_millis = Column(BigInteger, nullable=True)
    game_start_millis = Column(BigInteger, nullable=True, index=True)  # epoch ms, exceeds 32 bits
    provisioning_flow_id = Column(String(100), nullable=True)
    is_completed = Column(Boolean, nullable=True)
    custom_game_name = Column(String(255), nullable=True)
    queue_id = Column(String(100), nullable=True)
    game_mode = Column(String(255), nullable=True)
    is_ranked = Column(Boolean, nullable=True)
    season_id = Column(String(64), nullable=True)
    completion_state = Column(String(50), nullable=True)
    platform_type = Column(String(50), nullable=True)

    winning_team = Column(String(10), nullable=True)  # Red, Blue, Draw

    # User-editable presentation overrides
    my_team_side = Column(String(10), nullable=True)  # Red, Blue
    red_team_name = Column(String(100), nullable=True)
    blue_team_name = Column(String(100), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    team = relationship("Team", back_populates="matches")
    participants = relationship("MatchParticipant", back_populates="match", cascade="all, delete-orphan", passive_deletes=True)
    rounds = relationship("Round", back_populates="match", cascade="all, delete-orphan", passive_deletes=True, order_by="Round.round_num")
    kill_events = relationship("KillEvent", back_populates="match", cascade="all, delete-orphan", passive_deletes=True)
    damage_events = relationship("DamageEvent", back_populates="match", cascade="all, delete-orphan", passive_deletes=True)
    tags = relationship("MatchTag", back_populates="match", cascade="all, delete-orphan", passive_deletes=True)


class MatchParticipant(Base):
    """A player's involvement in one match, with source-aggregated stats."""
    __tablename__ = "match_participants"

    match_id = Column(String(64), ForeignKey("matches.match_id", ondelete="CASCADE"), primary_key=True)
    puuid = Column(String(78), ForeignKey("players.puuid"), primary_key=True)

    team_id = Column(String(10), nullable=True)  # side: Red, Blue
    party_id = Column(String(64), nullable=True)
    character_id = Column(String(64), nullable=True)
    competitive_tier = Column(Integer, nullable=True)
    account_level = Column(Integer, nullable=True)

    score = Column(Integer, nullable=True)
    rounds_played = Column(Integer, nullable=True)
    kills = Column(Integer, nullable=True)
    deaths = Column(Integer, nullable=True)
    assists = Column(Integer, nullable=True)
    playtime_millis = Column(BigInteger, nullable=True)
    grenade_casts = Column(Integer, nullable=True)
    ability1_casts = Column(Integer, nullable=True)
    ability2_casts = Column(Integer, nullable=True)
    ultimate_casts = Column(Integer, nullable=True)

    match = relationship("Match", back_populates="participants")
    player = relationship("Player", back_populates="participations")


# =============================================================================
# ROUNDS
# =============================================================================

class Round(Base):
    __tablename__ = "rounds"

    match_id = Column(String(64), ForeignKey("matches.match_id", ondelete="CASCADE"), primary_key=True)
    round_num = Column(Integer, primary_key=True)  # 0-indexed

    round_result = Column(String(100), nullable=True)
    round_ceremony = Column(String(100), nullable=True)
    winning_team = Column(String(10), nullable=True)

    bomb_planter = Column(String(78), nullable=True)
    bomb_defuser = Column(String(78), nullable=True)
    plant_round_time = Column(Integer, nullable=True)
    plant_location_x = Column(Float, nullable=True)
    plant_location_y = Column(Float, nullable=True)
    plant_site = Column(String(10), nullable=True)
    defuse_round_time = Column(Integer, nullable=True)
    defuse_location_x = Column(Float, nullable=True)
    defuse_location_y = Column(Float, nullable=True)

    match = relationship("Match", back_populates="rounds")
    player_stats = relationship("RoundParticipantStat", back_populates="round", cascade="all, delete-orphan", passive_deletes=True)


class RoundParticipantStat(Base):
    """
    Per (match, round, player) stats.

    kills is the length of the player's own kill list; deaths and assists
    are reconciled from every player's kills in the round.
    """
    __tablename__ = "round_participant_stats"

    match_id = Column(String(64), primary_key=True)
    round_num = Column(Integer, primary_key=True)
    puuid = Column(String(78), primary_key=True)

    score = Column(Integer, nullable=True)
    kills = Column(Integer, nullable=False, default=0)
    deaths = Column(Integer, nullable=False, default=0)
    assists = Column(Integer, nullable=False, default=0)
    damage = Column(Integer, nullable=False, default=0)

    loadout_value = Column(Integer, nullable=True)
    weapon = Column(String(64), nullable=True)
    armor = Column(String(64), nullable=True)
    remaining_money = Column(Integer, nullable=True)
    spent_money = Column(Integer, nullable=True)

    was_afk = Column(Boolean, nullable=True)
    was_penalized = Column(Boolean, nullable=True)
    stayed_in_spawn = Column(Boolean, nullable=True)

    round = relationship("Round", back_populates="player_stats")

    __table_args__ = (
        ForeignKeyConstraint(
            ["match_id", "round_num"],
            ["rounds.match_id", "rounds.round_num"],
            ondelete="CASCADE",
        ),
        Index("ix_round_participant_stats_puuid", "puuid"),
    )


# =============================================================================
# EVENTS
# =============================================================================

class KillEvent(Base):
    __tablename__ = "kill_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(String(64), ForeignKey("matches.match_id", ondelete="CASCADE"), nullable=False, index=True)
    round_num = Column(Integer, nullable=True)

    game_time = Column(BigInteger, nullable=True)
    round_time = Column(Integer, nullable=True)
    killer_id = Column(String(78), nullable=True)  # None for environmental deaths
    victim_id = Column(String(78), nullable=True)
    victim_location_x = Column(Float, nullable=True)
    victim_location_y = Column(Float, nullable=True)
    damage_type = Column(String(64), nullable=True)
    damage_item = Column(String(128), nullable=True)
    is_secondary_fire_mode = Column(Boolean, nullable=True)

    # Opaque blobs consumed whole by the heatmap views
    assistants = Column(JSON, nullable=True)
    player_locations = Column(JSON, nullable=True)

    match = relationship("Match", back_populates="kill_events")

    __table_args__ = (
        Index("ix_kill_events_match_round", "match_id", "round_num"),
    )


class DamageEvent(Base):
    __tablename__ = "damage_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(String(64), ForeignKey("matches.match_id", ondelete="CASCADE"), nullable=False, index=True)
    round_num = Column(Integer, nullable=True)

    attacker_id = Column(String(78), nullable=True)
    receiver_id = Column(String(78), nullable=True)
    damage = Column(Integer, nullable=True)
    legshots = Column(Integer, nullable=True)
    bodyshots = Column(Integer, nullable=True)
    headshots = Column(Integer, nullable=True)

    match = relationship("Match", back_populates="damage_events")


class MatchTag(Base):
    __tablename__ = "match_tags"

    match_id = Column(String(64), ForeignKey("matches.match_id", ondelete="CASCADE"), primary_key=True)
    tag_name = Column(String(50), primary_key=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    match = relationship("Match", back_populates="tags")
