"""
Entity normalizer.

Maps a ParsedMatch onto flat column dicts, one list per table, ready for
the importer to write. Nested objects that some source variants omit
(plantLocation, victimLocation, finishingDamage, economy, abilityCasts)
become None columns instead of failing the import.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from app.services.ingest.parser import ParsedMatch, as_list, dig
from app.services.ingest.reconciliation import RoundTally, derive_winning_team, reconcile_round

Record = Dict[str, Any]

# matchInfo key -> matches column. Source casing is inconsistent
# (provisioningFlowID, queueID) so every field is listed explicitly.
MATCH_FIELD_MAPPING = {
    "mapId": "map_id",
    "gamePodId": "game_pod_id",
    "gameLoopZone": "game_loop_zone",
    "gameServerAddress": "game_server_address",
    "gameVersion": "game_version",
    "provisioningFlowID": "provisioning_flow_id",
    "customGameName": "custom_game_name",
    "queueID": "queue_id",
    "gameMode": "game_mode",
    "seasonId": "season_id",
    "completionState": "completion_state",
    "platformType": "platform_type",
}

MATCH_BOOL_FIELDS = {
    "isCompleted": "is_completed",
    "isRanked": "is_ranked",
}

MATCH_INT_FIELDS = {
    "gameLengthMillis": "game_length_millis",
    "gameStartMillis": "game_start_millis",
}

PARTICIPANT_STAT_FIELDS = {
    "score": "score",
    "roundsPlayed": "rounds_played",
    "kills": "kills",
    "deaths": "deaths",
    "assists": "assists",
    "playtimeMillis": "playtime_millis",
}

ABILITY_CAST_FIELDS = {
    "grenadeCasts": "grenade_casts",
    "ability1Casts": "ability1_casts",
    "ability2Casts": "ability2_casts",
    "ultimateCasts": "ultimate_casts",
}


def to_int(value: Any) -> Optional[int]:
    """
    Coerce a JSON number to a Python int.

    Python ints are unbounded, so epoch-millisecond timestamps keep full
    precision; floats are only accepted when integral.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def round_to_int(value: Any) -> Optional[int]:
    """Like to_int, but fractional floats are rounded instead of dropped."""
    if isinstance(value, float):
        return int(round(value)) if math.isfinite(value) else None
    return to_int(value)


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def to_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


@dataclass
class NormalizedMatch:
    """Column dicts for every entity produced from one match payload."""

    match_id: str
    match: Record
    players: List[Record] = field(default_factory=list)
    participants: List[Record] = field(default_factory=list)
    rounds: List[Record] = field(default_factory=list)
    round_stats: List[Record] = field(default_factory=list)
    kill_events: List[Record] = field(default_factory=list)
    damage_events: List[Record] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "players": len(self.players),
            "participants": len(self.participants),
            "rounds": len(self.rounds),
            "round_stats": len(self.round_stats),
            "kill_events": len(self.kill_events),
            "damage_events": len(self.damage_events),
        }


def normalize_match_record(parsed: ParsedMatch, team_id: Optional[str] = None) -> Record:
    info = parsed.match_info()
    record: Record = {"match_id": parsed.match_id, "team_id": team_id}

    for source_key, column in MATCH_FIELD_MAPPING.items():
        value = info.get(source_key)
        record[column] = None if value is None else str(value)
    for source_key, column in MATCH_BOOL_FIELDS.items():
        record[column] = to_bool(info.get(source_key))
    for source_key, column in MATCH_INT_FIELDS.items():
        record[column] = to_int(info.get(source_key))

    record["winning_team"] = derive_winning_team(parsed.rounds())
    return record


def normalize_player(entry: Mapping[str, Any]) -> Record:
    return {
        "puuid": entry.get("subject"),
        "game_name": entry.get("gameName"),
        "tag_line": entry.get("tagLine"),
    }


def normalize_participant(match_id: str, entry: Mapping[str, Any]) -> Record:
    stats = entry.get("stats")
    record: Record = {
        "match_id": match_id,
        "puuid": entry.get("subject"),
        "team_id": entry.get("teamId"),
        "party_id": entry.get("partyId"),
        "character_id": entry.get("characterId"),
        "competitive_tier": to_int(entry.get("competitiveTier")),
        "account_level": to_int(entry.get("accountLevel")),
    }
    # Match-level totals are pre-aggregated by the source and kept verbatim
    for source_key, column in PARTICIPANT_STAT_FIELDS.items():
        record[column] = to_int(dig(stats, source_key))
    for source_key, column in ABILITY_CAST_FIELDS.items():
        record[column] = to_int(dig(stats, "abilityCasts", source_key))
    return record


def normalize_round(match_id: str, entry: Mapping[str, Any]) -> Record:
    return {
        "match_id": match_id,
        "round_num": to_int(entry.get("roundNum")),
        "round_result": entry.get("roundResult"),
        "round_ceremony": entry.get("roundCeremony"),
        "winning_team": entry.get("winningTeam"),
        "bomb_planter": entry.get("bombPlanter"),
        "bomb_defuser": entry.get("bombDefuser"),
        "plant_round_time": to_int(entry.get("plantRoundTime")),
        "plant_location_x": to_float(dig(entry, "plantLocation", "x")),
        "plant_location_y": to_float(dig(entry, "plantLocation", "y")),
        "plant_site": entry.get("plantSite") or None,
        "defuse_round_time": to_int(entry.get("defuseRoundTime")),
        "defuse_location_x": to_float(dig(entry, "defuseLocation", "x")),
        "defuse_location_y": to_float(dig(entry, "defuseLocation", "y")),
    }


def normalize_round_stat(match_id: str, round_num: Optional[int], stats: Mapping[str, Any], tally: RoundTally) -> Record:
    economy = stats.get("economy")
    return {
        "match_id": match_id,
        "round_num": round_num,
        "puuid": stats.get("subject"),
        "score": to_int(stats.get("score")),
        "kills": tally.kills,
        "deaths": tally.deaths,
        "assists": tally.assists,
        "damage": tally.damage,
        "loadout_value": to_int(dig(economy, "loadoutValue")),
        "weapon": dig(economy, "weapon") or None,
        "armor": dig(economy, "armor") or None,
        "remaining_money": to_int(dig(economy, "remaining")),
        "spent_money": to_int(dig(economy, "spent")),
        "was_afk": to_bool(stats.get("wasAfk")),
        "was_penalized": to_bool(stats.get("wasPenalized")),
        "stayed_in_spawn": to_bool(stats.get("stayedInSpawn")),
    }


def normalize_kill(match_id: str, round_num: Optional[int], kill: Mapping[str, Any]) -> Record:
    assistants = kill.get("assistants")
    player_locations = kill.get("playerLocations")
    return {
        "match_id": match_id,
        "round_num": round_num,
        "game_time": to_int(kill.get("gameTime")),
        "round_time": to_int(kill.get("roundTime")),
        "killer_id": kill.get("killer") or None,
        "victim_id": kill.get("victim"),
        "victim_location_x": to_float(dig(kill, "victimLocation", "x")),
        "victim_location_y": to_float(dig(kill, "victimLocation", "y")),
        "damage_type": dig(kill, "finishingDamage", "damageType"),
        "damage_item": dig(kill, "finishingDamage", "damageItem"),
        "is_secondary_fire_mode": to_bool(dig(kill, "finishingDamage", "isSecondaryFireMode")),
        "assistants": assistants if isinstance(assistants, list) else [],
        "player_locations": player_locations if isinstance(player_locations, list) else None,
    }


def normalize_damage(match_id: str, round_num: Optional[int], attacker_id: Optional[str], entry: Mapping[str, Any]) -> Record:
    return {
        "match_id": match_id,
        "round_num": round_num,
        "attacker_id": attacker_id,
        "receiver_id": entry.get("receiver"),
        "damage": round_to_int(entry.get("damage")),
        "legshots": to_int(entry.get("legshots")),
        "bodyshots": to_int(entry.get("bodyshots")),
        "headshots": to_int(entry.get("headshots")),
    }


def normalize_match(parsed: ParsedMatch, team_id: Optional[str] = None) -> NormalizedMatch:
    """
    Decompose a parsed match into per-table records.

    Args:
        parsed: Validated match view
        team_id: Owning team for uploads, None for local imports

    Returns:
        NormalizedMatch with one record list per entity type
    """
    match_id = parsed.match_id
    normalized = NormalizedMatch(
        match_id=match_id,
        match=normalize_match_record(parsed, team_id=team_id),
    )

    # One player and participant row per puuid; the first entry wins
    players_by_puuid: Dict[str, Record] = {}
    for entry in parsed.players():
        player = normalize_player(entry)
        if not player["puuid"] or player["puuid"] in players_by_puuid:
            continue
        players_by_puuid[player["puuid"]] = player
        normalized.participants.append(normalize_participant(match_id, entry))
    normalized.players = list(players_by_puuid.values())

    for index, round_entry in enumerate(parsed.rounds()):
        round_record = normalize_round(match_id, round_entry)
        if round_record["round_num"] is None:
            round_record["round_num"] = index
        normalized.rounds.append(round_record)
        round_num = round_record["round_num"]

        player_stats = [s for s in as_list(round_entry.get("playerStats")) if isinstance(s, Mapping)]
        tallies = reconcile_round(player_stats)

        emitted = set()
        for stats in player_stats:
            subject = stats.get("subject")
            if subject in tallies and subject not in emitted:
                emitted.add(subject)
                normalized.round_stats.append(
                    normalize_round_stat(match_id, round_num, stats, tallies[subject])
                )
            for kill in as_list(stats.get("kills")):
                if isinstance(kill, Mapping):
                    normalized.kill_events.append(normalize_kill(match_id, round_num, kill))
            for damage in as_list(stats.get("damage")):
                if isinstance(damage, Mapping):
                    normalized.damage_events.append(normalize_damage(match_id, round_num, subject, damage))

    return normalized
