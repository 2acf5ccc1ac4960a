"""
Reconciliation of per-round statistics.

The source records each kill once, under the killer's round stats. Deaths
and assists therefore have to be recovered by looking at every player's
kill list for the round. Everything in this module is a pure function of
its input, independent of the order players appear in.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.services.ingest.parser import as_list

RED = "Red"
BLUE = "Blue"
DRAW = "Draw"

# Keys under which structured assistant entries carry the player id
ASSISTANT_ID_KEYS = ("assistantId", "subject", "puuid")


@dataclass(frozen=True)
class RoundTally:
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    damage: int = 0


def assistant_id(entry: Any) -> Optional[str]:
    """
    Normalize an assistant list entry to a player id.

    Entries are either a bare id string or an object carrying the id under
    one of ASSISTANT_ID_KEYS.
    """
    if isinstance(entry, str):
        return entry
    if isinstance(entry, Mapping):
        for key in ASSISTANT_ID_KEYS:
            value = entry.get(key)
            if isinstance(value, str):
                return value
    return None


def flatten_round_kills(player_stats: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Combine every player's kill list for one round."""
    kills: List[Mapping[str, Any]] = []
    for stats in player_stats:
        kills.extend(k for k in as_list(stats.get("kills")) if isinstance(k, Mapping))
    return kills


def count_deaths(puuid: str, round_kills: Iterable[Mapping[str, Any]]) -> int:
    return sum(1 for kill in round_kills if kill.get("victim") == puuid)


def count_assists(puuid: str, round_kills: Iterable[Mapping[str, Any]]) -> int:
    """Count kills in which the player is listed as an assistant (at most once per kill)."""
    total = 0
    for kill in round_kills:
        assistants = kill.get("assistants")
        if not isinstance(assistants, list):
            continue
        if any(assistant_id(entry) == puuid for entry in assistants):
            total += 1
    return total


def sum_damage(damage_entries: Any) -> int:
    """Total damage dealt, rounded once after summing."""
    total = 0
    for entry in as_list(damage_entries):
        if not isinstance(entry, Mapping):
            continue
        amount = entry.get("damage")
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            continue
        if math.isfinite(amount):
            total += amount
    return int(round(total))


def reconcile_round(player_stats: List[Mapping[str, Any]]) -> Dict[str, RoundTally]:
    """
    Compute kills/deaths/assists/damage for every player tracked in a round.

    Ids referenced by kills but absent from the match's player list are not
    validated; they only affect players who are tracked in player_stats.

    Args:
        player_stats: The round's playerStats entries

    Returns:
        Mapping of puuid -> RoundTally
    """
    round_kills = flatten_round_kills(player_stats)

    tallies: Dict[str, RoundTally] = {}
    for stats in player_stats:
        puuid = stats.get("subject")
        if not isinstance(puuid, str) or puuid in tallies:
            continue
        tallies[puuid] = RoundTally(
            kills=sum(1 for k in as_list(stats.get("kills")) if isinstance(k, Mapping)),
            deaths=count_deaths(puuid, round_kills),
            assists=count_assists(puuid, round_kills),
            damage=sum_damage(stats.get("damage")),
        )
    return tallies


def derive_winning_team(round_results: Optional[List[Mapping[str, Any]]]) -> Optional[str]:
    """
    Attribute the match result from the round win tally.

    Returns:
        "Red" or "Blue" for a strict majority, "Draw" on a tie, None when
        there are no round results at all
    """
    if not round_results:
        return None

    red_wins = sum(1 for r in round_results if r.get("winningTeam") == RED)
    blue_wins = sum(1 for r in round_results if r.get("winningTeam") == BLUE)

    if red_wins > blue_wins:
        return RED
    if blue_wins > red_wins:
        return BLUE
    return DRAW
