"""
Raw match record parser.

Validates the top-level shape of a decoded JSON match dump and wraps it in
a ParsedMatch view. Nothing here touches the database; a payload that
fails validation never reaches the importer's write phase.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from app.services.ingest.errors import InvalidMatchData


def dig(source: Any, *keys: str) -> Any:
    """
    Walk nested mappings, returning None at the first missing step.

    >>> dig({"plantLocation": {"x": 1.5}}, "plantLocation", "x")
    1.5
    >>> dig({"plantLocation": None}, "plantLocation", "x") is None
    True
    """
    current = source
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def as_list(value: Any) -> List[Any]:
    """Treat an absent or malformed collection as empty."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _validate_object_list(payload: Mapping, key: str) -> List[Dict[str, Any]]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, Mapping) for item in value):
        raise InvalidMatchData(f"{key} must be a list of objects")
    return value


def _validate_subject(entry: Mapping, where: str) -> None:
    subject = entry.get("subject")
    if subject is not None and not isinstance(subject, str):
        raise InvalidMatchData(f"{where}.subject must be a string")


@dataclass(frozen=True)
class ParsedMatch:
    """Validated view over a raw match payload."""

    match_id: str
    _match_info: Mapping[str, Any]
    _players: List[Mapping[str, Any]] = field(default_factory=list)
    _rounds: List[Mapping[str, Any]] = field(default_factory=list)

    def match_info(self) -> Mapping[str, Any]:
        return self._match_info

    def players(self) -> List[Mapping[str, Any]]:
        return self._players

    def rounds(self) -> List[Mapping[str, Any]]:
        return self._rounds

    def has_round_results(self) -> bool:
        return bool(self._rounds)

    def info(self, key: str) -> Optional[Any]:
        return self._match_info.get(key)


def parse_match(payload: Any) -> ParsedMatch:
    """
    Validate a decoded match payload.

    Args:
        payload: Output of json.loads (any type)

    Returns:
        ParsedMatch view

    Raises:
        InvalidMatchData: matchInfo or its matchId is missing, or the player
            / round collections are present but not lists of objects, or a
            player id (subject) is not a string
    """
    if not isinstance(payload, Mapping):
        raise InvalidMatchData("matchInfo is missing")

    match_info = payload.get("matchInfo")
    if not isinstance(match_info, Mapping):
        raise InvalidMatchData("matchInfo is missing")

    match_id = match_info.get("matchId")
    if not isinstance(match_id, str) or not match_id.strip():
        raise InvalidMatchData("matchInfo.matchId is missing")

    players = _validate_object_list(payload, "players")
    rounds = _validate_object_list(payload, "roundResults")

    for index, entry in enumerate(players):
        _validate_subject(entry, f"players[{index}]")
    for index, entry in enumerate(rounds):
        for stat_index, stats in enumerate(as_list(entry.get("playerStats"))):
            if isinstance(stats, Mapping):
                _validate_subject(stats, f"roundResults[{index}].playerStats[{stat_index}]")

    return ParsedMatch(
        match_id=match_id,
        _match_info=match_info,
        _players=players,
        _rounds=rounds,
    )
