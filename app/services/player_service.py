"""
Player correction service.

Users can give a player a display alias and merge a secondary account into
a primary one (merged_to_puuid). The merge link is a weak reference: it is
validated here at write time instead of by a database constraint.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models import Player
from app.repositories import PlayerRepository

logger = get_logger(__name__)

# Sentinel distinguishing "leave unchanged" from an explicit None (clear)
UNSET: Any = object()


class PlayerNotFound(LookupError):
    def __init__(self, puuid: str):
        self.puuid = puuid
        super().__init__(f"Player {puuid} not found")


class PlayerMergeError(ValueError):
    """Rejected merge: self-reference, 2-cycle, or unknown target."""


@dataclass(frozen=True)
class PlayerIdentity:
    puuid: str
    name: Optional[str]
    tag: Optional[str]


def effective_identity(player: Player) -> PlayerIdentity:
    """
    Resolve the identity a player is displayed and aggregated under.

    A merged player reports the target's puuid and name; an alias takes
    precedence over the in-game name.
    """
    source = player.merged_to if player.merged_to_puuid and player.merged_to else player
    return PlayerIdentity(
        puuid=source.puuid,
        name=source.alias or source.game_name,
        tag=source.tag_line,
    )


class PlayerService:
    """
    Usage:
        service = PlayerService(db)
        service.update_player("smurf", merged_to_puuid="main")
    """

    def __init__(self, db: Session):
        self.db = db
        self.players = PlayerRepository(db)

    def get_player(self, puuid: str) -> Player:
        player = self.players.find_by_puuid(puuid)
        if player is None:
            raise PlayerNotFound(puuid)
        return player

    def validate_merge(self, puuid: str, merged_to_puuid: Optional[str]) -> None:
        """
        Raises:
            PlayerMergeError: target is the player itself, does not exist,
                or already merges back into the player
        """
        if merged_to_puuid is None:
            return

        if merged_to_puuid == puuid:
            raise PlayerMergeError("Cannot merge player to themselves")

        target = self.players.find_by_puuid(merged_to_puuid)
        if target is None:
            raise PlayerMergeError(f"Merge target {merged_to_puuid} not found")

        if target.merged_to_puuid == puuid:
            raise PlayerMergeError("Circular merge detected")

    def update_player(
        self,
        puuid: str,
        alias: Optional[str] = UNSET,
        merged_to_puuid: Optional[str] = UNSET,
    ) -> Player:
        """
        Apply user corrections to a player.

        Args:
            puuid: Player to update
            alias: New alias, None to clear, UNSET to leave unchanged
            merged_to_puuid: Merge target, None to unmerge, UNSET to leave unchanged

        Returns:
            The updated player (committed)
        """
        player = self.get_player(puuid)

        if merged_to_puuid is not UNSET:
            self.validate_merge(puuid, merged_to_puuid)
            player.merged_to_puuid = merged_to_puuid

        if alias is not UNSET:
            player.alias = (alias or "").strip() or None

        player.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(player)

        logger.info(
            f"Updated player {puuid}",
            extra={"alias": player.alias, "merged_to_puuid": player.merged_to_puuid},
        )
        return player
