"""
Player Repository for shared player identities.

Players are written through upsert_many during imports: insert when the
puuid is new, otherwise refresh the display name/tag. User corrections
(alias, merged_to_puuid) are never touched by an import.

Usage:
    repo = PlayerRepository(db)
    repo.upsert_many([{"puuid": "p1", "game_name": "Ace", "tag_line": "EUW"}])
    player = repo.find_by_puuid("p1")
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.dialects import postgresql, sqlite

from app.models import Player
from app.repositories.base import BaseRepository

# Columns refreshed when an existing player is seen again
DISPLAY_FIELDS = ("game_name", "tag_line")

_NATIVE_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class PlayerRepository(BaseRepository[Player]):
    """Repository for player data access."""

    def __init__(self, db):
        super().__init__(Player, db)

    def find_by_puuid(self, puuid: str) -> Optional[Player]:
        return self.get(puuid)

    def upsert_many(self, records: List[Dict[str, Any]]) -> int:
        """
        Insert-or-update players by puuid using the backend's native upsert.

        Args:
            records: Dicts with puuid, game_name, tag_line (unique puuids)

        Returns:
            Number of records written
        """
        if not records:
            return 0

        now = datetime.utcnow()
        rows = [
            {
                "puuid": r["puuid"],
                "game_name": r.get("game_name"),
                "tag_line": r.get("tag_line"),
                "created_at": now,
                "updated_at": now,
            }
            for r in records
        ]

        dialect = self.db.get_bind().dialect.name
        insert = _NATIVE_INSERTS.get(dialect)
        if insert is None:
            # Backends without ON CONFLICT: row-by-row merge inside the same transaction
            for row in rows:
                existing = self.get(row["puuid"])
                if existing is None:
                    self.db.add(Player(**row))
                else:
                    for column in DISPLAY_FIELDS:
                        setattr(existing, column, row[column])
                    existing.updated_at = now
            self.db.flush()
            return len(rows)

        stmt = insert(Player).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Player.puuid],
            set_={
                **{column: getattr(stmt.excluded, column) for column in DISPLAY_FIELDS},
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self.db.execute(stmt)
        return len(rows)
