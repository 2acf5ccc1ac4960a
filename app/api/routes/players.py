"""
Player correction API routes.

Base path: /api/v1/players
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.auth import get_current_user_id
from app.core.database import get_db
from app.repositories import TeamRepository
from app.services.player_service import (
    UNSET,
    PlayerMergeError,
    PlayerNotFound,
    PlayerService,
)

router = APIRouter(prefix="/players", tags=["players"])


class PlayerUpdateRequest(BaseModel):
    """Omitted fields are left unchanged; explicit null clears them."""
    alias: Optional[str] = None
    mergedToPuuid: Optional[str] = None


@router.patch("/{puuid}")
def update_player(
    puuid: str,
    body: PlayerUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Set or clear a player's alias and merge target."""
    if not TeamRepository(db).shares_match_with_player(user_id, puuid):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to edit this player",
        )

    provided = body.model_fields_set
    try:
        player = PlayerService(db).update_player(
            puuid,
            alias=body.alias if "alias" in provided else UNSET,
            merged_to_puuid=body.mergedToPuuid if "mergedToPuuid" in provided else UNSET,
        )
    except PlayerNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PlayerMergeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {
        "puuid": player.puuid,
        "gameName": player.game_name,
        "tagLine": player.tag_line,
        "alias": player.alias,
        "mergedToPuuid": player.merged_to_puuid,
    }
