"""
Match management API routes.

Provides endpoints for:
- Match summary with round context and display names
- Deleting a match and everything it owns
- Per-match settings (own side, team display names)
- Match tags and the distinct tag list
- Opponent names seen by a team

Base path: /api/v1
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import get_current_user_id, require_team_member
from app.core.database import get_db
from app.core.logging import get_logger
from app.models import Match
from app.services.match_service import (
    InvalidTag,
    MatchNotFound,
    MatchService,
    TagAlreadyExists,
    TagNotFound,
)
from app.services.player_service import effective_identity
from app.services.reference_data import ReferenceDataCache
from app.services.round_context import is_overtime, is_pistol_round, side_for_round

logger = get_logger(__name__)

router = APIRouter(tags=["matches"])


# ==================== REQUEST MODELS ====================

class MatchSettingsRequest(BaseModel):
    myTeamSide: Optional[str] = Field(None, description="Red or Blue")
    redTeamName: Optional[str] = None
    blueTeamName: Optional[str] = None


class TagRequest(BaseModel):
    tagName: Optional[str] = None


# ==================== DEPENDENCIES ====================

def get_reference_data(request: Request) -> ReferenceDataCache:
    cache = getattr(request.app.state, "reference_data", None)
    if cache is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reference data not initialized",
        )
    return cache


def _load_match(service: MatchService, match_id: str) -> Match:
    try:
        return service.get_match(match_id)
    except MatchNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _authorize(db: Session, match: Match, user_id: str) -> None:
    # Locally ingested matches have no owning team
    if match.team_id:
        require_team_member(db, match.team_id, user_id)


def _match_settings(match: Match) -> Dict[str, Any]:
    return {
        "matchId": match.match_id,
        "myTeamSide": match.my_team_side,
        "redTeamName": match.red_team_name,
        "blueTeamName": match.blue_team_name,
    }


# ==================== ENDPOINTS ====================

@router.get("/matches/{match_id}")
def get_match_summary(
    match_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    reference_data: ReferenceDataCache = Depends(get_reference_data),
):
    """Match header, scoreboard and per-round results."""
    match = _load_match(MatchService(db), match_id)

    if not reference_data.is_fresh():
        background_tasks.add_task(reference_data.refresh)

    map_info = reference_data.map_info(match.map_id)
    players = []
    for participant in sorted(match.participants, key=lambda p: (p.team_id or "", -(p.score or 0))):
        identity = effective_identity(participant.player)
        agent = reference_data.agent_info(participant.character_id)
        players.append({
            "puuid": identity.puuid,
            "name": identity.name,
            "tag": identity.tag,
            "teamId": participant.team_id,
            "agent": agent.name if agent else None,
            "kills": participant.kills,
            "deaths": participant.deaths,
            "assists": participant.assists,
            "score": participant.score,
        })

    rounds = [
        {
            "roundNum": r.round_num,
            "winningTeam": r.winning_team,
            "roundResult": r.round_result,
            "isPistol": is_pistol_round(r.round_num),
            "isOvertime": is_overtime(r.round_num),
            "mySide": side_for_round(match.my_team_side, r.round_num),
            "plantSite": r.plant_site,
        }
        for r in match.rounds
    ]

    return {
        "matchId": match.match_id,
        "teamId": match.team_id,
        "mapId": match.map_id,
        "mapName": map_info.name,
        "gameStartMillis": match.game_start_millis,
        "gameLengthMillis": match.game_length_millis,
        "queueId": match.queue_id,
        "winningTeam": match.winning_team,
        **_match_settings(match),
        "tags": sorted(tag.tag_name for tag in match.tags),
        "players": players,
        "rounds": rounds,
    }


@router.delete("/matches/{match_id}")
def delete_match(
    match_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete a match and all of its rounds, stats, events and tags."""
    service = MatchService(db)
    match = _load_match(service, match_id)
    _authorize(db, match, user_id)

    service.delete_match(match_id)
    return {"success": True}


@router.patch("/matches/{match_id}")
def update_match_settings(
    match_id: str,
    body: MatchSettingsRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = MatchService(db)
    match = _load_match(service, match_id)
    _authorize(db, match, user_id)

    try:
        match = service.update_settings(
            match_id,
            my_team_side=body.myTeamSide,
            red_team_name=body.redTeamName,
            blue_team_name=body.blueTeamName,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _match_settings(match)


@router.get("/matches/{match_id}/tags", response_model=List[str])
def list_match_tags(match_id: str, db: Session = Depends(get_db)):
    return MatchService(db).list_tags(match_id)


@router.post("/matches/{match_id}/tags")
def add_match_tag(match_id: str, body: TagRequest, db: Session = Depends(get_db)):
    try:
        tag = MatchService(db).add_tag(match_id, body.tagName)
    except InvalidTag as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except MatchNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TagAlreadyExists as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return {
        "matchId": tag.match_id,
        "tagName": tag.tag_name,
        "createdAt": tag.created_at.isoformat() if tag.created_at else None,
    }


@router.delete("/matches/{match_id}/tags")
def remove_match_tag(
    match_id: str,
    tag_name: Optional[str] = Query(None, alias="tagName"),
    db: Session = Depends(get_db),
):
    if not tag_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tag name is required")
    try:
        MatchService(db).remove_tag(match_id, tag_name)
    except TagNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"success": True}


@router.get("/tags", response_model=List[str])
def list_all_tags(db: Session = Depends(get_db)):
    """Distinct tag names across all matches."""
    return MatchService(db).all_tags()


@router.get("/teams/{team_id}/opponents", response_model=List[str])
def list_opponents(
    team_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    require_team_member(db, team_id, user_id)
    return MatchService(db).opponent_names(team_id)
