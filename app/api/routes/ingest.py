"""
Match ingestion API routes.

Provides endpoints for:
- Importing every match dump in the local matches directory (overwrite)
- Uploading a single match on behalf of a team (skip if already stored)

Base path: /api/v1
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import get_current_user_id, require_team_member
from app.core.config import settings
from app.core.database import get_db
from app.core.logging import get_logger
from app.services.ingest import ImportStatus, import_match_data, ingest_directory

logger = get_logger(__name__)

router = APIRouter(tags=["ingest"])


class UploadRequest(BaseModel):
    """Team upload body. Fields are checked by hand so a missing one is a 400."""
    matchData: Optional[Any] = Field(None, description="Raw match JSON dump")
    teamId: Optional[str] = Field(None, description="Owning team id")


@router.post("/ingest")
def ingest_matches(db: Session = Depends(get_db)):
    """
    Import all *.json match files from the configured matches directory.

    Existing matches are overwritten. Per-file failures are reported in
    `details` and do not stop the scan.
    """
    summary = ingest_directory(db, settings.MATCHES_DIR)
    return summary.to_dict()


@router.post("/upload")
def upload_match(
    body: UploadRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Upload one match for a team.

    Responses:
        200: imported, or skipped because the match is already stored
        400: missing fields or invalid match data
        403: caller is not a member of the team
        500: the match could not be written
    """
    if body.matchData is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="matchData is required")
    if not body.teamId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="teamId is required")

    require_team_member(db, body.teamId, user_id)

    result = import_match_data(db, body.matchData, team_id=body.teamId)

    if result.status is ImportStatus.ERROR:
        # Validation failures happen before a match id is known
        code = (
            status.HTTP_400_BAD_REQUEST
            if result.match_id is None
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        return JSONResponse(status_code=code, content=result.to_dict())

    return result.to_dict()
