"""
Request identity and team membership dependencies.

The caller is identified by the X-User-Id header set by the upstream auth
proxy. Team-scoped endpoints additionally require the caller to be a member
of the team they act on.
"""
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.repositories import TeamRepository

logger = get_logger(__name__)

USER_ID_HEADER = "X-User-Id"

user_id_header = APIKeyHeader(name=USER_ID_HEADER, auto_error=False)


def get_current_user_id(user_id: Optional[str] = Security(user_id_header)) -> str:
    """
    Resolve the calling user.

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Authentication required. Provide {USER_ID_HEADER} header.",
        )
    return user_id.strip()


def require_team_member(db: Session, team_id: str, user_id: str) -> None:
    """
    Raises:
        HTTPException: 403 if the user is not a member of the team
    """
    if not TeamRepository(db).is_member(team_id, user_id):
        logger.warning(f"User {user_id} is not a member of team {team_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: You are not a member of this team",
        )
