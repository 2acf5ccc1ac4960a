"""
Match management service: deletion, tags and per-match settings.
"""
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logging import get_logger, match_context
from app.models import Match, MatchTag
from app.repositories import MatchRepository

logger = get_logger(__name__)

SIDES = ("Red", "Blue")
DEFAULT_TEAM_NAMES = {"Red Team", "Blue Team"}
MAX_TAG_LENGTH = 50


class MatchNotFound(LookupError):
    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found")


class InvalidTag(ValueError):
    pass


class TagAlreadyExists(ValueError):
    pass


class TagNotFound(LookupError):
    pass


class MatchService:
    """
    Usage:
        service = MatchService(db)
        service.add_tag("abc", "scrim")
        service.delete_match("abc")
    """

    def __init__(self, db: Session):
        self.db = db
        self.matches = MatchRepository(db)

    def get_match(self, match_id: str) -> Match:
        match = self.matches.find_by_match_id(match_id)
        if match is None:
            raise MatchNotFound(match_id)
        return match

    def delete_match(self, match_id: str) -> None:
        """
        Delete a match and every row it owns. Players are kept.

        Raises:
            MatchNotFound: no such match
        """
        with match_context(match_id):
            if not self.matches.exists(match_id):
                raise MatchNotFound(match_id)
            try:
                deleted = self.matches.purge(match_id)
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                raise
            logger.info(f"Deleted match {match_id}", extra={"deleted": deleted})

    def update_settings(
        self,
        match_id: str,
        my_team_side: Optional[str] = None,
        red_team_name: Optional[str] = None,
        blue_team_name: Optional[str] = None,
    ) -> Match:
        """
        Set which side the owning team played and the display names of both sides.

        Empty strings clear a name; None leaves a field unchanged.
        """
        match = self.get_match(match_id)

        if my_team_side is not None:
            if my_team_side not in SIDES:
                raise ValueError(f"my_team_side must be one of {SIDES}")
            match.my_team_side = my_team_side
        if red_team_name is not None:
            match.red_team_name = red_team_name.strip() or None
        if blue_team_name is not None:
            match.blue_team_name = blue_team_name.strip() or None

        self.db.commit()
        self.db.refresh(match)
        return match

    def opponent_names(self, team_id: str) -> List[str]:
        """Distinct opponent display names across a team's matches."""
        names = set()
        for match in self.matches.find_by_team(team_id):
            if match.my_team_side == "Red":
                name = match.blue_team_name
            elif match.my_team_side == "Blue":
                name = match.red_team_name
            else:
                continue
            if name and name not in DEFAULT_TEAM_NAMES:
                names.add(name)
        return sorted(names)

    # ========================================================================
    # Tags
    # ========================================================================

    def list_tags(self, match_id: str) -> List[str]:
        return self.matches.tag_names(match_id)

    def all_tags(self) -> List[str]:
        return self.matches.all_tag_names()

    def add_tag(self, match_id: str, tag_name: str) -> MatchTag:
        """
        Raises:
            InvalidTag: empty or too long after trimming
            MatchNotFound: no such match
            TagAlreadyExists: the match already carries this tag
        """
        normalized = (tag_name or "").strip()
        if not normalized or len(normalized) > MAX_TAG_LENGTH:
            raise InvalidTag("Invalid tag name")

        if not self.matches.exists(match_id):
            raise MatchNotFound(match_id)
        if self.matches.find_tag(match_id, normalized) is not None:
            raise TagAlreadyExists("Tag already exists")

        tag = MatchTag(match_id=match_id, tag_name=normalized)
        self.db.add(tag)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise TagAlreadyExists("Tag already exists") from e
        return tag

    def remove_tag(self, match_id: str, tag_name: str) -> None:
        tag = self.matches.find_tag(match_id, tag_name)
        if tag is None:
            raise TagNotFound(f"Tag {tag_name!r} not found on match {match_id}")
        self.db.delete(tag)
        self.db.commit()
