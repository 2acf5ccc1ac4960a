"""
Base repository class for data access layer.

The repository pattern provides:
1. Separation of data access logic from business logic
2. Single place for query logic (easier to maintain)
3. Easier testing (can mock repositories)
4. Consistent interface for data operations

Example:
    class MatchRepository(BaseRepository[Match]):
        def find_by_team(self, team_id: str) -> List[Match]:
            return self.where(Match.team_id == team_id)
"""
from abc import ABC
from typing import TypeVar, Generic, Type, Optional, List, Any
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """
    Base repository class providing common data access methods.

    Models here are keyed by natural identifiers (single or composite
    primary keys), so lookups go through Session.get with the identity.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def get(self, ident: Any) -> Optional[T]:
        """
        Find a single record by primary key.

        Args:
            ident: Scalar key, or a tuple/dict for composite keys
        """
        return self.db.get(self.model_type, ident)

    def create(self, **kwargs) -> T:
        """
        Create a new record.

        Returns:
            The created record (not yet committed to database)
        """
        instance = self.model_type(**kwargs)
        self.db.add(instance)
        return instance

    # ========================================================================
    # Query Builders
    # ========================================================================

    def where(self, *criterion) -> List[T]:
        return self.db.query(self.model_type).filter(*criterion).all()

    # ========================================================================
    # Existence Checks
    # ========================================================================

    def exists_where(self, *criterion) -> bool:
        """Check if any record matching the criterion exists."""
        return self.db.query(
            self.db.query(self.model_type).filter(*criterion).exists()
        ).scalar()

