"""
Idempotent match import coordinator.

One import attempt runs:

    VALIDATE -> CHECK_EXISTING -> [PURGE_EXISTING] -> WRITE -> IMPORTED
                      |                                 |
                      +-> skipped (SKIP policy)         +-> error (rolled back)

The existence check, purge and write share one database transaction, so a
failed overwrite leaves the previously imported data untouched and a
successful one replaces it completely. Two conflict policies are exposed:

- OVERWRITE: local directory imports, last import wins
- SKIP: team uploads, an existing match is left alone and reported as skipped
"""
import json
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logging import get_logger, match_context
from app.models import (
    MatchParticipant,
    Round,
    RoundParticipantStat,
    KillEvent,
    DamageEvent,
)
from app.repositories import MatchRepository, PlayerRepository
from app.services.ingest.errors import InvalidMatchData, PersistenceFailure
from app.services.ingest.normalizer import NormalizedMatch, normalize_match
from app.services.ingest.parser import parse_match

logger = get_logger(__name__)


class ConflictPolicy(str, Enum):
    OVERWRITE = "overwrite"
    SKIP = "skip"


class ImportStatus(str, Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one import attempt. SKIPPED is not a failure."""

    status: ImportStatus
    match_id: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def imported(cls, match_id: str) -> "ImportResult":
        return cls(ImportStatus.IMPORTED, match_id=match_id)

    @classmethod
    def skipped(cls, match_id: str, reason: str) -> "ImportResult":
        return cls(ImportStatus.SKIPPED, match_id=match_id, reason=reason)

    @classmethod
    def failed(cls, error: str, match_id: Optional[str] = None) -> "ImportResult":
        return cls(ImportStatus.ERROR, match_id=match_id, error=error)

    @property
    def ok(self) -> bool:
        return self.status is not ImportStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status.value}
        if self.match_id is not None:
            data["matchId"] = self.match_id
        if self.reason is not None:
            data["reason"] = self.reason
        if self.error is not None:
            data["error"] = self.error
        return data


class KeyedLock:
    """
    One re-entrant lock per key.

    Serializes check/purge/write for the same match id within a process,
    for stores (SQLite) whose isolation does not cover check-then-write.
    Entries are reference counted and dropped once the last holder
    releases, so the map only holds keys with an import in flight.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}
        self._holders: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            self._holders[key] = self._holders.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[key] -= 1
                if not self._holders[key]:
                    del self._holders[key]
                    del self._locks[key]


_import_locks = KeyedLock()


class MatchImporter:
    """
    Writes match payloads into the store with idempotent re-import semantics.

    Usage:
        importer = MatchImporter(db)
        result = importer.import_payload(payload, ConflictPolicy.SKIP, team_id="T1")
        if result.status is ImportStatus.ERROR:
            ...
    """

    def __init__(self, db: Session, locks: Optional[KeyedLock] = None):
        self.db = db
        self.matches = MatchRepository(db)
        self.players = PlayerRepository(db)
        self._locks = locks if locks is not None else _import_locks

    def import_payload(
        self,
        payload: Any,
        policy: ConflictPolicy = ConflictPolicy.OVERWRITE,
        team_id: Optional[str] = None,
    ) -> ImportResult:
        """
        Validate, normalize and persist one match payload.

        Args:
            payload: Decoded JSON match dump
            policy: What to do when the match id is already stored
            team_id: Owning team (upload path only)

        Returns:
            ImportResult; never raises for bad data or storage failures
        """
        try:
            parsed = parse_match(payload)
        except InvalidMatchData as e:
            logger.error(str(e))
            return ImportResult.failed(str(e))

        match_id = parsed.match_id
        with match_context(match_id), self._locks.hold(match_id):
            logger.info(f"Processing match {match_id} (policy={policy.value})")
            try:
                normalized = normalize_match(parsed, team_id=team_id)
            except (TypeError, ValueError, AttributeError, OverflowError) as e:
                # Shapes the parser lets through but the mapping cannot handle
                logger.error(f"Could not normalize match {match_id}: {e}", exc_info=True)
                return ImportResult.failed(f"Invalid match data: {e}")
            try:
                result = self._persist(normalized, policy)
            except PersistenceFailure as e:
                logger.error(str(e), exc_info=e.cause)
                return ImportResult.failed(str(e.cause), match_id=match_id)

            if result.status is ImportStatus.IMPORTED:
                logger.info(f"Successfully imported match {match_id}", extra={"rows": normalized.counts()})
            return result

    def import_file(
        self,
        path: Union[str, Path],
        policy: ConflictPolicy = ConflictPolicy.OVERWRITE,
    ) -> ImportResult:
        """Read a UTF-8 JSON match file and import it."""
        path = Path(path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Could not read match file {path.name}: {e}")
            return ImportResult.failed(f"Could not read {path.name}: {e}")

        logger.debug(f"Loaded match file {path.name}")
        return self.import_payload(payload, policy=policy)

    def _persist(self, normalized: NormalizedMatch, policy: ConflictPolicy) -> ImportResult:
        match_id = normalized.match_id
        try:
            if self.matches.exists(match_id):
                if policy is ConflictPolicy.SKIP:
                    self.db.rollback()
                    logger.info(f"Match {match_id} already exists. Skipping")
                    return ImportResult.skipped(match_id, "already exists")

                deleted = self.matches.purge(match_id)
                logger.info(f"Match {match_id} already exists. Overwriting", extra={"deleted": deleted})

            self._write(normalized)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceFailure(match_id, e) from e

        return ImportResult.imported(match_id)

    def _write(self, normalized: NormalizedMatch) -> None:
        # Players first: participants reference them
        self.players.upsert_many(normalized.players)

        self.matches.create(**normalized.match)
        self.db.flush()

        self.db.add_all(MatchParticipant(**row) for row in normalized.participants)
        self.db.add_all(Round(**row) for row in normalized.rounds)
        self.db.flush()

        self.db.add_all(RoundParticipantStat(**row) for row in normalized.round_stats)
        self.db.add_all(KillEvent(**row) for row in normalized.kill_events)
        self.db.add_all(DamageEvent(**row) for row in normalized.damage_events)
        self.db.flush()


def import_match_file(db: Session, path: Union[str, Path]) -> ImportResult:
    """Local/batch import: an existing match is replaced."""
    return MatchImporter(db).import_file(path, policy=ConflictPolicy.OVERWRITE)


def import_match_data(db: Session, payload: Any, team_id: str) -> ImportResult:
    """Team upload: an existing match is left untouched and reported as skipped."""
    return MatchImporter(db).import_payload(payload, policy=ConflictPolicy.SKIP, team_id=team_id)
