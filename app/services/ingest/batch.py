"""
Batch import of a directory of match dumps.

Files are processed one at a time with the overwrite policy. A failing
file is recorded in the summary and the scan moves on to the next one.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.services.ingest.importer import ConflictPolicy, ImportResult, ImportStatus, MatchImporter

logger = get_logger(__name__)


@dataclass
class BatchSummary:
    message: str
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    details: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": self.errors,
            "details": self.details,
        }


def list_match_files(directory: Union[str, Path]) -> List[Path]:
    """Candidate match files (*.json) in a directory, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".json")


def ingest_directory(
    db: Session,
    directory: Union[str, Path],
    policy: ConflictPolicy = ConflictPolicy.OVERWRITE,
) -> BatchSummary:
    """
    Import every match file in a directory.

    Args:
        db: Database session shared by all imports in the batch
        directory: Folder containing match JSON dumps
        policy: Conflict policy (overwrite for the local scan)

    Returns:
        BatchSummary with per-file outcomes
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning(f"Matches directory not found: {directory}")
        return BatchSummary(message="Matches directory not found")

    files = list_match_files(directory)
    if not files:
        return BatchSummary(message="No match files found")

    logger.info(f"Found {len(files)} match files in {directory}. Starting import")

    summary = BatchSummary(message="Ingestion complete")
    importer = MatchImporter(db)

    for path in files:
        try:
            result = importer.import_file(path, policy=policy)
        except Exception as e:
            # One bad file must not end the scan
            logger.exception(f"Unexpected error importing {path.name}")
            db.rollback()
            result = ImportResult.failed(f"Unexpected error: {e}")

        if result.status is ImportStatus.IMPORTED:
            summary.imported += 1
        elif result.status is ImportStatus.SKIPPED:
            summary.skipped += 1
        else:
            summary.errors += 1

        summary.details.append({"file": path.name, **result.to_dict()})

    logger.info(
        f"Batch import complete: {summary.imported} imported, "
        f"{summary.skipped} skipped, {summary.errors} errors"
    )
    return summary
