"""
Match ingestion pipeline.

raw payload -> parse_match -> normalize_match (with round reconciliation)
-> MatchImporter (transactional write)
"""
from app.services.ingest.errors import IngestError, InvalidMatchData, PersistenceFailure
from app.services.ingest.parser import ParsedMatch, parse_match
from app.services.ingest.normalizer import NormalizedMatch, normalize_match
from app.services.ingest.importer import (
    ConflictPolicy,
    ImportResult,
    ImportStatus,
    KeyedLock,
    MatchImporter,
    import_match_data,
    import_match_file,
)
from app.services.ingest.batch import BatchSummary, ingest_directory, list_match_files

__all__ = [
    "IngestError",
    "InvalidMatchData",
    "PersistenceFailure",
    "ParsedMatch",
    "parse_match",
    "NormalizedMatch",
    "normalize_match",
    "ConflictPolicy",
    "ImportResult",
    "ImportStatus",
    "KeyedLock",
    "MatchImporter",
    "import_match_data",
    "import_match_file",
    "BatchSummary",
    "ingest_directory",
    "list_match_files",
]
