"""
Error taxonomy for match ingestion.

InvalidMatchData is raised by the parser before any database work.
PersistenceFailure wraps anything that goes wrong while writing. A skipped
import is an outcome, not an exception (see ImportResult).
"""


class IngestError(Exception):
    """Base class for ingestion failures."""


class InvalidMatchData(IngestError):
    """The payload does not have the structure of a match record."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid match data: {reason}")


class PersistenceFailure(IngestError):
    """Writing a match to the store failed; nothing from the attempt is visible."""

    def __init__(self, match_id: str, cause: Exception):
        self.match_id = match_id
        self.cause = cause
        super().__init__(f"Failed to persist match {match_id}: {cause}")
