"""
API routes.

- ingest: directory import and team upload
- matches: match summary, deletion, settings, tags, opponents
- players: alias and merge corrections
"""
