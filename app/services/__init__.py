"""
Services module for business logic.

This module organizes services into:
- ingest: match payload parsing, normalization, reconciliation and import
- player_service: alias and account-merge corrections
- match_service: match deletion, tags and per-match settings
- reference_data: agent/map/weapon metadata cache
- round_context: pistol round and attack/defense side helpers
"""
