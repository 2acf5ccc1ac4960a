"""
HTTP endpoint integration tests for match-analytics-api.

These tests verify that FastAPI endpoints:
- Return correct HTTP status codes
- Map service outcomes and errors onto responses
- Enforce the X-User-Id / team membership checks

Uses FastAPI TestClient for in-memory HTTP testing.
"""
import json

import pytest

from app.models import Match, MatchTag, Player
from app.services.ingest import MatchImporter

USER = {"X-User-Id": "user-1"}
OTHER_USER = {"X-User-Id": "user-2"}


@pytest.fixture
def team_match(db_session, team_with_member, match_payload):
    """match-1 uploaded by team T1."""
    MatchImporter(db_session).import_payload(match_payload, team_id="T1")
    return "match-1"


# =============================================================================
# HEALTH
# =============================================================================

class TestHealth:

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["database"]["status"] == "connected"

    def test_correlation_id_echoed(self, test_client):
        response = test_client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


# =============================================================================
# UPLOAD
# =============================================================================

class TestUpload:

    def test_requires_user(self, test_client, team_with_member, match_payload):
        response = test_client.post("/api/v1/upload", json={"matchData": match_payload, "teamId": "T1"})
        assert response.status_code == 401

    def test_missing_fields(self, test_client, team_with_member, match_payload):
        assert test_client.post("/api/v1/upload", json={"teamId": "T1"}, headers=USER).status_code == 400
        assert test_client.post("/api/v1/upload", json={"matchData": match_payload}, headers=USER).status_code == 400

    def test_empty_match_data_reaches_validation(self, test_client, team_with_member):
        """An empty object is present, so the importer reports what is missing."""
        response = test_client.post("/api/v1/upload", json={"matchData": {}, "teamId": "T1"}, headers=USER)

        assert response.status_code == 400
        assert response.json()["status"] == "error"
        assert "matchInfo is missing" in response.json()["error"]

    def test_malformed_player_id(self, test_client, team_with_member, match_payload):
        match_payload["players"][0]["subject"] = {"id": "x"}

        response = test_client.post(
            "/api/v1/upload", json={"matchData": match_payload, "teamId": "T1"}, headers=USER
        )

        assert response.status_code == 400
        assert "subject must be a string" in response.json()["error"]

    def test_not_a_member(self, test_client, team_with_member, match_payload):
        response = test_client.post(
            "/api/v1/upload", json={"matchData": match_payload, "teamId": "T2"}, headers=USER
        )
        assert response.status_code == 403

    def test_upload_then_skip(self, test_client, db_session, team_with_member, match_payload):
        body = {"matchData": match_payload, "teamId": "T1"}

        first = test_client.post("/api/v1/upload", json=body, headers=USER)
        second = test_client.post("/api/v1/upload", json=body, headers=USER)

        assert first.status_code == 200
        assert first.json() == {"status": "imported", "matchId": "match-1"}
        assert second.status_code == 200
        assert second.json()["status"] == "skipped"
        assert db_session.get(Match, "match-1").team_id == "T1"

    def test_other_team_cannot_take_over(self, test_client, db_session, team_with_member, match_payload):
        test_client.post("/api/v1/upload", json={"matchData": match_payload, "teamId": "T1"}, headers=USER)

        response = test_client.post(
            "/api/v1/upload", json={"matchData": match_payload, "teamId": "T2"}, headers=OTHER_USER
        )

        assert response.json()["status"] == "skipped"
        assert db_session.get(Match, "match-1").team_id == "T1"

    def test_invalid_match_data(self, test_client, team_with_member):
        response = test_client.post(
            "/api/v1/upload", json={"matchData": {"players": []}, "teamId": "T1"}, headers=USER
        )

        assert response.status_code == 400
        assert response.json()["status"] == "error"
        assert "matchInfo is missing" in response.json()["error"]

    def test_persistence_failure(self, test_client, team_with_member, match_payload):
        """Duplicate round numbers fail at write time: server error."""
        match_payload["roundResults"][1]["roundNum"] = 0

        response = test_client.post(
            "/api/v1/upload", json={"matchData": match_payload, "teamId": "T1"}, headers=USER
        )

        assert response.status_code == 500
        assert response.json()["matchId"] == "match-1"


# =============================================================================
# DIRECTORY INGEST
# =============================================================================

class TestIngest:

    def test_ingest_directory(self, test_client, tmp_path, monkeypatch, make_match_payload):
        from app.core.config import settings

        (tmp_path / "m1.json").write_text(json.dumps(make_match_payload("m1")), encoding="utf-8")
        (tmp_path / "bad.json").write_text("nope", encoding="utf-8")
        monkeypatch.setattr(settings, "MATCHES_DIR", str(tmp_path))

        response = test_client.post("/api/v1/ingest")

        assert response.status_code == 200
        data = response.json()
        assert (data["imported"], data["errors"]) == (1, 1)
        assert {d["file"] for d in data["details"]} == {"m1.json", "bad.json"}

    def test_missing_directory(self, test_client, tmp_path, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "MATCHES_DIR", str(tmp_path / "absent"))

        assert test_client.post("/api/v1/ingest").json()["message"] == "Matches directory not found"


# =============================================================================
# MATCHES
# =============================================================================

class TestMatches:

    def test_summary(self, test_client, team_match):
        response = test_client.get(f"/api/v1/matches/{team_match}")

        assert response.status_code == 200
        data = response.json()
        assert data["mapName"] == "Ascent"
        assert data["winningTeam"] == "Red"
        assert [r["isPistol"] for r in data["rounds"]] == [True, False, False]
        assert data["rounds"][0]["mySide"] is None
        assert {p["agent"] for p in data["players"]} == {"Jett"}

    def test_summary_uses_own_side(self, test_client, team_match):
        test_client.patch(f"/api/v1/matches/{team_match}", json={"myTeamSide": "Blue"}, headers=USER)

        rounds = test_client.get(f"/api/v1/matches/{team_match}").json()["rounds"]

        assert rounds[0]["mySide"] == "Defense"

    def test_summary_unknown_match(self, test_client):
        assert test_client.get("/api/v1/matches/nope").status_code == 404

    def test_delete_requires_membership(self, test_client, team_match):
        assert test_client.delete(f"/api/v1/matches/{team_match}").status_code == 401
        assert test_client.delete(f"/api/v1/matches/{team_match}", headers=OTHER_USER).status_code == 403

    def test_delete(self, test_client, db_session, team_match):
        response = test_client.delete(f"/api/v1/matches/{team_match}", headers=USER)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert db_session.query(Match).count() == 0
        assert db_session.query(Player).count() == 4

    def test_delete_unknown(self, test_client):
        assert test_client.delete("/api/v1/matches/nope", headers=USER).status_code == 404

    def test_update_settings(self, test_client, team_match):
        response = test_client.patch(
            f"/api/v1/matches/{team_match}",
            json={"myTeamSide": "Red", "blueTeamName": "Rivals"},
            headers=USER,
        )

        assert response.status_code == 200
        assert response.json() == {
            "matchId": team_match,
            "myTeamSide": "Red",
            "redTeamName": None,
            "blueTeamName": "Rivals",
        }

    def test_update_settings_invalid_side(self, test_client, team_match):
        response = test_client.patch(f"/api/v1/matches/{team_match}", json={"myTeamSide": "Green"}, headers=USER)
        assert response.status_code == 400

    def test_opponents(self, test_client, team_match):
        test_client.patch(
            f"/api/v1/matches/{team_match}",
            json={"myTeamSide": "Red", "blueTeamName": "Rivals"},
            headers=USER,
        )

        assert test_client.get("/api/v1/teams/T1/opponents", headers=USER).json() == ["Rivals"]
        assert test_client.get("/api/v1/teams/T1/opponents", headers=OTHER_USER).status_code == 403


# =============================================================================
# TAGS
# =============================================================================

class TestTags:

    def test_tag_lifecycle(self, test_client, db_session, team_match):
        created = test_client.post(f"/api/v1/matches/{team_match}/tags", json={"tagName": " scrim "})
        assert created.status_code == 200
        assert created.json()["tagName"] == "scrim"

        assert test_client.get(f"/api/v1/matches/{team_match}/tags").json() == ["scrim"]
        assert test_client.get("/api/v1/tags").json() == ["scrim"]

        deleted = test_client.delete(f"/api/v1/matches/{team_match}/tags", params={"tagName": "scrim"})
        assert deleted.status_code == 200
        assert db_session.query(MatchTag).count() == 0

    def test_duplicate_tag(self, test_client, team_match):
        test_client.post(f"/api/v1/matches/{team_match}/tags", json={"tagName": "scrim"})
        response = test_client.post(f"/api/v1/matches/{team_match}/tags", json={"tagName": "scrim"})
        assert response.status_code == 409

    def test_invalid_tag(self, test_client, team_match):
        assert test_client.post(f"/api/v1/matches/{team_match}/tags", json={}).status_code == 400

    def test_tag_unknown_match(self, test_client):
        assert test_client.post("/api/v1/matches/nope/tags", json={"tagName": "x"}).status_code == 404

    def test_delete_requires_name(self, test_client, team_match):
        assert test_client.delete(f"/api/v1/matches/{team_match}/tags").status_code == 400

    def test_delete_missing_tag(self, test_client, team_match):
        response = test_client.delete(f"/api/v1/matches/{team_match}/tags", params={"tagName": "nope"})
        assert response.status_code == 404


# =============================================================================
# PLAYERS
# =============================================================================

class TestPlayers:

    def test_set_alias(self, test_client, team_match):
        response = test_client.patch("/api/v1/players/p-red-1", json={"alias": "Captain"}, headers=USER)

        assert response.status_code == 200
        assert response.json()["alias"] == "Captain"
        assert response.json()["mergedToPuuid"] is None

    def test_omitted_field_untouched(self, test_client, team_match):
        test_client.patch("/api/v1/players/p-red-2", json={"mergedToPuuid": "p-red-1"}, headers=USER)

        response = test_client.patch("/api/v1/players/p-red-2", json={"alias": "Alt"}, headers=USER)

        assert response.json()["mergedToPuuid"] == "p-red-1"

    def test_explicit_null_clears(self, test_client, team_match):
        test_client.patch("/api/v1/players/p-red-2", json={"mergedToPuuid": "p-red-1"}, headers=USER)

        response = test_client.patch("/api/v1/players/p-red-2", json={"mergedToPuuid": None}, headers=USER)

        assert response.json()["mergedToPuuid"] is None

    def test_self_merge_rejected(self, test_client, team_match):
        response = test_client.patch("/api/v1/players/p-red-1", json={"mergedToPuuid": "p-red-1"}, headers=USER)
        assert response.status_code == 400

    def test_circular_merge_rejected(self, test_client, team_match):
        test_client.patch("/api/v1/players/p-red-2", json={"mergedToPuuid": "p-red-1"}, headers=USER)

        response = test_client.patch("/api/v1/players/p-red-1", json={"mergedToPuuid": "p-red-2"}, headers=USER)

        assert response.status_code == 400
        assert "Circular" in response.json()["detail"]

    def test_requires_shared_match(self, test_client, team_match):
        response = test_client.patch("/api/v1/players/p-red-1", json={"alias": "x"}, headers=OTHER_USER)
        assert response.status_code == 403
