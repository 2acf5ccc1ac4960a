"""Tests for the directory batch import.

Given a directory of match files, ingest_directory() should import each
file independently and report a per-file outcome, continuing past failures.
"""
import json

from app.models import Match
from app.services.ingest import ConflictPolicy, MatchImporter, ingest_directory, list_match_files


def write_match(directory, name, payload):
    path = directory / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestListMatchFiles:

    def test_sorted_json_files_only(self, tmp_path):
        for name in ("b.json", "a.json", "notes.txt", "c.JSON"):
            (tmp_path / name).write_text("{}", encoding="utf-8")
        (tmp_path / "nested.json").mkdir()

        assert [p.name for p in list_match_files(tmp_path)] == ["a.json", "b.json", "c.JSON"]

    def test_missing_directory(self, tmp_path):
        assert list_match_files(tmp_path / "absent") == []


class TestIngestDirectory:

    def test_missing_directory(self, db_session, tmp_path):
        summary = ingest_directory(db_session, tmp_path / "absent")

        assert summary.to_dict() == {
            "message": "Matches directory not found",
            "imported": 0,
            "skipped": 0,
            "errors": 0,
            "details": [],
        }

    def test_empty_directory(self, db_session, tmp_path):
        assert ingest_directory(db_session, tmp_path).message == "No match files found"

    def test_continues_past_failures(self, db_session, tmp_path, make_match_payload):
        """A corrupt or invalid file should be reported without stopping the batch."""
        write_match(tmp_path, "1-good.json", make_match_payload("m1"))
        (tmp_path / "2-corrupt.json").write_text("{oops", encoding="utf-8")
        write_match(tmp_path, "3-invalid.json", {"players": []})
        write_match(tmp_path, "4-good.json", make_match_payload("m2"))

        summary = ingest_directory(db_session, tmp_path)

        assert summary.message == "Ingestion complete"
        assert (summary.imported, summary.skipped, summary.errors) == (2, 0, 2)
        assert [d["file"] for d in summary.details] == [
            "1-good.json", "2-corrupt.json", "3-invalid.json", "4-good.json",
        ]
        assert summary.details[0] == {"file": "1-good.json", "status": "imported", "matchId": "m1"}
        assert summary.details[2]["status"] == "error"
        assert "matchInfo is missing" in summary.details[2]["error"]
        assert db_session.query(Match).count() == 2

    def test_rerun_overwrites(self, db_session, tmp_path, make_match_payload):
        write_match(tmp_path, "m1.json", make_match_payload("m1"))

        ingest_directory(db_session, tmp_path)
        summary = ingest_directory(db_session, tmp_path)

        assert summary.imported == 1
        assert db_session.query(Match).count() == 1

    def test_rerun_with_skip_policy(self, db_session, tmp_path, make_match_payload):
        write_match(tmp_path, "m1.json", make_match_payload("m1"))

        ingest_directory(db_session, tmp_path)
        summary = ingest_directory(db_session, tmp_path, policy=ConflictPolicy.SKIP)

        assert (summary.imported, summary.skipped) == (0, 1)
        assert summary.details[0]["reason"] == "already exists"

    def test_malformed_player_id_does_not_stop_batch(self, db_session, tmp_path, make_match_payload):
        bad = make_match_payload("bad")
        bad["players"][0]["subject"] = {"id": "x"}
        write_match(tmp_path, "a_bad.json", bad)
        write_match(tmp_path, "b_good.json", make_match_payload("good"))

        summary = ingest_directory(db_session, tmp_path)

        assert (summary.imported, summary.errors) == (1, 1)
        assert "players[0].subject must be a string" in summary.details[0]["error"]
        assert db_session.get(Match, "good") is not None

    def test_unexpected_error_is_recorded(self, db_session, tmp_path, make_match_payload, monkeypatch):
        """An exception escaping the importer is reported for that file only."""
        write_match(tmp_path, "a.json", make_match_payload("m1"))
        write_match(tmp_path, "b.json", make_match_payload("m2"))
        original = MatchImporter.import_file

        def import_file(self, path, policy=ConflictPolicy.OVERWRITE):
            if path.name == "a.json":
                raise RuntimeError("boom")
            return original(self, path, policy=policy)

        monkeypatch.setattr(MatchImporter, "import_file", import_file)
        summary = ingest_directory(db_session, tmp_path)

        assert summary.details[0] == {"file": "a.json", "status": "error", "error": "Unexpected error: boom"}
        assert summary.details[1]["status"] == "imported"
        assert (summary.imported, summary.errors) == (1, 1)
