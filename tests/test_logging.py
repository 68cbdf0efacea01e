"""Tests for session logging and log analysis."""

import json

from namegen.logging import SessionLogger, analyze_logs, get_logger, log_event, set_logger


def _events(session: SessionLogger) -> list[dict]:
    lines = session.log_file.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines if line.strip()]


class TestSessionLogger:
    def test_session_start_written_immediately(self, tmp_path):
        session = SessionLogger("generate", session_id="s1", log_dir=tmp_path)
        assert session.log_file == tmp_path / "session_s1.jsonl"
        events = _events(session)
        assert events[0]["event"] == "session_start"
        assert events[0]["command"] == "generate"

    def test_finalize_summary(self, tmp_path):
        session = SessionLogger("generate", log_dir=tmp_path)
        session.log_generation({"gender": "female"}, "Anna Bauer")
        session.log_generation({"gender": "female"}, None)
        session.log_batch({"gender": "male"}, 25)
        session.log_favorite_added("Anna Bauer", "abc")
        session.log_favorite_removed("abc")

        summary = session.finalize()
        assert summary["generations_requested"] == 2
        assert summary["generations_succeeded"] == 1
        assert summary["success_rate"] == 50.0
        assert summary["batches"] == 1
        assert summary["batch_names"] == 25
        assert summary["favorites_added"] == 1
        assert summary["favorites_removed"] == 1

        kinds = [e["event"] for e in _events(session)]
        assert kinds[0] == "session_start"
        assert kinds[-1] == "session_complete"
        assert "batch_generation" in kinds

    def test_generation_event_records_last_name_initial(self, tmp_path):
        session = SessionLogger("generate", log_dir=tmp_path)
        session.log_generation({}, "Anna-Lena Bauer")
        session.finalize()
        generation = next(e for e in _events(session) if e["event"] == "generation")
        assert generation["initial"] == "B"

    def test_errors_flush_immediately(self, tmp_path):
        session = SessionLogger("generate", log_dir=tmp_path)
        session.log_error("no_candidates", "No name generated", {"gender": "diverse"})
        error = _events(session)[-1]
        assert error["event"] == "error"
        assert error["details"] == {"gender": "diverse"}
        assert session.metrics.errors == 1

    def test_success_rate_none_without_generations(self, tmp_path):
        assert SessionLogger("fav", log_dir=tmp_path).finalize()["success_rate"] is None


class TestCurrentLogger:
    def test_set_and_get(self, tmp_path):
        session = SessionLogger("fav", log_dir=tmp_path)
        set_logger(session)
        try:
            assert get_logger() is session
            log_event("favorites_cleared", {"count": 3})
            session.finalize()
        finally:
            set_logger(None)
        assert get_logger() is None
        assert any(e["event"] == "favorites_cleared" for e in _events(session))

    def test_log_event_without_session_is_noop(self):
        log_event("favorites_cleared", {"count": 1})


class TestAnalyzeLogs:
    def test_aggregates_sessions(self, tmp_path):
        first = SessionLogger("generate", session_id="a", log_dir=tmp_path)
        first.log_generation({}, "Anna Bauer")
        first.log_generation({}, "Lena Bauer")
        first.log_generation({}, None)
        first.finalize()

        second = SessionLogger("fav", session_id="b", log_dir=tmp_path)
        second.log_batch({}, 20)
        second.log_favorite_added("Anna Bauer", "x")
        second.finalize()

        analysis = analyze_logs(log_dir=tmp_path)
        assert analysis["sessions_analyzed"] == 2
        assert analysis["commands"] == {"generate": 1, "fav": 1}
        assert analysis["generations_requested"] == 3
        assert analysis["generations_succeeded"] == 2
        assert analysis["success_rate"] == 66.7
        assert analysis["batches"] == 1
        assert analysis["avg_batch_size"] == 20.0
        assert analysis["favorites_added"] == 1
        assert analysis["common_last_name_initials"] == [("B", 2)]

    def test_skips_corrupt_lines(self, tmp_path):
        (tmp_path / "session_x.jsonl").write_text(
            '{"event": "generation", "result": "Anna Bauer", "initial": "B"}\nnot json\n',
            encoding="utf-8",
        )
        assert analyze_logs(log_dir=tmp_path)["generations_succeeded"] == 1

    def test_missing_directory(self, tmp_path):
        assert "error" in analyze_logs(log_dir=tmp_path / "nope")

    def test_empty_directory(self, tmp_path):
        assert analyze_logs(log_dir=tmp_path) == {"error": "No log files found"}
