"""Unit tests for projectai.engine.logging — FileLogger, AsyncLogQueue, builders, retention."""

import gzip
import json
from datetime import date, timedelta

from projectai.engine.logging import (
    AREA_CATEGORIES,
    DEFAULT_RETENTION,
    AsyncLogQueue,
    FileLogger,
    LogEntry,
    LogRetentionManager,
    get_log_queue,
    init_logging,
    log,
    log_access_denied,
    log_auth_event,
    log_backend_call,
    log_record_operation,
    log_role_change,
    log_system_event,
    log_validation_failure,
    shutdown_logging,
)


class TestAreaCategories:

    def test_every_area_has_execution(self):
        for area, cats in AREA_CATEGORIES.items():
            assert "execution" in cats, area

    def test_expected_areas(self):
        assert set(AREA_CATEGORIES) == {
            "auth", "backend", "projects", "tasks", "team", "settings", "system",
        }

    def test_retention_defaults(self):
        assert DEFAULT_RETENTION["security"] > DEFAULT_RETENTION["execution"]


class TestLogEntry:

    def test_to_json(self):
        entry = LogEntry("projects", "execution", {"event": "record_create", "when": date(2025, 1, 1)})
        parsed = json.loads(entry.to_json())
        assert parsed["event"] == "record_create"
        assert parsed["when"] == "2025-01-01"


class TestFileLogger:

    def test_creates_directories(self, tmp_path):
        FileLogger(log_dir=str(tmp_path))
        assert (tmp_path / "auth" / "security").is_dir()
        assert (tmp_path / "backend" / "performance").is_dir()

    def test_write_and_query(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path))
        fl.write(LogEntry("team", "security", {"event": "role_changed", "profile_id": "p1"}))
        fl.write(LogEntry("team", "security", {"event": "role_changed", "profile_id": "p2"}))
        path = tmp_path / "team" / "security" / f"{date.today().isoformat()}.jsonl"
        assert len(path.read_text(encoding="utf-8").splitlines()) == 2
        assert [e["profile_id"] for e in fl.query("team", "security", filters={"profile_id": "p2"})] == ["p2"]

    def test_unknown_area_goes_to_system(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path))
        fl.write(LogEntry("nowhere", "weird", {"event": "x"}))
        assert fl.query("system", "execution")[0]["event"] == "x"

    def test_query_reads_gzip(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path))
        day = date.today() - timedelta(days=1)
        gz = tmp_path / "auth" / "execution" / f"{day.isoformat()}.jsonl.gz"
        with gzip.open(gz, "wt", encoding="utf-8") as f:
            f.write(json.dumps({"event": "session_established"}) + "\n")
        assert fl.query("auth", "execution")[0]["event"] == "session_established"

    def test_query_missing_area(self, tmp_path):
        assert FileLogger(log_dir=str(tmp_path)).query("ghost", "execution") == []


class TestAsyncLogQueue:

    def test_stop_drains(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path))
        queue = AsyncLogQueue(fl, flush_interval_ms=10)
        queue.start()
        for i in range(5):
            assert queue.push(LogEntry("system", "execution", {"event": f"e{i}"}))
        queue.stop()
        assert len(fl.query("system", "execution")) == 5

    def test_drops_when_full(self, tmp_path):
        queue = AsyncLogQueue(FileLogger(log_dir=str(tmp_path)), max_queue_size=1)
        assert queue.push(LogEntry("system", "execution", {})) is True
        assert queue.push(LogEntry("system", "execution", {})) is False
        assert queue.dropped_count == 1
        assert queue.pending_count == 1


class TestBuilders:

    def test_backend_call_success(self):
        entry = log_backend_call("projects", "select", 12.345, success=True, rows=3, user_id="u1")
        assert entry.area == "backend"
        assert entry.data["duration_ms"] == 12.35
        assert entry.data["rows"] == 3
        assert "error" not in entry.data

    def test_backend_call_failure(self):
        entry = log_backend_call("tasks", "insert", 1.0, success=False, status_code=403, error="denied")
        assert entry.data["level"] == "ERROR"
        assert entry.data["status_code"] == 403

    def test_auth_event_failure_is_security(self):
        assert log_auth_event("session_rejected", success=False).category == "security"
        assert log_auth_event("session_established", email="a@b.c").category == "execution"

    def test_role_change(self):
        entry = log_role_change("p1", "member", "admin", "u0", reason="bootstrap_admin")
        assert (entry.area, entry.category) == ("team", "security")
        assert entry.data["new_role"] == "admin"
        assert entry.data["reason"] == "bootstrap_admin"

    def test_access_denied(self):
        entry = log_access_denied("projects", "project.delete", "u1", "manager")
        assert entry.category == "security"
        assert entry.data["capability"] == "project.delete"

    def test_record_operation(self):
        entry = log_record_operation("projects", "create", "projects", "p1", "u1", ["name"])
        assert entry.data["event"] == "record_create"
        assert entry.data["fields_changed"] == ["name"]

    def test_validation_failure(self):
        entry = log_validation_failure("projects", "project", [{"field": "name", "message": "short"}])
        assert entry.data["fields"] == ["name"]

    def test_system_event(self):
        assert log_system_event("runtime_started").area == "system"


class TestGlobalQueue:

    def test_log_before_init_returns_false(self):
        assert get_log_queue() is None
        assert log(log_system_event("x")) is False

    def test_init_log_shutdown(self, tmp_path):
        init_logging(log_dir=str(tmp_path), flush_interval_ms=10)
        assert log(log_system_event("runtime_started")) is True
        shutdown_logging()
        assert get_log_queue() is None
        assert FileLogger(log_dir=str(tmp_path)).query("system", "execution")[0]["event"] == "runtime_started"


class TestLogRetentionManager:

    def _write(self, path, days_ago):
        path.mkdir(parents=True, exist_ok=True)
        f = path / f"{(date.today() - timedelta(days=days_ago)).isoformat()}.jsonl"
        f.write_text('{"event": "x"}\n', encoding="utf-8")
        return f

    def test_deletes_and_compresses(self, tmp_path):
        old = self._write(tmp_path / "backend" / "execution", 100)
        middle = self._write(tmp_path / "backend" / "execution", 10)
        fresh = self._write(tmp_path / "backend" / "execution", 1)
        result = LogRetentionManager(log_dir=str(tmp_path), compress_after_days=7).cleanup()
        assert result == {"deleted": 1, "compressed": 1}
        assert not old.exists()
        assert not middle.exists()
        assert middle.with_suffix(".jsonl.gz").exists()
        assert fresh.exists()

    def test_security_kept_longer(self, tmp_path):
        kept = self._write(tmp_path / "team" / "security", 200)
        LogRetentionManager(log_dir=str(tmp_path)).cleanup()
        assert kept.with_suffix(".jsonl.gz").exists()

    def test_ignores_unparseable_names(self, tmp_path):
        d = tmp_path / "system" / "execution"
        d.mkdir(parents=True)
        (d / "notes.txt").write_text("hi", encoding="utf-8")
        assert LogRetentionManager(log_dir=str(tmp_path)).cleanup() == {"deleted": 0, "compressed": 0}
