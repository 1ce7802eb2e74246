"""Unit tests for pagestore.engine.logging — FileLogger, AsyncLogQueue, entry builders."""

import json
import logging
import time

from pagestore.engine.logging import (
    AsyncLogQueue,
    FileLogger,
    LogEntry,
    configure_logging,
    get_log_queue,
    init_logging,
    log,
    log_page_operation,
    log_security_event,
    shutdown_logging,
)


class TestLogEntry:
    def test_to_json(self):
        entry = LogEntry("execution", {"event": "page_write", "page_id": "p1"})
        parsed = json.loads(entry.to_json())
        assert parsed["page_id"] == "p1"


class TestFileLogger:
    def test_creates_category_dirs(self, tmp_path):
        FileLogger(log_dir=str(tmp_path / "logs"))
        assert (tmp_path / "logs" / "execution").is_dir()
        assert (tmp_path / "logs" / "security").is_dir()

    def test_write_and_read(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path / "logs"))
        fl.write(LogEntry("security", {"event": "path_traversal"}))
        entries = fl.read_today("security")
        assert entries == [{"event": "path_traversal"}]

    def test_write_batch_groups_by_category(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path / "logs"))
        fl.write_batch([
            LogEntry("execution", {"n": 1}),
            LogEntry("security", {"n": 2}),
            LogEntry("execution", {"n": 3}),
        ])
        assert [e["n"] for e in fl.read_today("execution")] == [1, 3]
        assert [e["n"] for e in fl.read_today("security")] == [2]

    def test_unknown_category_goes_to_execution(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path / "logs"))
        fl.write(LogEntry("other", {"n": 1}))
        assert fl.read_today("execution") == [{"n": 1}]

    def test_read_skips_corrupt_lines(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path / "logs"))
        fl.write(LogEntry("execution", {"n": 1}))
        path = fl._resolve_path("execution")
        with open(path, "a", encoding="utf-8") as f:
            f.write("{not json\n\n")
        assert fl.read_today("execution") == [{"n": 1}]


class TestAsyncLogQueue:
    def test_stop_drains(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path / "logs"))
        queue = AsyncLogQueue(fl, flush_interval_ms=10)
        queue.start()
        for i in range(5):
            assert queue.push(LogEntry("execution", {"n": i}))
        queue.stop()
        assert len(fl.read_today("execution")) == 5

    def test_flushes_in_background(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path / "logs"))
        queue = AsyncLogQueue(fl, flush_interval_ms=10, flush_batch_size=2)
        queue.start()
        try:
            for i in range(5):
                queue.push(LogEntry("execution", {"n": i}))
            deadline = time.monotonic() + 5
            while len(fl.read_today("execution")) < 5 and time.monotonic() < deadline:
                time.sleep(0.01)
            assert [e["n"] for e in fl.read_today("execution")] == [0, 1, 2, 3, 4]
        finally:
            queue.stop()

    def test_full_queue_drops(self, tmp_path):
        fl = FileLogger(log_dir=str(tmp_path / "logs"))
        queue = AsyncLogQueue(fl, max_queue_size=1)
        assert queue.push(LogEntry("execution", {}))
        assert not queue.push(LogEntry("execution", {}))
        assert queue.dropped_count == 1


class TestBuilders:
    def test_page_operation_success(self):
        entry = log_page_operation("write", "p1", True, duration_ms=1.23456, created=True)
        assert entry.category == "execution"
        assert entry.data["event"] == "page_write"
        assert entry.data["level"] == "INFO"
        assert entry.data["duration_ms"] == 1.235
        assert entry.data["created"] is True

    def test_page_operation_failure(self):
        entry = log_page_operation("delete", "p1", False, error="disk full")
        assert entry.data["level"] == "ERROR"
        assert entry.data["error"] == "disk full"

    def test_security_event(self):
        entry = log_security_event("path_traversal", "../x", detail="/etc")
        assert entry.category == "security"
        assert entry.data["level"] == "WARNING"
        assert entry.data["page_id"] == "../x"


class TestGlobalQueue:
    def test_log_without_init_is_noop(self):
        assert get_log_queue() is None
        assert log(LogEntry("execution", {})) is False

    def test_init_and_shutdown(self, tmp_path):
        queue = init_logging(log_dir=str(tmp_path / "logs"), flush_interval_ms=10)
        assert get_log_queue() is queue
        assert log(log_page_operation("write", "p1", True))
        shutdown_logging()
        assert get_log_queue() is None
        files = list((tmp_path / "logs" / "execution").glob("*.jsonl"))
        assert len(files) == 1


class TestConfigureLogging:
    def test_single_console_handler(self):
        configure_logging("DEBUG")
        configure_logging("INFO")
        root = logging.getLogger("pagestore")
        handlers = [h for h in root.handlers if getattr(h, "_pagestore_console", False)]
        assert len(handlers) == 1
        assert root.level == logging.INFO
