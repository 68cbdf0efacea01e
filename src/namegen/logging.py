"""Structured session logging for name generation.

Logs CLI sessions to ~/.namegen/logs/ in JSON-lines format so generation
success rates and favorites activity can be reviewed later.

Example usage:
    from namegen.logging import SessionLogger, set_logger

    session = SessionLogger("generate")
    set_logger(session)
    session.log_generation({"gender": "female", ...}, "Anna Bauer")
    session.log_favorite_added("Anna Bauer", person_id)
    session.finalize()
"""

import atexit
import json
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from namegen.config import CONFIG_DIR

LOGS_DIR = CONFIG_DIR / "logs"


@dataclass
class SessionMetrics:
    """Aggregated metrics for a session."""

    generations_requested: int = 0
    generations_succeeded: int = 0
    batches: int = 0
    batch_names: int = 0
    favorites_added: int = 0
    favorites_removed: int = 0
    errors: int = 0


@dataclass
class SessionLogger:
    """Session-based logger for generation and favorites events."""

    command: str
    session_id: str = field(default_factory=lambda: datetime.now().strftime("%Y%m%d_%H%M%S_%f"))
    log_dir: Path = field(default_factory=lambda: LOGS_DIR)
    log_file: Path = field(init=False)
    metrics: SessionMetrics = field(default_factory=SessionMetrics)
    _started: datetime = field(default_factory=datetime.now)
    _log_buffer: list[dict[str, Any]] = field(default_factory=list)
    _BUFFER_SIZE: int = field(default=10, repr=False)
    _buffer_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.log_dir / f"session_{self.session_id}.jsonl"
        self._write_event("session_start", {
            "command": self.command,
            "timestamp": self._started.isoformat(),
        })

    def log_generation(self, request: dict, result: str | None) -> None:
        """Log a single generation call and whether it produced a name."""
        self.metrics.generations_requested += 1
        if result is not None:
            self.metrics.generations_succeeded += 1
        self._write_event("generation", {
            "request": request,
            "result": result,
            "initial": result.split()[-1][:1].upper() if result else None,
        })

    def log_batch(self, request: dict, count: int) -> None:
        """Log an alphabetical batch and how many letters it filled."""
        self.metrics.batches += 1
        self.metrics.batch_names += count
        self._write_event("batch_generation", {
            "request": request,
            "count": count,
        })

    def log_favorite_added(self, name: str, person_id: str) -> None:
        self.metrics.favorites_added += 1
        self._write_event("favorite_added", {"name": name, "id": person_id})

    def log_favorite_removed(self, person_id: str) -> None:
        self.metrics.favorites_removed += 1
        self._write_event("favorite_removed", {"id": person_id})

    def log_error(self, error_type: str, message: str, details: dict | None = None) -> None:
        """Log an error event."""
        self.metrics.errors += 1
        self._write_event("error", {
            "error_type": error_type,
            "message": message,
            "details": details or {},
        })

    def finalize(self) -> dict:
        """Finalize session and write summary.

        Returns:
            Summary metrics dict
        """
        elapsed = (datetime.now() - self._started).total_seconds()
        summary = {
            "command": self.command,
            "duration_seconds": round(elapsed, 3),
            "generations_requested": self.metrics.generations_requested,
            "generations_succeeded": self.metrics.generations_succeeded,
            "success_rate": self._calc_success_rate(),
            "batches": self.metrics.batches,
            "batch_names": self.metrics.batch_names,
            "favorites_added": self.metrics.favorites_added,
            "favorites_removed": self.metrics.favorites_removed,
            "errors": self.metrics.errors,
        }

        self._write_event("session_complete", summary)
        self._flush_logs()
        return summary

    def _calc_success_rate(self) -> float | None:
        if self.metrics.generations_requested > 0:
            return round(
                self.metrics.generations_succeeded / self.metrics.generations_requested * 100, 1
            )
        return None

    def _write_event(self, event_type: str, data: dict) -> None:
        """Buffer a JSON event and flush when buffer is full."""
        event = {
            "event": event_type,
            "ts": datetime.now().isoformat(),
            **data,
        }

        with self._buffer_lock:
            self._log_buffer.append(event)
            critical_events = {"session_start", "session_complete", "error"}
            buffer_full = len(self._log_buffer) >= self._BUFFER_SIZE
            should_flush = buffer_full or event_type in critical_events

        # Flush outside the lock to avoid holding lock during I/O
        if should_flush:
            self._flush_logs()

    def _flush_logs(self) -> None:
        """Flush buffered log events to disk."""
        with self._buffer_lock:
            if not self._log_buffer:
                return
            events_to_write = self._log_buffer.copy()

        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                for event in events_to_write:
                    f.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")

            # Only clear buffer after successful write
            with self._buffer_lock:
                self._log_buffer = [e for e in self._log_buffer if e not in events_to_write]

        except OSError as e:
            # Keep buffer intact for retry
            print(f"Warning: Failed to flush logs to {self.log_file}: {e}", file=sys.stderr)


# Global logger instance for current session (thread-safe)
_current_logger: SessionLogger | None = None
_logger_lock = threading.Lock()


def get_logger() -> SessionLogger | None:
    """Get the current session logger (thread-safe)."""
    with _logger_lock:
        return _current_logger


def set_logger(logger: SessionLogger | None) -> None:
    """Set the current session logger (thread-safe)."""
    global _current_logger
    with _logger_lock:
        _current_logger = logger


def log_event(event_type: str, data: dict) -> None:
    """Log to the current session if one is active."""
    with _logger_lock:
        if _current_logger:
            _current_logger._write_event(event_type, data)


def _flush_on_exit():
    """Flush any pending log events on process exit."""
    with _logger_lock:
        if _current_logger and _current_logger._log_buffer:
            _current_logger._flush_logs()


atexit.register(_flush_on_exit)


def analyze_logs(limit: int = 10, log_dir: Path | None = None) -> dict[str, Any]:
    """Analyze recent sessions for generation patterns.

    Returns aggregated insights across sessions.
    """
    log_dir = log_dir or LOGS_DIR
    if not log_dir.exists():
        return {"error": "No logs directory found"}

    log_files = sorted(log_dir.glob("session_*.jsonl"), reverse=True)[:limit]
    if not log_files:
        return {"error": "No log files found"}

    requested = 0
    succeeded = 0
    batches = 0
    batch_names = 0
    favorites_added = 0
    initials: dict[str, int] = {}
    commands: dict[str, int] = {}

    for log_file in log_files:
        try:
            file_content = log_file.read_text(encoding="utf-8")
        except OSError:
            continue

        for line in file_content.splitlines():
            if not line.strip():
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue

            kind = event.get("event")
            if kind == "session_start":
                cmd = event.get("command", "unknown")
                commands[cmd] = commands.get(cmd, 0) + 1
            elif kind == "generation":
                requested += 1
                if event.get("result"):
                    succeeded += 1
                    initial = event.get("initial")
                    if initial:
                        initials[initial] = initials.get(initial, 0) + 1
            elif kind == "batch_generation":
                batches += 1
                batch_names += event.get("count", 0)
            elif kind == "favorite_added":
                favorites_added += 1

    success_rate = round(succeeded / requested * 100, 1) if requested > 0 else None
    avg_batch = round(batch_names / batches, 1) if batches > 0 else None
    common_initials = sorted(initials.items(), key=lambda x: (-x[1], x[0]))[:10]

    return {
        "sessions_analyzed": len(log_files),
        "commands": commands,
        "generations_requested": requested,
        "generations_succeeded": succeeded,
        "success_rate": success_rate,
        "batches": batches,
        "avg_batch_size": avg_batch,
        "favorites_added": favorites_added,
        "common_last_name_initials": common_initials,
    }
