"""Security audit trail for rejected and failed API requests.

JSON Lines, one AuditEvent per line. Each line carries ``prev_hash``, the
SHA-256 of the line before it in the same file, so that edits or deletions
are detectable with validate_audit_chain(). Every file, including each
rotated backup, starts its own chain with ``prev_hash: null``.

Several server workers may share one log: the previous line is read back
from the file under an exclusive fcntl lock, never cached in memory.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import os
import threading
from dataclasses import dataclass
from pathlib import Path

from src.models import AuditEvent

# Longest line we expect; the tail read grows past this if needed.
_TAIL_CHUNK = 8192


@dataclass
class ChainValidationResult:
    valid: bool
    broken_at_line: int | None = None


def _line_hash(line: str) -> str:
    return hashlib.sha256(line.encode()).hexdigest()


def validate_audit_chain(log_path: Path) -> ChainValidationResult:
    """Check that every line's prev_hash matches the line before it."""
    text = log_path.read_text().strip()
    if not text:
        return ChainValidationResult(valid=True)

    previous: str | None = None
    for number, line in enumerate(text.split("\n"), start=1):
        expected = _line_hash(previous) if previous is not None else None
        if json.loads(line).get("prev_hash") != expected:
            return ChainValidationResult(valid=False, broken_at_line=number)
        previous = line
    return ChainValidationResult(valid=True)


def _read_last_line(path: Path) -> str | None:
    """Last non-empty line of path, reading backwards from the end."""
    try:
        f = open(path, "rb")
    except FileNotFoundError:
        return None
    with f:
        size = f.seek(0, os.SEEK_END)
        chunk = _TAIL_CHUNK
        while True:
            start = max(0, size - chunk)
            f.seek(start)
            lines = f.read(size - start).rstrip(b"\n").split(b"\n")
            if len(lines) > 1 or start == 0:
                return lines[-1].decode() or None
            chunk *= 2


class AuditLogger:
    """Appends AuditEvents for rejected or failed requests, with rotation."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls, log_path: str) -> AuditLogger:
        return cls(
            log_path=log_path,
            max_bytes=int(os.environ.get("AUDIT_LOG_MAX_BYTES", "10485760")),
            backup_count=int(os.environ.get("AUDIT_LOG_BACKUP_COUNT", "5")),
        )

    def _backup(self, index: int) -> Path:
        return self.log_path.with_name(f"{self.log_path.name}.{index}")

    def _rotate_if_needed(self) -> None:
        if not self.log_path.exists() or self.log_path.stat().st_size < self._max_bytes:
            return
        self._backup(self._backup_count).unlink(missing_ok=True)
        for index in range(self._backup_count - 1, 0, -1):
            if self._backup(index).exists():
                self._backup(index).rename(self._backup(index + 1))
        self.log_path.rename(self._backup(1))

    def log(self, event: AuditEvent) -> None:
        data = event.model_dump(mode="json")
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = self.log_path.with_name(f".{self.log_path.name}.lock")
        with self._lock, open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            try:
                # after a rotation the live file is gone and the chain restarts
                self._rotate_if_needed()
                previous = _read_last_line(self.log_path)
                data["prev_hash"] = _line_hash(previous) if previous else None
                with open(self.log_path, "a") as f:
                    f.write(json.dumps(data, separators=(",", ":")) + "\n")
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)
