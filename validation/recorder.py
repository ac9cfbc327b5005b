"""Run recorder owning counters and the ordered entry log."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
import threading

from validation.models import LogEntry, RunSnapshot, Severity


class RunRecorder:
    """Single mutation point for run state.

    ``record`` updates counters and appends under one lock so that
    ``total == passed + failed`` holds for every snapshot, including when
    checks record from worker threads.
    """

    def __init__(
        self,
        sink: Callable[[LogEntry], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._lock = threading.Lock()
        self._sink = sink
        self._clock = clock
        self._entries: list[LogEntry] = []
        self._total = 0
        self._passed = 0
        self._failed = 0
        self._warnings = 0
        self._start_time = clock()
        self._end_time: datetime | None = None

    @property
    def start_time(self) -> datetime:
        return self._start_time

    def record(self, severity: Severity, module: str, message: str) -> LogEntry:
        """Append a classified entry and update the matching counters."""

        severity = Severity(severity)
        with self._lock:
            if self._end_time is not None:
                raise RuntimeError("Run already finalized")
            entry = LogEntry(
                severity=severity,
                timestamp=self._clock(),
                module=module,
                message=message,
            )
            if severity is Severity.PASS:
                self._passed += 1
                self._total += 1
            elif severity is Severity.FAIL:
                self._failed += 1
                self._total += 1
            elif severity is Severity.WARN:
                self._warnings += 1
            self._entries.append(entry)
            if self._sink is not None:
                self._sink(entry)
        return entry

    def snapshot(self) -> RunSnapshot:
        """Return current counters and entries without mutating state."""

        with self._lock:
            return self._snapshot_locked()

    def finalize(self) -> RunSnapshot:
        """Stamp the end time; a run can only be finalized once."""

        with self._lock:
            if self._end_time is not None:
                raise RuntimeError("Run already finalized")
            self._end_time = self._clock()
            return self._snapshot_locked()

    def _snapshot_locked(self) -> RunSnapshot:
        return RunSnapshot(
            total=self._total,
            passed=self._passed,
            failed=self._failed,
            warnings=self._warnings,
            entries=tuple(self._entries),
            start_time=self._start_time,
            end_time=self._end_time,
        )
