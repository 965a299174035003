"""ManagedLog end-to-end tests: filter, write, size check, rotation, sweep."""

import logging
import os
import time
from dataclasses import replace
from pathlib import Path

import pytest

from genlog.config import DEFAULT_CONFIG, LogSettings, save_config
from genlog.levels import Severity
from genlog.logger import ManagedLog
from genlog.rotation import RotationOutcome


def _settings(tmp_path: Path, **overrides) -> LogSettings:
    return replace(LogSettings(log_dir=tmp_path / "logs", base_name="app"), **overrides)


def _init_log(tmp_path: Path, **overrides) -> ManagedLog:
    log = ManagedLog(_settings(tmp_path, **overrides))
    assert log.init() is True
    return log


def _generation_names(log: ManagedLog) -> list[str]:
    path = log.active_log_path
    return sorted(p.name for p in path.parent.glob(f"{path.name}.*"))


class TestInit:
    def test_creates_directory_and_file(self, tmp_path: Path) -> None:
        log = _init_log(tmp_path)
        assert log.active_log_path == tmp_path / "logs" / "app.log"
        assert log.active_log_path.exists()

    def test_rotates_oversized_existing_log(self, tmp_path: Path) -> None:
        logs = tmp_path / "logs"
        logs.mkdir()
        (logs / "app.log").write_bytes(b"x" * 200)
        _init_log(tmp_path, max_size_bytes=100)
        assert (logs / "app.log.1").stat().st_size == 200
        assert (logs / "app.log").stat().st_size == 0


class TestWrite:
    def test_writes_formatted_line(self, tmp_path: Path) -> None:
        log = _init_log(tmp_path)
        assert log.write("INFO", "service started") is True
        line = log.active_log_path.read_text()
        assert line.endswith("] [INFO] service started\n")
        assert line.startswith("[")

    def test_level_filter(self, tmp_path: Path) -> None:
        log = _init_log(tmp_path, min_level=Severity.WARN)
        assert log.debug("d") is False
        assert log.info("i") is False
        assert log.warn("w") is True
        assert log.error("e") is True
        lines = log.active_log_path.read_text().splitlines()
        assert [l.split("] [")[1].split("]")[0] for l in lines] == ["WARN", "ERROR"]

    def test_unavailable_is_degraded(self, tmp_path: Path) -> None:
        log = ManagedLog(_settings(tmp_path))
        # Never initialized: no directory, no file
        assert log.write(Severity.ERROR, "lost") is False
        assert not log.active_log_path.exists()

    def test_invalid_record_level_dropped(self, tmp_path: Path) -> None:
        log = _init_log(tmp_path)
        assert log.write("LOUD", "x") is False
        assert log.active_log_path.read_text() == ""

    def test_log_command(self, tmp_path: Path) -> None:
        log = _init_log(tmp_path)
        log.log_command("logs view")
        assert "[INFO] Executing command: logs view" in log.active_log_path.read_text()


class TestSizeTriggeredRotation:
    def test_no_generations_below_threshold(self, tmp_path: Path) -> None:
        log = _init_log(tmp_path, max_size_bytes=10_000)
        for i in range(50):
            log.info(f"record {i}")
        assert log.active_log_path.stat().st_size < 10_000
        assert _generation_names(log) == []

    def test_single_oversized_write(self, tmp_path: Path) -> None:
        log = _init_log(tmp_path, max_size_bytes=100)
        message = "m" * 80  # 29-byte prefix + 80 + newline = 110 bytes
        assert log.write(Severity.INFO, message) is True

        assert _generation_names(log) == ["app.log.1"]
        rotated = (tmp_path / "logs" / "app.log.1").read_text()
        assert len(rotated.encode()) == 110
        assert rotated.endswith(message + "\n")
        assert log.active_log_path.stat().st_size == 0

    def test_exactly_one_rotation_when_crossing(self, tmp_path: Path) -> None:
        log = _init_log(tmp_path, max_size_bytes=100)
        log.info("a" * 40)
        log.info("b" * 40)
        assert _generation_names(log) == ["app.log.1"]
        assert log.active_log_path.stat().st_size == 0

    def test_failed_write_skips_size_check(self, tmp_path: Path) -> None:
        logs = tmp_path / "logs"
        logs.mkdir()
        log = ManagedLog(_settings(tmp_path, max_size_bytes=1))
        assert log.info("x") is False
        assert _generation_names(log) == []

    def test_settings_read_per_call(self, tmp_path: Path) -> None:
        current = {"settings": _settings(tmp_path, max_size_bytes=10_000)}
        log = ManagedLog(lambda: current["settings"])
        log.init()
        log.info("x" * 60)
        assert _generation_names(log) == []

        current["settings"] = _settings(tmp_path, max_size_bytes=50)
        log.info("y")
        assert _generation_names(log) == ["app.log.1"]

    def test_rotation_failure_recorded_in_active_log(self, tmp_path: Path, monkeypatch) -> None:
        log = _init_log(tmp_path, max_size_bytes=100)
        (tmp_path / "logs" / "app.log.1").write_text("gen1\n")

        real_rename = Path.rename

        def flaky_rename(self, target):
            if self.name == "app.log.1":
                raise PermissionError("denied")
            return real_rename(self, target)

        monkeypatch.setattr(Path, "rename", flaky_rename)
        assert log.info("z" * 100) is True
        text = log.active_log_path.read_text()
        assert "[ERROR] Log rotation: shift app.log.1 -> app.log.2 failed" in text


class TestForceRotate:
    def test_n_plus_one_rotations(self, tmp_path: Path) -> None:
        n = 3
        log = _init_log(tmp_path, max_generations=n)
        for i in range(n + 1):
            log.info(f"marker-{i}")
            assert log.force_rotate().outcome is RotationOutcome.ROTATED
        assert _generation_names(log) == ["app.log.1", "app.log.2", "app.log.3"]

    def test_marker_order(self, tmp_path: Path) -> None:
        n = 5
        log = _init_log(tmp_path, max_generations=n)
        for cycle in range(n + 2):
            log.info(f"marker-{cycle}")
            log.force_rotate()

        def marker(i: int) -> int:
            text = (tmp_path / "logs" / f"app.log.{i}").read_text()
            return int(text.strip().rsplit("-", 1)[1])

        markers = [marker(i) for i in range(1, n + 1)]
        assert markers == sorted(markers, reverse=True)
        assert markers[0] == n + 1

    def test_without_active_log(self, tmp_path: Path) -> None:
        log = ManagedLog(_settings(tmp_path))
        report = log.force_rotate()
        assert report.ok
        assert log.active_log_path.exists()
        assert _generation_names(log) == []


class TestSweep:
    def test_uses_retention_days_by_default(self, tmp_path: Path) -> None:
        log = _init_log(tmp_path, retention_days=10)
        now = time.time()
        for i, days in enumerate([5, 15, 40], start=1):
            p = tmp_path / "logs" / f"app.log.{i}"
            p.write_text("old\n")
            os.utime(p, (now - days * 86400, now - days * 86400))

        assert log.sweep() == 2
        assert log.sweep(3) == 1
        assert _generation_names(log) == []
        assert log.active_log_path.exists()


class TestFromHome:
    def test_reads_config_file_each_call(self, tmp_path: Path) -> None:
        save_config({**DEFAULT_CONFIG, "base_name": "svc"}, tmp_path)
        log = ManagedLog.from_home(tmp_path)
        assert log.active_log_path == tmp_path / "logs" / "svc.log"
        log.init()

        save_config({**DEFAULT_CONFIG, "base_name": "svc", "log_level": "ERROR"}, tmp_path)
        assert log.info("filtered") is False
        assert log.error("kept") is True

    def test_broken_config_degrades_write(self, tmp_path: Path) -> None:
        save_config({**DEFAULT_CONFIG, "max_generations": "many"}, tmp_path)
        log = ManagedLog.from_home(tmp_path)
        assert log.info("x") is False


class TestPackageLogger:
    def test_silent_by_default(self) -> None:
        handlers = logging.getLogger("genlog").handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)
