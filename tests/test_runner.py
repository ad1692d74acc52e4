"""
Tests for the guarded mirror job runner.
"""

import json
import shlex

import pytest

from mirrorkeeper.exceptions import ConfigurationError, LockError, MirrorProcessError
from mirrorkeeper.mirror.files import MirroredFiles
from mirrorkeeper.mirror.runner import lock_key, run_mirror_job
from mirrorkeeper.mirror.types import SourceConfig


class RecordingHandler:
    name = "recording"

    def __init__(self):
        self.processed: list[str] = []

    def process_finished(self, filename: str) -> None:
        self.processed.append(filename)

    def close(self) -> None:
        pass


def fake_lftp(tmp_path, lines: list[str], exit_code: int = 0) -> str:
    script = tmp_path / "fake-lftp"
    body = "".join(f"echo {shlex.quote(line)}\n" for line in lines)
    marker = shlex.quote(str(tmp_path / "ran"))
    script.write_text(f"#!/bin/sh\ntouch {marker}\n{body}exit {exit_code}\n")
    script.chmod(0o755)
    return str(script)


def make_source(tmp_path, **overrides) -> SourceConfig:
    settings = {
        "name": "west-coast",
        "protocol": "ftp",
        "host": "localhost",
        "path": "/pub",
        "output": str(tmp_path / "raw"),
        "links": str(tmp_path / "clean"),
    }
    settings.update(overrides)
    return SourceConfig(**settings)


class TestLockKey:
    def test_handler_scope(self):
        assert lock_key("HardlinkFileHandler", "west-coast") == "HardlinkFileHandler"

    def test_source_scope(self):
        assert lock_key("HardlinkFileHandler", "west-coast", "source") == "HardlinkFileHandler-west-coast"

    def test_unknown_scope(self):
        with pytest.raises(ConfigurationError):
            lock_key("HardlinkFileHandler", "west-coast", "host")


class TestRunMirrorJob:
    def test_summary(self, tmp_path):
        MirroredFiles("west-coast", tmp_path / "state", ["done.csv"]).save()
        program = fake_lftp(tmp_path, ["Transferring file `new.csv'"])
        handler = RecordingHandler()

        summary = run_mirror_job(
            make_source(tmp_path, lftp_program=program),
            handler=handler,
            state_dir=tmp_path / "state",
            lock_dir=tmp_path / "locks",
        )

        assert summary == {
            "name": "west-coast",
            "dry_run": False,
            "transferring": ["new.csv"],
            "finished": ["done.csv"],
            "failed": [],
            "failures": {},
        }
        assert handler.processed == ["done.csv"]

    def test_lock_released_after_run(self, tmp_path):
        program = fake_lftp(tmp_path, [])
        run_mirror_job(
            make_source(tmp_path, lftp_program=program),
            handler=RecordingHandler(),
            state_dir=tmp_path / "state",
            lock_dir=tmp_path / "locks",
        )
        assert not (tmp_path / "locks" / "RecordingHandler.lock").exists()

    def test_lock_released_after_failure(self, tmp_path):
        program = fake_lftp(tmp_path, [], exit_code=7)
        with pytest.raises(MirrorProcessError):
            run_mirror_job(
                make_source(tmp_path, lftp_program=program),
                handler=RecordingHandler(),
                state_dir=tmp_path / "state",
                lock_dir=tmp_path / "locks",
            )
        assert not (tmp_path / "locks" / "RecordingHandler.lock").exists()

    def test_mutual_exclusion(self, tmp_path):
        (tmp_path / "locks").mkdir()
        (tmp_path / "locks" / "RecordingHandler.lock").write_text("12345")
        MirroredFiles("west-coast", tmp_path / "state", ["a"]).save()
        program = fake_lftp(tmp_path, [])
        handler = RecordingHandler()

        with pytest.raises(LockError, match="12345"):
            run_mirror_job(
                make_source(tmp_path, lftp_program=program),
                handler=handler,
                state_dir=tmp_path / "state",
                lock_dir=tmp_path / "locks",
            )

        assert not (tmp_path / "ran").exists()
        assert handler.processed == []
        assert json.loads((tmp_path / "state" / "west-coast.json").read_text())["files"] == ["a"]
        assert (tmp_path / "locks" / "RecordingHandler.lock").read_text() == "12345"

    def test_handler_scope_serialises_other_sources(self, tmp_path):
        (tmp_path / "locks").mkdir()
        (tmp_path / "locks" / "RecordingHandler.lock").write_text("1")
        with pytest.raises(LockError):
            run_mirror_job(
                make_source(tmp_path, name="east-coast", lftp_program=fake_lftp(tmp_path, [])),
                handler=RecordingHandler(),
                state_dir=tmp_path / "state",
                lock_dir=tmp_path / "locks",
            )

    def test_source_scope_allows_other_sources(self, tmp_path):
        (tmp_path / "locks").mkdir()
        (tmp_path / "locks" / "RecordingHandler-west-coast.lock").write_text("1")
        summary = run_mirror_job(
            make_source(tmp_path, name="east-coast", lftp_program=fake_lftp(tmp_path, [])),
            handler=RecordingHandler(),
            state_dir=tmp_path / "state",
            lock_dir=tmp_path / "locks",
            lock_scope="source",
        )
        assert summary["name"] == "east-coast"

    def test_invalid_source_fails_before_lock(self, tmp_path):
        with pytest.raises(ConfigurationError):
            run_mirror_job(
                make_source(tmp_path, protocol="gopher"),
                handler=RecordingHandler(),
                state_dir=tmp_path / "state",
                lock_dir=tmp_path / "locks",
            )
        assert not (tmp_path / "locks").exists()

    def test_dry_run_skips_lock_and_state(self, tmp_path):
        program = fake_lftp(tmp_path, ["Transferring file `a'"])
        summary = run_mirror_job(
            make_source(tmp_path, lftp_program=program, dry_run=True),
            handler=RecordingHandler(),
            state_dir=tmp_path / "state",
            lock_dir=tmp_path / "locks",
        )
        assert summary["dry_run"] is True
        assert summary["finished"] == []
        assert not (tmp_path / "ran").exists()
        assert not (tmp_path / "state").exists()
        assert not (tmp_path / "locks").exists()

    def test_resolves_handler_by_name(self, tmp_path):
        program = fake_lftp(tmp_path, [])
        run_mirror_job(
            make_source(tmp_path, lftp_program=program),
            handler_name="log",
            state_dir=tmp_path / "state",
            lock_dir=tmp_path / "locks",
        )
        assert (tmp_path / "state" / "west-coast.json").exists()
