"""
Tests for CLI commands.

Uses typer's CliRunner with a fake lftp program.
"""

import json
import shlex

from typer.testing import CliRunner

from mirrorkeeper.cli.main import app
from mirrorkeeper.mirror.files import MirroredFiles

runner = CliRunner()


def fake_lftp(tmp_path, lines: list[str]) -> str:
    script = tmp_path / "fake-lftp"
    body = "".join(f"echo {shlex.quote(line)}\n" for line in lines)
    script.write_text(f"#!/bin/sh\n{body}exit 0\n")
    script.chmod(0o755)
    return str(script)


def source_args(tmp_path) -> list[str]:
    return [
        "--protocol", "sftp",
        "--host", "ftp.example.com",
        "--path", "/systemX/2017/03",
        "--output", str(tmp_path / "raw"),
        "--links", str(tmp_path / "clean"),
        "--name", "west-coast",
        "--state-dir", str(tmp_path / "state"),
        "--lock-dir", str(tmp_path / "locks"),
        "--project-dir", str(tmp_path),
    ]  # fmt: skip


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "mirrorkeeper version" in result.output


class TestHelp:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "mirror" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "mirrorkeeper" in result.output.lower()

    def test_mirror_help(self):
        result = runner.invoke(app, ["mirror", "--help"])
        assert result.exit_code == 0
        assert "--protocol" in result.output

    def test_unlock_help(self):
        assert runner.invoke(app, ["unlock", "--help"]).exit_code == 0

    def test_show_help(self):
        assert runner.invoke(app, ["show", "--help"]).exit_code == 0


class TestMirror:
    def test_mirror_from_options(self, tmp_path):
        raw = tmp_path / "raw" / "west-coast" / "done.csv"
        raw.parent.mkdir(parents=True)
        raw.write_text("x")
        MirroredFiles("west-coast", tmp_path / "state", ["done.csv"]).save()
        program = fake_lftp(tmp_path, ["Transferring file `new.csv'"])

        result = runner.invoke(app, ["mirror", *source_args(tmp_path), "--lftp-program", program])

        assert result.exit_code == 0, result.output
        assert "1 finished" in result.output
        assert (tmp_path / "clean" / "west-coast" / "done.csv").exists()
        assert json.loads((tmp_path / "state" / "west-coast.json").read_text())["files"] == ["new.csv"]
        assert not (tmp_path / "locks" / "HardlinkFileHandler.lock").exists()

    def test_failed_file_reported(self, tmp_path):
        MirroredFiles("west-coast", tmp_path / "state", ["gone.csv"]).save()
        program = fake_lftp(tmp_path, [])

        result = runner.invoke(app, ["mirror", *source_args(tmp_path), "--lftp-program", program])

        assert result.exit_code == 0, result.output
        assert "1 failed" in result.output
        assert "gone.csv" in result.output

    def test_mirror_from_config(self, tmp_path):
        program = fake_lftp(tmp_path, ["Transferring file `a.csv'"])
        (tmp_path / "config.yaml").write_text(
            "state:\n"
            f"  dir: {tmp_path / 'state'}\n"
            "lock:\n"
            f"  dir: {tmp_path / 'locks'}\n"
            "sources:\n"
            "  west-coast:\n"
            "    protocol: ftp\n"
            "    host: localhost\n"
            "    path: /pub\n"
            f"    output: {tmp_path / 'raw'}\n"
            f"    links: {tmp_path / 'clean'}\n"
            f"    lftp_program: {program}\n"
            "    handler: log\n"
        )

        result = runner.invoke(app, ["mirror", "west-coast", "--project-dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert json.loads((tmp_path / "state" / "west-coast.json").read_text())["files"] == ["a.csv"]

    def test_unknown_source_in_config(self, tmp_path):
        (tmp_path / "config.yaml").write_text("sources:\n  west-coast: {}\n")
        result = runner.invoke(app, ["mirror", "east-coast", "--project-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "east-coast" in result.output

    def test_named_source_requires_config(self, tmp_path):
        result = runner.invoke(app, ["mirror", "west-coast", "--project-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "config.yaml" in result.output

    def test_missing_host(self, tmp_path):
        args = source_args(tmp_path)
        host_index = args.index("--host")
        del args[host_index : host_index + 2]
        result = runner.invoke(app, ["mirror", *args])
        assert result.exit_code == 1
        assert "--host" in result.output

    def test_unsupported_protocol(self, tmp_path):
        result = runner.invoke(app, ["mirror", *source_args(tmp_path), "--protocol", "http"])
        assert result.exit_code == 1
        assert "Unsupported --protocol" in result.output

    def test_dry_run(self, tmp_path):
        result = runner.invoke(app, ["mirror", *source_args(tmp_path), "--dry-run", "--lftp-program", "/no/such/lftp"])
        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        assert not (tmp_path / "state").exists()

    def test_locked(self, tmp_path):
        (tmp_path / "locks").mkdir()
        (tmp_path / "locks" / "HardlinkFileHandler.lock").write_text("4242")
        program = fake_lftp(tmp_path, [])

        result = runner.invoke(app, ["mirror", *source_args(tmp_path), "--lftp-program", program])

        assert result.exit_code == 1
        assert "exists" in result.output
        assert not (tmp_path / "state").exists()


class TestUnlock:
    def test_removes_lock(self, tmp_path):
        (tmp_path / "HardlinkFileHandler.lock").write_text("4242")
        result = runner.invoke(app, ["unlock", "--lock-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "4242" in result.output
        assert not (tmp_path / "HardlinkFileHandler.lock").exists()

    def test_no_lock(self, tmp_path):
        result = runner.invoke(app, ["unlock", "--lock-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No lock" in result.output

    def test_source_scope(self, tmp_path):
        (tmp_path / "LogFileHandler-west.lock").write_text("1")
        result = runner.invoke(
            app,
            ["unlock", "--handler", "log", "--lock-scope", "source", "--name", "west", "--lock-dir", str(tmp_path)],
        )
        assert result.exit_code == 0
        assert not (tmp_path / "LogFileHandler-west.lock").exists()

    def test_source_scope_requires_name(self, tmp_path):
        result = runner.invoke(app, ["unlock", "--lock-scope", "source", "--lock-dir", str(tmp_path)])
        assert result.exit_code == 1

    def test_unknown_handler(self, tmp_path):
        result = runner.invoke(app, ["unlock", "--handler", "nope", "--lock-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "Unknown handler" in result.output


class TestShow:
    def test_lists_files(self, tmp_path):
        MirroredFiles("west-coast", tmp_path, ["a.csv", "b.csv"]).save()
        result = runner.invoke(app, ["show", "west-coast", "--state-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "a.csv" in result.output
        assert "b.csv" in result.output

    def test_empty(self, tmp_path):
        result = runner.invoke(app, ["show", "west-coast", "--state-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No files recorded" in result.output

    def test_corrupt(self, tmp_path):
        (tmp_path / "west-coast.json").write_text("garbage")
        result = runner.invoke(app, ["show", "west-coast", "--state-dir", str(tmp_path)])
        assert result.exit_code == 1
