"""Unit tests for the drivesync CLI commands."""

import os
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from drivesync.cli import main, parse_location
from drivesync.exceptions import DriveAuthenticationError


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner(env={"COLUMNS": "1000"})


@pytest.fixture
def tree(tmp_path):
    """A source directory with two files and an empty destination."""
    src = tmp_path / "src"
    (src / "sub").mkdir(parents=True)
    (src / "a.txt").write_text("alpha")
    (src / "sub" / "b.txt").write_text("beta")
    os.utime(src / "a.txt", (100, 100))
    dst = tmp_path / "dst"
    dst.mkdir()
    return src, dst


class TestParseLocation:
    """Tests for remote prefix handling."""

    @pytest.mark.parametrize(
        "location,expected",
        [
            ("drive:/backup", (True, "/backup")),
            ("remote:photos/", (True, "photos/")),
            ("drive:", (True, "")),
            ("/home/me", (False, "/home/me")),
            ("./drive:x", (False, "./drive:x")),
        ],
    )
    def test_parse(self, location, expected):
        assert parse_location(location) == expected


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "sync" in result.output
        assert "init" in result.output

    def test_sync_help(self, runner):
        result = runner.invoke(main, ["sync", "--help"])
        assert result.exit_code == 0
        assert "--dry-run" in result.output
        assert "--exclude" in result.output
        assert "--inplace" in result.output


class TestSyncCommand:
    """Tests for the sync command."""

    def test_requires_source_and_destination(self, runner, tmp_path):
        result = runner.invoke(main, ["sync", str(tmp_path)])
        assert result.exit_code == 2
        assert "Must specify source and destination" in result.output

    @patch("drivesync.cli.DriveClient")
    def test_local_sync(self, mock_client_class, runner, tree):
        src, dst = tree

        result = runner.invoke(main, ["sync", str(src), str(dst)])

        assert result.exit_code == 0, result.output
        assert (dst / "src" / "a.txt").read_text() == "alpha"
        assert (dst / "src" / "sub" / "b.txt").read_text() == "beta"
        assert (dst / "src" / "a.txt").stat().st_mtime == 100
        assert "Sync complete!" in result.output
        # Local-only runs never talk to the drive
        mock_client_class.assert_not_called()

    def test_trailing_slash(self, runner, tree):
        src, dst = tree

        result = runner.invoke(main, ["sync", str(src) + "/", str(dst)])

        assert result.exit_code == 0, result.output
        assert (dst / "a.txt").exists()

    def test_multiple_sources(self, runner, tree, tmp_path):
        src, dst = tree
        other = tmp_path / "other"
        other.mkdir()
        (other / "c.txt").write_text("gamma")

        result = runner.invoke(main, ["sync", str(src), str(other), str(dst)])

        assert result.exit_code == 0, result.output
        assert (dst / "src" / "a.txt").exists()
        assert (dst / "other" / "c.txt").exists()

    def test_dry_run(self, runner, tree):
        src, dst = tree

        result = runner.invoke(main, ["sync", "--dry-run", str(src), str(dst)])

        assert result.exit_code == 0, result.output
        assert list(dst.iterdir()) == []
        assert "Dry run" in result.output

    def test_exclude(self, runner, tree):
        src, dst = tree

        result = runner.invoke(
            main, ["sync", "--exclude", "b.*", str(src) + "/", str(dst)]
        )

        assert result.exit_code == 0, result.output
        assert (dst / "a.txt").exists()
        assert (dst / "sub").is_dir()
        assert not (dst / "sub" / "b.txt").exists()

    def test_verbose_lists_copied_files(self, runner, tree):
        src, dst = tree

        result = runner.invoke(main, ["-v", "sync", str(src) + "/", str(dst)])

        assert result.exit_code == 0, result.output
        assert str(dst / "a.txt") in result.output
        assert str(dst / "sub" / "b.txt") in result.output

    def test_quiet(self, runner, tree):
        src, dst = tree

        result = runner.invoke(main, ["-q", "sync", str(src), str(dst)])

        assert result.exit_code == 0
        assert result.output == ""

    def test_missing_destination(self, runner, tree, tmp_path):
        src, _ = tree

        result = runner.invoke(main, ["sync", str(src), str(tmp_path / "nowhere")])

        assert result.exit_code == 1
        assert "Destination does not exist" in result.output

    def test_bad_exclude_pattern(self, runner, tree):
        src, dst = tree

        result = runner.invoke(main, ["sync", "--exclude", "[a", str(src), str(dst)])

        assert result.exit_code == 1
        assert "pattern" in result.output
        assert list(dst.iterdir()) == []

    @patch("drivesync.cli.DriveFileSystem")
    @patch("drivesync.cli.DriveClient")
    def test_remote_destination(
        self, mock_client_class, mock_fs_class, runner, tree, memfs
    ):
        src, _ = tree
        remote = memfs()
        remote.add_dir("/backup")
        mock_client = Mock()
        mock_client_class.return_value = mock_client
        mock_fs_class.return_value = remote

        result = runner.invoke(
            main, ["sync", "--api-key", "k", str(src) + "/", "drive:/backup"]
        )

        assert result.exit_code == 0, result.output
        mock_client_class.assert_called_once_with(api_key="k")
        mock_fs_class.assert_called_once_with(mock_client)
        assert remote.node("/backup/a.txt").data == b"alpha"
        assert remote.node("/backup/a.txt").mtime == 100
        mock_client.close.assert_called_once()

    @patch("drivesync.cli.DriveClient")
    def test_remote_api_error(self, mock_client_class, runner, tree):
        src, _ = tree
        mock_client_class.side_effect = DriveAuthenticationError("Invalid API key")

        result = runner.invoke(main, ["sync", str(src), "remote:/backup"])

        assert result.exit_code == 1
        assert "Invalid API key" in result.output


class TestInitCommand:
    """Tests for the init command."""

    @patch("drivesync.cli.DriveClient")
    @patch("drivesync.cli.config")
    def test_init_with_valid_api_key(self, mock_config, mock_client_class, runner):
        mock_client = Mock()
        mock_client.get_logged_user.return_value = {"user": {"email": "me@example.com"}}
        mock_client_class.return_value = mock_client
        mock_config.get_config_path.return_value = "/home/me/.config/drivesync/config"

        result = runner.invoke(main, ["init", "--api-key", "good_key"])

        assert result.exit_code == 0, result.output
        assert "API key is valid" in result.output
        mock_config.save_api_key.assert_called_once_with("good_key")
        mock_client.close.assert_called_once()

    @patch("drivesync.cli.DriveClient")
    @patch("drivesync.cli.config")
    def test_init_invalid_key_declined(self, mock_config, mock_client_class, runner):
        mock_client = Mock()
        mock_client.get_logged_user.side_effect = DriveAuthenticationError("bad key")
        mock_client_class.return_value = mock_client

        result = runner.invoke(main, ["init", "--api-key", "bad_key"], input="n\n")

        assert result.exit_code == 1
        assert "validation failed" in result.output
        mock_config.save_api_key.assert_not_called()

    @patch("drivesync.cli.DriveClient")
    @patch("drivesync.cli.config")
    def test_init_invalid_key_saved_anyway(self, mock_config, mock_client_class, runner):
        mock_client = Mock()
        mock_client.get_logged_user.return_value = {"user": None}
        mock_client_class.return_value = mock_client
        mock_config.get_config_path.return_value = "/tmp/config"

        result = runner.invoke(main, ["init", "--api-key", "odd_key"], input="y\n")

        assert result.exit_code == 0, result.output
        mock_config.save_api_key.assert_called_once_with("odd_key")
