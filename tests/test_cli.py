"""
Tests for the command-line interface.
"""

import logging

import pytest

import libbids
from libbids.cli import main as cli_main
from libbids.cli.main import create_parser, main


@pytest.fixture
def logging_calls(monkeypatch):
    """Record setup_logging calls instead of reconfiguring the root logger."""
    calls = []
    monkeypatch.setattr(cli_main, "setup_logging", lambda **kwargs: calls.append(kwargs))
    return calls


class TestParser:
    """Tests for argument parsing."""

    def test_dataset_argument(self, tmp_path):
        """Test the positional dataset argument."""
        args = create_parser().parse_args([str(tmp_path)])
        assert args.dataset == tmp_path
        assert not args.csv
        assert not args.verbose

    def test_missing_dataset(self, capsys):
        """Test that the dataset argument is required."""
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args([])
        assert exc_info.value.code == 2
        assert "dataset" in capsys.readouterr().err

    def test_version(self, capsys):
        """Test the version flag."""
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert libbids.__version__ in capsys.readouterr().out


class TestMain:
    """Tests for the main entry point."""

    def test_prints_table(self, bids_dataset_dir, capsys, logging_calls):
        """Test that the table is written to standard output."""
        exit_code = main([str(bids_dataset_dir), "--no-log-file"])

        assert exit_code == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("derivatives\tdata_type\tsubject\t")
        assert lines[0].endswith("\tsuffix\textension\tpath")
        assert len(lines) == 8

    def test_csv_output(self, bids_dataset_dir, capsys, logging_calls):
        """Test the comma-separated output."""
        assert main([str(bids_dataset_dir), "--csv", "--no-log-file"]) == 0
        assert capsys.readouterr().out.startswith("derivatives,data_type,subject,")

    def test_configured_delimiter(self, bids_dataset_dir, capsys, logging_calls, isolated_settings):
        """Test that the configured delimiter is used without --csv."""
        isolated_settings.get().delimiter = ";"
        assert main([str(bids_dataset_dir)]) == 0
        assert capsys.readouterr().out.startswith("derivatives;data_type;")

    def test_nonexistent_dataset(self, tmp_path, capsys, logging_calls):
        """Test that a missing dataset exits with status 1 and no output."""
        assert main([str(tmp_path / "missing"), "--no-log-file"]) == 1
        assert capsys.readouterr().out == ""

    def test_invalid_configuration(self, bids_dataset_dir, capsys, logging_calls, isolated_settings):
        """Test that a schema error exits with status 1."""
        isolated_settings.get().custom_entities = [{"name": "sub"}]
        assert main([str(bids_dataset_dir)]) == 1
        assert capsys.readouterr().out == ""

    def test_logging_options(self, bids_dataset_dir, logging_calls, isolated_settings):
        """Test how command-line flags reach the logging setup."""
        isolated_settings.get().log_to_file = True

        main([str(bids_dataset_dir), "-v", "--no-log-file"])
        main([str(bids_dataset_dir)])

        assert logging_calls[0]["level"] == logging.DEBUG
        assert logging_calls[0]["log_to_file"] is False
        assert logging_calls[1]["level"] == logging.INFO
        assert logging_calls[1]["log_to_file"] is True

    def test_log_level_name_from_settings(self, bids_dataset_dir, logging_calls, isolated_settings):
        """Test that a level name in the settings is accepted."""
        isolated_settings.get().log_level = "WARNING"
        assert main([str(bids_dataset_dir), "--no-log-file"]) == 0
        assert logging_calls[0]["level"] == logging.WARNING

    def test_unknown_log_level_falls_back(self, bids_dataset_dir, logging_calls, isolated_settings, caplog):
        """Test that an unknown level name falls back to INFO with a warning."""
        isolated_settings.get().log_level = "LOUD"
        with caplog.at_level(logging.WARNING):
            assert main([str(bids_dataset_dir), "--no-log-file"]) == 0
        assert logging_calls[0]["level"] == logging.INFO
        assert "Unknown log level" in caplog.text
