"""Tests for the maintenance CLI."""

import logging
import os
import tempfile

import pytest
import yaml

from skillmatch.main import main, parse_args


@pytest.fixture
def workdir():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = os.path.join(tmpdir, "config.yaml")
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump({
                "database": {"url": f"sqlite:///{os.path.join(tmpdir, 'cli.db')}"},
                "storage": {"upload_dir": os.path.join(tmpdir, "uploads")},
                "log_dir": os.path.join(tmpdir, "logs"),
            }, f)
        yield config_path
        # Release the rotating file handler before the directory goes away
        logger = logging.getLogger("skillmatch")
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


class TestParseArgs:
    def test_rescore_defaults_to_all(self):
        assert parse_args(["--rescore"]).rescore == "all"
        assert parse_args(["--rescore", "7"]).rescore == "7"
        assert parse_args([]).rescore is None


class TestMain:
    def test_missing_config_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", "does-not-exist.yaml", "--check"])
        assert exc_info.value.code == 1

    def test_init_rescore_check(self, workdir, capsys):
        main(["--config", workdir, "--init-db"])
        main(["--config", workdir, "--rescore"])
        assert "Recomputed completion for 0 profile(s)." in capsys.readouterr().out
        main(["--config", workdir, "--check"])
        assert "No issues found." in capsys.readouterr().out

    def test_nothing_to_do(self, workdir):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", workdir])
        assert exc_info.value.code == 1
