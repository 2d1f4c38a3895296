from __future__ import annotations

import logging
import os

import pytest

from doccache import Arguments, Settings, get_settings, setup_logging


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "DOCCACHE_INDENT",
        "DOCCACHE_FSYNC",
        "DOCCACHE_HANDLE_SIGINT",
        "DOCCACHE_SHUTDOWN_TIMEOUT",
        "DOCCACHE_LOG_LEVEL",
        "DOCCACHE_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults(clean_env):
    assert get_settings() == Settings()


def test_environment_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("DOCCACHE_INDENT", "4")
    monkeypatch.setenv("DOCCACHE_FSYNC", "no")
    monkeypatch.setenv("DOCCACHE_HANDLE_SIGINT", "0")
    monkeypatch.setenv("DOCCACHE_SHUTDOWN_TIMEOUT", "0.5")
    monkeypatch.setenv("DOCCACHE_LOG_LEVEL", "debug")

    s = get_settings()

    assert s.indent == 4
    assert s.fsync is False
    assert s.handle_sigint is False
    assert s.shutdown_lock_timeout == 0.5
    assert s.log_level == "DEBUG"


def test_arguments_override_environment(clean_env, monkeypatch):
    monkeypatch.setenv("DOCCACHE_LOG_LEVEL", "ERROR")

    s = get_settings(["app", "--cache-log-level", "info", "--cache-indent", "0", "-cache-no-sigint"])

    assert s.log_level == "INFO"
    assert s.indent == 0
    assert s.handle_sigint is False


def test_env_file_is_loaded(clean_env, tmp_path, monkeypatch):
    env_file = tmp_path / "local.env"
    env_file.write_text("DOCCACHE_INDENT=8\nDOCCACHE_LOG_LEVEL=ERROR\n", encoding="utf-8")
    monkeypatch.setenv("DOCCACHE_LOG_LEVEL", "INFO")

    try:
        s = get_settings(env_file=str(env_file))
    finally:
        # load_dotenv writes straight into os.environ.
        os.environ.pop("DOCCACHE_INDENT", None)

    assert s.indent == 8
    assert s.log_level == "INFO"


def test_has_argument_only_matches_dash_flags():
    args = Arguments(["-verbose", "plain", "--out", "file.txt"])

    assert args.has_argument("-verbose")
    assert args.has_argument("--out")
    assert not args.has_argument("plain")
    assert not args.has_argument("-quiet")


def test_try_get_argument():
    args = Arguments(["--out", "file.txt", "-x", "--last"])

    assert args.try_get_argument("--out") == "file.txt"
    assert args.try_get_argument("--last") is None
    assert args.try_get_argument("--missing") is None
    assert args.try_get_argument("-x") is None


def test_arguments_default_to_sys_argv(monkeypatch):
    monkeypatch.setattr("sys.argv", ["prog", "--name", "value"])

    assert Arguments().try_get_argument("--name") == "value"


def test_setup_logging_installs_one_console_handler(monkeypatch, tmp_path):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    log_file = tmp_path / "cache.log"

    setup_logging(Settings(log_level="INFO", log_file=str(log_file)))
    setup_logging(Settings(log_level="DEBUG"))

    assert root.level == logging.INFO
    assert len(root.handlers) == 2
    logging.getLogger("doccache.test").info("hello %s", "file")
    for handler in root.handlers:
        handler.flush()
    assert "hello file" in log_file.read_text(encoding="utf-8")
    for handler in root.handlers:
        handler.close()
