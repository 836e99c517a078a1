from __future__ import annotations

import json
import logging
import sys

import pytest

from paper_vault.app.core.env import Env, get_env_flags, normalize_env, pick
from paper_vault.app.core.logging import JsonFormatter, setup_logging


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("production", Env.PROD),
        ("PROD", Env.PROD),
        (" development ", Env.DEV),
        ("preview", Env.TEST),
        ("local", Env.LOCAL),
        ("staging-7", None),
        (None, None),
    ],
)
def test_normalize_env(raw, expected):
    assert normalize_env(raw) == expected


def test_pick_prefers_specific_environment_values():
    assert pick(prod="p", nonprod="n", env=Env.PROD) == "p"
    assert pick(prod="p", nonprod="n", env=Env.DEV) == "n"
    assert pick(prod="p", nonprod="n", test="t", env=Env.TEST) == "t"
    assert get_env_flags(Env.LOCAL).is_local


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_defaults_by_environment(restore_root_logger, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)

    setup_logging(env=Env.PROD)
    root = restore_root_logger
    assert root.level == logging.INFO
    assert isinstance(root.handlers[0].formatter, JsonFormatter)

    setup_logging(env=Env.LOCAL)
    assert root.level == logging.DEBUG
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_explicit_level_overrides_environment(restore_root_logger, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    setup_logging(env=Env.LOCAL)
    assert restore_root_logger.level == logging.WARNING


def test_json_formatter_carries_paper_and_http_context():
    record = logging.LogRecord("paper_vault.test", logging.INFO, __file__, 1, "Deleted %s", ("p1",), None)
    record.paper_id = "p1"
    record.file_path = "1700000000000-000000001.pdf"
    record.http_method = "DELETE"
    record.status_code = 200
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "Deleted p1"
    assert payload["paper"] == {"paper_id": "p1", "file_path": "1700000000000-000000001.pdf"}
    assert payload["http"] == {"method": "DELETE", "status": 200}


def test_json_formatter_truncates_stack(monkeypatch):
    monkeypatch.setenv("LOG_STACK_LIMIT", "20")
    try:
        raise RuntimeError("kaboom")
    except RuntimeError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    payload = json.loads(JsonFormatter().format(record))
    assert payload["error"]["type"] == "RuntimeError"
    assert payload["error"]["message"] == "kaboom"
    assert payload["error"]["stack"].endswith("...(truncated)")
