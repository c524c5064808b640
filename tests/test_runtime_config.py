import os
from pathlib import Path
from typing import Callable, Dict

import pytest

import telegram_bot_runtime.runtime_config as config_module
from telegram_bot_runtime.runtime_config import (
    RuntimeConfig,
    get_data_dir,
    load_envs,
)


def test_runtime_config_defaults() -> None:
    cfg = RuntimeConfig(bot_token="TOK")
    assert cfg.base_url == "https://api.telegram.org"
    assert cfg.max_attempts == 3
    assert cfg.retry_on_network_error is False
    assert cfg.command_prefix == "/"
    assert cfg.fallback_reply is None


@pytest.mark.parametrize(
    "base_url,expected",
    [
        ("https://api.telegram.org", "https://api.telegram.org/botTOK"),
        ("http://localhost:8081/", "http://localhost:8081/botTOK"),
    ],
)
def test_api_url(base_url: str, expected: str) -> None:
    assert RuntimeConfig(bot_token="TOK", base_url=base_url).api_url == expected


def test_runtime_config_is_frozen() -> None:
    cfg = RuntimeConfig(bot_token="TOK")
    with pytest.raises(AttributeError):
        cfg.bot_token = "other"  # type: ignore[misc]


@pytest.fixture
def mock_dotenv(monkeypatch: pytest.MonkeyPatch) -> Callable[[Dict[str, str]], None]:
    """Mock dotenv_values to return test values."""

    def _mock(values: Dict[str, str]) -> None:
        monkeypatch.setattr(
            config_module, "dotenv_values", lambda env_file=None: values
        )

    return _mock


@pytest.mark.parametrize(
    "existing_env,dotenv_vals,expected",
    [
        # Test loading from dotenv when env vars not set
        (
            {},
            {"TELEGRAM_BOT_TOKEN": "FROM_ENV", "TELEGRAM_API_BASE_URL": "http://local"},
            {"TELEGRAM_BOT_TOKEN": "FROM_ENV", "TELEGRAM_API_BASE_URL": "http://local"},
        ),
        # Test not overriding existing env vars
        (
            {"TELEGRAM_BOT_TOKEN": "SHELL_TOK", "TELEGRAM_API_BASE_URL": "http://shell"},
            {"TELEGRAM_BOT_TOKEN": "FROM_ENV", "TELEGRAM_API_BASE_URL": "http://local"},
            {"TELEGRAM_BOT_TOKEN": "SHELL_TOK", "TELEGRAM_API_BASE_URL": "http://shell"},
        ),
    ],
)
def test_load_envs_behavior(
    existing_env: Dict[str, str],
    dotenv_vals: Dict[str, str],
    expected: Dict[str, str],
    monkeypatch: pytest.MonkeyPatch,
    mock_dotenv: Callable[[Dict[str, str]], None],
) -> None:
    """Test load_envs behavior with different environment configurations."""
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "")
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN")
    monkeypatch.setenv("TELEGRAM_API_BASE_URL", "")
    monkeypatch.delenv("TELEGRAM_API_BASE_URL")

    for key, value in existing_env.items():
        monkeypatch.setenv(key, value)

    mock_dotenv(dotenv_vals)

    load_envs()

    for key, value in expected.items():
        assert os.environ.get(key) == value


def test_load_envs_with_explicit_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".custom_env"
    env_file.write_text("TELEGRAM_BOT_TOKEN=EXPLICIT\nTELEGRAM_FALLBACK_REPLY=hi\n")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "")
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN")
    monkeypatch.setenv("TELEGRAM_FALLBACK_REPLY", "")
    monkeypatch.delenv("TELEGRAM_FALLBACK_REPLY")

    load_envs(env_file=str(env_file))

    assert os.environ.get("TELEGRAM_BOT_TOKEN") == "EXPLICIT"
    assert os.environ.get("TELEGRAM_FALLBACK_REPLY") == "hi"


def test_data_dir_follows_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    assert get_data_dir() == tmp_path / "data" / "telegram_bot_runtime"
