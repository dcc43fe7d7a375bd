import pytest
from pydantic import ValidationError

from chat_core.config.settings import Settings


def test_settings_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("API_BASE_URL", raising=False)
    monkeypatch.delenv("CHAT_CONFIG_FILE", raising=False)
    cfg = Settings()
    assert cfg.api_base_url == "http://localhost:3000/api"
    assert cfg.http_timeout == 30.0


def test_settings_from_yaml(monkeypatch, tmp_path):
    config = tmp_path / "chat.yaml"
    config.write_text("api_base_url: https://news.example.com/api/\nhttp_timeout: 5\nunknown_key: 1\n", encoding="utf-8")
    monkeypatch.setenv("CHAT_CONFIG_FILE", str(config))
    monkeypatch.delenv("API_BASE_URL", raising=False)
    cfg = Settings()
    assert cfg.api_base_url == "https://news.example.com/api"
    assert cfg.http_timeout == 5.0


def test_env_overrides_yaml(monkeypatch, tmp_path):
    config = tmp_path / "chat.yaml"
    config.write_text("api_base_url: https://yaml.example.com/api\n", encoding="utf-8")
    monkeypatch.setenv("CHAT_CONFIG_FILE", str(config))
    monkeypatch.setenv("API_BASE_URL", "https://env.example.com/api")
    assert Settings().api_base_url == "https://env.example.com/api"


def test_settings_validation(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CHAT_CONFIG_FILE", raising=False)
    with pytest.raises(ValidationError):
        Settings(http_timeout=0.1)
    with pytest.raises(ValidationError):
        Settings(api_base_url="localhost:3000")
