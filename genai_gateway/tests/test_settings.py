import json

import pytest

from genai_gateway.config.settings import BackendMode, load_settings
from genai_gateway.domain.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("pathlib.Path.home", lambda: home)
    for name in ("GENAI_MODE", "GENAI_ENDPOINT", "GENAI_MODEL", "GENAI_API_KEY", "GENAI_CONFIG_FILE"):
        monkeypatch.delenv(name, raising=False)
    return home


def test_defaults():
    settings = load_settings()
    assert settings.mode is BackendMode.MOCK
    assert settings.endpoint == "http://localhost:11434/v1"
    assert settings.model == "LFM2.5-1.2B-Instruct"
    assert settings.embedding_model == "nomic-embed-text"
    assert settings.timeout_ms == 60000
    assert settings.timeout_seconds == 60.0


def test_unknown_mode_is_rejected_at_load_time():
    with pytest.raises(ConfigurationError) as exc:
        load_settings(mode="cloudy")
    assert "mode" in exc.value.extra["fields"]


def test_mode_is_case_insensitive():
    assert load_settings(mode="LOCAL").mode is BackendMode.LOCAL


def test_genairc_project_overrides_user(tmp_path, isolated_home):
    (isolated_home / ".genairc.json").write_text(
        json.dumps({"ai": {"mode": "local", "endpoint": "http://user:1/v1", "timeout": 1234}}),
        encoding="utf-8",
    )
    project = tmp_path / "project"
    project.mkdir()
    (project / ".genairc.json").write_text(
        json.dumps({"port": 5000, "ai": {"endpoint": "http://test:1234/", "models": {"text": "tiny"}}}),
        encoding="utf-8",
    )
    settings = load_settings(project_path=str(project))
    assert settings.mode is BackendMode.LOCAL
    assert settings.endpoint == "http://test:1234"
    assert settings.model == "tiny"
    assert settings.timeout_ms == 1234


def test_environment_overrides_files(tmp_path, isolated_home, monkeypatch):
    (isolated_home / ".genairc.json").write_text(json.dumps({"ai": {"mode": "local"}}), encoding="utf-8")
    monkeypatch.setenv("GENAI_MODE", "mock")
    monkeypatch.setenv("GENAI_MODEL", "env-model")
    settings = load_settings()
    assert settings.mode is BackendMode.MOCK
    assert settings.model == "env-model"


def test_explicit_values_win_over_environment(monkeypatch):
    monkeypatch.setenv("GENAI_MODE", "local")
    assert load_settings(mode="mock").mode is BackendMode.MOCK


def test_broken_config_file_is_ignored(isolated_home):
    (isolated_home / ".genairc.json").write_text("{not: [valid", encoding="utf-8")
    with pytest.warns(UserWarning):
        settings = load_settings()
    assert settings.mode is BackendMode.MOCK


def test_independent_settings_in_one_process():
    a = load_settings(mode="mock")
    b = load_settings(mode="local", endpoint="http://other:1/v1")
    assert a.mode is BackendMode.MOCK
    assert b.mode is BackendMode.LOCAL
    assert a.endpoint != b.endpoint
