import json

import pytest

from config import load_config, resolve_registry
from config.registry import EVAL_KEY, QUESTION_KEY, bind_model, get_model, unbind_model
from config.settings import Settings
from agents.llm_models import SCHEMAS


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.TOTAL_QUESTIONS_DEFAULT == 10
    assert settings.DIFFICULTY_UP_THRESHOLD == 85
    assert settings.DIFFICULTY_DOWN_THRESHOLD == 60
    assert settings.FALLBACK_SCORE == 50


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("QUESTION_TIMEOUT_S", "2.5")
    monkeypatch.setenv("TOTAL_QUESTIONS_DEFAULT", "4")
    settings = Settings(_env_file=None)
    assert settings.QUESTION_TIMEOUT_S == 2.5
    assert settings.TOTAL_QUESTIONS_DEFAULT == 4


def test_registry_bind_and_retrieve():
    marker = object()
    bind_model(QUESTION_KEY, lambda **_: marker)
    model = get_model(QUESTION_KEY)
    assert model() is marker


def test_registry_missing_key_raises():
    unbind_model(EVAL_KEY)
    with pytest.raises(KeyError):
        get_model(EVAL_KEY)


def test_bundled_app_config_covers_every_model_key():
    from api_server import ROOT

    cfg = load_config(ROOT / "app_config.json")
    resolved = resolve_registry(cfg, SCHEMAS)
    assert set(resolved) == set(SCHEMAS)
    route, _ = resolved[QUESTION_KEY]
    assert route.api_key_env == "GROQ_API_KEY"


def test_resolve_registry_reports_missing_route(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(
        json.dumps(
            {
                "llm_routes": {"r1": {"name": "r1", "base_url": "http://localhost", "model": "m"}},
                "registry": {QUESTION_KEY: "r1", EVAL_KEY: "missing"},
            }
        ),
        encoding="utf-8",
    )
    cfg = load_config(path)
    with pytest.raises(KeyError):
        resolve_registry(cfg, {EVAL_KEY: SCHEMAS[EVAL_KEY]})
