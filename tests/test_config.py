from horizonrelay.config import Settings


def test_settings_defaults():
    s = Settings()
    assert s.upstream_url.endswith("/chat/completions")
    assert s.upstream_timeout_s == 60.0
    assert s.port == 8000
    assert s.log_level == "INFO"
    assert "Horizon" in s.system_prompt


def test_settings_override():
    s = Settings(
        upstream_url="http://custom:8080/v1/chat/completions",
        upstream_api_key="secret",
        upstream_model="custom-model",
        environment="production",
    )
    assert s.upstream_url == "http://custom:8080/v1/chat/completions"
    assert s.upstream_api_key == "secret"
    assert s.upstream_model == "custom-model"
    assert s.environment == "production"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("HORIZON_UPSTREAM_MODEL", "env-model")
    monkeypatch.setenv("HORIZON_UPSTREAM_TIMEOUT_S", "5")
    s = Settings()
    assert s.upstream_model == "env-model"
    assert s.upstream_timeout_s == 5.0
