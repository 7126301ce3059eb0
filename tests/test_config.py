from codecollab.core.config import Settings


def test_defaults(monkeypatch) -> None:
    for key in ("DEFAULT_LANGUAGE_ID", "TYPING_TIMEOUT_SECONDS", "CORS_ALLOWED_ORIGINS", "PORT"):
        monkeypatch.delenv(key, raising=False)

    settings = Settings()

    assert settings.DEFAULT_LANGUAGE_ID == 71
    assert settings.TYPING_TIMEOUT_SECONDS == 1.0
    assert settings.CORS_ALLOWED_ORIGINS == ["*"]
    assert settings.PORT == 5000


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "http://localhost:5173, https://editor.example.com")
    monkeypatch.setenv("MAX_CHAT_LENGTH", "10")
    monkeypatch.setenv("RUNNER_URL", "http://judge0:2358/")

    settings = Settings()

    assert settings.CORS_ALLOWED_ORIGINS == ["http://localhost:5173", "https://editor.example.com"]
    assert settings.MAX_CHAT_LENGTH == 10
    assert settings.RUNNER_URL == "http://judge0:2358"
