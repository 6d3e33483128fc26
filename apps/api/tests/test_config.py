from boxrelay.core.config import Settings


def test_defaults_keep_boxes_for_thirty_days(monkeypatch) -> None:
    for name in ("BOX_RETENTION_DAYS", "EVICTION_INTERVAL_SECONDS", "CORS_ALLOW_ORIGINS", "MAX_TEXT_LENGTH"):
        monkeypatch.delenv(name, raising=False)

    config = Settings(_env_file=None)

    assert config.box_retention_days == 30
    assert config.box_retention_seconds == 30 * 24 * 60 * 60
    assert config.eviction_interval_seconds == 24 * 60 * 60
    assert config.cors_allow_origins == ["*"]
    assert config.max_text_length > 0


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("BOX_RETENTION_DAYS", "7")
    monkeypatch.setenv("cors_allow_origins", "https://a.example, https://b.example")
    monkeypatch.setenv("MAX_TEXT_LENGTH", "0")

    config = Settings(_env_file=None)

    assert config.box_retention_seconds == 7 * 24 * 60 * 60
    assert config.cors_allow_origins == ["https://a.example", "https://b.example"]
    assert config.max_text_length == 0
