from submitdesk.config import ACCESS_MINUTES, Config


def test_defaults(monkeypatch):
    for name in ("SECRET_KEY", "DATABASE_URL", "ACCESS_MINUTES", "CORS_ORIGINS", "LOG_LEVEL", "MAX_UPLOAD_BYTES"):
        monkeypatch.delenv(name, raising=False)
    config = Config.from_env()
    assert config.access_minutes == ACCESS_MINUTES
    assert config.cors_origins == ["*"]
    assert config.log_level == "INFO"
    assert config.database_url.startswith("sqlite:///")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "s3cret")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("ACCESS_MINUTES", "15")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "2048")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.edu, http://b.edu")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("ADMIN_USERNAME", "root")
    config = Config.from_env()
    assert config.secret_key == "s3cret"
    assert config.database_url == "sqlite://"
    assert config.access_minutes == 15
    assert config.max_upload_bytes == 2048
    assert config.cors_origins == ["http://a.edu", "http://b.edu"]
    assert config.log_level == "DEBUG"
    assert config.admin_username == "root"
